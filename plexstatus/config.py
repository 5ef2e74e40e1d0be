"""Configuration for the status bot.

Values come from environment variables, falling back to a JSON file
(config.json by default) that uses the same key names.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from plexstatus.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = 'config.json'
DEFAULT_LAST_MESSAGE_FILE = 'lastMessageId.txt'
MIN_REFRESH_TIME_MS = 1000


def _read_config_file(path: str) -> dict:
    """Load the optional JSON config file. A missing file is not an error."""
    config_path = Path(path)
    if not config_path.exists():
        return {}
    try:
        with config_path.open('r', encoding='utf-8') as config_file:
            values = json.load(config_file)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError([f'Cannot read config file {path}: {e}']) from e
    if not isinstance(values, dict):
        raise ConfigError([f'Config file {path} must contain a JSON object'])
    return values


class Config:
    """Application configuration, read once at startup.

    Raises:
        ConfigError: Listing every required key that is missing or invalid
    """

    def __init__(self, config_file: Optional[str] = None, environ: Optional[Mapping[str, str]] = None):
        self._environ = os.environ if environ is None else environ
        self.config_file = config_file or self._environ.get('PLEXSTATUS_CONFIG', DEFAULT_CONFIG_FILE)
        self._file_values = _read_config_file(self.config_file)
        problems: list[str] = []

        # Tautulli
        self.tautulli_url = self._required_str('TAUTULLI_URL', problems)
        self.tautulli_api_key = self._required_str('TAUTULLI_API_KEY', problems)

        # Discord
        self.discord_bot_token = self._required_str('DISCORD_BOT_TOKEN', problems)
        self.discord_channel_id = self._required_int('DISCORD_CHANNEL_ID', problems, min_val=1)

        # Poll interval in milliseconds
        self.refresh_time_ms = self._required_int('REFRESH_TIME', problems, min_val=MIN_REFRESH_TIME_MS)

        if problems:
            raise ConfigError(problems)

        self.request_timeout = self._request_timeout()
        self.last_message_file = str(self._lookup('LAST_MESSAGE_FILE', DEFAULT_LAST_MESSAGE_FILE))

        # Log levels
        self.log_level = str(self._lookup('LOG_LEVEL', 'INFO')).upper()
        self.log_level_discord = str(self._lookup('LOG_LEVEL_DISCORD', 'INFO')).upper()
        self.log_level_scheduler = str(self._lookup('LOG_LEVEL_SCHEDULER', 'WARNING')).upper()

    @property
    def poll_interval(self) -> float:
        """Poll interval in seconds."""
        return self.refresh_time_ms / 1000

    def _lookup(self, name: str, default: Any = None) -> Any:
        raw = self._environ.get(name)
        if raw not in (None, ''):
            return raw
        value = self._file_values.get(name)
        if value in (None, ''):
            return default
        return value

    def _required_str(self, name: str, problems: list[str]) -> str:
        value = self._lookup(name)
        text = str(value).strip() if value is not None else ''
        if not text:
            problems.append(f'{name} is required')
        return text

    def _required_int(self, name: str, problems: list[str], min_val: Optional[int] = None) -> int:
        value = self._lookup(name)
        if value is None:
            problems.append(f'{name} is required')
            return 0
        try:
            parsed = int(str(value).strip())
        except ValueError:
            problems.append(f'{name} must be an integer, got {value!r}')
            return 0
        if min_val is not None and parsed < min_val:
            problems.append(f'{name}={parsed} is below the minimum {min_val}')
        return parsed

    def _request_timeout(self) -> float:
        """Per-call I/O timeout in seconds, never longer than the poll interval."""
        raw = self._lookup('REQUEST_TIMEOUT')
        if raw is None:
            return self.poll_interval
        try:
            timeout = float(raw)
        except (TypeError, ValueError):
            logger.warning(f'Invalid REQUEST_TIMEOUT={raw!r}, using poll interval {self.poll_interval}s')
            return self.poll_interval
        if timeout <= 0 or timeout > self.poll_interval:
            logger.warning(f'REQUEST_TIMEOUT={timeout} outside (0, {self.poll_interval}], using {self.poll_interval}s')
            return self.poll_interval
        return timeout
