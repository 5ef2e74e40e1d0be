"""Persistence for the id of the last published status message."""

import logging
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class MessageIdStore(Protocol):
    """Durable slot for a single Discord message id."""

    def load(self) -> Optional[int]:
        ...

    def save(self, message_id: int) -> None:
        ...


class FileMessageIdStore:
    """Keep the message id as raw text in a small file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Optional[int]:
        """Return the stored id, or None when the file is missing, empty or garbled."""
        try:
            raw = self.path.read_text(encoding='utf-8').strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f'Cannot read {self.path}: {e}')
            return None

        if not raw:
            return None
        try:
            return int(raw)
        except ValueError:
            logger.warning(f'Ignoring invalid message id {raw!r} in {self.path}')
            return None

    def save(self, message_id: int) -> None:
        if self.path.parent != Path('.'):
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(str(message_id), encoding='utf-8')
        logger.debug(f'Saved message id {message_id} to {self.path}')
