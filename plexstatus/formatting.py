"""Field extraction and text formatting helpers for the status report.

All helpers are total (they degrade to an empty or fallback value on missing
input) except estimate_finish_time, which rejects non-integer timestamps.
"""

import re
from datetime import datetime, timedelta
from typing import Any, Optional

from plexstatus.errors import RenderError

IMDB_GUID_PATTERN = re.compile(r'imdb://(tt\d+)')
IMDB_TITLE_URL = 'https://www.imdb.com/title/{imdb_id}/'

BAR_FILLED = '█'
BAR_EMPTY = '░'
DEFAULT_BAR_LENGTH = 20

REGIONAL_INDICATOR_A = 0x1F1E6
KEYCAP_SUFFIX = '\ufe0f\u20e3'

MEDIA_TYPE_EMOJI = {
    'movie': '🎥',
    'track': '🎵',
}
DEFAULT_MEDIA_EMOJI = '📺'


def extract_imdb_id(guid: Any, guids: Any = None) -> Optional[str]:
    """Return the first IMDb id (tt1234567) found in guid, then in guids.

    Plex agents put the IMDb id either in the primary guid (legacy agents) or
    in the guids list (new agents). Returns None when neither has one.
    """
    if isinstance(guid, str):
        match = IMDB_GUID_PATTERN.search(guid)
        if match:
            return match.group(1)

    if isinstance(guids, (list, tuple)):
        for candidate in guids:
            if not isinstance(candidate, str):
                continue
            match = IMDB_GUID_PATTERN.search(candidate)
            if match:
                return match.group(1)
    return None


def format_imdb_link(imdb_id: Optional[str], title: str) -> str:
    """Wrap title in a markdown link to IMDb, or return it untouched."""
    if not imdb_id:
        return title
    # Angle brackets stop Discord from rendering a link preview
    return f'[{title}](<{IMDB_TITLE_URL.format(imdb_id=imdb_id)}>)'


def pick_display_emoji(display_name: Optional[str], media_type: Optional[str]) -> str:
    """Pick an identicon-style emoji from the first character of a user's name."""
    first = display_name[0] if display_name else ''
    if first.isascii() and first.isalpha():
        return chr(REGIONAL_INDICATOR_A + ord(first.lower()) - ord('a'))
    if first and first in '0123456789':
        return f'{first}{KEYCAP_SUFFIX}'
    return MEDIA_TYPE_EMOJI.get(media_type, DEFAULT_MEDIA_EMOJI)


def format_duration(milliseconds: int) -> str:
    """Format milliseconds as HH:MM:SS, or MM:SS when under an hour."""
    total_seconds = max(0, int(milliseconds) // 1000)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours > 0:
        return f'{hours:02d}:{minutes:02d}:{seconds:02d}'
    return f'{minutes:02d}:{seconds:02d}'


def render_progress_bar(current: int, total: int, state: Optional[str] = None,
                        bar_length: int = DEFAULT_BAR_LENGTH) -> str:
    """Render a text progress bar with elapsed and total time.

    Only call with a non-zero total.

    Example:
        ▶️ [██████████░░░░░░░░░░] (00:50 / 01:40)
    """
    # Round half up so 2.5 glyphs become 3
    filled = int(current / total * bar_length + 0.5)
    filled = min(max(filled, 0), bar_length)
    bar = BAR_FILLED * filled + BAR_EMPTY * (bar_length - filled)
    icon = '⏸️' if state == 'paused' else '▶️'
    return f'{icon} [{bar}] ({format_duration(current)} / {format_duration(total)})'


def _parse_timestamp(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise RenderError(f'{name} is not an integer: {value!r}')
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError) as e:
        raise RenderError(f'{name} is not an integer: {value!r}') from e


def estimate_finish_time(view_offset: Any, duration: Any, now: datetime) -> tuple[int, str]:
    """Estimate when playback ends.

    Args:
        view_offset: Current position in milliseconds
        duration: Total length in milliseconds
        now: Reference time the estimate is relative to

    Returns:
        Tuple of (remaining seconds, wall-clock finish time like "09:45 PM")

    Raises:
        RenderError: If either value is not a parseable integer
    """
    offset_ms = _parse_timestamp('view_offset', view_offset)
    duration_ms = _parse_timestamp('duration', duration)
    remaining_seconds = max(0, duration_ms - offset_ms) // 1000
    finish = now + timedelta(seconds=remaining_seconds)
    return remaining_seconds, finish.strftime('%I:%M %p')


def format_bitrate(kbps: int) -> str:
    """Format a kbps value, switching to Mbps with one decimal from 1000 kbps up."""
    if kbps >= 1000:
        return f'{kbps / 1000:,.1f} Mbps'
    return f'{kbps:,} kbps'
