"""Domain models for Tautulli activity snapshots."""

from dataclasses import dataclass, field
from typing import Any, Optional

DIRECT_PLAY = 'direct play'
AUDIO_MEDIA_TYPE = 'track'


def _to_int(value: Any) -> Optional[int]:
    """Parse an int from the loosely typed values Tautulli returns ("4500", 4500, "")."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        if isinstance(value, float):
            return int(value)
        text = str(value).strip()
        if not text:
            return None
        return int(float(text))
    except (TypeError, ValueError, OverflowError):
        return None


def _to_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _to_locality(value: Any) -> Optional[bool]:
    """Tautulli reports locality as 0/1 (often as strings)."""
    parsed = _to_int(value)
    if parsed is None:
        return None
    return parsed == 1


def _to_guid_list(value: Any) -> list[str]:
    """Flatten the guids field, which is either a list of strings or of {'id': ...} dicts."""
    if not isinstance(value, (list, tuple)):
        return []
    guids = []
    for item in value:
        if isinstance(item, dict):
            item = item.get('id')
        if isinstance(item, str) and item:
            guids.append(item)
    return guids


@dataclass
class Session:
    """One active playback session as reported by Tautulli get_activity.

    Every field is optional because Tautulli omits or blanks fields depending
    on media type, player and transcode state.
    """

    friendly_name: Optional[str] = None
    media_type: Optional[str] = None
    full_title: Optional[str] = None
    year: Optional[str] = None
    parent_media_index: Optional[int] = None
    media_index: Optional[int] = None
    guid: Optional[str] = None
    guids: list[str] = field(default_factory=list)
    view_offset: Optional[int] = None
    duration: Optional[int] = None
    state: Optional[str] = None
    local: Optional[bool] = None
    transcode_decision: Optional[str] = None
    video_full_resolution: Optional[str] = None
    stream_video_full_resolution: Optional[str] = None
    stream_bitrate: Optional[int] = None
    bitrate: Optional[int] = None
    container: Optional[str] = None
    raw: dict = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_api(cls, raw: dict) -> 'Session':
        """Build a session from a raw Tautulli session dict. Never raises on bad fields."""
        if not isinstance(raw, dict):
            raw = {}
        return cls(
            friendly_name=_to_str(raw.get('friendly_name')) or _to_str(raw.get('user')),
            media_type=_to_str(raw.get('media_type')),
            full_title=_to_str(raw.get('full_title')) or _to_str(raw.get('title')),
            year=_to_str(raw.get('year')),
            parent_media_index=_to_int(raw.get('parent_media_index')),
            media_index=_to_int(raw.get('media_index')),
            guid=_to_str(raw.get('guid')),
            guids=_to_guid_list(raw.get('guids')),
            view_offset=_to_int(raw.get('view_offset')),
            duration=_to_int(raw.get('duration')),
            state=_to_str(raw.get('state')),
            local=_to_locality(raw.get('local')),
            transcode_decision=_to_str(raw.get('transcode_decision')),
            video_full_resolution=_to_str(raw.get('video_full_resolution')),
            stream_video_full_resolution=_to_str(raw.get('stream_video_full_resolution')),
            stream_bitrate=_to_int(raw.get('stream_bitrate')),
            bitrate=_to_int(raw.get('bitrate')),
            container=_to_str(raw.get('stream_container')) or _to_str(raw.get('container')),
            raw=raw,
        )

    @property
    def is_paused(self) -> bool:
        return self.state == 'paused'

    @property
    def is_audio(self) -> bool:
        return self.media_type == AUDIO_MEDIA_TYPE

    @property
    def is_direct_play(self) -> bool:
        # A missing decision counts as transcoding
        return self.transcode_decision == DIRECT_PLAY

    @property
    def effective_bitrate(self) -> Optional[int]:
        """Negotiated stream bitrate when positive, otherwise the source bitrate."""
        if self.stream_bitrate and self.stream_bitrate > 0:
            return self.stream_bitrate
        if self.bitrate and self.bitrate > 0:
            return self.bitrate
        return None


@dataclass
class ActivitySnapshot:
    """Result of one activity fetch.

    A failed fetch carries an empty session list plus the error text, so the
    rendered report matches an idle server while logs can tell them apart.
    """

    sessions: list[Session] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, error: str) -> 'ActivitySnapshot':
        return cls(sessions=[], error=error)
