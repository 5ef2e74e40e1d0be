"""Render Tautulli sessions into the Discord status message."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from plexstatus.formatting import (
    DEFAULT_MEDIA_EMOJI,
    estimate_finish_time,
    extract_imdb_id,
    format_bitrate,
    format_imdb_link,
    pick_display_emoji,
    render_progress_bar,
)
from plexstatus.models import Session

logger = logging.getLogger(__name__)

SEPARATOR = '\n\n'
IDLE_MESSAGE = '🎬 **No users are currently streaming on Plex.**'
UNKNOWN_NAME = 'Someone'
UNKNOWN_TITLE = 'Unknown title'


@dataclass
class AggregateStats:
    """Totals across every active session."""

    total_streams: int = 0
    transcoding_count: int = 0
    remote_bitrate: int = 0
    local_bitrate: int = 0


def _verb(session: Session) -> str:
    if session.is_paused:
        return 'has paused'
    if session.is_audio:
        return 'is listening to'
    return 'is watching'


def _episode_locator(session: Session) -> str:
    if session.media_type != 'episode':
        return ''
    if session.parent_media_index is None or session.media_index is None:
        return ''
    return f'S{session.parent_media_index:02d} E{session.media_index:02d}'


def _quality(session: Session) -> str:
    if session.is_audio:
        return session.container.upper() if session.container else ''

    source = session.video_full_resolution
    negotiated = session.stream_video_full_resolution
    if source and negotiated and source != negotiated:
        return f'{source} -> {negotiated}'
    return source or negotiated or ''


def _progress_line(session: Session, now: datetime) -> str:
    if not session.view_offset or not session.duration:
        return ''

    line = render_progress_bar(session.view_offset, session.duration, session.state)
    try:
        _, finish_clock = estimate_finish_time(session.view_offset, session.duration, now)
    except ValueError as e:
        logger.debug(f'Skipping ETA for {session.friendly_name}: {e}')
        return line
    return f'{line} · ETA {finish_clock}'


def _bitrate_line(session: Session) -> str:
    rate = session.effective_bitrate
    if rate is None:
        return ''

    status = '✅ Direct Play' if session.is_direct_play else '🔄 Transcoding'
    quality = _quality(session)
    if quality:
        return f'🛜 {status} · {quality} ({format_bitrate(rate)})'
    return f'🛜 {status} ({format_bitrate(rate)})'


def render_session(session: Session, now: datetime) -> str:
    """Render one session as a multi-line block.

    The progress and bitrate lines are dropped when the fields they need are
    missing; the headline is always present.
    """
    name = session.friendly_name or UNKNOWN_NAME
    title = session.full_title or UNKNOWN_TITLE
    imdb_id = extract_imdb_id(session.guid, session.guids)

    emoji = pick_display_emoji(session.friendly_name, session.media_type)
    headline = f'{emoji} **{name}** {_verb(session)} '
    headline += f'**{format_imdb_link(imdb_id, title)}**'
    episode = _episode_locator(session)
    if episode:
        headline += f' {episode}'
    headline += f' ({session.year or "N/A"})'

    lines = [headline]
    for line in (_progress_line(session, now), _bitrate_line(session)):
        if line:
            lines.append(line)
    return '\n'.join(lines)


def _fallback_block(session: Session) -> str:
    name = session.friendly_name or UNKNOWN_NAME
    title = session.full_title or UNKNOWN_TITLE
    return f'{DEFAULT_MEDIA_EMOJI} **{name}** is streaming **{title}**'


def compute_aggregate_stats(sessions: Sequence[Session]) -> AggregateStats:
    """Count streams and transcodes, and sum bitrate split by LAN/WAN."""
    stats = AggregateStats()
    for session in sessions:
        stats.total_streams += 1
        if not session.is_direct_play:
            stats.transcoding_count += 1

        rate = session.effective_bitrate or 0
        if session.local is True:
            stats.local_bitrate += rate
        elif session.local is False:
            stats.remote_bitrate += rate
    return stats


def render_stats_footer(stats: AggregateStats) -> str:
    return (
        f'📊 **Stats:** {stats.total_streams} streaming '
        f'({stats.transcoding_count} transcoding) '
        f'@ 📶 {format_bitrate(stats.remote_bitrate)} '
        f'(🏠 {format_bitrate(stats.local_bitrate)} local)'
    )


def render_header(now: datetime) -> str:
    return f'🕒 **Last Updated:** {now.strftime("%H:%M:%S")}'


def render_report(sessions: Sequence[Session], now: Optional[datetime] = None) -> str:
    """Render the full status message for a snapshot of sessions.

    Args:
        sessions: Active sessions, possibly empty
        now: Reference time for the header and ETAs (defaults to local now)

    Returns:
        The message text
    """
    if now is None:
        now = datetime.now()

    header = render_header(now)
    if not sessions:
        return f'{header}\n{IDLE_MESSAGE}'

    blocks = []
    for session in sessions:
        try:
            blocks.append(render_session(session, now))
        except Exception as e:
            logger.error(f'Failed to render session for {session.friendly_name}: {e}')
            blocks.append(_fallback_block(session))

    footer = render_stats_footer(compute_aggregate_stats(sessions))
    return header + SEPARATOR + SEPARATOR.join(blocks) + SEPARATOR + footer
