from datetime import datetime

import pytest

from plexstatus.errors import RenderError
from plexstatus.formatting import (
    estimate_finish_time,
    extract_imdb_id,
    format_bitrate,
    format_duration,
    format_imdb_link,
    pick_display_emoji,
    render_progress_bar,
)


def test_imdb_id_from_primary_guid():
    assert extract_imdb_id('com.plexapp.agents.imdb://tt0111161?lang=en', []) == 'tt0111161'


def test_imdb_id_from_guid_list_in_order():
    guids = ['tmdb://278', 'imdb://tt0111161', 'imdb://tt9999999']
    assert extract_imdb_id('plex://movie/5d776825880197001ec967c1', guids) == 'tt0111161'


def test_imdb_id_primary_preferred_over_list():
    assert extract_imdb_id('imdb://tt0000001', ['imdb://tt0000002']) == 'tt0000001'


@pytest.mark.parametrize('guid, guids', [
    (None, None),
    ('', []),
    ('plex://movie/abc', ['tvdb://123', 'tmdb://456']),
    (42, 'imdb://tt123'),
    (None, [None, 7, {'id': 'imdb://tt1'}]),
])
def test_imdb_id_no_match_returns_none(guid, guids):
    assert extract_imdb_id(guid, guids) is None


def test_imdb_link():
    link = format_imdb_link('tt0111161', 'The Shawshank Redemption')
    assert link == '[The Shawshank Redemption](<https://www.imdb.com/title/tt0111161/>)'


@pytest.mark.parametrize('imdb_id', [None, ''])
def test_imdb_link_bare_title_without_id(imdb_id):
    assert format_imdb_link(imdb_id, 'Some [Title]') == 'Some [Title]'


def test_emoji_letters_are_case_insensitive():
    assert pick_display_emoji('alice', 'movie') == '\U0001F1E6'
    assert pick_display_emoji('Alice', 'movie') == '\U0001F1E6'
    assert pick_display_emoji('zed', 'episode') == '\U0001F1FF'


def test_emoji_digit_keycap():
    assert pick_display_emoji('7of9', 'movie') == '7\ufe0f\u20e3'


@pytest.mark.parametrize('media_type, expected', [
    ('movie', '🎥'),
    ('track', '🎵'),
    ('episode', '📺'),
    (None, '📺'),
])
def test_emoji_media_fallback(media_type, expected):
    assert pick_display_emoji('_admin', media_type) == expected
    assert pick_display_emoji('', media_type) == expected
    assert pick_display_emoji(None, media_type) == expected


def test_emoji_non_ascii_letter_falls_back():
    assert pick_display_emoji('Émile', 'movie') == '🎥'


@pytest.mark.parametrize('ms, expected', [
    (0, '00:00'),
    (999, '00:00'),
    (59000, '00:59'),
    (60000, '01:00'),
    (3599000, '59:59'),
    (3600000, '01:00:00'),
    (3661000, '01:01:01'),
    (36000000, '10:00:00'),
])
def test_format_duration(ms, expected):
    assert format_duration(ms) == expected


def test_progress_bar_half():
    bar = render_progress_bar(50, 100, 'playing', 20)
    assert bar.count('█') == 10
    assert bar.count('░') == 10


def test_progress_bar_times_and_state():
    bar = render_progress_bar(50000, 100000)
    assert bar.startswith('▶️ [')
    assert bar.endswith('(00:50 / 01:40)')
    assert render_progress_bar(50000, 100000, 'paused').startswith('⏸️ [')


def test_progress_bar_clamped_when_offset_exceeds_duration():
    bar = render_progress_bar(200, 100, 'playing', 10)
    assert bar.count('█') == 10
    assert bar.count('░') == 0


def test_progress_bar_rounds_half_up():
    bar = render_progress_bar(1, 8, 'playing', 20)
    assert bar.count('█') == 3


def test_estimate_finish_time():
    now = datetime(2024, 5, 1, 20, 0, 0)
    remaining, clock = estimate_finish_time(600000, 3300000, now)
    assert remaining == 2700
    assert clock == '08:45 PM'


def test_estimate_accepts_numeric_strings():
    now = datetime(2024, 5, 1, 9, 0, 0)
    remaining, clock = estimate_finish_time('0', '60000', now)
    assert remaining == 60
    assert clock == '09:01 AM'


def test_estimate_past_end_is_zero():
    now = datetime(2024, 5, 1, 9, 0, 0)
    assert estimate_finish_time(5000, 1000, now) == (0, '09:00 AM')


@pytest.mark.parametrize('offset, duration', [
    ('abc', 1000),
    (1000, None),
    ('12.5', 1000),
    (True, 1000),
])
def test_estimate_rejects_unparseable(offset, duration):
    with pytest.raises(RenderError):
        estimate_finish_time(offset, duration, datetime(2024, 5, 1))


def test_estimate_error_is_a_value_error():
    with pytest.raises(ValueError):
        estimate_finish_time('x', 'y', datetime(2024, 5, 1))


@pytest.mark.parametrize('kbps, expected', [
    (0, '0 kbps'),
    (500, '500 kbps'),
    (999, '999 kbps'),
    (1000, '1.0 Mbps'),
    (4500, '4.5 Mbps'),
    (20000, '20.0 Mbps'),
    (1234567, '1,234.6 Mbps'),
])
def test_format_bitrate(kbps, expected):
    assert format_bitrate(kbps) == expected
