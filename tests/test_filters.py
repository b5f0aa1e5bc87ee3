"""Tests for the locality and date-window filters."""

from datetime import datetime, timezone

import pytest

from ph_corruption_feed.backend.processors.filters import (
    get_hostname,
    guess_source_name,
    is_local,
    within_window,
)


class TestIsLocal:

    @pytest.mark.parametrize("source,url", [
        ('Rappler', 'https://www.rappler.com/nation/dpwh-probe'),
        (None, 'https://newsinfo.inquirer.net/123/flood-control'),
        ('Some Blog', 'https://mb.com.ph/2025/03/01/story'),
        ('Philippine News Agency (PNA)', 'https://example.org/story'),
        ('SunStar Cebu', None),
    ])
    def test_local_items_are_kept(self, source, url) -> None:
        assert is_local(source, url) is True

    @pytest.mark.parametrize("source,url", [
        ('Reuters', 'https://www.reuters.com/world/asia'),
        ('Rappler', 'https://news.google.com/articles/abc'),
        ('Philippine Star', 'https://www.msn.com/en-ph/news/story'),
        ('Example', 'https://notrappler.com/story'),
        ('', None),
    ])
    def test_foreign_and_aggregator_items_are_rejected(self, source, url) -> None:
        assert is_local(source, url) is False

    @pytest.mark.parametrize("source,url", [
        ('Rappler', 'https://www.rappler.com/nation/dpwh-audit'),
        ('Reuters', 'https://www.reuters.com/world/asia'),
        ('Philippine Star', 'https://www.msn.com/en-ph/news/story'),
        ('SunStar Cebu', None),
        (None, None),
    ])
    def test_repeated_calls_agree(self, source, url) -> None:
        first = is_local(source, url)

        assert all(is_local(source, url) is first for _ in range(5))


class TestHostnames:

    def test_strips_www(self) -> None:
        assert get_hostname('https://WWW.Philstar.com/nation') == 'philstar.com'

    def test_unparseable_url(self) -> None:
        assert get_hostname('not a url') == ''

    def test_guess_source_prefers_domain_table(self) -> None:
        assert guess_source_name('https://www.gmanetwork.com/news/x', 'gmanetwork') == 'GMA News'

    def test_guess_source_falls_back_to_label_then_host(self) -> None:
        assert guess_source_name('https://example.org/x', 'Local Radio') == 'Local Radio'
        assert guess_source_name('https://example.org/x') == 'example.org'


class TestWithinWindow:
    lower = datetime(2025, 1, 1, tzinfo=timezone.utc)
    upper = datetime(2025, 1, 31, 23, 59, 59, tzinfo=timezone.utc)

    def test_no_bounds_keeps_everything(self) -> None:
        assert within_window('1999-01-01') is True

    def test_bounds_are_inclusive(self) -> None:
        assert within_window(self.lower, self.lower, self.upper) is True
        assert within_window(self.upper, self.lower, self.upper) is True

    def test_outside_bounds(self) -> None:
        assert within_window('2024-12-31T23:59:59Z', self.lower, self.upper) is False
        assert within_window('2025-02-01T00:00:00Z', self.lower, self.upper) is False

    def test_unparseable_timestamp_fails_open(self) -> None:
        assert within_window('sometime last week', self.lower, self.upper) is True

    def test_naive_timestamp_is_utc(self) -> None:
        assert within_window(datetime(2025, 1, 15), self.lower, self.upper) is True

    def test_single_bound(self) -> None:
        assert within_window('2025-03-01', date_from=self.lower) is True
        assert within_window('2025-03-01', date_to=self.upper) is False


OUTER_WINDOW = (datetime(2025, 1, 1, tzinfo=timezone.utc), datetime(2025, 1, 31, 23, 59, 59, tzinfo=timezone.utc))
INNER_WINDOWS = [
    (datetime(2025, 1, 1, tzinfo=timezone.utc), datetime(2025, 1, 15, tzinfo=timezone.utc)),
    (datetime(2025, 1, 10, tzinfo=timezone.utc), datetime(2025, 1, 20, tzinfo=timezone.utc)),
    (datetime(2025, 1, 20, tzinfo=timezone.utc), datetime(2025, 1, 31, 23, 59, 59, tzinfo=timezone.utc)),
    (datetime(2025, 1, 31, tzinfo=timezone.utc), datetime(2025, 1, 31, tzinfo=timezone.utc)),
]


class TestNestedWindows:

    @pytest.mark.parametrize("timestamp", [
        '2024-12-31T23:59:59Z',
        '2025-01-01T00:00:00Z',
        '2025-01-12T08:00:00+08:00',
        '2025-01-31T23:59:59Z',
        '2025-02-01T00:00:00Z',
        '2026-06-01',
    ])
    @pytest.mark.parametrize("inner", INNER_WINDOWS)
    def test_narrower_window_never_admits_more(self, timestamp, inner) -> None:
        if not within_window(timestamp, *OUTER_WINDOW):
            assert within_window(timestamp, *inner) is False
