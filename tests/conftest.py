"""Shared fixtures: a controllable clock, article factory and a fake aiohttp session."""

import asyncio
from datetime import datetime, timezone
from typing import Dict, Optional

import pytest

from ph_corruption_feed.shared.types import Article, Category, SourceRef, make_article_id

# Aligned to a 60s boundary so fixed rate-limit windows start at the clock's origin
CLOCK_START = 60.0 * 28_333_333


class FakeClock:
    def __init__(self, start: float = CLOCK_START):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResponse:
    """Minimal stand-in for an aiohttp response used as an async context manager."""

    def __init__(self, status: int = 200, body: str = '', json_data=None,
                 delay: float = 0.0, error: Optional[BaseException] = None):
        self.status = status
        self.body = body
        self.json_data = json_data
        self.delay = delay
        self.error = error

    async def __aenter__(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def text(self) -> str:
        return self.body

    async def json(self, content_type=None):
        if self.json_data is None:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self.json_data


class FakeSession:
    """Routes URLs to canned responses; unknown URLs answer 404."""

    def __init__(self, routes: Optional[Dict[str, FakeResponse]] = None):
        self.routes = routes or {}
        self.requests = []

    def get(self, url, **kwargs):
        return self.request('GET', url, **kwargs)

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        return self.routes.get(url, FakeResponse(status=404))

    async def close(self):
        return None


def build_article(title: str,
                  url: Optional[str] = None,
                  source: str = 'Rappler',
                  category: Category = Category.DPWH,
                  published_at: Optional[datetime] = None,
                  score: Optional[float] = None) -> Article:
    return Article(
        id=make_article_id(url, title),
        title=title,
        description=f"{title} description",
        published_at=published_at or datetime(2025, 3, 1, 8, 0, tzinfo=timezone.utc),
        source=SourceRef(name=source),
        category=category,
        url=url,
        score=score,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_article():
    return build_article


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def fake_session():
    return FakeSession
