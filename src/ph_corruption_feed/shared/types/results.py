#!/usr/bin/env python3
"""
Result Types - data structures shared by the aggregation engine.

Articles, requests and responses are passed around as these dataclasses
instead of raw dictionaries; ``to_dict`` produces the wire format consumed
by the feed UI.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional
from datetime import datetime, timezone, timedelta
from enum import Enum
import hashlib
import json
import re

from dateutil import parser as date_parser


class Category(str, Enum):
    """Stored article categories."""
    FLOOD_CONTROL = "flood-control"
    DPWH = "dpwh"
    CORRUPT_POLITICIANS = "corrupt-politicians"
    NEPO_BABIES = "nepo-babies"

    @classmethod
    def default(cls) -> 'Category':
        return cls.CORRUPT_POLITICIANS

    @classmethod
    def coerce(cls, value: Any) -> 'Category':
        """Map any value onto a valid category, defaulting unknowns."""
        if isinstance(value, Category):
            return value
        try:
            return cls(str(value or '').strip().lower())
        except ValueError:
            return cls.default()


CATEGORY_LABELS: Dict[str, str] = {
    'all': 'All News',
    Category.FLOOD_CONTROL.value: 'Flood Control',
    Category.DPWH.value: 'DPWH',
    Category.CORRUPT_POLITICIANS.value: 'Corrupt Politicians',
    Category.NEPO_BABIES.value: 'Nepo Babies',
}


class ProviderKind(str, Enum):
    """Upstream payload shapes understood by the normalizer."""
    GEMINI = "gemini"
    TAVILY = "tavily"
    BRAVE = "brave"
    SERPER = "serper"
    NEWSAPI = "newsapi"
    RSS = "rss"
    MOCK = "mock"


def canonical_url(url: Optional[str]) -> str:
    """Strip query string and fragment, lower-case scheme and host."""
    if not url:
        return ''
    base = url.strip().split('#', 1)[0].split('?', 1)[0]
    match = re.match(r'^([a-zA-Z][a-zA-Z0-9+.-]*://)([^/]*)(.*)$', base)
    if not match:
        return base
    scheme, host, rest = match.groups()
    return f"{scheme.lower()}{host.lower()}{rest}"


def normalize_title(title: Optional[str]) -> str:
    """Lower-case and collapse whitespace."""
    return re.sub(r'\s+', ' ', (title or '').lower()).strip()


def make_article_id(url: Optional[str], title: Optional[str]) -> str:
    """Stable id from the canonical URL, or from the title when there is no URL."""
    basis = canonical_url(url) or normalize_title(title)
    return hashlib.md5(basis.encode('utf-8')).hexdigest()


def to_iso(value: datetime) -> str:
    """ISO 8601 UTC with millisecond precision and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


@dataclass
class SourceRef:
    """Outlet an article came from."""
    name: str
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'name': self.name}
        if self.url:
            data['url'] = self.url
        return data


@dataclass
class Article:
    """Canonical article representation."""
    id: str
    title: str
    description: str
    published_at: datetime
    source: SourceRef
    category: Category
    url: Optional[str] = None
    url_to_image: Optional[str] = None
    content: Optional[str] = None
    # RSS relevance score; ranking only, never serialized
    score: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Article':
        """Create Article from its wire format."""
        published_at = data.get('publishedAt')
        if isinstance(published_at, str):
            try:
                published_at = date_parser.isoparse(published_at)
            except (ValueError, OverflowError):
                published_at = datetime.now(timezone.utc)
        elif not isinstance(published_at, datetime):
            published_at = datetime.now(timezone.utc)
        if published_at.tzinfo is None:
            published_at = published_at.replace(tzinfo=timezone.utc)

        source_data = data.get('source') or {}
        if isinstance(source_data, str):
            source_data = {'name': source_data}

        return cls(
            id=data.get('id') or make_article_id(data.get('url'), data.get('title')),
            title=data.get('title', ''),
            description=data.get('description', ''),
            published_at=published_at,
            source=SourceRef(name=source_data.get('name', 'Unknown'), url=source_data.get('url')),
            category=Category.coerce(data.get('category')),
            url=data.get('url'),
            url_to_image=data.get('urlToImage'),
            content=data.get('content'),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire format for API/JSON serialization."""
        data: Dict[str, Any] = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'publishedAt': to_iso(self.published_at),
            'source': self.source.to_dict(),
            'category': self.category.value,
        }
        if self.url:
            data['url'] = self.url
        if self.url_to_image:
            data['urlToImage'] = self.url_to_image
        if self.content:
            data['content'] = self.content
        return data


def _parse_request_date(value: Any, end_of_day: bool = False) -> Optional[datetime]:
    """Validate an ISO 8601 bound; invalid values are dropped."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        try:
            parsed = date_parser.isoparse(text)
        except (ValueError, OverflowError):
            return None
        if end_of_day and re.fullmatch(r'\d{4}-\d{2}-\d{2}', text):
            parsed = parsed + timedelta(days=1) - timedelta(milliseconds=1)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class FeedRequest:
    """Normalized inbound request from the presentation layer."""
    category: Optional[Category] = None
    query: str = ''
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    page: int = 1
    page_size: int = 20

    MAX_PAGE_SIZE = 50

    @classmethod
    def build(cls,
              category: Optional[str] = None,
              q: Optional[str] = None,
              date_from: Any = None,
              date_to: Any = None,
              page: Any = 1,
              page_size: Any = 20) -> 'FeedRequest':
        """Validate raw parameters without ever rejecting the request."""
        cat_value = (category or 'all').strip().lower() if isinstance(category, str) else category
        if cat_value in (None, 'all'):
            resolved_category = None
        else:
            try:
                resolved_category = Category(cat_value)
            except ValueError:
                resolved_category = None

        try:
            page_number = max(1, int(page))
        except (TypeError, ValueError):
            page_number = 1
        try:
            size = min(cls.MAX_PAGE_SIZE, max(1, int(page_size)))
        except (TypeError, ValueError):
            size = 20

        return cls(
            category=resolved_category,
            query=(q or '').strip(),
            date_from=_parse_request_date(date_from),
            date_to=_parse_request_date(date_to, end_of_day=True),
            page=page_number,
            page_size=size,
        )

    @property
    def category_key(self) -> str:
        return self.category.value if self.category else 'all'

    def signature(self) -> str:
        """Full normalized query signature used as the cache key."""
        return json.dumps({
            'category': self.category_key,
            'q': self.query.lower(),
            'from': to_iso(self.date_from) if self.date_from else None,
            'to': to_iso(self.date_to) if self.date_to else None,
            'page': self.page,
            'pageSize': self.page_size,
        }, sort_keys=True)


@dataclass
class FeedResponse:
    """Outbound response; always well-formed, even on failure."""
    status: str
    articles: List[Article] = field(default_factory=list)
    fallback: Optional[bool] = None
    error: Optional[str] = None
    provider_trace: Optional[List[str]] = None
    rate_limited: Optional[bool] = None
    http_status: int = 200

    @property
    def total_results(self) -> int:
        return len(self.articles)

    @classmethod
    def ok(cls, articles: List[Article], trace: Optional[List[str]] = None,
           fallback: Optional[bool] = None) -> 'FeedResponse':
        return cls(status='ok', articles=list(articles), provider_trace=trace, fallback=fallback)

    @classmethod
    def failure(cls, message: str, trace: Optional[List[str]] = None,
                http_status: int = 503) -> 'FeedResponse':
        return cls(status='error', error=message, provider_trace=trace, http_status=http_status)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FeedResponse':
        return cls(
            status=data.get('status', 'ok'),
            articles=[Article.from_dict(a) for a in data.get('articles', [])],
            fallback=data.get('fallback'),
            error=data.get('error'),
            provider_trace=data.get('providerTrace'),
            rate_limited=data.get('rateLimited'),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the response body."""
        data: Dict[str, Any] = {
            'status': self.status,
            'totalResults': self.total_results,
            'articles': [article.to_dict() for article in self.articles],
        }
        optional_fields = {
            'fallback': self.fallback,
            'error': self.error,
            'providerTrace': self.provider_trace,
            'rateLimited': self.rate_limited,
        }
        for key, value in optional_fields.items():
            if value is not None:
                data[key] = value
        return data

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)
