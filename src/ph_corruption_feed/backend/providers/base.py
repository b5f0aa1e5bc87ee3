#!/usr/bin/env python3
"""
Provider adapter base - typed failures, query building and the shared
normalize -> locality -> window -> dedupe pipeline.

Adapters surface every upstream problem as a ``ProviderError`` subclass;
deciding whether to fall back is the orchestrator's job.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import aiohttp
from pydantic import BaseModel, ValidationError

from ...shared.types import Article, Category, FeedRequest, ProviderKind
from ..processors.classifier import CategoryClassifier
from ..processors.deduplication_utils import deduplicate_articles
from ..processors.filters import PH_DOMAINS, is_local, within_window
from ..processors.normalizer import normalize

logger = logging.getLogger(__name__)

PayloadT = TypeVar('PayloadT', bound=BaseModel)

CATEGORY_QUERIES: Dict[str, str] = {
    Category.FLOOD_CONTROL.value:
        'Philippines ("flood control" OR dike OR embankment) '
        '(ghost project OR corruption OR scam OR kickback OR overprice OR audit) DPWH',
    Category.DPWH.value:
        'Philippines DPWH (corruption OR arrested OR investigation OR "unexplained wealth" '
        'OR "ghost project" OR kickback OR overprice OR audit)',
    Category.CORRUPT_POLITICIANS.value:
        'Philippines (politician OR senator OR congressman OR governor OR mayor) '
        '(corruption OR plunder OR malversation OR "Swiss bank" OR "hidden assets" '
        'OR kickback OR audit OR Ombudsman OR Sandiganbayan)',
    Category.NEPO_BABIES.value:
        'Philippines (political dynasty OR "nepo baby" OR "politician son" OR "politician daughter") '
        '(Instagram OR TikTok OR luxury OR Lamborghini OR penthouse OR "shopping spree")',
}
ALL_CATEGORIES_QUERY = 'Philippines corruption DPWH flood control politician "ghost project"'


class ProviderError(Exception):
    """Base class for any failed provider attempt."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class ProviderUnavailableError(ProviderError):
    """Provider is not configured (missing API key); skipped like a failure."""


class ProviderTimeoutError(ProviderError):
    """Upstream did not answer within the provider timeout."""


class ProviderHTTPError(ProviderError):
    """Upstream answered with a non-2xx status."""

    def __init__(self, provider: str, status: int, body: str = ''):
        detail = f"HTTP {status}" + (f": {body[:200]}" if body else '')
        super().__init__(provider, detail)
        self.status = status


class ProviderPayloadError(ProviderError):
    """Upstream answered but the payload could not be read."""


def build_category_query(category: Optional[Category], user_query: Optional[str] = None) -> str:
    """Category keyword template, with free text appended."""
    base = CATEGORY_QUERIES.get(category.value) if category else ALL_CATEGORIES_QUERY
    base = base or CATEGORY_QUERIES[Category.default().value]
    user_query = (user_query or '').strip()
    return f"{base} {user_query}" if user_query else base


def site_filter(domains: Optional[List[str]] = None) -> str:
    return ' OR '.join(f"site:{domain}" for domain in (domains or PH_DOMAINS))


class BaseProvider:
    """
    One upstream news source.

    Subclasses implement ``fetch`` to return typed payload items; ``search``
    runs them through the shared pipeline and trims to the page size.
    Upstreams without a paging parameter set ``pages_upstream = False``;
    the requested page is then sliced out of the fetched results.
    """

    name = 'base'
    kind = ProviderKind.MOCK
    requires_key = True
    pages_upstream = True

    def __init__(self,
                 api_key: Optional[str] = None,
                 session: Optional[aiohttp.ClientSession] = None,
                 timeout_seconds: float = 8.0,
                 classifier: Optional[CategoryClassifier] = None):
        self.api_key = api_key
        self.session = session
        self.timeout_seconds = timeout_seconds
        self.classifier = classifier

    @property
    def is_available(self) -> bool:
        return bool(self.api_key) or not self.requires_key

    async def fetch(self, request: FeedRequest) -> List[Any]:
        raise NotImplementedError

    def _category_for(self, request: FeedRequest, article: Article) -> Category:
        """Requested category; "all" requests are bucketed by the classifier."""
        if request.category is not None:
            return request.category
        if self.classifier is None:
            return Category.default()
        return self.classifier.classify(f"{article.title} {article.description}").category

    async def search(self, request: FeedRequest) -> List[Article]:
        """Fetch, normalize, filter and dedupe one page of results."""
        if not self.is_available:
            raise ProviderUnavailableError(self.name, "API key not configured")

        raw_items = await self.fetch(request)
        articles = []
        for item in raw_items:
            article = normalize(item, self.kind, request.category)
            article.category = self._category_for(request, article)
            if not is_local(article.source.name, article.url):
                continue
            if not within_window(article.published_at, request.date_from, request.date_to):
                continue
            articles.append(article)

        unique = deduplicate_articles(articles)
        logger.debug(f"{self.name}: {len(raw_items)} raw → {len(articles)} local/in-window → {len(unique)} unique")
        if self.pages_upstream:
            return unique[:request.page_size]
        start = (request.page - 1) * request.page_size
        return unique[start:start + request.page_size]

    async def _request_json(self, method: str, url: str, **kwargs) -> Any:
        """HTTP call under the provider timeout, mapped onto ProviderError types."""
        if self.session is None:
            raise ProviderError(self.name, "no HTTP session")

        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        try:
            async with self.session.request(method, url, timeout=timeout, **kwargs) as response:
                if response.status < 200 or response.status >= 300:
                    body = await response.text()
                    raise ProviderHTTPError(self.name, response.status, body)
                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise ProviderPayloadError(self.name, f"invalid JSON: {e}")
        except asyncio.TimeoutError:
            raise ProviderTimeoutError(self.name, f"no response within {self.timeout_seconds}s")
        except aiohttp.ClientError as e:
            raise ProviderError(self.name, f"connection error: {e}")

    def _validate(self, model: Type[PayloadT], data: Any) -> PayloadT:
        if not isinstance(data, dict):
            raise ProviderPayloadError(self.name, f"expected JSON object, got {type(data).__name__}")
        try:
            return model(**data)
        except ValidationError as e:
            raise ProviderPayloadError(self.name, f"unexpected payload: {e.error_count()} validation errors")
