#!/usr/bin/env python3
"""
Web search providers: Tavily, Brave Search and Serper (Google News).

Each adapter restricts results to the curated local domains as far as its
API allows; locality and window filtering are applied again afterwards
because none of the APIs enforce them strictly.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Type

from ...shared.types import FeedRequest, ProviderKind
from ...shared.types.payloads import (
    BraveResponse,
    BraveResult,
    SerperNewsItem,
    SerperResponse,
    TavilyResponse,
    TavilyResult,
)
from ..processors.filters import EXCLUDE_DOMAINS, PH_DOMAINS
from .base import BaseProvider, build_category_query, site_filter

logger = logging.getLogger(__name__)

TAVILY_URL = 'https://api.tavily.com/search'
BRAVE_URL = 'https://api.search.brave.com/res/v1/web/search'
SERPER_URL = 'https://google.serper.dev/news'


def tavily_time_range(request: FeedRequest, now: Optional[datetime] = None) -> Optional[str]:
    """Smallest of week/month/year covering the requested window."""
    if not request.date_from and not request.date_to:
        return None
    now = now or datetime.now(timezone.utc)
    end = request.date_to or now
    start = request.date_from or (end - timedelta(days=365))
    span_days = max(1, round((end - start).total_seconds() / 86400))
    if span_days <= 7:
        return 'week'
    if span_days <= 31:
        return 'month'
    return 'year'


class TavilySearchProvider(BaseProvider):
    """Tavily search API; supports domain allow and deny lists natively."""

    name = 'tavily'
    kind = ProviderKind.TAVILY
    pages_upstream = False

    def build_payload(self, request: FeedRequest) -> Dict:
        payload = {
            'query': build_category_query(request.category, request.query),
            'search_depth': 'advanced',
            'topic': 'news',
            'include_domains': PH_DOMAINS,
            'exclude_domains': EXCLUDE_DOMAINS,
            'max_results': min(20, max(3, request.page * request.page_size)),
            'include_answer': False,
            'include_raw_content': False,
            'include_images': False,
        }
        time_range = tavily_time_range(request)
        if time_range:
            payload['time_range'] = time_range
        return payload

    async def fetch(self, request: FeedRequest) -> List[TavilyResult]:
        data = await self._request_json(
            'POST', TAVILY_URL,
            json=self.build_payload(request),
            headers={'Authorization': f"Bearer {self.api_key}"},
        )
        return self._validate(TavilyResponse, data).results


class BraveSearchProvider(BaseProvider):
    """Brave web search with a site-restricted query."""

    name = 'brave'
    kind = ProviderKind.BRAVE

    def build_params(self, request: FeedRequest) -> Dict[str, str]:
        query = f"{build_category_query(request.category, request.query)} ({site_filter()})"
        params = {
            'q': query,
            'count': str(min(20, max(10, request.page_size))),
            'offset': str(min(9, request.page - 1)),
            'country': 'ph',
            'search_lang': 'en',
            'safesearch': 'moderate',
        }
        if request.date_from or request.date_to:
            start = (request.date_from or datetime(2000, 1, 1, tzinfo=timezone.utc)).strftime('%Y-%m-%d')
            end = (request.date_to or datetime.now(timezone.utc)).strftime('%Y-%m-%d')
            params['freshness'] = f"{start}to{end}"
        return params

    async def fetch(self, request: FeedRequest) -> List[BraveResult]:
        data = await self._request_json(
            'GET', BRAVE_URL,
            params=self.build_params(request),
            headers={'X-Subscription-Token': self.api_key, 'Accept': 'application/json'},
        )
        return self._validate(BraveResponse, data).web.results


class SerperSearchProvider(BaseProvider):
    """Serper.dev Google News endpoint."""

    name = 'serper'
    kind = ProviderKind.SERPER

    def build_payload(self, request: FeedRequest) -> Dict:
        return {
            'q': f"{build_category_query(request.category, request.query)} {site_filter()}",
            'gl': 'ph',
            'hl': 'en',
            'num': min(20, max(10, request.page_size)),
            'page': request.page,
            'autocorrect': True,
        }

    async def fetch(self, request: FeedRequest) -> List[SerperNewsItem]:
        data = await self._request_json(
            'POST', SERPER_URL,
            json=self.build_payload(request),
            headers={'X-API-KEY': self.api_key, 'Content-Type': 'application/json'},
        )
        return self._validate(SerperResponse, data).news


WEB_PROVIDERS: Dict[str, Type[BaseProvider]] = {
    TavilySearchProvider.name: TavilySearchProvider,
    BraveSearchProvider.name: BraveSearchProvider,
    SerperSearchProvider.name: SerperSearchProvider,
}
