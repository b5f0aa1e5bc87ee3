#!/usr/bin/env python3
"""
Legacy news API provider (newsapi.org ``/v2/everything``).

Queries the curated domains first. When that yields less than half a page
an optional secondary-language pass is merged in, and when it yields
nothing at all the query is retried without the domain restriction (the
locality filter still applies to the results).
"""

import logging
from typing import Dict, List, Optional

from ...shared.types import FeedRequest, ProviderKind, to_iso
from ...shared.types.payloads import NewsAPIArticle, NewsAPIResponse
from ..processors.filters import EXCLUDE_DOMAINS, PH_DOMAINS
from .base import BaseProvider, ProviderError, ProviderPayloadError, build_category_query

logger = logging.getLogger(__name__)

NEWSAPI_URL = 'https://newsapi.org/v2/everything'


class NewsAPIProvider(BaseProvider):

    name = 'newsapi'
    kind = ProviderKind.NEWSAPI

    def __init__(self, api_key: Optional[str] = None, secondary_language: Optional[str] = None, **kwargs):
        super().__init__(api_key=api_key, **kwargs)
        self.secondary_language = secondary_language

    def base_params(self, request: FeedRequest) -> Dict[str, str]:
        windowed = bool(request.date_from or request.date_to)
        params = {
            'q': build_category_query(request.category, request.query),
            'sortBy': 'relevancy' if windowed else 'publishedAt',
            'page': str(request.page),
            'pageSize': str(request.page_size),
            'searchIn': 'title,description,content',
            'excludeDomains': ','.join(EXCLUDE_DOMAINS),
        }
        if request.date_from:
            params['from'] = to_iso(request.date_from)
        if request.date_to:
            params['to'] = to_iso(request.date_to)
        return params

    async def _everything(self, params: Dict[str, str]) -> List[NewsAPIArticle]:
        data = await self._request_json('GET', NEWSAPI_URL, params=params,
                                        headers={'X-Api-Key': self.api_key})
        response = self._validate(NewsAPIResponse, data)
        if response.status != 'ok':
            raise ProviderPayloadError(self.name, f"{response.code or 'error'}: {response.message or ''}")
        return response.articles

    async def fetch(self, request: FeedRequest) -> List[NewsAPIArticle]:
        params = self.base_params(request)
        domains = ','.join(PH_DOMAINS)

        articles = await self._everything({**params, 'language': 'en', 'domains': domains})

        if self.secondary_language and len(articles) < (request.page_size + 1) // 2:
            try:
                articles += await self._everything({**params, 'language': self.secondary_language,
                                                    'domains': domains})
            except ProviderError as e:
                logger.debug(f"newsapi secondary language pass failed: {e}")

        if not articles:
            logger.debug("newsapi: no domain-restricted results, retrying unrestricted")
            articles = await self._everything({**params, 'language': 'en'})

        return articles
