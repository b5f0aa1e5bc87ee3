#!/usr/bin/env python3
"""
Provider adapters for the aggregation fallback chain.
"""

from .base import (
    BaseProvider,
    ProviderError,
    ProviderHTTPError,
    ProviderPayloadError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    build_category_query,
)
from .generative import GeminiSearchProvider, build_gemini_prompt, parse_gemini_response
from .mock import MOCK_STORIES, mock_articles
from .newsapi import NewsAPIProvider
from .rss import RSSProvider
from .web_search import (
    WEB_PROVIDERS,
    BraveSearchProvider,
    SerperSearchProvider,
    TavilySearchProvider,
)

__all__ = [
    'BaseProvider',
    'BraveSearchProvider',
    'GeminiSearchProvider',
    'MOCK_STORIES',
    'NewsAPIProvider',
    'ProviderError',
    'ProviderHTTPError',
    'ProviderPayloadError',
    'ProviderTimeoutError',
    'ProviderUnavailableError',
    'RSSProvider',
    'SerperSearchProvider',
    'TavilySearchProvider',
    'WEB_PROVIDERS',
    'build_category_query',
    'build_gemini_prompt',
    'mock_articles',
    'parse_gemini_response',
]
