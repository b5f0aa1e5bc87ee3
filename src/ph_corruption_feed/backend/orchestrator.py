#!/usr/bin/env python3
"""
News Aggregation Orchestrator for the PH Corruption Feed
Orchestrates: Rate Limit → Cache → Provider Fallback Chain → Cache Write-through
"""

import argparse
import asyncio
import json
import logging
import sys
import time
import traceback
from typing import List, Optional, Tuple

import aiohttp
from rich.console import Console
from rich.table import Table

from ..shared.config.config_loader import AggregatorSettings
from ..shared.types import Article, FeedRequest, FeedResponse
from ..shared.utils.logging_config import log_error, log_step, log_warning, setup_logging
from .collectors.collectors import USER_AGENT
from .collectors.core import CollectionConfig
from .monitoring.provider_usage_tracker import (
    OUTCOME_EMPTY,
    OUTCOME_ERROR,
    OUTCOME_OK,
    OUTCOME_TIMEOUT,
    OUTCOME_UNAVAILABLE,
    ProviderUsageTracker,
    usage_tracker,
)
from .processors.classifier import CategoryClassifier, get_classifier
from .processors.deduplication_utils import deduplicate_articles
from .providers import (
    WEB_PROVIDERS,
    BaseProvider,
    GeminiSearchProvider,
    NewsAPIProvider,
    ProviderError,
    ProviderHTTPError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    RSSProvider,
    mock_articles,
)
from .storage import (
    FixedWindowRateLimiter,
    KeyValueStore,
    RateLimitDecision,
    ResultCache,
    create_store,
)

logger = logging.getLogger(__name__)

TRACE_CACHE_HIT = 'cache:hit'
TRACE_CACHE_STALE = 'cache:stale'
TRACE_MOCK = 'mock'
EXHAUSTED_MESSAGE = 'All news providers failed or returned no results'


def build_providers(settings: AggregatorSettings,
                    classifier: Optional[CategoryClassifier] = None) -> List[BaseProvider]:
    """Provider chain in fallback order: gemini (opt-in), web search, rss, newsapi."""
    keys = settings.keys
    timeout = settings.provider_timeout_seconds
    chain: List[BaseProvider] = []

    if settings.use_generative_search:
        chain.append(GeminiSearchProvider(api_key=keys.gemini, model=settings.gemini_model,
                                          timeout_seconds=timeout, classifier=classifier))

    for name in settings.web_provider_order():
        chain.append(WEB_PROVIDERS[name](api_key=getattr(keys, name),
                                         timeout_seconds=timeout, classifier=classifier))

    rss_config = CollectionConfig.from_dict(settings.collectors) if settings.collectors else None
    chain.append(RSSProvider(config=rss_config, classifier=classifier, timeout_seconds=timeout))
    chain.append(NewsAPIProvider(api_key=keys.newsapi,
                                 secondary_language=settings.newsapi_secondary_language,
                                 timeout_seconds=timeout, classifier=classifier))
    return chain


class NewsAggregator:
    """
    Serves feed requests through the cache and the provider fallback chain.

    Providers are tried strictly in order and the first non-empty result
    wins. The aggregator owns the shared HTTP session; use it as an async
    context manager or call ``close()`` when done.
    """

    def __init__(self,
                 providers: List[BaseProvider],
                 cache: ResultCache,
                 rate_limiter: FixedWindowRateLimiter,
                 use_mock_data: bool = False,
                 request_timeout_seconds: Optional[float] = None,
                 tracker: Optional[ProviderUsageTracker] = None,
                 session: Optional[aiohttp.ClientSession] = None,
                 store: Optional[KeyValueStore] = None):
        self.providers = providers
        self.cache = cache
        self.rate_limiter = rate_limiter
        self.use_mock_data = use_mock_data
        self.request_timeout_seconds = request_timeout_seconds
        self.tracker = tracker or usage_tracker
        self.store = store
        self.session = session
        self._owns_session = False
        if session is not None:
            self._attach_session(session)

    @classmethod
    def from_config(cls,
                    settings: Optional[AggregatorSettings] = None,
                    store: Optional[KeyValueStore] = None) -> 'NewsAggregator':
        """Wire store, cache, rate limiter and providers from configuration."""
        settings = settings or AggregatorSettings.from_config()
        store = store or create_store(settings.store_backend, settings.redis_url)

        cache = ResultCache(store,
                            ttl_seconds=settings.cache_ttl_seconds,
                            stale_ttl_seconds=settings.cache_stale_ttl_seconds,
                            max_entries=settings.cache_max_entries)
        rate_limiter = FixedWindowRateLimiter(store,
                                              limit=settings.rate_limit,
                                              window_seconds=settings.rate_limit_window_seconds,
                                              enabled=settings.rate_limit_enabled)
        providers = build_providers(settings, get_classifier())

        available = [p.name for p in providers if p.is_available]
        logger.info(f"Provider chain: {' → '.join(p.name for p in providers)} "
                    f"({len(available)} available: {', '.join(available) or 'none'})")
        if settings.use_mock_data:
            log_warning(logger, "Mock mode enabled: serving curated demo stories only")

        return cls(providers, cache, rate_limiter,
                   use_mock_data=settings.use_mock_data,
                   request_timeout_seconds=settings.request_timeout_seconds,
                   store=store)

    async def __aenter__(self) -> 'NewsAggregator':
        await self._init_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _attach_session(self, session: aiohttp.ClientSession) -> None:
        for provider in self.providers:
            provider.session = session

    async def _init_session(self):
        """Initialize the HTTP session shared by every provider."""
        if self.session is not None:
            return

        connector = aiohttp.TCPConnector(limit=50, limit_per_host=5, ttl_dns_cache=300)
        self.session = aiohttp.ClientSession(connector=connector, headers={'User-Agent': USER_AGENT})
        self._owns_session = True
        self._attach_session(self.session)

    async def _cleanup_session(self):
        if self.session and self._owns_session:
            await self.session.close()
            self.session = None
            self._owns_session = False

    async def close(self) -> None:
        await self._cleanup_session()
        if self.store is not None:
            await self.store.close()

    async def search(self, request: FeedRequest, client_id: Optional[str] = None) -> FeedResponse:
        """Serve one request; always returns a well-formed response."""
        response, _ = await self.handle(request, client_id)
        return response

    async def handle(self, request: FeedRequest,
                     client_id: Optional[str] = None) -> Tuple[FeedResponse, RateLimitDecision]:
        """Serve one request and report the rate-limit decision alongside it."""
        if self.use_mock_data:
            return self._mock_response(request), RateLimitDecision.unlimited()

        decision = await self.rate_limiter.check(client_id)
        signature = request.signature()

        if not decision.allowed:
            self.tracker.record_rate_limited()
            log_warning(logger, f"Rate limit exceeded for {client_id or 'anonymous'}")
            return await self._rate_limited_response(request, signature), decision

        cached = await self._cache_get(signature)
        if cached is not None:
            logger.debug(f"Cache hit for {request.category_key} page {request.page}")
            cached.provider_trace = [TRACE_CACHE_HIT]
            return cached, decision

        await self._init_session()
        winner = await self._run_chain_with_timeout(request)
        if winner is not None:
            name, articles = winner
            response = FeedResponse.ok(articles,
                                       trace=[f"{name}:{len(articles)}"],
                                       fallback=True if name == 'rss' else None)
            await self._cache_set(signature, response)
            return response, decision

        stale = await self._cache_get_stale(signature)
        if stale is not None:
            log_warning(logger, "Provider chain exhausted, serving stale cached result")
            stale.provider_trace = [TRACE_CACHE_STALE]
            stale.fallback = True
            return stale, decision

        log_error(logger, f"{EXHAUSTED_MESSAGE} ({request.category_key})")
        return FeedResponse.failure(EXHAUSTED_MESSAGE), decision

    def _mock_response(self, request: FeedRequest) -> FeedResponse:
        return FeedResponse.ok(mock_articles(request), trace=[TRACE_MOCK], fallback=True)

    async def _rate_limited_response(self, request: FeedRequest, signature: str) -> FeedResponse:
        response = await self._cache_get_stale(signature)
        if response is not None:
            response.provider_trace = [TRACE_CACHE_STALE]
        else:
            response = self._mock_response(request)
        response.fallback = True
        response.rate_limited = True
        response.http_status = 429
        return response

    async def _run_chain_with_timeout(self, request: FeedRequest) -> Optional[Tuple[str, List[Article]]]:
        if not self.request_timeout_seconds:
            return await self._run_chain(request)
        try:
            return await asyncio.wait_for(self._run_chain(request), timeout=self.request_timeout_seconds)
        except asyncio.TimeoutError:
            log_warning(logger, f"Provider chain timed out after {self.request_timeout_seconds}s")
            return None

    async def _run_chain(self, request: FeedRequest) -> Optional[Tuple[str, List[Article]]]:
        """Try each provider in order; the first non-empty result wins."""
        for provider in self.providers:
            articles = await self._attempt(provider, request)
            if articles:
                log_step(logger, "Provider succeeded", f"{provider.name} returned {len(articles)} articles")
                return provider.name, deduplicate_articles(articles)
        return None

    async def _attempt(self, provider: BaseProvider, request: FeedRequest) -> List[Article]:
        """One provider call; failures are recorded and reported as no results."""
        start_time = time.time()
        try:
            articles = await provider.search(request)
        except ProviderUnavailableError as e:
            logger.debug(f"Skipping {provider.name}: {e.message}")
            self.tracker.record_call(provider.name, OUTCOME_UNAVAILABLE, error_message=e.message)
            return []
        except ProviderTimeoutError as e:
            log_warning(logger, f"{provider.name} timed out: {e.message}")
            self.tracker.record_call(provider.name, OUTCOME_TIMEOUT,
                                     processing_time=time.time() - start_time, error_message=e.message)
            return []
        except ProviderHTTPError as e:
            log_warning(logger, f"{provider.name} failed: {e.message}")
            self.tracker.record_call(provider.name, OUTCOME_ERROR, processing_time=time.time() - start_time,
                                     status_code=e.status, error_message=e.message)
            return []
        except ProviderError as e:
            log_warning(logger, f"{provider.name} failed: {e.message}")
            self.tracker.record_call(provider.name, OUTCOME_ERROR,
                                     processing_time=time.time() - start_time, error_message=e.message)
            return []
        except Exception as e:
            log_error(logger, f"{provider.name} raised unexpectedly: {e}")
            logger.debug(traceback.format_exc())
            self.tracker.record_call(provider.name, OUTCOME_ERROR,
                                     processing_time=time.time() - start_time, error_message=str(e))
            return []

        outcome = OUTCOME_OK if articles else OUTCOME_EMPTY
        self.tracker.record_call(provider.name, outcome, items=len(articles),
                                 processing_time=time.time() - start_time)
        if not articles:
            logger.info(f"{provider.name} returned no results, trying next provider")
        return articles

    # Store outages degrade to cache misses instead of failing the request
    async def _cache_get(self, signature: str) -> Optional[FeedResponse]:
        try:
            return await self.cache.get(signature)
        except Exception as e:
            log_warning(logger, f"Cache read failed: {e}")
            return None

    async def _cache_get_stale(self, signature: str) -> Optional[FeedResponse]:
        try:
            return await self.cache.get_stale(signature)
        except Exception as e:
            log_warning(logger, f"Stale cache read failed: {e}")
            return None

    async def _cache_set(self, signature: str, response: FeedResponse) -> None:
        try:
            await self.cache.set(signature, response)
        except Exception as e:
            log_warning(logger, f"Cache write failed: {e}")


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='ph-corruption-feed',
        description='Fetch a page of Philippine corruption news through the provider fallback chain.',
    )
    parser.add_argument('--category', default='all',
                        help='flood-control, dpwh, corrupt-politicians, nepo-babies or all')
    parser.add_argument('--q', default='', help='Free-text query appended to the category query')
    parser.add_argument('--from', dest='date_from', help='Window start (ISO 8601)')
    parser.add_argument('--to', dest='date_to', help='Window end (ISO 8601)')
    parser.add_argument('--page', type=int, default=1)
    parser.add_argument('--page-size', type=int, default=20)
    parser.add_argument('--json', action='store_true', help='Print the raw response body')
    parser.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    return parser


def _display_results(response: FeedResponse, duration: float) -> None:
    """Render the response as a rich table."""
    console = Console()
    table = Table(title=f"{response.total_results} articles ({duration:.1f}s)", show_lines=False)
    table.add_column("Published", style="dim", no_wrap=True)
    table.add_column("Category", style="cyan", no_wrap=True)
    table.add_column("Source", style="green")
    table.add_column("Title")
    for article in response.articles:
        table.add_row(article.published_at.strftime('%Y-%m-%d %H:%M'),
                      article.category.value, article.source.name, article.title)
    console.print(table)

    flags = [f"trace={','.join(response.provider_trace or [])}"]
    if response.fallback:
        flags.append("fallback")
    if response.rate_limited:
        flags.append("rate limited")
    console.print(f"[dim]{' | '.join(flags)}[/dim]")


async def main(argv: Optional[List[str]] = None) -> int:
    """Run one aggregation request from the command line."""
    args = _build_arg_parser().parse_args(argv)
    setup_logging(level=args.log_level, quiet_mode=True)

    request = FeedRequest.build(category=args.category, q=args.q,
                                date_from=args.date_from, date_to=args.date_to,
                                page=args.page, page_size=args.page_size)
    try:
        log_step(logger, "Fetching news", f"category={request.category_key} page={request.page}")
        start_time = time.time()
        async with NewsAggregator.from_config() as aggregator:
            response = await aggregator.search(request, client_id='cli')
        duration = time.time() - start_time

        if args.json:
            print(response.to_json())
        elif response.status == 'ok':
            _display_results(response, duration)
        else:
            log_error(logger, response.error or 'Request failed')

        logger.debug(json.dumps(usage_tracker.get_summary(), indent=2))
        return 0 if response.status == 'ok' else 1

    except KeyboardInterrupt:
        log_error(logger, "Interrupted by user")
        return 1
    except Exception as e:
        log_error(logger, f"Aggregation failed: {e}")
        logger.debug(traceback.format_exc())
        return 1


def run():
    """Entry point for the ph-corruption-feed command."""
    try:
        exit_code = asyncio.run(main())
        sys.exit(exit_code)
    except KeyboardInterrupt:
        sys.exit(1)


if __name__ == "__main__":
    run()
