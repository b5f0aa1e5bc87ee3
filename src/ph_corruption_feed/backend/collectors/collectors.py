#!/usr/bin/env python3
"""
Feed Collection - source collectors, batching and the RSS fetch pipeline
"""

import asyncio
import logging
import time
from typing import Callable, Dict, List, Optional, Any, Tuple

import aiohttp

from ...shared.types import Article, FeedRequest, ProviderKind
from ..processors.classifier import CategoryClassifier, get_classifier
from ..processors.deduplication_utils import deduplicate_articles
from ..processors.filters import within_window
from ..processors.normalizer import normalize
from .core import CollectionConfig, CollectionStats, ConfigManager, TextUtils
from .feed_parser import FeedItem, get_feed_parser

logger = logging.getLogger(__name__)

USER_AGENT = 'PH-Corruption-Feed/1.0 RSS Reader'

ProgressCallback = Callable[[int, int], None]


class ArticleParser:
    """Classifies feed items and turns the relevant ones into Articles."""

    def __init__(self, classifier: Optional[CategoryClassifier] = None):
        self.classifier = classifier or get_classifier()

    def parse_article(self, source_id: str, config: Dict, item: FeedItem,
                      request: FeedRequest) -> Optional[Article]:
        """Return an Article when the item is on-topic and inside the window."""
        if not item.title or not item.title.strip():
            return None

        result = self.classifier.classify(TextUtils.clean_html(item.text, max_length=None))
        if not result.is_relevant:
            return None
        if request.category is not None and not result.matches(request.category):
            return None

        if not item.source_name:
            item.source_name = config.get('name', source_id)
        article = normalize(item, ProviderKind.RSS, result.category)
        article.score = result.score

        if not within_window(article.published_at, request.date_from, request.date_to):
            return None
        return article


class SourceCollector:
    """Fetches and parses a single feed under a hard timeout."""

    def __init__(self, session: aiohttp.ClientSession, parser: ArticleParser,
                 config: Optional[CollectionConfig] = None):
        self.session = session
        self.parser = parser
        self.config = config or CollectionConfig()
        self.feed_parser = get_feed_parser(self.config.parser)

    async def _fetch(self, url: str) -> Tuple[int, str]:
        async with self.session.get(url) as response:
            if response.status != 200:
                return response.status, ''
            return response.status, await response.text()

    async def collect_source(self, source_id: str, config: Dict,
                             request: FeedRequest) -> Tuple[List[Article], str]:
        """Collect articles from one feed; failures come back as a reason string."""
        try:
            url = config['url']
            timeout = float(config.get('timeout_seconds', self.config.timeout_per_feed))
            max_items = int(config.get('max_items', self.config.max_items_per_feed))

            status, content = await asyncio.wait_for(self._fetch(url), timeout=timeout)
            if status != 200:
                return [], f"HTTP {status}"

            items = self.feed_parser.parse(content, source_name=config.get('name', source_id))
            if not items:
                return [], "no entries found"

            articles = []
            for item in items[:max_items]:
                article = self.parser.parse_article(source_id, config, item, request)
                if article:
                    articles.append(article)

            return articles, "success" if articles else "no relevant entries"

        except asyncio.TimeoutError:
            return [], "timeout"
        except aiohttp.ClientError as e:
            return [], f"connection error: {e}"
        except KeyError as e:
            return [], f"missing config: {e}"


class BatchCollector:
    """Fetches feeds in priority-ordered batches with a pause between batches."""

    def __init__(self, session: aiohttp.ClientSession,
                 config: Optional[CollectionConfig] = None,
                 classifier: Optional[CategoryClassifier] = None,
                 progress_callback: Optional[ProgressCallback] = None):
        self.session = session
        self.config = config or CollectionConfig()
        self.progress_callback = progress_callback
        self.batch_size = max(1, self.config.batch_size)
        self.pause_between_batches = self.config.pause_between_batches

        self.parser = ArticleParser(classifier)
        self.collector = SourceCollector(session, self.parser, self.config)
        self.stats = CollectionStats()

    async def collect_all(self, sources: Dict[str, Dict], request: FeedRequest) -> List[Article]:
        """Process all feeds; a failing feed contributes nothing and never raises."""
        all_articles: List[Article] = []
        source_items = sorted(sources.items(), key=lambda item: (item[1].get('priority', 5), item[0]))
        total_sources = len(source_items)
        completed_sources = 0

        if self.progress_callback:
            self.progress_callback(completed_sources, total_sources)

        for i in range(0, total_sources, self.batch_size):
            batch = source_items[i:i + self.batch_size]
            all_articles.extend(await self._process_batch(batch, request))

            completed_sources += len(batch)
            if self.progress_callback:
                self.progress_callback(completed_sources, total_sources)

            if i + self.batch_size < total_sources and self.pause_between_batches > 0:
                await asyncio.sleep(self.pause_between_batches)

        self.stats.total_articles = len(all_articles)
        return all_articles

    async def _process_batch(self, batch: List[Tuple[str, Dict]], request: FeedRequest) -> List[Article]:
        """Process a batch of feeds concurrently."""
        tasks = [
            self.collector.collect_source(source_id, config, request)
            for source_id, config in batch
        ]

        results = await asyncio.gather(*tasks, return_exceptions=True)
        batch_articles: List[Article] = []

        for (source_id, _), result in zip(batch, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                self.stats.failed += 1
                self.stats.failure_reasons[source_id] = str(result) or type(result).__name__
                logger.debug(f"Feed {source_id} failed: {result!r}")
                continue

            articles, reason = result
            if articles:
                batch_articles.extend(articles)
                self.stats.successful += 1
            elif reason in ("no relevant entries", "no entries found"):
                self.stats.empty += 1
                self.stats.failure_reasons[source_id] = reason
            else:
                self.stats.failed += 1
                self.stats.failure_reasons[source_id] = reason
                logger.debug(f"Feed {source_id}: {reason}")

        return batch_articles

    def get_stats(self) -> Dict[str, Any]:
        """Get collection statistics."""
        return self.stats.to_dict()


class RSSCollector:
    """Fetch every configured feed, then dedupe, rank and page the results."""

    def __init__(self,
                 config: Optional[CollectionConfig] = None,
                 feeds: Optional[Dict[str, Dict]] = None,
                 classifier: Optional[CategoryClassifier] = None):
        if config is None or feeds is None:
            loaded_config, loaded_feeds = ConfigManager.load()
            config = config or loaded_config
            feeds = loaded_feeds if feeds is None else feeds
        self.config = config
        self.feeds = feeds
        self.classifier = classifier
        self.stats = CollectionStats()
        logger.debug(f"RSSCollector initialized with {len(self.feeds)} feeds")

    async def fetch_all(self, request: FeedRequest,
                        session: Optional[aiohttp.ClientSession] = None,
                        progress_callback: Optional[ProgressCallback] = None) -> List[Article]:
        """
        Collect relevant articles for a request across all feeds.

        Concurrent calls are independent: the session lives only for the
        duration of the call and ``stats`` holds the last finished run.

        Args:
            request: Category filter, date window and paging
            session: Shared HTTP session; a private one is opened when omitted
            progress_callback: Receives (completed_feeds, total_feeds)

        Returns:
            One page of articles sorted by relevance score, then recency
        """
        start_time = time.time()
        owns_session = session is None
        if owns_session:
            session = self._open_session()

        try:
            batch_collector = BatchCollector(session, self.config, self.classifier, progress_callback)
            articles = await batch_collector.collect_all(self.feeds, request)
            stats = batch_collector.stats

            unique = deduplicate_articles(articles)
            ranked = sorted(unique, key=lambda a: (a.score or 0.0, a.published_at), reverse=True)

            start = (request.page - 1) * request.page_size
            page = ranked[start:start + request.page_size]

            stats.total_articles = len(page)
            stats.processing_time = time.time() - start_time
            self.stats = stats
            self._log_summary(stats, len(articles), len(unique))
            return page
        finally:
            if owns_session:
                await session.close()

    @staticmethod
    def _open_session() -> aiohttp.ClientSession:
        """Private HTTP session for a single fetch_all call."""
        connector = aiohttp.TCPConnector(limit=50, limit_per_host=5, ttl_dns_cache=300)
        return aiohttp.ClientSession(
            connector=connector,
            headers={'User-Agent': USER_AGENT},
        )

    @staticmethod
    def _log_summary(s: CollectionStats, collected: int, unique: int):
        logger.info(f"RSS: ✓{s.successful} ○{s.empty} ✗{s.failed} feeds, "
                    f"{collected} relevant → {unique} unique → {s.total_articles} returned "
                    f"({s.processing_time:.2f}s)")
