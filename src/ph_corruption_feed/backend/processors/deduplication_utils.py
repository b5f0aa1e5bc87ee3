#!/usr/bin/env python3
"""
Deduplication Utilities

Collapses articles that refer to the same story. Two articles are duplicates
when their canonical URLs match (query string and fragment stripped) or,
failing that, when their lower-cased, whitespace-collapsed titles match.
"""

import logging
from functools import lru_cache
from typing import Dict, List, Optional, Set

from ...shared.types import Article, canonical_url, normalize_title
from .filters import is_excluded_domain

logger = logging.getLogger(__name__)


class ArticleDeduplicator:
    """
    Order-preserving deduplication over URL and title keys.

    A single pass checks both keys of each article against everything kept so
    far; the first occurrence wins on either key. Because every kept article
    registers both of its keys, running the result through again keeps
    everything, which makes the operation idempotent.
    """

    def __init__(self):
        self.seen_urls: Set[str] = set()
        self.seen_titles: Set[str] = set()

    @staticmethod
    @lru_cache(maxsize=1024)
    def _normalize_title(title: str) -> str:
        return normalize_title(title)

    @staticmethod
    @lru_cache(maxsize=1024)
    def _normalize_url(url: str) -> str:
        """Canonical URL with trailing slash removed from the path."""
        normalized = canonical_url(url)
        if normalized.count('/') > 2:
            normalized = normalized.rstrip('/')
        return normalized

    def _is_valid_article(self, article: Article) -> bool:
        """Articles need a title and must not come from a deny-listed host."""
        if not article.title or not article.title.strip():
            return False
        if article.url and is_excluded_domain(article.url):
            logger.debug(f"Dropping aggregator item: {article.url}")
            return False
        return True

    def is_duplicate(self, article: Article) -> bool:
        """Check an article against the keys seen so far, registering it if new."""
        url_key = self._normalize_url(article.url) if article.url else ''
        title_key = self._normalize_title(article.title)

        if url_key and url_key in self.seen_urls:
            return True
        if title_key and title_key in self.seen_titles:
            return True

        if url_key:
            self.seen_urls.add(url_key)
        if title_key:
            self.seen_titles.add(title_key)
        return False

    def reset(self) -> None:
        self.seen_urls.clear()
        self.seen_titles.clear()

    def deduplicate_articles(self, articles: List[Article]) -> List[Article]:
        """
        Deduplicate a list of articles.

        Args:
            articles: Articles in priority order; earlier items win.

        Returns:
            The surviving articles in their original relative order.
        """
        if not articles:
            return []

        self.reset()
        unique_articles = []
        for article in articles:
            if not self._is_valid_article(article):
                continue
            if self.is_duplicate(article):
                logger.debug(f"Duplicate: {article.title}")
                continue
            unique_articles.append(article)

        removed_count = len(articles) - len(unique_articles)
        if removed_count:
            logger.debug(f"Deduplication: {len(articles)} -> {len(unique_articles)} "
                         f"({removed_count} removed)")
        return unique_articles

    @staticmethod
    def get_deduplication_stats(original_count: int, final_count: int) -> Dict:
        """Generate deduplication statistics."""
        removed_count = original_count - final_count
        removal_rate = (removed_count / original_count * 100) if original_count > 0 else 0

        return {
            'original_count': original_count,
            'final_count': final_count,
            'removed_count': removed_count,
            'removal_rate_percent': round(removal_rate, 2),
        }


def deduplicate_articles(articles: List[Article],
                         deduplicator: Optional[ArticleDeduplicator] = None) -> List[Article]:
    """Convenience function to deduplicate articles."""
    deduplicator = deduplicator or ArticleDeduplicator()
    return deduplicator.deduplicate_articles(articles)
