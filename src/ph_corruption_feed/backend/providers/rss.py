#!/usr/bin/env python3
"""RSS provider: the feed collector behind the common provider interface."""

import logging
from typing import Dict, List, Optional

from ...shared.types import Article, FeedRequest, ProviderKind
from ..collectors.collectors import RSSCollector
from ..collectors.core import CollectionConfig
from ..processors.classifier import CategoryClassifier
from .base import BaseProvider, ProviderUnavailableError

logger = logging.getLogger(__name__)


class RSSProvider(BaseProvider):
    """Needs no key; unavailable only when no feeds are configured."""

    name = 'rss'
    kind = ProviderKind.RSS
    requires_key = False

    def __init__(self,
                 config: Optional[CollectionConfig] = None,
                 feeds: Optional[Dict[str, Dict]] = None,
                 classifier: Optional[CategoryClassifier] = None,
                 collector: Optional[RSSCollector] = None,
                 **kwargs):
        super().__init__(classifier=classifier, **kwargs)
        self.collector = collector or RSSCollector(config=config, feeds=feeds, classifier=classifier)

    @property
    def is_available(self) -> bool:
        return bool(self.collector.feeds)

    async def search(self, request: FeedRequest) -> List[Article]:
        """Classified, windowed, deduplicated and ranked page from all feeds."""
        if not self.is_available:
            raise ProviderUnavailableError(self.name, "no feeds configured")
        return await self.collector.fetch_all(request, session=self.session)
