#!/usr/bin/env python3
"""
RSS Collection System

Feed parsing, batched concurrent fetching and the RSS result pipeline.
"""

from .collectors import (
    ArticleParser,
    BatchCollector,
    RSSCollector,
    SourceCollector,
)

from .core import (
    CollectionConfig,
    CollectionStats,
    ConfigManager,
    DateUtils,
    TextUtils,
)

from .feed_parser import (
    FeedItem,
    FeedparserFeedParser,
    RegexFeedParser,
    get_feed_parser,
    parse_feed_item,
    split_feed_items,
)

__all__ = [
    'ArticleParser',
    'BatchCollector',
    'RSSCollector',
    'SourceCollector',
    'CollectionConfig',
    'CollectionStats',
    'ConfigManager',
    'DateUtils',
    'TextUtils',
    'FeedItem',
    'FeedparserFeedParser',
    'RegexFeedParser',
    'get_feed_parser',
    'parse_feed_item',
    'split_feed_items',
]
