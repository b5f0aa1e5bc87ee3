#!/usr/bin/env python3
"""
Article processing: normalization, locality and window filters,
deduplication and RSS category classification.
"""

from .classifier import CategoryClassifier, get_classifier
from .deduplication_utils import ArticleDeduplicator, deduplicate_articles
from .filters import get_hostname, guess_source_name, is_local, within_window
from .normalizer import normalize

__all__ = [
    'ArticleDeduplicator',
    'CategoryClassifier',
    'deduplicate_articles',
    'get_classifier',
    'get_hostname',
    'guess_source_name',
    'is_local',
    'normalize',
    'within_window',
]
