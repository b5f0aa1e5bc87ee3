#!/usr/bin/env python3
"""
Feed Collection Core - Configuration and data structures
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Any, Tuple

from ...shared.config.config_loader import get_collectors_config, load_sources_config
from ...shared.utils.text_utils import DateUtils, TextUtils

logger = logging.getLogger(__name__)


@dataclass
class CollectionConfig:
    """Configuration for RSS feed collection."""
    batch_size: int = 5
    pause_between_batches: float = 0.25
    timeout_per_feed: float = 5.0
    max_items_per_feed: int = 25
    parser: str = 'feedparser'
    rss_config: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, collectors_config: Optional[Dict[str, Any]]) -> 'CollectionConfig':
        """Build from the ``collectors`` section of app.yaml."""
        data = collectors_config or {}
        batch = data.get('batch_processing', {})
        defaults = cls()
        return cls(
            batch_size=max(1, int(batch.get('default_batch_size', defaults.batch_size))),
            pause_between_batches=float(batch.get('pause_between_batches_seconds', defaults.pause_between_batches)),
            timeout_per_feed=float(data.get('timeout_seconds_per_feed', defaults.timeout_per_feed)),
            max_items_per_feed=int(data.get('max_items_per_feed', defaults.max_items_per_feed)),
            parser=str(data.get('parser', defaults.parser)).lower(),
            rss_config=data,
        )


@dataclass
class CollectionStats:
    """Collection operation statistics."""
    successful: int = 0
    empty: int = 0
    failed: int = 0
    total_articles: int = 0
    processing_time: float = 0.0
    failure_reasons: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'successful': self.successful,
            'empty': self.empty,
            'failed': self.failed,
            'total_articles': self.total_articles,
            'processing_time': round(self.processing_time, 3),
            'failure_reasons': dict(self.failure_reasons),
        }


class ConfigManager:
    """Lightweight configuration loader."""

    @staticmethod
    def load() -> Tuple[CollectionConfig, Dict[str, Dict]]:
        """Load collection config and enabled feeds."""
        try:
            config = CollectionConfig.from_dict(get_collectors_config())
            feeds = load_sources_config().get('sources', {})
            logger.info(f"Loaded {len(feeds)} enabled feeds")
            return config, feeds
        except Exception as e:
            logger.warning(f"Feed configuration not available: {e}")
            return CollectionConfig(), {}


__all__ = [
    'CollectionConfig',
    'CollectionStats',
    'ConfigManager',
    'DateUtils',
    'TextUtils',
]
