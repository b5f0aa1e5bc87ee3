#!/usr/bin/env python3
"""
RSS feed registry backed by modular YAML files.
Provides lazy loading, caching and priority ordering of feed definitions.
"""

import yaml
import logging
from typing import Dict, List, Any, Optional
from pathlib import Path
import threading

logger = logging.getLogger(__name__)

class SourcesLoader:
    """Modular feed loader with caching and lazy loading."""

    def __init__(self, sources_dir: Optional[str] = None):
        """Initialize the sources loader."""
        if sources_dir is None:
            sources_dir = str(Path(__file__).parent / "sources")

        self.sources_dir = Path(sources_dir)
        self._cache: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

        if not self.sources_dir.exists():
            logger.warning(f"Sources directory not found: {self.sources_dir}")

    def get_metadata(self) -> Dict[str, Any]:
        """Get basic metadata about the feed registry."""
        return {
            "version": "1.0",
            "description": "Philippine local news RSS/Atom feeds",
            "groups": self.get_groups(),
        }

    def get_groups(self) -> List[str]:
        """Discover feed groups by scanning YAML files in the sources directory."""
        if not self.sources_dir.exists():
            return []
        return sorted(file_path.stem for file_path in self.sources_dir.glob("*.yaml"))

    def load_group(self, group: str) -> Dict[str, Dict[str, Any]]:
        """Load enabled feeds for one group file, with caching."""
        with self._lock:
            if group in self._cache:
                return self._cache[group]

            sources_file = self.sources_dir / f"{group.lower().replace(' ', '_')}.yaml"
            try:
                with open(sources_file, 'r', encoding='utf-8') as f:
                    data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.error(f"Failed to load feed group {group} from {sources_file}: {e}")
                self._cache[group] = {}
                return {}

            sources = data.get("sources", {}) or {}
            enabled_sources = {}
            for source_id, config in sources.items():
                if not config.get("enabled", True) or not config.get("url"):
                    continue
                enabled_sources[source_id] = {**config, "group": group}

            self._cache[group] = enabled_sources
            logger.debug(f"Loaded {len(enabled_sources)} enabled feeds from {sources_file.name}")
            return enabled_sources

    def get_sources(self, group: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
        """Get enabled feeds ordered by priority (lowest number first)."""
        if group:
            sources = dict(self.load_group(group))
        else:
            sources = {}
            for name in self.get_groups():
                sources.update(self.load_group(name))

        ordered = sorted(sources.items(), key=lambda item: (item[1].get("priority", 5), item[0]))
        return dict(ordered)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()


# Global instance
_sources_loader: Optional[SourcesLoader] = None

def get_sources_loader() -> SourcesLoader:
    """Get the global sources loader instance."""
    global _sources_loader
    if _sources_loader is None:
        _sources_loader = SourcesLoader()
    return _sources_loader
