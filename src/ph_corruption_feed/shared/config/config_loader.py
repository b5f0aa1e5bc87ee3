#!/usr/bin/env python3
"""Unified Configuration Loader - YAML configuration plus environment secrets."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, List, Optional
from dotenv import load_dotenv
import yaml

logger = logging.getLogger(__name__)
load_dotenv('.env.local')
load_dotenv()

class ConfigLoader:
    """Unified configuration loader for YAML files."""

    _config_cache: Dict[str, Dict[str, Any]] = {}

    @staticmethod
    def _get_config_dir() -> Path:
        """Get the configuration directory path."""
        config_dir_str = os.getenv('CONFIG_DIR')
        if config_dir_str:
            config_dir = Path(config_dir_str)
        else:
            config_dir = Path(__file__).parent

        if not config_dir.exists():
            raise FileNotFoundError(f"Configuration directory not found: {config_dir}")
        return config_dir

    @classmethod
    def _load_file(cls, file_path: Path) -> Dict[str, Any]:
        """Load a YAML configuration file."""
        if not file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f) or {}
        except Exception as e:
            logger.error(f"Failed to load configuration file {file_path}: {e}")
            raise RuntimeError(f"Could not load configuration from {file_path}: {e}")

    @classmethod
    def load_config(cls, config_name: str = "app") -> Dict[str, Any]:
        """Load configuration by name (app, classifier)."""
        if config_name in cls._config_cache:
            return cls._config_cache[config_name]

        config_dir = cls._get_config_dir()

        for ext in ['.yaml', '.yml']:
            config_path = config_dir / f"{config_name}{ext}"
            if config_path.exists():
                config = cls._load_file(config_path)
                cls._config_cache[config_name] = config
                logger.debug(f"Loaded {config_name} configuration from {config_path}")
                return config

        raise FileNotFoundError(f"No YAML configuration file found for '{config_name}' in {config_dir}")

    @classmethod
    def get(cls, key: str, default: Any = None, config_name: str = "app") -> Any:
        """Get a setting using dot notation (e.g., 'cache.ttl_seconds')."""
        config = cls.load_config(config_name)
        value = config
        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    @classmethod
    def clear_cache(cls) -> None:
        """Clear the configuration cache."""
        cls._config_cache.clear()


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean feature flag from the environment."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def get_collectors_config() -> Dict[str, Any]:
    """Load collector-specific configuration from app config."""
    try:
        return ConfigLoader.get('collectors', {}, "app")
    except Exception as e:
        logger.error(f"Failed to load collector config: {e}")
        return {}


def get_classifier_config() -> Dict[str, Any]:
    """Load keyword sets and weights for the RSS classifier."""
    try:
        return ConfigLoader.load_config("classifier")
    except Exception as e:
        logger.warning(f"Classifier config not available, using built-in defaults: {e}")
        return {}


def load_sources_config() -> Dict[str, Any]:
    """Load RSS feed definitions (YAML format)."""
    from .sources_loader import get_sources_loader
    loader = get_sources_loader()
    return {
        "sources": loader.get_sources(),
        "metadata": loader.get_metadata(),
        "format": "yaml_modular"
    }


@dataclass
class ProviderKeys:
    """Upstream credentials; a missing key marks that provider unavailable."""
    gemini: Optional[str] = None
    tavily: Optional[str] = None
    brave: Optional[str] = None
    serper: Optional[str] = None
    newsapi: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'ProviderKeys':
        return cls(
            gemini=os.getenv('GEMINI_API_KEY') or None,
            tavily=os.getenv('TAVILY_API_KEY') or None,
            brave=os.getenv('BRAVE_SEARCH_API_KEY') or None,
            serper=os.getenv('SERPER_API_KEY') or None,
            newsapi=os.getenv('NEWS_API_KEY') or None,
        )


@dataclass
class AggregatorSettings:
    """Everything the orchestrator needs, resolved from YAML and environment."""
    use_generative_search: bool = False
    use_mock_data: bool = False
    preferred_web_provider: str = ''
    provider_timeout_seconds: float = 8.0
    request_timeout_seconds: Optional[float] = 30.0
    gemini_model: str = 'gemini-2.0-flash'
    newsapi_secondary_language: Optional[str] = None
    cache_ttl_seconds: float = 300.0
    cache_stale_ttl_seconds: float = 3600.0
    cache_max_entries: int = 200
    rate_limit_enabled: bool = True
    rate_limit: int = 10
    rate_limit_window_seconds: int = 60
    store_backend: str = 'memory'
    redis_url: Optional[str] = None
    collectors: Dict[str, Any] = field(default_factory=dict)
    keys: ProviderKeys = field(default_factory=ProviderKeys)

    @classmethod
    def from_config(cls) -> 'AggregatorSettings':
        """Build settings from app.yaml, overridden by environment flags."""
        try:
            app = ConfigLoader.load_config("app")
        except (FileNotFoundError, RuntimeError) as e:
            logger.warning(f"App config not available, using defaults: {e}")
            app = {}

        aggregation = app.get('aggregation', {})
        cache = app.get('cache', {})
        rate_limit = app.get('rate_limit', {})
        store = app.get('store', {})
        providers = app.get('providers', {})
        defaults = cls()

        return cls(
            use_generative_search=env_flag('USE_GEMINI_SEARCH', aggregation.get('use_generative_search', False)),
            use_mock_data=env_flag('USE_MOCK_DATA', aggregation.get('use_mock_data', False)),
            preferred_web_provider=(os.getenv('WEB_SEARCH_PROVIDER')
                                    or aggregation.get('preferred_web_provider') or '').strip().lower(),
            provider_timeout_seconds=float(aggregation.get('provider_timeout_seconds', defaults.provider_timeout_seconds)),
            request_timeout_seconds=aggregation.get('request_timeout_seconds', defaults.request_timeout_seconds),
            gemini_model=os.getenv('GEMINI_MODEL') or providers.get('gemini', {}).get('model', defaults.gemini_model),
            newsapi_secondary_language=providers.get('newsapi', {}).get('secondary_language'),
            cache_ttl_seconds=float(cache.get('ttl_seconds', defaults.cache_ttl_seconds)),
            cache_stale_ttl_seconds=float(cache.get('stale_ttl_seconds', defaults.cache_stale_ttl_seconds)),
            cache_max_entries=int(cache.get('max_entries', defaults.cache_max_entries)),
            rate_limit_enabled=bool(rate_limit.get('enabled', True)),
            rate_limit=int(rate_limit.get('limit', defaults.rate_limit)),
            rate_limit_window_seconds=int(rate_limit.get('window_seconds', defaults.rate_limit_window_seconds)),
            store_backend=str(store.get('backend', 'memory')).lower(),
            redis_url=os.getenv('REDIS_URL') or store.get('redis_url'),
            collectors=app.get('collectors', {}),
            keys=ProviderKeys.from_env(),
        )

    def web_provider_order(self) -> List[str]:
        """Web-search providers, preferred one first."""
        order = ['tavily', 'brave', 'serper']
        if self.preferred_web_provider in order:
            order.remove(self.preferred_web_provider)
            order.insert(0, self.preferred_web_provider)
        return order
