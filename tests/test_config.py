"""Tests for configuration loading and environment overrides."""

import pytest

from ph_corruption_feed.shared.config.config_loader import (
    AggregatorSettings,
    ConfigLoader,
    ProviderKeys,
    env_flag,
)
from ph_corruption_feed.shared.config.sources_loader import get_sources_loader


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ('USE_MOCK_DATA', 'USE_GEMINI_SEARCH', 'WEB_SEARCH_PROVIDER', 'GEMINI_MODEL', 'REDIS_URL',
                 'TAVILY_API_KEY', 'BRAVE_SEARCH_API_KEY', 'SERPER_API_KEY', 'NEWS_API_KEY', 'GEMINI_API_KEY',
                 'CONFIG_DIR'):
        monkeypatch.delenv(name, raising=False)
    ConfigLoader.clear_cache()
    yield
    ConfigLoader.clear_cache()


class TestEnvFlag:

    @pytest.mark.parametrize('value,expected', [
        ('true', True), ('1', True), ('YES', True), ('on', True),
        ('false', False), ('0', False), ('', False),
    ])
    def test_values(self, monkeypatch, value, expected) -> None:
        monkeypatch.setenv('FEED_FLAG', value)

        assert env_flag('FEED_FLAG') is expected

    def test_default_when_unset(self) -> None:
        assert env_flag('FEED_FLAG_UNSET', default=True) is True


class TestAggregatorSettings:

    def test_packaged_defaults(self) -> None:
        settings = AggregatorSettings.from_config()

        assert settings.use_mock_data is False
        assert settings.use_generative_search is False
        assert settings.cache_ttl_seconds == 300
        assert settings.cache_stale_ttl_seconds == 3600
        assert settings.rate_limit == 10
        assert settings.rate_limit_window_seconds == 60
        assert settings.store_backend == 'memory'
        assert settings.collectors['parser'] == 'feedparser'

    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv('USE_MOCK_DATA', 'true')
        monkeypatch.setenv('USE_GEMINI_SEARCH', '1')
        monkeypatch.setenv('WEB_SEARCH_PROVIDER', ' Brave ')
        monkeypatch.setenv('TAVILY_API_KEY', 'tv-key')

        settings = AggregatorSettings.from_config()

        assert settings.use_mock_data is True
        assert settings.use_generative_search is True
        assert settings.preferred_web_provider == 'brave'
        assert settings.keys.tavily == 'tv-key'
        assert settings.keys.serper is None

    def test_missing_config_dir_falls_back_to_defaults(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setenv('CONFIG_DIR', str(tmp_path))

        settings = AggregatorSettings.from_config()

        assert settings.rate_limit == 10
        assert settings.collectors == {}

    @pytest.mark.parametrize('preferred,expected', [
        ('', ['tavily', 'brave', 'serper']),
        ('serper', ['serper', 'tavily', 'brave']),
        ('brave', ['brave', 'tavily', 'serper']),
        ('bing', ['tavily', 'brave', 'serper']),
    ])
    def test_web_provider_order(self, preferred, expected) -> None:
        assert AggregatorSettings(preferred_web_provider=preferred).web_provider_order() == expected

    def test_empty_key_counts_as_missing(self, monkeypatch) -> None:
        monkeypatch.setenv('NEWS_API_KEY', '')

        assert ProviderKeys.from_env().newsapi is None


class TestConfigLoader:

    def test_dot_notation(self) -> None:
        assert ConfigLoader.get('cache.max_entries') == 200
        assert ConfigLoader.get('cache.missing', 'fallback') == 'fallback'

    def test_unknown_config(self) -> None:
        with pytest.raises(FileNotFoundError):
            ConfigLoader.load_config('does-not-exist')

    def test_packaged_sources_load(self) -> None:
        sources = get_sources_loader().get_sources()

        assert sources
        assert all('url' in source for source in sources.values())
