"""Tests for the provider adapters."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from ph_corruption_feed.backend.collectors import CollectionConfig
from ph_corruption_feed.backend.processors.classifier import CategoryClassifier
from ph_corruption_feed.backend.providers import (
    BraveSearchProvider,
    GeminiSearchProvider,
    NewsAPIProvider,
    ProviderError,
    ProviderHTTPError,
    ProviderPayloadError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    RSSProvider,
    SerperSearchProvider,
    TavilySearchProvider,
    build_category_query,
    build_gemini_prompt,
    mock_articles,
    parse_gemini_response,
)
from ph_corruption_feed.backend.providers.web_search import tavily_time_range
from ph_corruption_feed.shared.types import Category, FeedRequest

GEMINI_ANSWER = """Here are the results:

1. **TITLE:** DPWH district engineer charged over ghost dikes
SOURCE: Philippine Daily Inquirer
URL: https://newsinfo.inquirer.net/ghost-dikes
DATE: 2025-02-14
DESCRIPTION: The Ombudsman charged a district engineer over ₱300M in unbuilt dikes.
CATEGORY: flood-control
KEY_DETAILS:
- ₱300M in unbuilt dikes
- Three contractors named
OLDER_REFERENCE: no

2. TITLE: Senator's dynasty under scrutiny
SOURCE: Rappler
URL: see https://www.rappler.com/nation/dynasty for details
DATE: 2019-06-01
DESCRIPTION: Relatives hold five offices.
OLDER_REFERENCE: yes

SOURCE: orphan block without a title
"""


def _tavily_result(title, url, date='2025-03-01'):
    return {'title': title, 'url': url, 'content': f"{title} content", 'published_date': date}


class TestQueries:

    def test_category_query_with_user_text(self) -> None:
        query = build_category_query(Category.DPWH, 'Bulacan')

        assert 'DPWH' in query
        assert query.endswith(' Bulacan')

    def test_all_categories_query(self) -> None:
        assert 'corruption' in build_category_query(None)

    def test_tavily_time_range(self) -> None:
        now = datetime(2025, 3, 31, tzinfo=timezone.utc)

        assert tavily_time_range(FeedRequest.build()) is None
        assert tavily_time_range(FeedRequest.build(date_from='2025-03-28'), now) == 'week'
        assert tavily_time_range(FeedRequest.build(date_from='2025-03-05'), now) == 'month'
        assert tavily_time_range(FeedRequest.build(date_from='2024-01-01'), now) == 'year'


class TestTavilyProvider:

    async def test_missing_key_is_unavailable(self) -> None:
        provider = TavilySearchProvider(api_key=None)

        assert not provider.is_available
        with pytest.raises(ProviderUnavailableError):
            await provider.search(FeedRequest.build())

    async def test_filters_foreign_results(self) -> None:
        provider = TavilySearchProvider(api_key='key')
        payload = {'results': [
            _tavily_result('DPWH chief grilled', 'https://www.rappler.com/dpwh-chief'),
            _tavily_result('Foreign wire copy', 'https://www.reuters.com/world/asia/ph'),
            _tavily_result('Aggregated copy', 'https://news.google.com/articles/1'),
        ]}

        with patch.object(provider, '_request_json', AsyncMock(return_value=payload)) as request_json:
            articles = await provider.search(FeedRequest.build(category='dpwh'))

        assert [a.title for a in articles] == ['DPWH chief grilled']
        assert articles[0].category == Category.DPWH
        assert request_json.call_args.args[0] == 'POST'
        assert request_json.call_args.kwargs['headers']['Authorization'] == 'Bearer key'

    async def test_window_applied_after_fetch(self) -> None:
        provider = TavilySearchProvider(api_key='key')
        payload = {'results': [
            _tavily_result('Old story', 'https://www.rappler.com/old', date='2020-01-01'),
            _tavily_result('New story', 'https://www.rappler.com/new', date='2025-03-01'),
        ]}
        request = FeedRequest.build(date_from='2025-01-01', date_to='2025-12-31')

        with patch.object(provider, '_request_json', AsyncMock(return_value=payload)):
            articles = await provider.search(request)

        assert [a.title for a in articles] == ['New story']

    async def test_all_request_is_bucketed_by_classifier(self) -> None:
        provider = TavilySearchProvider(api_key='key', classifier=CategoryClassifier(config={}))
        payload = {'results': [
            _tavily_result('Canceled nepo babies flaunt luxury', 'https://www.rappler.com/nepo'),
        ]}

        with patch.object(provider, '_request_json', AsyncMock(return_value=payload)):
            articles = await provider.search(FeedRequest.build())

        assert articles[0].category == Category.NEPO_BABIES

    async def test_page_size_is_respected(self) -> None:
        provider = TavilySearchProvider(api_key='key')
        payload = {'results': [
            _tavily_result(f'Story {i}', f'https://www.rappler.com/{i}') for i in range(6)
        ]}

        with patch.object(provider, '_request_json', AsyncMock(return_value=payload)):
            articles = await provider.search(FeedRequest.build(page_size=4))

        assert len(articles) == 4

    async def test_second_page_is_sliced_locally(self) -> None:
        provider = TavilySearchProvider(api_key='key')
        payload = {'results': [
            _tavily_result(f'Story {i}', f'https://www.rappler.com/{i}') for i in range(6)
        ]}

        with patch.object(provider, '_request_json', AsyncMock(return_value=payload)) as request_json:
            articles = await provider.search(FeedRequest.build(page=2, page_size=4))

        assert [a.title for a in articles] == ['Story 4', 'Story 5']
        assert request_json.call_args.kwargs['json']['max_results'] == 8

    async def test_result_without_title_is_skipped(self) -> None:
        provider = TavilySearchProvider(api_key='key')
        payload = {'results': [
            {'title': None, 'url': 'https://www.rappler.com/untitled', 'content': 'No headline'},
            _tavily_result('DPWH chief grilled', 'https://www.rappler.com/dpwh-chief'),
        ]}

        with patch.object(provider, '_request_json', AsyncMock(return_value=payload)):
            articles = await provider.search(FeedRequest.build(category='dpwh'))

        assert [a.title for a in articles] == ['DPWH chief grilled']

    async def test_unexpected_payload(self) -> None:
        provider = TavilySearchProvider(api_key='key')

        with patch.object(provider, '_request_json', AsyncMock(return_value=['not', 'an', 'object'])):
            with pytest.raises(ProviderPayloadError):
                await provider.search(FeedRequest.build())

    def test_payload_restricts_domains(self) -> None:
        payload = TavilySearchProvider(api_key='key').build_payload(FeedRequest.build(page_size=50))

        assert 'rappler.com' in payload['include_domains']
        assert 'news.google.com' in payload['exclude_domains']
        assert payload['max_results'] == 20


class TestBraveProvider:

    async def test_reads_web_results(self) -> None:
        provider = BraveSearchProvider(api_key='key')
        payload = {'web': {'results': [
            {'title': 'Flood control audit', 'url': 'https://www.philstar.com/audit',
             'description': 'COA flags projects', 'page_age': '2025-03-01T00:00:00'},
        ]}}

        with patch.object(provider, '_request_json', AsyncMock(return_value=payload)) as request_json:
            articles = await provider.search(FeedRequest.build(category='flood-control'))

        assert articles[0].source.name == 'Philippine Star'
        assert request_json.call_args.kwargs['headers']['X-Subscription-Token'] == 'key'

    async def test_missing_web_section_is_empty(self) -> None:
        provider = BraveSearchProvider(api_key='key')

        with patch.object(provider, '_request_json', AsyncMock(return_value={'type': 'search'})):
            assert await provider.search(FeedRequest.build()) == []

    async def test_result_without_title_is_skipped(self) -> None:
        provider = BraveSearchProvider(api_key='key')
        payload = {'web': {'results': [
            {'title': None, 'url': 'https://www.philstar.com/untitled'},
            {'title': 'Flood control audit', 'url': 'https://www.philstar.com/audit',
             'page_age': '2025-03-01T00:00:00'},
        ]}}

        with patch.object(provider, '_request_json', AsyncMock(return_value=payload)):
            articles = await provider.search(FeedRequest.build(category='flood-control'))

        assert [a.title for a in articles] == ['Flood control audit']

    def test_params(self) -> None:
        request = FeedRequest.build(date_from='2025-01-01', date_to='2025-01-31', page=3)

        params = BraveSearchProvider(api_key='key').build_params(request)

        assert 'site:rappler.com' in params['q']
        assert params['freshness'] == '2025-01-01to2025-01-31'
        assert params['offset'] == '2'
        assert params['country'] == 'ph'


class TestSerperProvider:

    async def test_reads_news(self) -> None:
        provider = SerperSearchProvider(api_key='key')
        payload = {'news': [
            {'title': 'Mayor charged', 'link': 'https://www.gmanetwork.com/mayor',
             'snippet': 'Graft charges', 'date': '2025-03-02', 'source': 'GMA News',
             'imageUrl': 'https://www.gmanetwork.com/img.jpg'},
        ]}

        with patch.object(provider, '_request_json', AsyncMock(return_value=payload)):
            articles = await provider.search(FeedRequest.build(category='corrupt-politicians'))

        assert articles[0].url_to_image == 'https://www.gmanetwork.com/img.jpg'
        assert articles[0].category == Category.CORRUPT_POLITICIANS

    async def test_result_without_title_is_skipped(self) -> None:
        provider = SerperSearchProvider(api_key='key')
        payload = {'news': [
            {'title': None, 'link': 'https://www.gmanetwork.com/untitled', 'source': 'GMA News'},
            {'title': 'Mayor charged', 'link': 'https://www.gmanetwork.com/mayor',
             'date': '2025-03-02', 'source': 'GMA News'},
        ]}

        with patch.object(provider, '_request_json', AsyncMock(return_value=payload)):
            articles = await provider.search(FeedRequest.build(category='corrupt-politicians'))

        assert [a.title for a in articles] == ['Mayor charged']


class TestNewsAPIProvider:

    async def test_error_status(self) -> None:
        provider = NewsAPIProvider(api_key='key')
        error = {'status': 'error', 'code': 'apiKeyInvalid', 'message': 'Your API key is invalid.'}

        with patch.object(provider, '_request_json', AsyncMock(return_value=error)):
            with pytest.raises(ProviderPayloadError, match='apiKeyInvalid'):
                await provider.search(FeedRequest.build())

    async def test_unrestricted_retry_when_empty(self) -> None:
        provider = NewsAPIProvider(api_key='key')
        responses = [
            {'status': 'ok', 'totalResults': 0, 'articles': []},
            {'status': 'ok', 'totalResults': 1, 'articles': [
                {'source': {'name': 'Rappler'}, 'title': 'Plunder case filed',
                 'url': 'https://www.rappler.com/plunder', 'publishedAt': '2025-03-03T00:00:00Z'},
            ]},
        ]

        with patch.object(provider, '_request_json', AsyncMock(side_effect=responses)) as request_json:
            articles = await provider.search(FeedRequest.build())

        assert [a.title for a in articles] == ['Plunder case filed']
        first_params = request_json.call_args_list[0].kwargs['params']
        second_params = request_json.call_args_list[1].kwargs['params']
        assert 'domains' in first_params
        assert 'domains' not in second_params

    async def test_secondary_language_merge(self) -> None:
        provider = NewsAPIProvider(api_key='key', secondary_language='es')
        english = {'status': 'ok', 'articles': [
            {'source': {'name': 'Rappler'}, 'title': 'English story', 'url': 'https://www.rappler.com/en'},
        ]}
        secondary = {'status': 'ok', 'articles': [
            {'source': {'name': 'Rappler'}, 'title': 'Second story', 'url': 'https://www.rappler.com/es'},
        ]}

        with patch.object(provider, '_request_json', AsyncMock(side_effect=[english, secondary])) as request_json:
            articles = await provider.search(FeedRequest.build(page_size=10))

        assert len(articles) == 2
        assert request_json.call_args_list[1].kwargs['params']['language'] == 'es'


class TestRequestJson:

    async def test_http_error_is_typed(self, fake_session, fake_response) -> None:
        session = fake_session({'https://api.tavily.com/search': fake_response(status=503, body='down')})
        provider = TavilySearchProvider(api_key='key', session=session)

        with pytest.raises(ProviderHTTPError) as excinfo:
            await provider.search(FeedRequest.build())

        assert excinfo.value.status == 503

    async def test_invalid_json(self, fake_session, fake_response) -> None:
        session = fake_session({'https://api.tavily.com/search': fake_response(status=200, body='<html>')})
        provider = TavilySearchProvider(api_key='key', session=session)

        with pytest.raises(ProviderPayloadError):
            await provider.search(FeedRequest.build())

    async def test_timeout(self, fake_session, fake_response) -> None:
        session = fake_session({'https://api.tavily.com/search': fake_response(error=asyncio.TimeoutError())})
        provider = TavilySearchProvider(api_key='key', session=session)

        with pytest.raises(ProviderTimeoutError):
            await provider.search(FeedRequest.build())

    async def test_connection_error(self, fake_session, fake_response) -> None:
        error = aiohttp.ClientConnectionError('refused')
        session = fake_session({'https://api.tavily.com/search': fake_response(error=error)})
        provider = TavilySearchProvider(api_key='key', session=session)

        with pytest.raises(ProviderError, match='connection error'):
            await provider.search(FeedRequest.build())

    async def test_no_session(self) -> None:
        with pytest.raises(ProviderError, match='no HTTP session'):
            await TavilySearchProvider(api_key='key').search(FeedRequest.build())


class TestGeminiProvider:

    def test_parse_blocks(self) -> None:
        items = parse_gemini_response(GEMINI_ANSWER)

        assert len(items) == 2
        first, second = items
        assert first.title == 'DPWH district engineer charged over ghost dikes'
        assert first.url == 'https://newsinfo.inquirer.net/ghost-dikes'
        assert first.date == '2025-02-14'
        assert first.key_details == '₱300M in unbuilt dikes; Three contractors named'
        assert first.older_reference is False
        assert second.url == 'https://www.rappler.com/nation/dynasty'
        assert second.older_reference is True

    def test_parse_empty(self) -> None:
        assert parse_gemini_response('') == []
        assert parse_gemini_response('No relevant news found.') == []

    def test_prompt_mentions_window_and_query(self) -> None:
        request = FeedRequest.build(category='nepo-babies', q='Pasig', date_from='2025-01-01')

        prompt = build_gemini_prompt(request)

        assert 'nepotism' in prompt
        assert 'on or after 2025-01-01' in prompt
        assert 'Pasig' in prompt
        assert 'CATEGORY: nepo-babies' in prompt

    async def test_search_with_client(self) -> None:
        client = MagicMock()
        client.aio.models.generate_content = AsyncMock(return_value=MagicMock(text=GEMINI_ANSWER))
        provider = GeminiSearchProvider(api_key='key', client=client)

        articles = await provider.search(FeedRequest.build(category='flood-control'))

        assert len(articles) == 2
        assert all(a.category == Category.FLOOD_CONTROL for a in articles)
        assert articles[1].published_at.year == 2019

    async def test_missing_key_is_unavailable(self) -> None:
        with pytest.raises(ProviderUnavailableError):
            await GeminiSearchProvider(api_key=None).search(FeedRequest.build())


class TestRSSProvider:

    async def test_no_feeds_is_unavailable(self) -> None:
        provider = RSSProvider(config=CollectionConfig(), feeds={})

        assert not provider.is_available
        with pytest.raises(ProviderUnavailableError):
            await provider.search(FeedRequest.build())

    async def test_delegates_to_collector(self) -> None:
        collector = MagicMock()
        collector.feeds = {'rappler': {'url': 'https://www.rappler.com/feed/'}}
        collector.fetch_all = AsyncMock(return_value=[])
        session = MagicMock()
        provider = RSSProvider(collector=collector, session=session)

        await provider.search(FeedRequest.build())

        assert collector.fetch_all.await_args.kwargs['session'] is session


class TestMockArticles:

    def test_category_filter(self) -> None:
        articles = mock_articles(FeedRequest.build(category='nepo-babies'))

        assert len(articles) == 3
        assert all(a.category == Category.NEPO_BABIES for a in articles)

    def test_window_filter(self) -> None:
        request = FeedRequest.build(date_to='2020-01-01')

        assert mock_articles(request) == []

    def test_paging(self) -> None:
        articles = mock_articles(FeedRequest.build(page=2, page_size=3))

        assert [a.id for a in articles] == ['4', '5', '6']
