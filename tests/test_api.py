"""Tests for the HTTP surface."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from ph_corruption_feed.backend.api import client_identity, create_app
from ph_corruption_feed.backend.orchestrator import NewsAggregator
from ph_corruption_feed.backend.providers import BaseProvider, ProviderHTTPError
from ph_corruption_feed.backend.storage import FixedWindowRateLimiter, InMemoryStore, ResultCache
from ph_corruption_feed.shared.types import Category


class CannedProvider(BaseProvider):
    name = 'tavily'
    requires_key = False

    def __init__(self, articles=None, error=None):
        super().__init__()
        self.articles = articles or []
        self.error = error
        self.requests = []

    async def search(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return list(self.articles)


@pytest.fixture
def make_client(clock, make_article):
    def _make(limit=10, error=None):
        store = InMemoryStore(clock=clock)
        articles = [make_article(f'DPWH story {i}', url=f'https://www.rappler.com/dpwh-{i}', category=Category.DPWH)
                    for i in range(3)]
        provider = CannedProvider(articles=articles, error=error)
        aggregator = NewsAggregator(
            [provider],
            cache=ResultCache(store, clock=clock),
            rate_limiter=FixedWindowRateLimiter(store, limit=limit, window_seconds=60, clock=clock),
            session=MagicMock(),
            store=store,
        )
        return TestClient(create_app(aggregator)), provider
    return _make


class TestNewsRoute:

    def test_success(self, make_client) -> None:
        client, provider = make_client()

        with client:
            response = client.get('/api/news', params={'category': 'dpwh', 'pageSize': '5', 'from': '2025-01-01'})

        assert response.status_code == 200
        body = response.json()
        assert body['status'] == 'ok'
        assert body['totalResults'] == 3
        assert body['providerTrace'] == ['tavily:3']
        assert body['articles'][0]['category'] == 'dpwh'
        assert response.headers['X-RateLimit-Limit'] == '10'
        assert response.headers['X-RateLimit-Remaining'] == '9'
        request = provider.requests[0]
        assert request.page_size == 5
        assert request.date_from.year == 2025

    def test_lenient_parameters(self, make_client) -> None:
        client, provider = make_client()

        with client:
            response = client.get('/api/news', params={
                'category': 'weather', 'from': 'last tuesday', 'page': '0', 'pageSize': '999',
            })

        assert response.status_code == 200
        request = provider.requests[0]
        assert request.category is None
        assert request.date_from is None
        assert request.page == 1
        assert request.page_size == 50

    def test_rate_limited(self, make_client) -> None:
        client, _ = make_client(limit=1)

        with client:
            client.get('/api/news', params={'category': 'dpwh'})
            response = client.get('/api/news', params={'category': 'dpwh'})

        assert response.status_code == 429
        body = response.json()
        assert body['rateLimited'] is True
        assert body['fallback'] is True
        assert body['totalResults'] == 3
        assert 'Retry-After' in response.headers

    def test_forwarded_clients_are_limited_separately(self, make_client) -> None:
        client, _ = make_client(limit=1)

        with client:
            first = client.get('/api/news', headers={'X-Forwarded-For': '198.51.100.1'})
            second = client.get('/api/news', headers={'X-Forwarded-For': '198.51.100.2, 10.0.0.1'})

        assert first.status_code == 200
        assert second.status_code == 200

    def test_all_providers_failed(self, make_client) -> None:
        client, _ = make_client(error=ProviderHTTPError('tavily', 500))

        with client:
            response = client.get('/api/news')

        assert response.status_code == 503
        body = response.json()
        assert body['status'] == 'error'
        assert body['articles'] == []
        assert body['error']


class TestOtherRoutes:

    def test_categories(self, make_client) -> None:
        client, _ = make_client()

        with client:
            response = client.get('/api/news/categories')

        keys = [entry['key'] for entry in response.json()['categories']]
        assert keys == ['all', 'flood-control', 'dpwh', 'corrupt-politicians', 'nepo-babies']

    def test_health(self, make_client) -> None:
        client, _ = make_client()

        with client:
            response = client.get('/api/health')

        body = response.json()
        assert body['status'] == 'ok'
        assert body['providers'] == [{'name': 'tavily', 'available': True}]
        assert 'total_calls' in body['usage']


class TestClientIdentity:

    def test_prefers_first_forwarded_hop(self) -> None:
        request = MagicMock()
        request.headers = {'x-forwarded-for': '203.0.113.9, 10.0.0.2'}

        assert client_identity(request) == '203.0.113.9'

    def test_falls_back_to_peer(self) -> None:
        request = MagicMock()
        request.headers = {}
        request.client.host = '192.0.2.10'

        assert client_identity(request) == '192.0.2.10'

    def test_anonymous(self) -> None:
        request = MagicMock()
        request.headers = {}
        request.client = None

        assert client_identity(request) == 'anonymous'
