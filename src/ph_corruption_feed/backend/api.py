#!/usr/bin/env python3
"""
HTTP surface for the feed UI.

``GET /api/news`` always answers with the feed response shape; its HTTP
status follows the response (200, 429 when rate limited, 503 when every
provider failed) and the rate-limit headers are attached when enforced.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from ..shared.types import CATEGORY_LABELS, FeedRequest
from ..shared.utils.logging_config import setup_logging
from .monitoring.provider_usage_tracker import usage_tracker
from .orchestrator import NewsAggregator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["news"])


def client_identity(request: Request) -> str:
    """First X-Forwarded-For hop, else the peer address."""
    forwarded = request.headers.get('x-forwarded-for', '')
    first_hop = forwarded.split(',')[0].strip()
    if first_hop:
        return first_hop
    if request.client and request.client.host:
        return request.client.host
    return 'anonymous'


def get_aggregator(request: Request) -> NewsAggregator:
    return request.app.state.aggregator


@router.get("/news")
async def get_news(
    request: Request,
    aggregator: NewsAggregator = Depends(get_aggregator),
    category: Optional[str] = Query(None, description="Category key or 'all'"),
    q: Optional[str] = Query(None, description="Free-text query"),
    date_from: Optional[str] = Query(None, alias="from", description="Window start (ISO 8601)"),
    date_to: Optional[str] = Query(None, alias="to", description="Window end (ISO 8601)"),
    page: Optional[str] = Query(None),
    page_size: Optional[str] = Query(None, alias="pageSize"),
):
    """One page of local corruption news.

    Parameters are validated leniently: bad dates are dropped, page and
    pageSize are clamped and unknown categories mean "all".
    """
    feed_request = FeedRequest.build(
        category=category,
        q=q,
        date_from=date_from,
        date_to=date_to,
        page=page if page is not None else 1,
        page_size=page_size if page_size is not None else 20,
    )
    response, decision = await aggregator.handle(feed_request, client_identity(request))
    return JSONResponse(
        content=response.to_dict(),
        status_code=response.http_status,
        headers=decision.headers(),
    )


@router.get("/news/categories")
async def get_categories():
    """Category keys with their display labels."""
    return {
        "categories": [{"key": key, "label": label} for key, label in CATEGORY_LABELS.items()],
    }


@router.get("/health")
async def health(aggregator: NewsAggregator = Depends(get_aggregator)):
    """Provider chain and usage summary."""
    return {
        "status": "ok",
        "mock_mode": aggregator.use_mock_data,
        "providers": [
            {"name": provider.name, "available": provider.is_available}
            for provider in aggregator.providers
        ],
        "usage": usage_tracker.get_summary(),
    }


def create_app(aggregator: Optional[NewsAggregator] = None) -> FastAPI:
    """Build the app; an injected aggregator is used as-is and left open."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if aggregator is not None:
            app.state.aggregator = aggregator
            yield
            return
        async with NewsAggregator.from_config() as owned:
            app.state.aggregator = owned
            yield

    app = FastAPI(
        title="PH Corruption Feed",
        description="Aggregated Philippine corruption and accountability news",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app


app = create_app()


def main():
    """Run the API server."""
    import uvicorn

    setup_logging(level=os.getenv('LOG_LEVEL', 'INFO'), quiet_mode=True)
    uvicorn.run(
        "ph_corruption_feed.backend.api:app",
        host=os.getenv('HOST', '127.0.0.1'),
        port=int(os.getenv('PORT', '8000')),
    )


if __name__ == "__main__":
    main()
