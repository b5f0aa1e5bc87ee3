#!/usr/bin/env python3
"""
Normalizer - maps typed provider payloads onto the canonical Article.

Each provider kind has one explicit mapping function. ``normalize`` never
raises on bad field values: dates fall back to a pattern found in nearby
text and then to the current time, and descriptions fall back to a
placeholder.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING

from ...shared.types import Article, Category, ProviderKind, SourceRef, make_article_id
from ...shared.utils.text_utils import DateUtils, TextUtils
from ...shared.types.payloads import (
    BraveResult,
    GeminiItem,
    NewsAPIArticle,
    SerperNewsItem,
    TavilyResult,
)
from .filters import guess_source_name

if TYPE_CHECKING:
    from ..collectors.feed_parser import FeedItem

logger = logging.getLogger(__name__)

NO_DESCRIPTION = 'No description provided.'
MAX_DESCRIPTION_LENGTH = 500


def _clean(text: Optional[str], max_length: Optional[int] = MAX_DESCRIPTION_LENGTH) -> str:
    return TextUtils.clean_html(text or '', max_length=max_length)


def _build(title: Optional[str],
           description: Optional[str],
           url: Optional[str],
           published: Any,
           date_context: Optional[str],
           source_label: Optional[str],
           category: Category,
           image: Optional[str] = None,
           content: Optional[str] = None,
           score: Optional[float] = None) -> Article:
    clean_title = _clean(title, max_length=None)
    clean_url = (url or '').strip() or None
    if clean_url and not TextUtils.is_valid_url(clean_url):
        clean_url = None

    published_at: datetime = DateUtils.parse_date(published, context=date_context)
    source_name = guess_source_name(clean_url, source_label)

    return Article(
        id=make_article_id(clean_url, clean_title),
        title=clean_title,
        description=_clean(description) or NO_DESCRIPTION,
        published_at=published_at,
        source=SourceRef(name=source_name),
        category=category,
        url=clean_url,
        url_to_image=(image or '').strip() or None,
        content=_clean(content, max_length=None) or None,
        score=score,
    )


def _from_gemini(raw: GeminiItem, category: Category) -> Article:
    return _build(
        title=raw.title,
        description=raw.description,
        url=raw.url,
        published=raw.date,
        date_context=raw.context,
        source_label=raw.source,
        category=category,
        content=raw.key_details,
    )


def _from_tavily(raw: TavilyResult, category: Category) -> Article:
    return _build(
        title=raw.title,
        description=raw.content or raw.snippet,
        url=raw.url,
        published=raw.published_date,
        date_context=raw.content,
        source_label=raw.source,
        category=category,
        content=raw.snippet or raw.content,
    )


def _from_brave(raw: BraveResult, category: Category) -> Article:
    label = None
    if raw.profile and raw.profile.name:
        label = raw.profile.name
    elif raw.meta_url:
        label = raw.meta_url.display or raw.meta_url.hostname
    return _build(
        title=raw.title,
        description=raw.description or raw.snippet,
        url=raw.url,
        published=raw.published or raw.page_age,
        date_context=raw.age or raw.description,
        source_label=label,
        category=category,
        image=raw.thumbnail.src if raw.thumbnail else None,
        content=raw.snippet or raw.description,
    )


def _from_serper(raw: SerperNewsItem, category: Category) -> Article:
    return _build(
        title=raw.title,
        description=raw.snippet,
        url=raw.link,
        published=raw.date,
        date_context=raw.snippet,
        source_label=raw.source,
        category=category,
        image=raw.image_url,
        content=raw.snippet,
    )


def _from_newsapi(raw: NewsAPIArticle, category: Category) -> Article:
    return _build(
        title=raw.title,
        description=raw.description,
        url=raw.url,
        published=raw.published_at,
        date_context=raw.content,
        source_label=raw.source.name if raw.source else None,
        category=category,
        image=raw.url_to_image,
        content=raw.content,
    )


def _from_feed_item(raw: 'FeedItem', category: Category) -> Article:
    return _build(
        title=raw.title,
        description=raw.description,
        url=raw.link,
        published=raw.published,
        date_context=raw.description,
        source_label=raw.source_name,
        category=category,
        image=raw.image,
    )


def _from_mock(raw: Dict[str, Any], category: Category) -> Article:
    article = Article.from_dict(raw)
    article.category = Category.coerce(raw.get('category') or category)
    return article


_MAPPERS: Dict[ProviderKind, Callable[[Any, Category], Article]] = {
    ProviderKind.GEMINI: _from_gemini,
    ProviderKind.TAVILY: _from_tavily,
    ProviderKind.BRAVE: _from_brave,
    ProviderKind.SERPER: _from_serper,
    ProviderKind.NEWSAPI: _from_newsapi,
    ProviderKind.RSS: _from_feed_item,
    ProviderKind.MOCK: _from_mock,
}


def normalize(raw: Any, kind: ProviderKind, requested_category: Any = None) -> Article:
    """
    Convert one provider item into an Article.

    Args:
        raw: The typed payload for ``kind`` (pydantic model, FeedItem or,
            for mock data, a wire-format dict)
        kind: Which upstream produced the item
        requested_category: Category to stamp on the article; for RSS this is
            the classifier's verdict. Unknown values coerce to the default.

    Returns:
        A best-effort Article. Items with an empty title are still returned;
        the deduplicator drops them.
    """
    mapper = _MAPPERS.get(ProviderKind(kind))
    if mapper is None:
        raise ValueError(f"No normalizer registered for provider kind: {kind}")
    return mapper(raw, Category.coerce(requested_category))
