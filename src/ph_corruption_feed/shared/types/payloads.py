#!/usr/bin/env python3
"""
Typed upstream payloads.

Every provider response is validated into one of these models before it
reaches the normalizer; unknown fields are ignored so additive upstream
changes do not break parsing.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True)


class GeminiItem(_Payload):
    """One ``TITLE: ... / URL: ...`` block parsed from a generative answer."""
    title: str = ''
    source: Optional[str] = None
    url: Optional[str] = None
    date: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    key_details: Optional[str] = None
    older_reference: Optional[bool] = None
    # Raw block text, searched for a date when DATE is missing or malformed
    context: str = ''


class TavilyResult(_Payload):
    title: Optional[str] = None
    url: Optional[str] = None
    content: Optional[str] = None
    snippet: Optional[str] = None
    published_date: Optional[str] = None
    source: Optional[str] = None
    score: Optional[float] = None


class TavilyResponse(_Payload):
    results: List[TavilyResult] = Field(default_factory=list)


class BraveMetaUrl(_Payload):
    hostname: Optional[str] = None
    display: Optional[str] = None


class BraveProfile(_Payload):
    name: Optional[str] = None


class BraveThumbnail(_Payload):
    src: Optional[str] = None


class BraveResult(_Payload):
    title: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    snippet: Optional[str] = None
    page_age: Optional[str] = None
    published: Optional[str] = None
    age: Optional[str] = None
    meta_url: Optional[BraveMetaUrl] = None
    profile: Optional[BraveProfile] = None
    thumbnail: Optional[BraveThumbnail] = None


class BraveWeb(_Payload):
    results: List[BraveResult] = Field(default_factory=list)


class BraveResponse(_Payload):
    web: BraveWeb = Field(default_factory=BraveWeb)


class SerperNewsItem(_Payload):
    title: Optional[str] = None
    link: Optional[str] = None
    snippet: Optional[str] = None
    date: Optional[str] = None
    source: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias='imageUrl')


class SerperResponse(_Payload):
    news: List[SerperNewsItem] = Field(default_factory=list)


class NewsAPISource(_Payload):
    id: Optional[str] = None
    name: Optional[str] = None


class NewsAPIArticle(_Payload):
    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    url_to_image: Optional[str] = Field(default=None, alias='urlToImage')
    published_at: Optional[str] = Field(default=None, alias='publishedAt')
    content: Optional[str] = None
    source: Optional[NewsAPISource] = None


class NewsAPIResponse(_Payload):
    status: str = 'ok'
    total_results: int = Field(default=0, alias='totalResults')
    articles: List[NewsAPIArticle] = Field(default_factory=list)
    code: Optional[str] = None
    message: Optional[str] = None
