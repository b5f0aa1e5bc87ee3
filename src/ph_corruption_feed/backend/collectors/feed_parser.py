#!/usr/bin/env python3
"""
Feed parsing seam.

Feeds are parsed with ``feedparser`` by default. ``parse_feed_item`` is the
alternative: it turns one raw ``<item>``/``<entry>`` fragment into a
``FeedItem`` by lightweight tag extraction, tolerating CDATA, HTML inside
text nodes and both RSS and Atom link styles. ``collectors.parser`` in
app.yaml selects between them.
"""

import html
import logging
import re
from dataclasses import dataclass
from typing import Any, List, Optional

import feedparser

logger = logging.getLogger(__name__)

ITEM_PATTERN = re.compile(r'<(item|entry)(?:\s[^>]*)?>(.*?)</\1>', re.IGNORECASE | re.DOTALL)
CDATA_PATTERN = re.compile(r'<!\[CDATA\[(.*?)\]\]>', re.DOTALL)
ATOM_LINK_PATTERN = re.compile(r'<link\b([^>]*?)/?>', re.IGNORECASE)
ATTR_PATTERN = re.compile(r'([\w:-]+)\s*=\s*["\']([^"\']*)["\']')
IMG_SRC_PATTERN = re.compile(r'<img[^>]+src=["\']([^"\']+)["\']', re.IGNORECASE)

DESCRIPTION_TAGS = ['description', 'summary', 'content:encoded', 'content']
DATE_TAGS = ['pubDate', 'published', 'updated', 'dc:date']


@dataclass
class FeedItem:
    """One feed entry before normalization."""
    title: str = ''
    description: str = ''
    link: Optional[str] = None
    published: Any = None
    image: Optional[str] = None
    source_name: Optional[str] = None

    @property
    def text(self) -> str:
        """Title and description, the input to the classifier."""
        return f"{self.title} {self.description}".strip()


def _unwrap(value: str) -> str:
    """Drop CDATA wrappers and decode entities."""
    value = CDATA_PATTERN.sub(lambda m: m.group(1), value)
    return html.unescape(value).strip()


def _tag_text(fragment: str, tag: str) -> str:
    pattern = re.compile(rf'<{re.escape(tag)}(?:\s[^>]*)?>(.*?)</{re.escape(tag)}>',
                         re.IGNORECASE | re.DOTALL)
    match = pattern.search(fragment)
    return _unwrap(match.group(1)) if match else ''


def _first_tag_text(fragment: str, tags: List[str]) -> str:
    for tag in tags:
        value = _tag_text(fragment, tag)
        if value:
            return value
    return ''


def _attributes(raw: str) -> dict:
    return {key.lower(): html.unescape(value) for key, value in ATTR_PATTERN.findall(raw)}


def _extract_link(fragment: str) -> Optional[str]:
    text_link = _tag_text(fragment, 'link')
    if text_link.startswith('http'):
        return text_link

    # Atom: prefer rel="alternate" (or no rel) over enclosures and self links
    fallback = None
    for match in ATOM_LINK_PATTERN.finditer(fragment):
        attrs = _attributes(match.group(1))
        href = attrs.get('href')
        if not href:
            continue
        rel = attrs.get('rel', 'alternate')
        if rel == 'alternate':
            return href
        fallback = fallback or href
    if fallback:
        return fallback

    guid = _tag_text(fragment, 'guid')
    return guid if guid.startswith('http') else None


def _extract_image(fragment: str, description: str) -> Optional[str]:
    for tag in ('enclosure', 'media:content', 'media:thumbnail'):
        for match in re.finditer(rf'<{tag}\b([^>]*)>', fragment, re.IGNORECASE):
            attrs = _attributes(match.group(1))
            url = attrs.get('url')
            media_type = attrs.get('type', '')
            if url and (not media_type or media_type.startswith('image')):
                return url
    match = IMG_SRC_PATTERN.search(description)
    return match.group(1) if match else None


def split_feed_items(document: str) -> List[str]:
    """Raw inner XML of every ``<item>`` or ``<entry>`` in a feed document."""
    if not document:
        return []
    return [match.group(2) for match in ITEM_PATTERN.finditer(document)]


def parse_feed_item(fragment: str) -> FeedItem:
    """Extract title, description, link, date and image from one fragment."""
    description = _first_tag_text(fragment, DESCRIPTION_TAGS)
    return FeedItem(
        title=_tag_text(fragment, 'title'),
        description=description,
        link=_extract_link(fragment),
        published=_first_tag_text(fragment, DATE_TAGS) or None,
        image=_extract_image(fragment, description),
    )


class RegexFeedParser:
    """Tag extraction over item fragments."""

    name = 'regex'

    def parse(self, document: str, source_name: Optional[str] = None) -> List[FeedItem]:
        items = []
        for fragment in split_feed_items(document):
            item = parse_feed_item(fragment)
            item.source_name = source_name
            items.append(item)
        return items


class FeedparserFeedParser:
    """Default parser backed by the ``feedparser`` library."""

    name = 'feedparser'

    def parse(self, document: str, source_name: Optional[str] = None) -> List[FeedItem]:
        feed = feedparser.parse(document)
        if getattr(feed, 'bozo', False):
            logger.debug(f"{source_name or 'feed'}: lenient parse ({getattr(feed, 'bozo_exception', '')})")

        items = []
        for entry in getattr(feed, 'entries', None) or []:
            description = entry.get('summary', '') or entry.get('description', '')
            if not description and entry.get('content'):
                description = entry['content'][0].get('value', '')
            # CDATA content reaches us with its entities still encoded
            description = html.unescape(description or '')

            items.append(FeedItem(
                title=html.unescape(entry.get('title', '') or '').strip(),
                description=description,
                link=entry.get('link') or None,
                published=entry.get('published_parsed') or entry.get('updated_parsed')
                or entry.get('published') or entry.get('updated'),
                image=self._image(entry, description),
                source_name=source_name,
            ))
        return items

    @staticmethod
    def _image(entry: Any, description: str) -> Optional[str]:
        for key in ('media_thumbnail', 'media_content'):
            media = entry.get(key) or []
            if media and media[0].get('url'):
                return media[0]['url']
        for enclosure in entry.get('enclosures', []) or []:
            if str(enclosure.get('type', '')).startswith('image') and enclosure.get('href'):
                return enclosure['href']
        match = IMG_SRC_PATTERN.search(description or '')
        return match.group(1) if match else None


def get_feed_parser(name: Optional[str] = None):
    """Parser selected by name; unknown names fall back to feedparser."""
    if (name or '').lower() == RegexFeedParser.name:
        return RegexFeedParser()
    if name and name.lower() != FeedparserFeedParser.name:
        logger.warning(f"Unknown feed parser '{name}', using feedparser")
    return FeedparserFeedParser()
