#!/usr/bin/env python3
"""
Text and date helpers shared by the normalizer and the feed collectors.
"""

import calendar
import re
import time
from datetime import datetime, timezone
from typing import Any, Optional

from bs4 import BeautifulSoup
from dateutil import parser as date_parser

# YYYY-MM-DD or YYYY/MM/DD anywhere in free text
TEXT_DATE_PATTERN = re.compile(r'\b(20\d{2})[-/](\d{1,2})[-/](\d{1,2})\b')


class DateUtils:
    """Date handling utilities."""

    @staticmethod
    def _ensure_aware(value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @staticmethod
    def extract_from_text(text: Optional[str]) -> Optional[datetime]:
        """Find the first YYYY-MM-DD style date in free text."""
        if not text:
            return None
        match = TEXT_DATE_PATTERN.search(text)
        if not match:
            return None
        year, month, day = (int(part) for part in match.groups())
        try:
            return datetime(year, month, day, tzinfo=timezone.utc)
        except ValueError:
            return None

    @staticmethod
    def try_parse(date_value: Any) -> Optional[datetime]:
        """Parse a native or string date; None when it cannot be parsed."""
        if not date_value:
            return None
        try:
            if isinstance(date_value, datetime):
                return DateUtils._ensure_aware(date_value)
            if isinstance(date_value, time.struct_time):
                return datetime.fromtimestamp(calendar.timegm(date_value), timezone.utc)
            if isinstance(date_value, (int, float)):
                return datetime.fromtimestamp(date_value, timezone.utc)
            if isinstance(date_value, str):
                text = date_value.strip()
                try:
                    return DateUtils._ensure_aware(date_parser.isoparse(text))
                except ValueError:
                    return DateUtils._ensure_aware(date_parser.parse(text))
        except (ValueError, OverflowError, OSError, TypeError):
            return None
        return None

    @staticmethod
    def parse_date(date_value: Any, context: Optional[str] = None) -> datetime:
        """
        Parse a date, never raising.

        Tries a native/ISO parse, then a date pattern in ``context``, then
        falls back to the current time.
        """
        parsed = DateUtils.try_parse(date_value)
        if parsed is None and isinstance(date_value, str):
            parsed = DateUtils.extract_from_text(date_value)
        if parsed is None:
            parsed = DateUtils.extract_from_text(context)
        return parsed or datetime.now(timezone.utc)


class TextUtils:
    """Text processing utilities."""

    @staticmethod
    def clean_html(content: Any, max_length: Optional[int] = 500) -> str:
        """Strip markup, collapse whitespace and truncate on a word boundary."""
        if not content:
            return ''

        if isinstance(content, dict):
            content = content.get('value') or content.get('rendered') or ''

        text = str(content)
        if '<' in text or '&' in text:
            text = BeautifulSoup(text, 'html.parser').get_text(' ')
        cleaned = re.sub(r'\s+', ' ', text).strip()

        if max_length and len(cleaned) > max_length:
            truncated = cleaned[:max_length].rsplit(' ', 1)[0]
            return truncated + '...' if truncated else cleaned[:max_length]

        return cleaned

    @staticmethod
    def is_valid_url(url: Optional[str]) -> bool:
        """Basic URL validation."""
        return bool(url and
                    len(url) >= 10 and
                    (url.startswith('http://') or url.startswith('https://')))
