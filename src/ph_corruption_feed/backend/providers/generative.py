#!/usr/bin/env python3
"""
Generative search provider (Gemini).

The model is prompted for Philippine local coverage in a fixed
``TITLE: / SOURCE: / URL: / DATE: ...`` block format, and the answer is
parsed back into typed items. There is no curated fallback here: an empty
answer is an empty result and the chain moves on.
"""

import asyncio
import logging
import re
from typing import List, Optional

from google import genai
from google.genai import errors as genai_errors

from ...shared.types import Category, FeedRequest, ProviderKind
from ...shared.types.payloads import GeminiItem
from ..processors.filters import EXCLUDE_DOMAINS, PH_DOMAINS, PH_OUTLETS
from .base import BaseProvider, ProviderHTTPError, ProviderPayloadError, ProviderTimeoutError

logger = logging.getLogger(__name__)

MAX_ITEMS = 15
BLOCK_SPLIT = re.compile(r'\n{2,}(?=(?:\d+[.)][ \t]*)?TITLE\s*:)', re.IGNORECASE)
URL_PATTERN = re.compile(r'https?://[^\s)\]>]+')

CATEGORY_TASKS = {
    Category.FLOOD_CONTROL: """Task: Flood control corruption in the Philippines.
Focus:
- Ghost flood-control projects (> ₱1B), unbuilt/substandard dikes/embankments.
- DPWH flood-control officials and contractors named.
- Hotspots: Metro Manila, Pampanga, Cagayan, Bicol, Mindanao.
- COA audits; Ombudsman/Sandiganbayan cases.""",
    Category.DPWH: """Task: DPWH corruption in the Philippines.
Focus:
- Unexplained wealth, ghost roads/bridges/buildings, contractor kickbacks.
- COA findings; Ombudsman cases; court proceedings.""",
    Category.CORRUPT_POLITICIANS: """Task: Corrupt Filipino politicians.
Focus:
- Wealth beyond salaries, Swiss/offshore accounts, ghost employees/projects.
- Ombudsman/COA/Sandiganbayan cases; lifestyle checks; SALN gaps.""",
    Category.NEPO_BABIES: """Task: Political dynasties & nepotism in the Philippines.
Focus:
- Children/relatives flaunting wealth; luxury cars/shopping/vacations vs parent's salary.
- Dynasties with multiple offices.""",
}


def _time_scope(request: FeedRequest) -> str:
    start = request.date_from.strftime('%Y-%m-%d') if request.date_from else None
    end = request.date_to.strftime('%Y-%m-%d') if request.date_to else None
    if start and end:
        return f"Time window: between {start} and {end}."
    if start:
        return f"Time window: published on or after {start}."
    if end:
        return f"Time window: published on or before {end}."
    return ("Time window: prioritize the last 6-12 months, and ALSO include older, relevant "
            "Philippine articles (up to ~10 years). Include the year for older items.")


def build_gemini_prompt(request: FeedRequest) -> str:
    """Category task, locality rules, time scope and the required output format."""
    category = request.category or Category.default()
    common_rules = f"""
Strict locality:
- Only Philippine local outlets (NO foreign wires/aggregators).
- Prefer outlets: {', '.join(PH_OUTLETS)}.
- Prefer domains: {', '.join(PH_DOMAINS)}.
- Exclude aggregators (e.g., {', '.join(EXCLUDE_DOMAINS)}). Use the canonical local outlet URL.

{_time_scope(request)}

Required per item:
- Headline, source outlet, canonical URL, date (yyyy-mm-dd),
- 2-3 sentence description with names and ₱ amounts,
- Bullet key details, and OLDER_REFERENCE: yes/no."""

    prompt = f"{CATEGORY_TASKS[category]}\n{common_rules}"
    if request.query:
        prompt += f"\n\nAdditional Filipino keywords to include: {request.query}"

    prompt += f"""

Output:
Provide 8-15 items (mix recent + at least 3 older references if available).
Use EXACTLY this format per item:

TITLE: ...
SOURCE: ...
URL: ...
DATE: yyyy-mm-dd
DESCRIPTION: ...
CATEGORY: {request.category_key}
KEY_DETAILS:
- ...
- ...
- ...
OLDER_REFERENCE: yes/no"""
    return prompt


def _field(block: str, label: str) -> Optional[str]:
    match = re.search(rf'^[ \t]*(?:\d+[.)][ \t]*)?{label}[ \t]*:[ \t]*(.+)$', block, re.IGNORECASE | re.MULTILINE)
    return match.group(1).strip() if match else None


def _key_details(block: str) -> Optional[str]:
    match = re.search(r'KEY_DETAILS\s*:(.*?)(?:^[ \t]*OLDER_REFERENCE\s*:|\Z)', block,
                      re.IGNORECASE | re.DOTALL | re.MULTILINE)
    if not match:
        return None
    bullets = [line.strip().lstrip('-•* ').strip() for line in match.group(1).splitlines()]
    bullets = [bullet for bullet in bullets if bullet]
    return '; '.join(bullets) or None


def parse_gemini_response(text: str) -> List[GeminiItem]:
    """Split a block-formatted answer into items; blocks without a TITLE are skipped."""
    if not text:
        return []

    cleaned = text.replace('**', '').replace('\r\n', '\n')
    items: List[GeminiItem] = []
    for block in (part.strip() for part in BLOCK_SPLIT.split(cleaned)):
        title = _field(block, 'TITLE') if block else None
        if not title:
            continue

        url = _field(block, 'URL')
        if not url or not url.startswith('http'):
            url_match = URL_PATTERN.search(block)
            url = url_match.group(0) if url_match else None
        url = url.strip('<>') if url else None

        older = _field(block, 'OLDER_REFERENCE')
        items.append(GeminiItem(
            title=title,
            source=_field(block, 'SOURCE'),
            url=url,
            date=_field(block, 'DATE'),
            description=_field(block, 'DESCRIPTION'),
            category=_field(block, 'CATEGORY'),
            key_details=_key_details(block),
            older_reference=older.lower().startswith('y') if older else None,
            context=block,
        ))
    return items


class GeminiSearchProvider(BaseProvider):
    """Generative search through the google-genai SDK."""

    name = 'gemini'
    kind = ProviderKind.GEMINI
    pages_upstream = False

    def __init__(self, api_key: Optional[str] = None, model: str = 'gemini-2.0-flash',
                 client: Optional[genai.Client] = None, **kwargs):
        super().__init__(api_key=api_key, **kwargs)
        self.model = model
        self._client = client

    @property
    def is_available(self) -> bool:
        return bool(self.api_key) or self._client is not None

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def fetch(self, request: FeedRequest) -> List[GeminiItem]:
        prompt = build_gemini_prompt(request)
        try:
            response = await asyncio.wait_for(
                self.client.aio.models.generate_content(model=self.model, contents=prompt),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise ProviderTimeoutError(self.name, f"no response within {self.timeout_seconds}s")
        except genai_errors.APIError as e:
            raise ProviderHTTPError(self.name, int(getattr(e, 'code', 0) or 500), str(getattr(e, 'message', e) or ''))

        try:
            text = response.text or ''
        except ValueError as e:
            raise ProviderPayloadError(self.name, f"unreadable response: {e}")

        items = parse_gemini_response(text)
        logger.debug(f"gemini: parsed {len(items)} items from {len(text)} chars")
        return items[:MAX_ITEMS]
