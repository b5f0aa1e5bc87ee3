#!/usr/bin/env python3
"""
Locality and date-window filters.

Both filters are pure functions of their inputs. The locality filter keeps
results to a curated set of Philippine outlets; the window filter fails open
on timestamps it cannot parse.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

PH_OUTLETS: List[str] = [
    'ABS-CBN News',
    'GMA News',
    'CNN Philippines',
    'Philippine Daily Inquirer',
    'Rappler',
    'Manila Bulletin',
    'Philippine Star',
    'The Manila Times',
    'BusinessWorld Philippines',
    'SunStar',
    'Daily Tribune',
    'Manila Standard',
    'One News PH',
    'Philippine News Agency (PNA)',
]

DOMAIN_TO_OUTLET: Dict[str, str] = {
    'news.abs-cbn.com': 'ABS-CBN News',
    'gmanetwork.com': 'GMA News',
    'cnnphilippines.com': 'CNN Philippines',
    'inquirer.net': 'Philippine Daily Inquirer',
    'rappler.com': 'Rappler',
    'mb.com.ph': 'Manila Bulletin',
    'philstar.com': 'Philippine Star',
    'manilatimes.net': 'The Manila Times',
    'businessworldonline.com': 'BusinessWorld Philippines',
    'bworldonline.com': 'BusinessWorld Philippines',
    'sunstar.com.ph': 'SunStar',
    'tribune.net.ph': 'Daily Tribune',
    'manilastandard.net': 'Manila Standard',
    'onenews.ph': 'One News PH',
    'pna.gov.ph': 'Philippine News Agency (PNA)',
}

PH_DOMAINS: List[str] = list(DOMAIN_TO_OUTLET)

# Aggregators, portals and social platforms; rejected even when they republish local stories
EXCLUDE_DOMAINS: List[str] = [
    'news.google.com',
    'news.yahoo.com',
    'yahoo.com',
    'msn.com',
    'pressreader.com',
    'facebook.com',
    'twitter.com',
    'x.com',
    'reddit.com',
    'youtube.com',
]

LOCAL_NAME_FRAGMENTS = (
    'philippine', 'philippines', 'abs-cbn', 'gma', 'rappler', 'inquirer',
    'philstar', 'manila', 'cnn philippines', 'sunstar', 'businessworld',
    'tribune.net.ph', 'pna',
)


def get_hostname(url: Optional[str]) -> str:
    """Hostname without a leading ``www.``; empty when the URL does not parse."""
    if not url:
        return ''
    try:
        host = urlsplit(url.strip()).hostname or ''
    except ValueError:
        return ''
    host = host.lower()
    return host[4:] if host.startswith('www.') else host


def _domain_match(host: str, domains: List[str]) -> Optional[str]:
    """Return the listed domain ``host`` equals or is a subdomain of."""
    if not host:
        return None
    for domain in domains:
        if host == domain or host.endswith('.' + domain):
            return domain
    return None


def is_excluded_domain(url: Optional[str]) -> bool:
    return _domain_match(get_hostname(url), EXCLUDE_DOMAINS) is not None


def outlet_for_url(url: Optional[str]) -> Optional[str]:
    """Curated outlet name for a URL's domain, if it is a known local domain."""
    domain = _domain_match(get_hostname(url), PH_DOMAINS)
    return DOMAIN_TO_OUTLET.get(domain) if domain else None


def guess_source_name(url: Optional[str], fallback: Optional[str] = None) -> str:
    """Resolve an outlet name: domain table, then provider label, then hostname."""
    outlet = outlet_for_url(url)
    if outlet:
        return outlet
    if fallback and str(fallback).strip():
        return str(fallback).strip()
    return get_hostname(url) or 'Unknown'


def is_local(source_name: Optional[str], url: Optional[str]) -> bool:
    """True when the item is attributable to a curated local outlet."""
    if is_excluded_domain(url):
        return False
    if outlet_for_url(url):
        return True

    src = (source_name or '').strip().lower()
    if not src:
        return False
    if any(outlet.lower() == src for outlet in PH_OUTLETS):
        return True
    return any(fragment in src for fragment in LOCAL_NAME_FRAGMENTS)


def _coerce_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = date_parser.isoparse(value.strip())
        except (ValueError, OverflowError):
            try:
                parsed = date_parser.parse(value.strip())
            except (ValueError, OverflowError):
                return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def within_window(timestamp: Any,
                  date_from: Any = None,
                  date_to: Any = None) -> bool:
    """
    Check a timestamp against an optional inclusive ``[date_from, date_to]``.

    No bounds means always true. An unparseable timestamp is treated as
    inside the window; an unparseable bound is ignored.
    """
    if not date_from and not date_to:
        return True

    moment = _coerce_timestamp(timestamp)
    if moment is None:
        return True

    lower = _coerce_timestamp(date_from) if date_from else None
    upper = _coerce_timestamp(date_to) if date_to else None

    if lower is not None and moment < lower:
        return False
    if upper is not None and moment > upper:
        return False
    return True
