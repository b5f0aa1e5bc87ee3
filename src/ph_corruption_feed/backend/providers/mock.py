#!/usr/bin/env python3
"""
Curated demo stories for mock mode and for rate-limited requests with no
cached result. Every name below is fictional. Responses built from this set
are always flagged as fallback.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from ...shared.types import Article, FeedRequest, ProviderKind
from ..processors.filters import within_window
from ..processors.normalizer import normalize

MOCK_STORIES: List[Dict[str, Any]] = [
    {
        'id': '1',
        'title': 'DPWH Flood Control Project sa Pampanga: ₱8.5B Budget, Walang Natayong Infrastructure',
        'description': ('Ang malaking flood control project sa Pampanga na may budget na ₱8.5 billion ay naging '
                        'ghost project. Contractors nakakuha ng pera pero walang actual construction na nangyari.'),
        'urlToImage': 'https://images.unsplash.com/photo-1547036967-23d11aacaee0?w=800&h=500&fit=crop',
        'hours_ago': 0,
        'source': {'name': 'Philippine Daily Inquirer'},
        'category': 'flood-control',
        'url': 'https://newsinfo.inquirer.net/ghost-project-pampanga',
    },
    {
        'id': '2',
        'title': 'DPWH Undersecretary na may ₱2.3B sa Swiss Bank, Naaresto na sa NAIA',
        'description': ('Si Undersecretary Ramon Dalisay ng DPWH ay naaresto sa airport habang paalis ng bansa. '
                        'May nakitang ₱2.3 billion sa Swiss bank account na hindi niya ma-explain.'),
        'urlToImage': 'https://images.unsplash.com/photo-1594736797933-d0ea5d3a0db4?w=800&h=500&fit=crop',
        'hours_ago': 1,
        'source': {'name': 'Rappler'},
        'category': 'dpwh',
        'url': 'https://www.rappler.com/dpwh-undersecretary-arrest',
    },
    {
        'id': '3',
        'title': "Senator Valderama's Son: ₱45M Lamborghini Collection, Pina-post sa Instagram",
        'description': ('Ang 22-year-old na anak ni Senator Valderama ay nag-post sa Instagram ng kanyang '
                        'Lamborghini collection na nagkakahalaga ng ₱45 million. Walang declared income ang bata.'),
        'urlToImage': 'https://images.unsplash.com/photo-1544636331-e26879cd4d9b?w=800&h=500&fit=crop',
        'hours_ago': 2,
        'source': {'name': 'ABS-CBN News'},
        'category': 'nepo-babies',
        'url': 'https://news.abs-cbn.com/senator-son-lamborghini',
    },
    {
        'id': '4',
        'title': 'Governor Malabanan ng Bataan: May ₱12B Ghost Flood Control Projects, Under Investigation',
        'description': ('Nalaman na ang 15 flood control projects sa Bataan na may combined budget na ₱12 billion '
                        'ay lahat ghost projects. Walang actual infrastructure na natayo.'),
        'urlToImage': 'https://images.unsplash.com/photo-1581578731548-c64695cc6952?w=800&h=500&fit=crop',
        'hours_ago': 3,
        'source': {'name': 'Manila Bulletin'},
        'category': 'corrupt-politicians',
        'url': 'https://mb.com.ph/bataan-ghost-projects',
    },
    {
        'id': '5',
        'title': "Mayor Ilustre's Daughter: Nag-shopping sa Paris ₱8M, Naka-post sa TikTok",
        'description': ('Ang 19-year-old na anak ni Mayor Ilustre ay nag-viral sa TikTok dahil sa ₱8 million '
                        'shopping spree sa Paris. Ang mayor ay may minimum wage lang na sahod.'),
        'urlToImage': 'https://images.unsplash.com/photo-1529107386315-e1a2ed48a620?w=800&h=500&fit=crop',
        'hours_ago': 4,
        'source': {'name': 'GMA News'},
        'category': 'nepo-babies',
        'url': 'https://www.gmanetwork.com/mayor-daughter-shopping',
    },
    {
        'id': '6',
        'title': 'Cagayan Flood Control Scam: ₱25B Budget, 80% Ghost Projects Discovered',
        'description': ('Sa Cagayan province, natuklasan na 80% ng flood control projects na may total budget na '
                        '₱25 billion ay ghost projects. Contractors ay kumita ng malaki sa walang ginawang trabaho.'),
        'urlToImage': 'https://images.unsplash.com/photo-1574263867128-a3d5c1b1deac?w=800&h=500&fit=crop',
        'hours_ago': 5,
        'source': {'name': 'CNN Philippines'},
        'category': 'flood-control',
        'url': 'https://www.cnnphilippines.com/cagayan-flood-scam',
    },
    {
        'id': '7',
        'title': 'DPWH Engineer na Nag-amass ng ₱500M Properties, Nahuli sa Lifestyle Check',
        'description': ('Isang DPWH engineer na may sahod na ₱45,000 monthly ay nahuli na may ₱500 million worth '
                        'ng properties sa Makati, BGC, at Alabang.'),
        'urlToImage': 'https://images.unsplash.com/photo-1450101499163-c8848c66ca85?w=800&h=500&fit=crop',
        'hours_ago': 6,
        'source': {'name': 'BusinessWorld Philippines'},
        'category': 'dpwh',
        'url': 'https://www.bworldonline.com/dpwh-engineer-wealth',
    },
    {
        'id': '8',
        'title': "Congressman Sarmiento's Son: Bumili ng ₱85M Penthouse, Nag-house tour sa YouTube",
        'description': ('Ang 25-year-old na anak ni Congressman Sarmiento ay nag-upload ng house tour ng kanyang '
                        '₱85 million penthouse sa Bonifacio Global City. Walang legitimate business ang bata.'),
        'urlToImage': 'https://images.unsplash.com/photo-1523050854058-8df90110c9f1?w=800&h=500&fit=crop',
        'hours_ago': 7,
        'source': {'name': 'Philippine Star'},
        'category': 'nepo-babies',
        'url': 'https://www.philstar.com/congressman-son-penthouse',
    },
]


def mock_articles(request: FeedRequest, now: Optional[datetime] = None) -> List[Article]:
    """Curated stories matching the request's category and window, one page."""
    now = now or datetime.now(timezone.utc)
    articles = []
    for story in MOCK_STORIES:
        if request.category is not None and story['category'] != request.category.value:
            continue
        published_at = now - timedelta(hours=story['hours_ago'])
        if not within_window(published_at, request.date_from, request.date_to):
            continue
        raw = {key: value for key, value in story.items() if key != 'hours_ago'}
        raw['publishedAt'] = published_at
        articles.append(normalize(raw, ProviderKind.MOCK, story['category']))

    start = (request.page - 1) * request.page_size
    return articles[start:start + request.page_size]
