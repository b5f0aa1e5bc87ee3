from .results import (
    Article,
    Category,
    CATEGORY_LABELS,
    FeedRequest,
    FeedResponse,
    ProviderKind,
    SourceRef,
    canonical_url,
    make_article_id,
    normalize_title,
    to_iso,
)
from .scoring import ClassificationResult

__all__ = [
    'Article',
    'Category',
    'CATEGORY_LABELS',
    'ClassificationResult',
    'FeedRequest',
    'FeedResponse',
    'ProviderKind',
    'SourceRef',
    'canonical_url',
    'make_article_id',
    'normalize_title',
    'to_iso',
]
