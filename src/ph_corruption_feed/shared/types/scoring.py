#!/usr/bin/env python3
"""
Relevance scoring structures for the RSS category classifier.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, Any, List

from .results import Category


@dataclass
class ClassificationResult:
    """
    Outcome of classifying one piece of unstructured text.

    ``score`` is the winning category's aggregate score; ``scores`` keeps the
    per-category breakdown and ``matched`` the terms that contributed.
    """

    category: Category
    score: float
    scores: Dict[str, float] = field(default_factory=dict)
    matched: List[str] = field(default_factory=list)
    threshold: float = 1.0

    @property
    def is_relevant(self) -> bool:
        return self.score >= self.threshold

    def matches(self, requested: Category) -> bool:
        return self.category == requested

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['category'] = self.category.value
        data['is_relevant'] = self.is_relevant
        return data
