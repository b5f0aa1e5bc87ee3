#!/usr/bin/env python3
"""
Category Classifier - keyword scoring for unstructured RSS text.

Feeds are not pre-categorized, so every RSS item is scored against one
keyword set per category. Keyword lists, bonus weights and the relevance
threshold are configuration (``classifier.yaml``); the values built into
this module are only used when that file is unavailable. The weights were
tuned by hand against sample headlines and have not been measured for
precision or recall.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Pattern, Tuple

from ...shared.config.config_loader import get_classifier_config
from ...shared.types import Category, ClassificationResult

logger = logging.getLogger(__name__)

DEFAULT_GENERIC_TERMS = [
    'corruption', 'corrupt', 'anomaly', 'overpriced', 'audit', 'commission on audit',
    'investigation', 'probe', 'scam', 'fraud',
]

DEFAULT_STRONG_SIGNALS = [
    'ghost project', 'kickback', 'kickbacks', 'plunder', 'malversation',
    'unexplained wealth', 'overpricing', 'bribery', 'graft',
]

DEFAULT_CATEGORY_TERMS: Dict[str, List[str]] = {
    Category.FLOOD_CONTROL.value: [
        'flood control', 'flood', 'flooding', 'dike', 'embankment', 'revetment',
        'seawall', 'drainage', 'pumping station', 'ghost project',
    ],
    Category.DPWH.value: [
        'dpwh', 'public works', 'district engineer', 'contractor', 'contractors',
        'road project', 'bridge', 'infrastructure', 'bidding', 'procurement',
    ],
    Category.CORRUPT_POLITICIANS.value: [
        'senator', 'congressman', 'lawmaker', 'governor', 'mayor', 'politician',
        'ombudsman', 'sandiganbayan', 'saln', 'plunder', 'malversation', 'graft',
        'pork barrel', 'unexplained wealth', 'swiss bank', 'hidden assets',
    ],
    Category.NEPO_BABIES.value: [
        'nepo', 'nepo baby', 'nepo babies', 'nepotism', 'political dynasty', 'dynasty',
        'luxury', 'lamborghini', 'rolex', 'private jet', 'shopping spree',
        'instagram', 'tiktok', 'flaunt',
    ],
}


@dataclass
class ClassifierWeights:
    """Score contributions for a single matched term."""
    keyword: float = 1.0
    phrase_bonus: float = 1.0
    strong_signal_bonus: float = 2.0
    named_individual_bonus: float = 3.0


@dataclass
class CancelNepoRule:
    """Co-occurrence bonus for headlines like "canceled nepo babies"."""
    terms: List[str] = field(default_factory=lambda: ['cancel', 'nepo'])
    category: Category = Category.NEPO_BABIES
    bonus: float = 5.0

    def applies(self, lowered_text: str) -> bool:
        return bool(self.terms) and all(term in lowered_text for term in self.terms)


def _term_pattern(term: str) -> Pattern:
    """Whole-word, case-insensitive matcher tolerant of repeated whitespace."""
    words = [re.escape(word) for word in term.lower().split()]
    return re.compile(r'\b' + r'\s+'.join(words) + r'\b', re.IGNORECASE)


class CategoryClassifier:
    """
    Scores text against per-category keyword sets.

    For each category the score is the sum over matched terms of the keyword
    weight, plus the phrase bonus for multi-word terms, the strong-signal
    bonus for corruption terms, and the named-individual bonus. The highest
    scoring category wins; ties go to the default category.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        if config is None:
            config = get_classifier_config()
        self.config = config or {}

        weights = self.config.get('weights', {})
        defaults = ClassifierWeights()
        self.weights = ClassifierWeights(
            keyword=float(weights.get('keyword', defaults.keyword)),
            phrase_bonus=float(weights.get('phrase_bonus', defaults.phrase_bonus)),
            strong_signal_bonus=float(weights.get('strong_signal_bonus', defaults.strong_signal_bonus)),
            named_individual_bonus=float(weights.get('named_individual_bonus', defaults.named_individual_bonus)),
        )
        self.threshold = float(self.config.get('relevance_threshold', 1))
        self.default_category = Category.coerce(self.config.get('default_category'))

        generic = self._terms(self.config.get('generic_terms'), DEFAULT_GENERIC_TERMS)
        self.strong_signals = set(self._terms(self.config.get('strong_signal_terms'), DEFAULT_STRONG_SIGNALS))

        category_terms = self.config.get('categories') or DEFAULT_CATEGORY_TERMS
        named = self.config.get('named_individuals') or {}

        # category -> [(term, pattern, is_named_individual)]
        self._patterns: Dict[Category, List[Tuple[str, Pattern, bool]]] = {}
        for category in Category:
            terms = self._terms(category_terms.get(category.value), [])
            entries: List[Tuple[str, Pattern, bool]] = []
            seen = set()
            for term in terms + generic:
                if term not in seen:
                    seen.add(term)
                    entries.append((term, _term_pattern(term), False))
            for person in self._terms(named.get(category.value), []):
                entries.append((person, _term_pattern(person), True))
            self._patterns[category] = entries

        rule = self.config.get('cancel_nepo') or {}
        default_rule = CancelNepoRule()
        self.cancel_nepo = CancelNepoRule(
            terms=self._terms(rule.get('terms'), default_rule.terms),
            category=Category.coerce(rule.get('category', default_rule.category.value)),
            bonus=float(rule.get('bonus', default_rule.bonus)),
        )

        logger.debug(f"Classifier ready: threshold={self.threshold}, "
                     f"{sum(len(v) for v in self._patterns.values())} patterns")

    @staticmethod
    def _terms(values: Any, default: List[str]) -> List[str]:
        if not values:
            return list(default)
        return [str(value).strip().lower() for value in values if str(value).strip()]

    def _score_term(self, term: str, named: bool) -> float:
        score = self.weights.keyword
        if ' ' in term:
            score += self.weights.phrase_bonus
        if term in self.strong_signals:
            score += self.weights.strong_signal_bonus
        if named:
            score += self.weights.named_individual_bonus
        return score

    def classify(self, text: Optional[str]) -> ClassificationResult:
        """Assign a category and relevance score to a piece of text."""
        lowered = (text or '').lower()
        scores: Dict[str, float] = {}
        matched: Dict[str, List[str]] = {}

        for category, entries in self._patterns.items():
            total = 0.0
            hits: List[str] = []
            for term, pattern, named in entries:
                if pattern.search(lowered):
                    total += self._score_term(term, named)
                    hits.append(term)
            scores[category.value] = total
            matched[category.value] = hits

        if self.cancel_nepo.applies(lowered):
            key = self.cancel_nepo.category.value
            scores[key] = scores.get(key, 0.0) + self.cancel_nepo.bonus
            matched.setdefault(key, []).append('+'.join(self.cancel_nepo.terms))

        best = max(scores.values()) if scores else 0.0
        leaders = [name for name, value in scores.items() if value == best]
        if len(leaders) == 1:
            winner = Category(leaders[0])
        else:
            winner = self.default_category

        return ClassificationResult(
            category=winner,
            score=best,
            scores=scores,
            matched=matched.get(winner.value, []),
            threshold=self.threshold,
        )


_classifier: Optional[CategoryClassifier] = None


def get_classifier() -> CategoryClassifier:
    """Get the global classifier instance."""
    global _classifier
    if _classifier is None:
        _classifier = CategoryClassifier()
    return _classifier
