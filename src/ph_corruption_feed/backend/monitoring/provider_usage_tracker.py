#!/usr/bin/env python3
"""
Provider Usage Tracker

Records every upstream attempt made by the fallback chain (including ones
that returned nothing or failed) so the advisory ``providerTrace`` can stay
short while the full attempt history is still available for diagnostics.
"""

import json
import logging
from collections import deque
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Deque, Dict, List, Optional, Any

logger = logging.getLogger(__name__)

OUTCOME_OK = 'ok'
OUTCOME_EMPTY = 'empty'
OUTCOME_ERROR = 'error'
OUTCOME_UNAVAILABLE = 'unavailable'
OUTCOME_TIMEOUT = 'timeout'


@dataclass
class ProviderCall:
    """A single upstream attempt."""
    timestamp: str
    provider: str
    outcome: str
    items: int = 0
    processing_time: float = 0.0
    status_code: Optional[int] = None
    error_message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome == OUTCOME_OK


@dataclass
class ProviderStats:
    """Per-provider aggregate."""
    calls: int = 0
    successful: int = 0
    empty: int = 0
    failed: int = 0
    items: int = 0
    total_time: float = 0.0
    outcomes: Dict[str, int] = field(default_factory=dict)

    @property
    def average_time(self) -> float:
        return self.total_time / self.calls if self.calls else 0.0


class ProviderUsageTracker:
    """Tracks upstream provider calls and summarizes them."""

    def __init__(self, max_history: int = 500):
        self.calls: Deque[ProviderCall] = deque(maxlen=max_history)
        self.session_start = datetime.now(timezone.utc)
        self.rate_limit_hits = 0

    def record_call(self,
                    provider: str,
                    outcome: str,
                    items: int = 0,
                    processing_time: float = 0.0,
                    status_code: Optional[int] = None,
                    error_message: Optional[str] = None) -> None:
        """Record one provider attempt."""
        call = ProviderCall(
            timestamp=datetime.now(timezone.utc).isoformat(),
            provider=provider,
            outcome=outcome,
            items=items,
            processing_time=processing_time,
            status_code=status_code,
            error_message=error_message,
        )
        self.calls.append(call)

        if status_code == 429:
            self.rate_limit_hits += 1

        logger.debug(f"Recorded provider call: {provider} {outcome} - {items} items - {processing_time:.2f}s")

    def record_rate_limited(self) -> None:
        """Count a request rejected by our own rate limiter."""
        self.rate_limit_hits += 1

    def provider_stats(self) -> Dict[str, ProviderStats]:
        stats: Dict[str, ProviderStats] = {}
        for call in self.calls:
            entry = stats.setdefault(call.provider, ProviderStats())
            entry.calls += 1
            entry.items += call.items
            entry.total_time += call.processing_time
            entry.outcomes[call.outcome] = entry.outcomes.get(call.outcome, 0) + 1
            if call.outcome == OUTCOME_OK:
                entry.successful += 1
            elif call.outcome == OUTCOME_EMPTY:
                entry.empty += 1
            else:
                entry.failed += 1
        return stats

    def get_summary(self) -> Dict[str, Any]:
        """Generate a usage summary suitable for the health endpoint."""
        now = datetime.now(timezone.utc)
        providers = {}
        for name, entry in self.provider_stats().items():
            providers[name] = {
                'calls': entry.calls,
                'successful': entry.successful,
                'empty': entry.empty,
                'failed': entry.failed,
                'items': entry.items,
                'success_rate': round(entry.successful / entry.calls * 100, 1) if entry.calls else 0.0,
                'average_time': round(entry.average_time, 3),
                'outcomes': entry.outcomes,
            }

        return {
            'session_start': self.session_start.isoformat(),
            'uptime_seconds': round((now - self.session_start).total_seconds(), 1),
            'total_calls': len(self.calls),
            'successful_calls': sum(1 for call in self.calls if call.success),
            'rate_limit_hits': self.rate_limit_hits,
            'providers': providers,
        }

    def recent_calls(self, limit: int = 20) -> List[Dict[str, Any]]:
        return [asdict(call) for call in list(self.calls)[-limit:]]

    def save_usage_report(self, output_path: Path) -> None:
        """Save a usage report with recent call history to a JSON file."""
        report = self.get_summary()
        report['calls'] = self.recent_calls(limit=len(self.calls))
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(report, f, indent=2)
        logger.info(f"Usage report saved to {output_path}")

    def reset(self) -> None:
        self.calls.clear()
        self.rate_limit_hits = 0
        self.session_start = datetime.now(timezone.utc)


# Global instance for easy access
usage_tracker = ProviderUsageTracker()
