"""
Session cost ledger.

In-memory, append-only record of per-request costs for one session.
Entries are never modified or removed individually; the whole ledger is
cleared only when the session is reset.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from .cost import CostRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionCostMetric:
    """Immutable ledger entry: a cost record with its position in the session."""
    sequence_id: int
    timestamp: datetime
    record: CostRecord

    @property
    def real_cost(self) -> float:
        return self.record.real_cost

    @property
    def projected_cost(self) -> float:
        return self.record.projected_cost_with_cache

    @property
    def potential_savings(self) -> float:
        return self.record.projected_savings


@dataclass(frozen=True)
class LedgerTotals:
    """Running sums across all ledger entries."""
    sum_real: float
    sum_projected: float
    sum_savings: float


@dataclass(frozen=True)
class ScaleProjection:
    """Mean per-request costs extrapolated to a request volume."""
    volume: int
    real_at_scale: float
    projected_at_scale: float
    savings_at_scale: float
    savings_percent: float


class SessionLedger:
    """Ordered collection of session cost samples.

    Insertion order is chronological order is sequence order. Sequence
    ids start at 1 and restart at 1 after ``reset()``.
    """

    def __init__(self):
        self._entries: List[SessionCostMetric] = []
        self._next_sequence_id = 1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def is_empty(self) -> bool:
        return not self._entries

    def append(self, record: CostRecord, timestamp: Optional[datetime] = None) -> SessionCostMetric:
        """Append a cost record, assigning the next sequence id.

        Args:
            record: Cost record for a completed request
            timestamp: Time of the request (defaults to now)

        Returns:
            The stored SessionCostMetric
        """
        metric = SessionCostMetric(
            sequence_id=self._next_sequence_id,
            timestamp=timestamp or datetime.now(),
            record=record
        )
        self._entries.append(metric)
        self._next_sequence_id += 1
        logger.debug(
            "Ledger entry %s: real=%.6f projected=%.6f",
            metric.sequence_id, metric.real_cost, metric.projected_cost
        )
        return metric

    def all(self) -> Tuple[SessionCostMetric, ...]:
        """Read-only snapshot of entries in sequence order."""
        return tuple(self._entries)

    def totals(self) -> LedgerTotals:
        return LedgerTotals(
            sum_real=sum(e.real_cost for e in self._entries),
            sum_projected=sum(e.projected_cost for e in self._entries),
            sum_savings=sum(e.potential_savings for e in self._entries)
        )

    def project_at_scale(self, n: int) -> ScaleProjection:
        """Extrapolate mean real and projected cost to ``n`` requests.

        An empty ledger projects to zeros. The savings percentage is 0
        whenever the real cost at scale is 0.

        Raises:
            ValueError: If n is negative
        """
        if n < 0:
            raise ValueError("scale volume cannot be negative")
        if not self._entries:
            return ScaleProjection(
                volume=n,
                real_at_scale=0.0,
                projected_at_scale=0.0,
                savings_at_scale=0.0,
                savings_percent=0.0
            )

        count = len(self._entries)
        totals = self.totals()
        real_at_scale = totals.sum_real / count * n
        projected_at_scale = totals.sum_projected / count * n
        savings_at_scale = max(0.0, real_at_scale - projected_at_scale)
        savings_percent = (savings_at_scale / real_at_scale) * 100 if real_at_scale > 0 else 0.0

        return ScaleProjection(
            volume=n,
            real_at_scale=real_at_scale,
            projected_at_scale=projected_at_scale,
            savings_at_scale=savings_at_scale,
            savings_percent=savings_percent
        )

    def reset(self) -> None:
        """Clear all entries and restart sequence numbering at 1."""
        self._entries.clear()
        self._next_sequence_id = 1
