"""
Scale simulation over the session ledger.

Summarises what the session's requests would cost at a given volume if the
static prompt were served from cache. Read-only and deterministic: the
ledger is never modified.
"""

from dataclasses import dataclass
from enum import Enum, auto

from .ledger import LedgerTotals, ScaleProjection, SessionLedger


DEFAULT_SCALE_VOLUME = 1000


class SimulationVerdict(Enum):
    """How much the session data supports an at-scale projection."""
    EMPTY = auto()          # No completed requests yet
    SINGLE_SAMPLE = auto()  # One request: projection shown as a hint only
    READY = auto()          # Two or more requests: projection is meaningful


@dataclass(frozen=True)
class ScaleSimulationResult:
    """Results of a scale simulation run."""
    analyses: int
    totals: LedgerTotals
    session_savings_percent: float
    projection: ScaleProjection
    verdict: SimulationVerdict


def simulate_scale(ledger: SessionLedger, volume: int = DEFAULT_SCALE_VOLUME) -> ScaleSimulationResult:
    """
    Project session costs to a request volume.

    Args:
        ledger: Session ledger to read from
        volume: Number of requests to extrapolate to

    Returns:
        ScaleSimulationResult with session totals and the projection
    """
    totals = ledger.totals()
    session_savings_percent = (
        (totals.sum_savings / totals.sum_real) * 100 if totals.sum_real > 0 else 0.0
    )

    count = len(ledger)
    if count == 0:
        verdict = SimulationVerdict.EMPTY
    elif count == 1:
        verdict = SimulationVerdict.SINGLE_SAMPLE
    else:
        verdict = SimulationVerdict.READY

    return ScaleSimulationResult(
        analyses=count,
        totals=totals,
        session_savings_percent=session_savings_percent,
        projection=ledger.project_at_scale(volume),
        verdict=verdict
    )
