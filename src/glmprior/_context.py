"""Move statistics — mutable accumulator for proposal bookkeeping.

A :class:`MoveStatistics` instance travels with each MCMC move and
collects counts as proposals are made and resolved.  The counts feed
window-size auto-tuning (:meth:`MoveStatistics.calc_delta`) and the
human-readable tuning advice returned by
:meth:`MoveStatistics.performance_suggestion`.

Lifecycle::

    ┌─────────────────────────────────────────────┐
    │  move.propose()                             │
    │  ├─ stats.record_proposal()                 │
    │  ├─ (reject inside move)                    │
    │  │   └─ stats.record_reject(reason)         │
    │  └─ return log Hastings ratio               │
    │  host sampler decides on posterior ratio    │
    │  ├─ move.accept()  → stats.record_accept()  │
    │  ├─ move.rollback()→ stats.record_reject()  │
    │  └─ move.optimize(log_alpha)                │
    │      └─ stats.calc_delta(log_alpha, target) │
    └─────────────────────────────────────────────┘
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field

from ._results import RejectReason


@dataclass
class MoveStatistics:
    """Counters for one move.

    Attributes:
        n_proposals: Number of ``propose()`` calls.
        n_accepted: Proposals finally accepted by the host sampler.
        n_rejected: Proposals rejected, either inside the move or by
            the host sampler.
        reject_reasons: Rejections inside the move, keyed by reason.
    """

    n_proposals: int = 0
    n_accepted: int = 0
    n_rejected: int = 0
    reject_reasons: Counter[RejectReason] = field(default_factory=Counter)

    def record_proposal(self) -> None:
        self.n_proposals += 1

    def record_accept(self) -> None:
        self.n_accepted += 1

    def record_reject(self, reason: RejectReason | None = None) -> None:
        self.n_rejected += 1
        if reason is not None:
            self.reject_reasons[reason] += 1

    @property
    def acceptance_rate(self) -> float:
        """Accepted / (accepted + rejected); ``nan`` before any decision."""
        decided = self.n_accepted + self.n_rejected
        if decided == 0:
            return math.nan
        return self.n_accepted / decided

    # ---- Tuning ------------------------------------------------------
    #
    # Robbins–Monro style adaptation: each step nudges log(window) by
    # (α − target) / n, where α = min(1, exp(log_alpha)) is the
    # acceptance probability of the step just taken.  The step size
    # shrinks as 1/n so the window converges.

    def calc_delta(self, log_alpha: float, target: float) -> float:
        """Increment to add to ``log(window_size)`` after one step."""
        n = max(self.n_proposals, 1)
        delta = (math.exp(min(log_alpha, 0.0)) - target) / n
        if math.isfinite(delta):
            return delta
        return 0.0

    def performance_suggestion(
        self,
        window_size: float,
        target: float,
        low: float = 0.10,
        high: float = 0.70,
        label: str = "windowSize",
    ) -> str:
        """Advice for a better window size, or ``""`` when in range."""
        prob = self.acceptance_rate
        if math.isnan(prob):
            return ""
        ratio = min(max(prob / target, 0.5), 2.0)
        if prob < low or prob > high:
            return f"Try setting {label} to about {window_size * ratio:.3g}"
        return ""
