"""Deterministic-coupling MCMC moves.

When a parameter vector R is tightly bound to its GLM mean (e.g. a
Normal prior with small σ), updating the coefficients alone mixes
poorly: almost any change to β moves μ away from R and is rejected.
:class:`CouplingMove` instead updates β *and* R together:

1. record the current means ``old = μ(β)``;
2. perturb one coefficient (or all of them) by a kernel draw scaled by
   the window size;
3. compute the new means ``new = μ(β')``;
4. shift the response ``Rᵢ ← Rᵢ + (newᵢ − oldᵢ)`` for every dimension.

The map (β, R) ↦ (β', R') is a deterministic translation with unit
Jacobian, and the kernel is symmetric, so the log Hastings ratio of a
successful proposal is exactly ``0.0``.

Any bound violation (coefficient or response) or an invalid mean
returns :data:`~glmprior._results.REJECT` after every write of the step
has been undone.  Writes go through a :class:`ProposalTransaction`,
which records pre-images and restores them in reverse order.

The host sampler owns the final accept / reject decision.  After a
successful ``propose()`` it must call either :meth:`CouplingMove.accept`
or :meth:`CouplingMove.rollback`; the move keeps the transaction of the
last successful proposal open until then.

:class:`SyncMove` is the one-sided variant: it does not touch β, but
re-aligns R after *another* move changed the coefficients, shifting R by
``all_means() − stored_means()``.
"""

from __future__ import annotations

import logging
import math
from typing import Any

import numpy as np

from ._context import MoveStatistics
from ._exceptions import ConfigError, DimensionError, DomainError
from ._results import REJECT, ProposalOutcome, RejectReason
from .kernels import Kernel, resolve_kernel
from .multi_glm import MultiGLM
from .parameters import BoundedParameter

logger = logging.getLogger(__name__)

_SCOPES = ("single", "all")


# ------------------------------------------------------------------ #
# ProposalTransaction
# ------------------------------------------------------------------ #


class ProposalTransaction:
    """Write log for one proposal.

    Every write records the previous value of the entry.  :meth:`commit`
    forgets the log; :meth:`rollback` restores the pre-images in reverse
    order so that repeated writes to one entry unwind correctly.
    """

    def __init__(self) -> None:
        self._log: list[tuple[BoundedParameter, int, float]] = []

    def __len__(self) -> int:
        return len(self._log)

    def write(self, parameter: BoundedParameter, index: int, value: float) -> None:
        self._log.append((parameter, index, parameter[index]))
        parameter.set_value(index, value)

    def commit(self) -> None:
        self._log.clear()

    def rollback(self) -> None:
        for parameter, index, previous in reversed(self._log):
            parameter.set_value(index, previous)
        self._log.clear()


def _as_response(response: Any) -> BoundedParameter:
    if isinstance(response, BoundedParameter):
        return response
    return BoundedParameter(response, name="response")


# ------------------------------------------------------------------ #
# Shared move machinery
# ------------------------------------------------------------------ #


class _Move:
    """Bookkeeping common to every move: statistics, outcome, pending tx."""

    name = "move"

    def __init__(self) -> None:
        self.stats = MoveStatistics()
        self.last_outcome: ProposalOutcome | None = None
        self._pending: ProposalTransaction | None = None

    @property
    def pending(self) -> bool:
        """Whether a successful proposal awaits accept / rollback."""
        return self._pending is not None

    def _begin(self) -> ProposalTransaction:
        if self._pending is not None:
            # The host never resolved the previous step; its writes are
            # the current state, so accept them.
            logger.debug("%s: committing unresolved proposal", self.name)
            self.accept()
        self.stats.record_proposal()
        return ProposalTransaction()

    def _reject(
        self,
        tx: ProposalTransaction,
        reason: RejectReason,
        indices: tuple[int, ...] = (),
        message: str | None = None,
    ) -> float:
        tx.rollback()
        self.stats.record_reject(reason)
        self.last_outcome = ProposalOutcome.rejected(self.name, reason, indices, message)
        logger.debug("%s rejected (%s): %s", self.name, reason.value, message or "")
        return REJECT

    def _succeed(
        self,
        tx: ProposalTransaction,
        indices: tuple[int, ...] = (),
        mean_shift: np.ndarray | None = None,
    ) -> float:
        self._pending = tx
        self.last_outcome = ProposalOutcome.success(self.name, indices, mean_shift)
        return 0.0

    def _finalise(self) -> None:
        if self._pending is not None:
            self._pending.commit()
            self._pending = None

    def accept(self) -> bool:
        """Finalise the last successful proposal.

        Returns ``False`` when there was nothing to accept.
        """
        if self._pending is None:
            return False
        self._finalise()
        self.stats.record_accept()
        return True

    def rollback(self) -> bool:
        """Undo the last successful proposal (host rejected it).

        Returns ``False`` when there was nothing to undo.
        """
        if self._pending is None:
            return False
        self._pending.rollback()
        self._pending = None
        self.stats.record_reject()
        return True


class _TunableMove(_Move):
    """A move with a window size adapted towards a target acceptance."""

    suggestion_label = "windowSize"
    suggestion_high = 0.70

    def __init__(self, window_size: float, optimise: bool) -> None:
        super().__init__()
        if not (window_size > 0.0 and math.isfinite(window_size)):
            msg = f"window_size must be a positive finite number, got {window_size}."
            raise ConfigError(msg)
        self.window_size = float(window_size)
        self.optimise = bool(optimise)

    @property
    def target_acceptance(self) -> float:
        raise NotImplementedError

    def optimize(self, log_alpha: float) -> None:
        """Update ``log(window_size)`` by one Robbins–Monro step."""
        if not self.optimise:
            return
        delta = self.stats.calc_delta(log_alpha, self.target_acceptance)
        self.window_size = math.exp(math.log(self.window_size) + delta)

    def performance_suggestion(self) -> str:
        return self.stats.performance_suggestion(
            self.window_size,
            self.target_acceptance,
            high=self.suggestion_high,
            label=self.suggestion_label,
        )


def _shift_response(
    tx: ProposalTransaction,
    response: BoundedParameter,
    shift: np.ndarray,
) -> int | None:
    """Apply ``Rᵢ += shiftᵢ`` through *tx*.

    Returns the first offending index on a bound violation (leaving the
    rollback to the caller), else ``None``.
    """
    for i, d in enumerate(shift):
        value = response[i] + float(d)
        if not response.in_bounds(value):
            return i
        tx.write(response, i, value)
    return None


# ------------------------------------------------------------------ #
# CouplingMove
# ------------------------------------------------------------------ #


class CouplingMove(_TunableMove):
    """Joint coefficient / response update preserving ``R − μ``.

    Args:
        glm: The multi-dimension GLM whose coefficients are perturbed.
        response: The dependent parameter R, length D.  Array-likes are
            wrapped in an unbounded :class:`BoundedParameter`.
        kernel: ``"gaussian"`` (default), ``"uniform"``, ``"bactrian"``
            or a callable drawing a unit delta from a Generator.
        window_size: Scale of the coefficient perturbation.
        scope: ``"single"`` perturbs one coefficient per step,
            ``"all"`` perturbs every coefficient.
        coefficient_index: Fixed coefficient for ``scope="single"``;
            ``None`` picks one uniformly at random each step.
        optimise: Adapt *window_size* in :meth:`optimize`.
        rng: Random generator (or seed).

    Raises:
        DimensionError: If ``len(response) != glm.n_dimensions``.
        ConfigError: For an out-of-range *coefficient_index*, a
            non-positive window, or an unknown kernel or scope.
    """

    name = "coupling"

    def __init__(
        self,
        glm: MultiGLM,
        response: BoundedParameter | Any,
        *,
        kernel: str | Kernel = "gaussian",
        window_size: float = 0.1,
        scope: str = "single",
        coefficient_index: int | None = None,
        optimise: bool = True,
        rng: np.random.Generator | int | None = None,
    ) -> None:
        super().__init__(window_size, optimise)
        self.glm = glm
        self.response = _as_response(response)
        if len(self.response) != glm.n_dimensions:
            msg = (
                f"Parameter dimension ({len(self.response)}) must match GLM "
                f"distribution dimensions ({glm.n_dimensions})"
            )
            raise DimensionError(msg)

        scope = str(scope).strip().lower()
        if scope not in _SCOPES:
            msg = f"Unknown scope {scope!r}. Valid scopes: {', '.join(_SCOPES)}."
            raise ConfigError(msg)
        self.scope = scope

        n_coef = glm.parameters.n_coefficients
        if coefficient_index is not None and not 0 <= coefficient_index < n_coef:
            msg = (
                f"coefficient_index must be between 0 and {n_coef - 1} "
                f"(found {coefficient_index})"
            )
            raise ConfigError(msg)
        self.coefficient_index = coefficient_index
        self.kernel = resolve_kernel(kernel)
        self.rng = np.random.default_rng(rng)

    def __repr__(self) -> str:
        return (
            f"CouplingMove(scope={self.scope!r}, window_size={self.window_size:.4g}, "
            f"coefficient_index={self.coefficient_index})"
        )

    @property
    def coefficients(self) -> BoundedParameter:
        return self.glm.parameters.coefficients

    @property
    def target_acceptance(self) -> float:
        return 0.234 if self.scope == "all" else 0.44

    def _select(self) -> tuple[int, ...]:
        if self.scope == "all":
            return tuple(range(len(self.coefficients)))
        if self.coefficient_index is not None:
            return (self.coefficient_index,)
        return (int(self.rng.integers(len(self.coefficients))),)

    def propose(self) -> float:
        """One coupled step; returns ``0.0`` or :data:`REJECT`."""
        tx = self._begin()
        try:
            old = self.glm.all_means()
        except DomainError as exc:
            return self._reject(tx, RejectReason.DOMAIN, message=str(exc))

        coefficients = self.coefficients
        indices = self._select()
        changed = False
        for j in indices:
            current = coefficients[j]
            proposed = current + self.kernel(self.rng) * self.window_size
            if not coefficients.in_bounds(proposed):
                msg = (
                    f"coefficient {j} proposal {proposed} outside "
                    f"[{coefficients.lower}, {coefficients.upper}]"
                )
                return self._reject(tx, RejectReason.COEFFICIENT_BOUNDS, indices, msg)
            changed = changed or proposed != current
            tx.write(coefficients, j, proposed)
        if not changed:
            return self._reject(tx, RejectReason.NO_OP, indices, "zero delta")

        try:
            new = self.glm.all_means()
        except DomainError as exc:
            return self._reject(tx, RejectReason.DOMAIN, indices, str(exc))

        shift = new - old
        bad = _shift_response(tx, self.response, shift)
        if bad is not None:
            msg = f"response {bad} shifted outside [{self.response.lower}, {self.response.upper}]"
            return self._reject(tx, RejectReason.RESPONSE_BOUNDS, indices, msg)
        return self._succeed(tx, indices, shift)

    def accept(self) -> bool:
        """Finalise the last proposal and refresh the stored means."""
        accepted = super().accept()
        if accepted:
            self.glm.store()
        return accepted


# ------------------------------------------------------------------ #
# SyncMove
# ------------------------------------------------------------------ #


class SyncMove(_Move):
    """Shift R by ``all_means() − stored_means()``.

    Used after a move that changed β without touching R (an ordinary
    coefficient random walk, an indicator flip) so that ``R − μ`` is
    restored to its stored value.

    The stored means are snapshotted at construction unless the GLM
    already holds a snapshot, so a β change made before the first
    ``propose()`` is still carried into R.

    Args:
        glm: The multi-dimension GLM.
        response: The dependent parameter R, length D.

    Raises:
        DimensionError: If ``len(response) != glm.n_dimensions``.
        DomainError: If a snapshot must be taken and a current mean is
            invalid.
    """

    name = "sync"

    def __init__(self, glm: MultiGLM, response: BoundedParameter | Any) -> None:
        super().__init__()
        self.glm = glm
        self.response = _as_response(response)
        if len(self.response) != glm.n_dimensions:
            msg = (
                f"Parameter dimension ({len(self.response)}) must match GLM "
                f"distribution dimensions ({glm.n_dimensions})"
            )
            raise DimensionError(msg)
        glm.stored_means()

    def propose(self) -> float:
        tx = self._begin()
        try:
            old = self.glm.stored_means()
            new = self.glm.all_means()
        except DomainError as exc:
            return self._reject(tx, RejectReason.DOMAIN, message=str(exc))
        shift = new - old
        bad = _shift_response(tx, self.response, shift)
        if bad is not None:
            msg = f"response {bad} shifted outside [{self.response.lower}, {self.response.upper}]"
            return self._reject(tx, RejectReason.RESPONSE_BOUNDS, message=msg)
        return self._succeed(tx, mean_shift=shift)

    def accept(self) -> bool:
        accepted = super().accept()
        if accepted:
            self.glm.store()
        return accepted
