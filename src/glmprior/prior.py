"""High-level facade for a host MCMC sampler.

:class:`GLMPrior` bundles a :class:`~glmprior.multi_glm.MultiGLM`, the
optional coupled response vector and the moves that act on them behind
the small surface a sampler needs:

* :meth:`GLMPrior.evaluate_log_prior` — prior log density of a value
  vector; an invalid GLM mean yields ``-inf`` rather than an exception.
* :meth:`GLMPrior.propose_coefficient_move` — one coupled β / R step.
* :meth:`GLMPrior.accept` / :meth:`GLMPrior.reject` — resolve the last
  proposal after the sampler's Metropolis–Hastings decision.
* :meth:`GLMPrior.synchronise` — realign R after an external β change.

Example::

    prior = GLMPrior(
        {"flights": flights, "distance": distance},
        GLMParameters(0.0, [0.1, -0.2], extras=FamilyExtras(sigma=0.5)),
        response=log_rates,
        standardize=True,
    )
    log_p = prior.evaluate_log_prior(log_rates.values)
    if prior.propose_coefficient_move(width=0.05) > REJECT:
        ...  # host computes the posterior ratio
        prior.accept()  # or prior.reject()
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Any

import numpy as np

from ._exceptions import ConfigError, DomainError
from ._results import ProposalOutcome
from .coupling import CouplingMove, SyncMove, _Move
from .families import FamilyKind
from .kernels import Kernel, resolve_kernel
from .links import LinkKind
from .multi_glm import MultiGLM
from .parameters import BoundedParameter, GLMParameters
from .predictors import PredictorSet

logger = logging.getLogger(__name__)


class GLMPrior:
    """GLM prior with optional deterministic coupling to a response.

    Args:
        predictors: Predictor table (see
            :class:`~glmprior.predictors.PredictorSet`).
        parameters: Shared GLM state.
        response: Optional coupled parameter R of length D.  Required
            for :meth:`propose_coefficient_move` and :meth:`synchronise`.
            When given, the current means become the stored baseline
            that :meth:`synchronise` measures changes against.
        family: Distribution family, default ``"normal"``.
        link: Link function; ``None`` selects the canonical link.
        log_transform: Apply ``log(x + 1)`` to the predictors.
        standardize: Z-score the predictors.
        resize: Coefficient / indicator length-mismatch policy.
        rng: Random generator or seed for the moves.
    """

    def __init__(
        self,
        predictors: PredictorSet | Any,
        parameters: GLMParameters,
        response: BoundedParameter | Any | None = None,
        *,
        family: str | FamilyKind = "normal",
        link: str | LinkKind | None = None,
        log_transform: bool = False,
        standardize: bool = False,
        resize: str | bool | None = None,
        rng: np.random.Generator | int | None = None,
    ) -> None:
        if not isinstance(predictors, PredictorSet):
            predictors = PredictorSet(
                predictors, log_transform=log_transform, standardize=standardize
            )
        self.glm = MultiGLM(
            predictors, parameters, family, link, resize=resize, _stacklevel=5
        )
        self.rng = np.random.default_rng(rng)
        self.response: BoundedParameter | None = None
        self._sync: SyncMove | None = None
        if response is not None:
            self._sync = SyncMove(self.glm, response)
            self.response = self._sync.response
        self._moves: dict[tuple[Any, str], CouplingMove] = {}
        self._last: _Move | None = None

    def __repr__(self) -> str:
        return f"GLMPrior({self.glm!r}, coupled={self.response is not None})"

    @property
    def parameters(self) -> GLMParameters:
        return self.glm.parameters

    # ---- Prior density -------------------------------------------------

    def evaluate_log_prior(self, values: Sequence[float] | np.ndarray) -> float:
        """Prior log density of *values*; ``-inf`` when a GLM mean is invalid.

        Raises:
            DimensionError: If ``len(values)`` differs from the number of
                GLM dimensions.
        """
        try:
            return self.glm.log_density(values)
        except DomainError as exc:
            logger.debug("Log prior is -inf: %s", exc)
            return -math.inf

    def current_means(self) -> np.ndarray:
        return self.glm.all_means()

    def current_variances(self) -> np.ndarray:
        return self.glm.all_variances()

    # ---- Moves ---------------------------------------------------------

    def _require_response(self, what: str) -> None:
        if self.response is None:
            msg = f"{what} requires a response parameter; none was configured."
            raise ConfigError(msg)

    def propose_coefficient_move(
        self,
        kernel: str | Kernel = "gaussian",
        width: float = 0.1,
        scope: str = "single",
    ) -> float:
        """Run one :class:`~glmprior.coupling.CouplingMove` step.

        One move (with its own statistics) is kept per resolved kernel
        and scope.  Kernel names and aliases resolve to the same
        function; a callable kernel is matched by identity, so a host
        passing its own kernel should pass the same object each step.

        Returns:
            ``0.0`` on success, :data:`~glmprior.REJECT` otherwise.

        Raises:
            ConfigError: If no response was configured, or for an
                unknown kernel or scope or a non-positive width.
        """
        self._require_response("propose_coefficient_move")
        kernel_fn = resolve_kernel(kernel)
        key = (kernel_fn, str(scope).strip().lower())
        move = self._moves.get(key)
        if move is None:
            move = CouplingMove(
                self.glm,
                self.response,
                kernel=kernel_fn,
                window_size=width,
                scope=scope,
                optimise=False,
                rng=self.rng,
            )
            self._moves[key] = move
        elif width != move.window_size:
            if not (width > 0.0 and math.isfinite(width)):
                msg = f"window_size must be a positive finite number, got {width}."
                raise ConfigError(msg)
            move.window_size = float(width)
        self._resolve_pending()
        self._last = move
        return move.propose()

    def synchronise(self) -> float:
        """Shift the response by ``all_means() − stored_means()``."""
        self._require_response("synchronise")
        self._resolve_pending()
        self._last = self._sync
        return self._sync.propose()

    def _resolve_pending(self) -> None:
        if self._last is not None and self._last.pending:
            self._last.accept()

    def accept(self) -> bool:
        """Commit the last successful proposal."""
        if self._last is None:
            return False
        return self._last.accept()

    def reject(self) -> bool:
        """Roll back the last successful proposal."""
        if self._last is None:
            return False
        return self._last.rollback()

    @property
    def coefficient_moves(self) -> list[CouplingMove]:
        """Coupling moves created so far, one per (kernel, scope) pair."""
        return list(self._moves.values())

    @property
    def last_outcome(self) -> ProposalOutcome | None:
        return None if self._last is None else self._last.last_outcome


__all__ = ["GLMPrior"]
