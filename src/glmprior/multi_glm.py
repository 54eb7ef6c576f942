"""Multi-dimension GLM prior.

:class:`MultiGLM` places a GLM prior on every element of a
vector-valued parameter of length *D*.  It owns *D*
:class:`~glmprior.glm.GLMUnit` views, one per dimension, which share a
single :class:`~glmprior.parameters.GLMParameters` record (intercept,
coefficients, indicators, extras) and differ only in their predictor
slice: unit *i* reads entry *i* of every predictor vector.

The prior log density of a parameter value vector ``v`` is

    log p(v) = Σᵢ log Familyᵢ(vᵢ | μᵢ, θ),   μᵢ = g⁻¹(α + Σⱼ cⱼ βⱼ xⱼᵢ)

Nothing is cached between calls: the sampler may have mutated the
shared parameters since the last evaluation, and recomputing is O(D·P).
The only retained state is the *stored means* snapshot used by
:class:`~glmprior.coupling.SyncMove` to re-synchronise a dependent
vector after another move changed the coefficients.

Vectorised accessors (:meth:`MultiGLM.all_means` and friends) evaluate
all dimensions with one matrix–vector product; they agree with the
per-unit path up to floating-point summation order.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Any

import numpy as np
import pandas as pd

from . import families, links
from ._exceptions import DimensionError
from .families import FamilyKind
from .glm import GLMUnit, resolve_model
from .links import LinkKind
from .parameters import GLMParameters
from .predictors import PredictorSet

logger = logging.getLogger(__name__)


class MultiGLM:
    """D GLM distributions sharing one set of GLM parameters.

    Args:
        predictors: A :class:`~glmprior.predictors.PredictorSet`, or any
            input accepted by its constructor.
        parameters: Shared GLM state.
        family: Distribution family (default Normal).
        link: Link function; ``None`` selects the canonical link.
        resize: Coefficient / indicator length-mismatch policy
            (``"lenient"``, ``"strict"``, or ``None`` for the
            process-wide default).

    Raises:
        ConfigError: If the predictor set is empty or ragged, the
            family–link pair is invalid, the extras are missing or
            invalid, or (strict policy) a vector length mismatches.
    """

    def __init__(
        self,
        predictors: PredictorSet | Any,
        parameters: GLMParameters,
        family: str | FamilyKind | None = FamilyKind.NORMAL,
        link: str | LinkKind | None = None,
        *,
        resize: str | bool | None = None,
        _stacklevel: int = 4,
    ) -> None:
        if not isinstance(predictors, PredictorSet):
            predictors = PredictorSet(predictors)
        self.predictors = predictors
        self.parameters = parameters
        self.family, self.link = resolve_model(
            parameters, predictors.n_predictors, family, link, resize, stacklevel=_stacklevel
        )

        self._units: list[GLMUnit] = [
            GLMUnit(
                parameters,
                predictors.slice_at(i),
                self.family,
                self.link,
                validate=False,
            )
            for i in range(predictors.n_dimensions)
        ]
        self._stored_means: np.ndarray | None = None
        logger.debug(
            "Built MultiGLM: family=%s link=%s P=%d D=%d",
            self.family.value,
            self.link.value,
            self.n_predictors,
            self.n_dimensions,
        )

    def __repr__(self) -> str:
        return (
            f"MultiGLM(family={self.family.value!r}, link={self.link.value!r}, "
            f"n_predictors={self.n_predictors}, n_dimensions={self.n_dimensions})"
        )

    def __len__(self) -> int:
        return self.n_dimensions

    # ---- Shape ---------------------------------------------------------

    @property
    def n_dimensions(self) -> int:
        """D, the number of modelled dimensions."""
        return len(self._units)

    @property
    def n_predictors(self) -> int:
        """P, the number of predictors (= number of coefficients)."""
        return self.predictors.n_predictors

    @property
    def units(self) -> list[GLMUnit]:
        return list(self._units)

    def unit(self, index: int) -> GLMUnit:
        """The GLMUnit for dimension *index*."""
        self._check_index(index)
        return self._units[index]

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.n_dimensions:
            msg = f"Invalid distribution index: {index}"
            raise IndexError(msg)

    # ---- Means and variances -------------------------------------------

    def all_linear_predictors(self) -> np.ndarray:
        """η for every dimension, shape ``(D,)``."""
        beta = self.parameters.active_coefficients()
        return self.parameters.intercept + self.predictors.values.T @ beta

    def all_means(self) -> np.ndarray:
        """μ for every dimension, shape ``(D,)``.

        Raises:
            DomainError: If any dimension's mean is invalid.
        """
        mu = links.inverse_array(self.link, self.all_linear_predictors())
        for value in mu:
            families.validate_mean(self.family, float(value))
        return mu

    def all_variances(self) -> np.ndarray:
        """Var(Yᵢ) for every dimension, shape ``(D,)``."""
        extras = self.parameters.extras
        return np.array(
            [families.variance(self.family, float(mu), extras) for mu in self.all_means()]
        )

    def mean_at(self, index: int) -> float:
        return self.unit(index).mean()

    def variance_at(self, index: int) -> float:
        return self.unit(index).variance()

    # ---- Stored means --------------------------------------------------
    #
    # The host sampler calls ``store()`` whenever the current state
    # becomes the reference state (typically after an accepted step).
    # SyncMove compares the stored snapshot against the live means.

    def store(self) -> np.ndarray:
        """Snapshot the current means as the stored reference."""
        self._stored_means = self.all_means().copy()
        return self._stored_means.copy()

    def stored_means(self) -> np.ndarray:
        """The last stored snapshot; stores the current means if none exists."""
        if self._stored_means is None:
            return self.store()
        return self._stored_means.copy()

    # ---- Densities -----------------------------------------------------

    def log_density(self, values: Sequence[float] | np.ndarray) -> float:
        """Σᵢ log pᵢ(valuesᵢ).

        Raises:
            DimensionError: If ``len(values) != D``.
            DomainError: If a dimension's mean is invalid.
        """
        arr = np.atleast_1d(np.asarray(values, dtype=float))
        if arr.ndim != 1 or arr.shape[0] != self.n_dimensions:
            msg = (
                f"Function dimension ({arr.shape[0] if arr.ndim == 1 else arr.shape}) "
                f"does not match number of GLM dimensions ({self.n_dimensions})"
            )
            raise DimensionError(msg)

        means = self.all_means()
        extras = self.parameters.extras
        total = 0.0
        for mu, x in zip(means, arr):
            total += families.build_distribution(self.family, float(mu), extras).log_density(x)
            if total == -math.inf:
                break
        return total

    def density(self, values: Sequence[float] | np.ndarray) -> float:
        return math.exp(self.log_density(values))

    def sample(self, size: int = 1, rng: np.random.Generator | None = None) -> np.ndarray:
        """Draw *size* vectors from the prior, shape ``(size, D)``."""
        if rng is None:
            rng = np.random.default_rng()
        means = self.all_means()
        extras = self.parameters.extras
        out = np.empty((size, self.n_dimensions))
        for i, mu in enumerate(means):
            out[:, i] = families.build_distribution(self.family, float(mu), extras).sample(size, rng)
        return out

    # ---- Diagnostics ---------------------------------------------------

    def summary(self) -> pd.DataFrame:
        """Per-dimension η, μ and variance as a DataFrame."""
        return pd.DataFrame(
            {
                "eta": self.all_linear_predictors(),
                "mean": self.all_means(),
                "variance": self.all_variances(),
            },
            index=pd.RangeIndex(self.n_dimensions, name="dimension"),
        )
