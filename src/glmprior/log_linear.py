"""Deterministic GLM function.

:class:`GLMLogLinear` is the *function* counterpart of
:class:`~glmprior.multi_glm.MultiGLM`: instead of a prior density it
produces the vector of GLM values directly, for use as a derived
parameter (e.g. migration rates driven by flight counts).

    valueᵢ = g⁻¹( g(baseline) + Σⱼ [indⱼ] βⱼ xⱼᵢ + e_(i mod E) )

The intercept is given on the *response* scale as ``baseline`` (the
value of every element when all indicators are off and there is no
error term) and mapped through the link.  Supported links are log
(the default, giving ``baseline · exp(Σ …)``), logit and identity.

Error terms are optional.  A length-1 error vector is expanded to one
independent term per dimension; otherwise its length *E* must divide
*D* and term ``i mod E`` is added to dimension ``i``.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from . import links
from ._config import resolve_resize_policy
from ._exceptions import ConfigError
from .glm import _reconcile_length
from .links import LinkKind
from .parameters import BoundedParameter, GLMParameters
from .predictors import PredictorSet

logger = logging.getLogger(__name__)

_LOG_LINEAR_LINKS = (LinkKind.LOG, LinkKind.LOGIT, LinkKind.IDENTITY)


def _as_parameter(value: Any, name: str) -> BoundedParameter:
    if isinstance(value, BoundedParameter):
        return value
    return BoundedParameter(value, name=name)


class GLMLogLinear:
    """Vector-valued GLM function of predictors.

    Args:
        predictors: A :class:`~glmprior.predictors.PredictorSet` or any
            input accepted by its constructor.
        coefficients: One coefficient per predictor.
        indicators: One inclusion indicator per predictor (required).
        baseline: Value on the response scale when every indicator is
            off.  Must be positive for the log link and in (0, 1) for
            the logit link.
        error: Optional error terms (see module docstring).
        link: ``"log"`` (default), ``"logit"`` or ``"identity"``.
        log_transform, standardize: Predictor transforms, applied when
            *predictors* is not already a ``PredictorSet``.
        resize: Length-mismatch policy for coefficients and indicators.

    Raises:
        ConfigError: For an unsupported link, an invalid baseline, a
            baseline of dimension ≠ 1, an error vector whose length does
            not divide *D*, or (strict policy) a length mismatch.
    """

    def __init__(
        self,
        predictors: PredictorSet | Any,
        coefficients: BoundedParameter | Any,
        indicators: Any,
        baseline: BoundedParameter | float = 1.0,
        error: BoundedParameter | Any | None = None,
        link: str | LinkKind = LinkKind.LOG,
        *,
        log_transform: bool = False,
        standardize: bool = False,
        resize: str | bool | None = None,
    ) -> None:
        if not isinstance(predictors, PredictorSet):
            predictors = PredictorSet(
                predictors, log_transform=log_transform, standardize=standardize
            )
        self.predictors = predictors

        self.link = links.resolve_link(link)
        if self.link not in _LOG_LINEAR_LINKS:
            msg = (
                f"Unknown link function: {self.link.value}. "
                f"Only log, logit or identity functions are allowed."
            )
            raise ConfigError(msg)

        self.baseline = _as_parameter(baseline, "baseline")
        if len(self.baseline) != 1:
            msg = "Dimension of GLM baseline value should be 1."
            raise ConfigError(msg)
        self._check_baseline(self.baseline[0])

        if indicators is None:
            msg = "GLMLogLinear requires an indicator vector."
            raise ConfigError(msg)
        self.parameters = GLMParameters(0.0, coefficients, indicators)

        n = predictors.n_predictors
        policy = resolve_resize_policy(resize)
        _reconcile_length(
            "coefficients", self.parameters.n_coefficients, n, policy,
            lambda: self.parameters.coefficients.resize(n, 0.0),
            stacklevel=3,
        )
        _reconcile_length(
            "indicators", self.parameters.indicators.shape[0], n, policy,
            lambda: self.parameters.resize_indicators(n),
            stacklevel=3,
        )

        self.error: BoundedParameter | None = None
        if error is not None:
            err = _as_parameter(error, "error")
            dim = predictors.n_dimensions
            if len(err) == 1 and dim > 1:
                err.resize(dim, err[0])
                logger.debug("Expanded scalar error term to %d entries", dim)
            if dim % len(err) != 0:
                msg = (
                    f"GLM error term has an incorrect number of elements: "
                    f"{len(err)} does not divide {dim}."
                )
                raise ConfigError(msg)
            self.error = err

    def _check_baseline(self, value: float) -> None:
        if self.link is LinkKind.LOG and value <= 0.0:
            msg = "Baseline value must be positive for log link."
            raise ConfigError(msg)
        if self.link is LinkKind.LOGIT and not 0.0 < value < 1.0:
            msg = "Baseline probability must be in (0,1) for logit link."
            raise ConfigError(msg)

    def __len__(self) -> int:
        return self.n_dimensions

    def __repr__(self) -> str:
        return (
            f"GLMLogLinear(link={self.link.value!r}, baseline={self.baseline[0]}, "
            f"n_predictors={self.predictors.n_predictors}, n_dimensions={self.n_dimensions})"
        )

    @property
    def n_dimensions(self) -> int:
        return self.predictors.n_dimensions

    @property
    def coefficients(self) -> BoundedParameter:
        return self.parameters.coefficients

    @property
    def intercept(self) -> float:
        """The baseline mapped to the linear-predictor scale."""
        return links.apply(self.link, self.baseline[0])

    def selected_coefficients(self) -> np.ndarray:
        """β with the entries of inactive predictors set to zero."""
        return self.parameters.active_coefficients()

    def linear_predictors(self) -> np.ndarray:
        eta = self.intercept + self.predictors.values.T @ self.selected_coefficients()
        if self.error is not None:
            e = self.error.values
            eta = eta + e[np.arange(self.n_dimensions) % e.shape[0]]
        return eta

    def values(self) -> np.ndarray:
        """The GLM value of every dimension, shape ``(D,)``."""
        return links.inverse_array(self.link, self.linear_predictors())

    def value_at(self, index: int) -> float:
        if not 0 <= index < self.n_dimensions:
            msg = f"Invalid dimension index: {index}"
            raise IndexError(msg)
        return float(self.values()[index])
