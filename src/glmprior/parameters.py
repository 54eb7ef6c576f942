"""Shared, sampler-mutable parameter state.

Three records live here:

* :class:`BoundedParameter` — a float vector with scalar bounds, the
  unit of state that MCMC moves write to (GLM coefficients, the
  dependent response vector).
* :class:`FamilyExtras` — the family-specific extra parameters (σ or
  σ², Gamma / inverse-Gaussian shape, binomial trial count, negative-
  binomial dispersion).
* :class:`GLMParameters` — intercept, coefficients, optional indicators
  and extras, shared between the host sampler (which mutates them) and
  the GLM evaluators (which only read them).

None of these records is owned by the evaluators.  They carry a
``version`` counter that increases on every write, so a consumer can
detect that state changed since it last looked.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

import numpy as np

from ._exceptions import BoundsViolation


class BoundedParameter:
    """Mutable float vector with inclusive scalar bounds.

    Args:
        values: Initial values (scalar or 1-D array-like).
        lower: Inclusive lower bound shared by every entry.
        upper: Inclusive upper bound shared by every entry.
        name: Optional label used in logs and error messages.

    Raises:
        BoundsViolation: If an initial value lies outside the bounds.
        ValueError: If ``lower > upper``.
    """

    def __init__(
        self,
        values: Any,
        lower: float = -np.inf,
        upper: float = np.inf,
        name: str | None = None,
    ) -> None:
        if lower > upper:
            msg = f"Lower bound {lower} exceeds upper bound {upper}."
            raise ValueError(msg)
        self._values = np.atleast_1d(np.asarray(values, dtype=float)).copy()
        if self._values.ndim != 1:
            msg = f"BoundedParameter expects a 1-D vector, got shape {self._values.shape}."
            raise ValueError(msg)
        self.lower = float(lower)
        self.upper = float(upper)
        self.name = name
        self.version = 0
        for i, v in enumerate(self._values):
            if not self.in_bounds(v):
                raise BoundsViolation(i, float(v), self.lower, self.upper)

    def __len__(self) -> int:
        return self._values.shape[0]

    def __getitem__(self, index: int) -> float:
        return float(self._values[index])

    def __repr__(self) -> str:
        label = self.name or "BoundedParameter"
        return f"{label}({self._values.tolist()}, lower={self.lower}, upper={self.upper})"

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the current values."""
        view = self._values.view()
        view.flags.writeable = False
        return view

    @property
    def dimension(self) -> int:
        return len(self)

    def in_bounds(self, value: float) -> bool:
        """Whether *value* satisfies ``lower <= value <= upper``."""
        return self.lower <= value <= self.upper

    def set_value(self, index: int, value: float) -> None:
        """Write one entry without a bounds check and bump :attr:`version`.

        Moves check bounds explicitly before writing (a violation is a
        reject, not a clamp) and must be able to restore pre-images that
        are by construction valid, so the setter itself does not check.
        """
        self._values[index] = value
        self.version += 1

    def resize(self, n: int, fill: float = 0.0) -> None:
        """Truncate or extend to *n* entries, appending *fill*.

        Raises:
            BoundsViolation: If the vector grows and *fill* lies outside
                the bounds.  The parameter is left unchanged.
        """
        current = len(self)
        if n < current:
            self._values = self._values[:n].copy()
        elif n > current:
            if not self.in_bounds(fill):
                raise BoundsViolation(current, float(fill), self.lower, self.upper)
            self._values = np.concatenate([self._values, np.full(n - current, fill)])
        self.version += 1


@dataclass
class FamilyExtras:
    """Family-specific extra parameters.

    Exactly the subset required by the chosen distribution family must
    be set; the rest stay ``None``.  Validation lives in
    :func:`glmprior.families.validate_extras` so that the rules sit next
    to the family table.

    Attributes:
        sigma: Normal standard deviation σ.
        sigma2: Normal variance σ² (mutually exclusive with *sigma*).
        shape: Gamma shape k, or inverse-Gaussian shape λ.
        n_trials: Binomial trial count n.
        dispersion: Negative-binomial dispersion α (Var = μ + α·μ²).
    """

    sigma: float | None = None
    sigma2: float | None = None
    shape: float | None = None
    n_trials: float | None = None
    dispersion: float | None = None

    def present(self) -> frozenset[str]:
        """Names of the extras that have been supplied."""
        return frozenset(f.name for f in fields(self) if getattr(self, f.name) is not None)

    def normal_variance(self) -> float:
        """σ² for the Normal family, from whichever of σ / σ² is set."""
        if self.sigma is not None:
            return float(self.sigma) ** 2
        if self.sigma2 is not None:
            return float(self.sigma2)
        msg = "No sigma or sigma2 parameter available for Normal distribution."
        raise RuntimeError(msg)

    def normal_sd(self) -> float:
        """σ for the Normal family."""
        if self.sigma is not None:
            return float(self.sigma)
        return float(np.sqrt(self.normal_variance()))

    def trials(self) -> int:
        """Binomial trial count rounded to the nearest integer."""
        if self.n_trials is None:
            msg = "No nTrials parameter available for Binomial distribution."
            raise RuntimeError(msg)
        return int(round(float(self.n_trials)))


class GLMParameters:
    """Intercept, coefficients, indicators and extras of one GLM.

    The sampler mutates this record between proposals; evaluators read
    it on every call and never cache across writes.

    Args:
        intercept: Intercept α on the linear-predictor scale.
        coefficients: Coefficient vector β — a :class:`BoundedParameter`
            or anything convertible to a float vector (unbounded).
        indicators: Optional boolean inclusion gates, one per
            coefficient.  ``None`` means every coefficient is active.
        extras: Family-specific extra parameters.
    """

    def __init__(
        self,
        intercept: float,
        coefficients: BoundedParameter | Any,
        indicators: Any | None = None,
        extras: FamilyExtras | None = None,
    ) -> None:
        self._intercept = float(intercept)
        if not isinstance(coefficients, BoundedParameter):
            coefficients = BoundedParameter(coefficients, name="coefficients")
        self.coefficients: BoundedParameter = coefficients
        self._indicators: np.ndarray | None = (
            None if indicators is None else np.atleast_1d(np.asarray(indicators, dtype=bool)).copy()
        )
        self.extras = extras if extras is not None else FamilyExtras()
        self._own_version = 0

    def __repr__(self) -> str:
        ind = None if self._indicators is None else self._indicators.tolist()
        return (
            f"GLMParameters(intercept={self._intercept}, "
            f"coefficients={self.coefficients.values.tolist()}, "
            f"indicators={ind}, extras={self.extras})"
        )

    # ---- Intercept ---------------------------------------------------

    @property
    def intercept(self) -> float:
        return self._intercept

    @intercept.setter
    def intercept(self, value: float) -> None:
        self._intercept = float(value)
        self._own_version += 1

    # ---- Indicators --------------------------------------------------

    @property
    def indicators(self) -> np.ndarray | None:
        """Read-only view of the indicator vector, or ``None``."""
        if self._indicators is None:
            return None
        view = self._indicators.view()
        view.flags.writeable = False
        return view

    def set_indicator(self, index: int, active: bool) -> None:
        if self._indicators is None:
            msg = "This GLM was configured without indicators."
            raise ValueError(msg)
        self._indicators[index] = bool(active)
        self._own_version += 1

    def resize_indicators(self, n: int) -> None:
        """Truncate or extend the indicator vector, appending ``False``."""
        if self._indicators is None:
            return
        current = self._indicators.shape[0]
        if n < current:
            self._indicators = self._indicators[:n].copy()
        elif n > current:
            self._indicators = np.concatenate(
                [self._indicators, np.zeros(n - current, dtype=bool)]
            )
        self._own_version += 1

    # ---- Derived -----------------------------------------------------

    @property
    def n_coefficients(self) -> int:
        return len(self.coefficients)

    def active_coefficients(self) -> np.ndarray:
        """β with inactive entries replaced by 0.0 (c_j · β_j)."""
        beta = self.coefficients.values.copy()
        if self._indicators is not None:
            beta[~self._indicators] = 0.0
        return beta

    @property
    def version(self) -> int:
        """Monotone counter that increases whenever any field is written."""
        return self._own_version + self.coefficients.version
