"""Predictor sets — the fixed covariates of a GLM prior.

A :class:`PredictorSet` is an ordered list of *P* named vectors, each of
length *D* (the dimensionality of the parameter being modelled).  Entry
``i`` of every vector belongs to element ``i`` of the target parameter;
keeping that ordering consistent is the caller's packaging contract and
is not checked here beyond the common-length requirement.

Two optional one-time transforms are applied at construction, in this
order, and never re-applied:

1. **log1p** — ``x ↦ log(x + 1)``.  Requires every value ≥ 0.
2. **z-score** — ``x ↦ (x − mean) / sd`` per predictor, using the
   population standard deviation (``ddof=0``).  A predictor with zero
   spread cannot be standardised.

Failures of either transform raise :class:`~glmprior.TransformError`.
The untransformed values are retained in :attr:`PredictorSet.raw_values`
together with the centring and scaling constants, so that coefficients
can be mapped back to the original predictor scale.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np
import pandas as pd

from ._compat import _frame_columns, _is_dataframe_like
from ._exceptions import ConfigError, TransformError

logger = logging.getLogger(__name__)


def _default_names(n: int) -> list[str]:
    # One-based, matching how predictor columns are labelled in traces.
    return [str(j + 1) for j in range(n)]


class PredictorSet:
    """Ordered, named predictor vectors of common length.

    Args:
        predictors: One of

            * a mapping ``name -> vector``,
            * a sequence of vectors (or a 2-D array whose *rows* are
              predictors),
            * a single vector (1-D array or flat sequence of scalars),
              read as one predictor,
            * a pandas / Polars DataFrame whose *columns* are predictors
              and whose rows are the modelled dimensions.
        names: Optional names for a sequence input.  Ignored for
            mappings and frames, which carry their own names.
        log_transform: Apply ``log(x + 1)`` to every predictor.
        standardize: Z-score every predictor after the optional log
            transform.

    Raises:
        ConfigError: If no predictors are given, the vectors differ in
            length, a vector is empty or contains non-finite values, or
            *names* has the wrong length.
        TransformError: If a transform cannot be applied.
    """

    def __init__(
        self,
        predictors: Mapping[str, Any] | Sequence[Any] | Any,
        names: Sequence[str] | None = None,
        *,
        log_transform: bool = False,
        standardize: bool = False,
    ) -> None:
        vectors, labels = self._coerce(predictors, names)
        self._validate(vectors, labels)

        raw = np.vstack(vectors)
        self._names: tuple[str, ...] = tuple(labels)
        self._raw = raw
        self._raw.flags.writeable = False
        self.log_transformed = bool(log_transform)
        self.standardized = bool(standardize)
        self.center: np.ndarray | None = None
        self.scale: np.ndarray | None = None

        values = raw.copy()
        if self.log_transformed:
            values = self._log1p(values)
        if self.standardized:
            values = self._standardize(values)
        values.flags.writeable = False
        self._values = values

    # ---- Construction helpers -----------------------------------------

    @staticmethod
    def _coerce(
        predictors: Any,
        names: Sequence[str] | None,
    ) -> tuple[list[np.ndarray], list[str]]:
        if _is_dataframe_like(predictors):
            labels, vectors = _frame_columns(predictors, name="predictors")
            return vectors, labels
        if isinstance(predictors, Mapping):
            return (
                [np.atleast_1d(np.asarray(v, dtype=float)) for v in predictors.values()],
                [str(k) for k in predictors.keys()],
            )
        # A single bare vector (1-D array or flat sequence of scalars) is
        # one predictor, not D scalar predictors.
        if isinstance(predictors, np.ndarray):
            if predictors.ndim == 1:
                predictors = [predictors]
        elif len(predictors) > 0 and all(np.ndim(v) == 0 for v in predictors):
            predictors = [list(predictors)]
        vectors = [np.atleast_1d(np.asarray(v, dtype=float)) for v in predictors]
        if names is None:
            labels = _default_names(len(vectors))
        else:
            labels = [str(n) for n in names]
            if len(labels) != len(vectors):
                msg = f"Got {len(labels)} predictor names for {len(vectors)} predictors."
                raise ConfigError(msg)
        return vectors, labels

    @staticmethod
    def _validate(vectors: list[np.ndarray], labels: list[str]) -> None:
        if not vectors:
            msg = "At least one predictor must be provided."
            raise ConfigError(msg)
        dim = vectors[0].shape[0]
        for j, vec in enumerate(vectors):
            if vec.ndim != 1:
                msg = f"Predictor {labels[j]!r} must be a 1-D vector, got shape {vec.shape}."
                raise ConfigError(msg)
            if vec.shape[0] != dim:
                msg = (
                    f"All predictors must have the same dimension. "
                    f"Predictor {labels[0]!r} has dimension {dim}, "
                    f"but predictor {labels[j]!r} has dimension {vec.shape[0]}."
                )
                raise ConfigError(msg)
            if not np.all(np.isfinite(vec)):
                msg = f"Predictor {labels[j]!r} contains non-finite values."
                raise ConfigError(msg)
        if dim == 0:
            msg = "Predictors must have at least one element."
            raise ConfigError(msg)
        if len(set(labels)) != len(labels):
            msg = f"Predictor names must be unique, got {labels}."
            raise ConfigError(msg)

    def _log1p(self, values: np.ndarray) -> np.ndarray:
        for j in range(values.shape[0]):
            negative = values[j] < 0.0
            if negative.any():
                bad = values[j][negative][0]
                msg = (
                    f"Predictor {self._names[j]!r} contains negative value ({bad}). "
                    f"Cannot apply log transformation to negative values."
                )
                raise TransformError(msg)
        logger.debug("log1p-transforming %d predictors", values.shape[0])
        return np.log1p(values)

    def _standardize(self, values: np.ndarray) -> np.ndarray:
        center = values.mean(axis=1)
        scale = values.std(axis=1, ddof=0)
        for j, sd in enumerate(scale):
            if sd == 0.0:
                msg = (
                    f"Standard deviation of predictor {self._names[j]!r} is zero. "
                    f"Cannot standardize constant predictor."
                )
                raise TransformError(msg)
        logger.debug("Standardising %d predictors", values.shape[0])
        self.center = center
        self.scale = scale
        return (values - center[:, None]) / scale[:, None]

    # ---- Access --------------------------------------------------------

    def __len__(self) -> int:
        return self._values.shape[0]

    def __getitem__(self, key: int | str) -> np.ndarray:
        """Transformed vector by position or name."""
        if isinstance(key, str):
            try:
                key = self._names.index(key)
            except ValueError:
                raise KeyError(key) from None
        return self._values[key]

    def __iter__(self):
        return iter(self._values)

    def __repr__(self) -> str:
        return (
            f"PredictorSet(names={list(self._names)}, n_dimensions={self.n_dimensions}, "
            f"log_transformed={self.log_transformed}, standardized={self.standardized})"
        )

    @property
    def names(self) -> tuple[str, ...]:
        return self._names

    @property
    def n_predictors(self) -> int:
        """P, the number of predictor vectors."""
        return self._values.shape[0]

    @property
    def n_dimensions(self) -> int:
        """D, the common length of every predictor vector."""
        return self._values.shape[1]

    @property
    def values(self) -> np.ndarray:
        """Transformed values, shape ``(P, D)``, read-only."""
        return self._values

    @property
    def raw_values(self) -> np.ndarray:
        """Values as supplied, before any transform, shape ``(P, D)``."""
        return self._raw

    def slice_at(self, i: int) -> np.ndarray:
        """The *i*-th entry of every predictor, shape ``(P,)``."""
        if not 0 <= i < self.n_dimensions:
            msg = f"Invalid dimension index: {i}"
            raise IndexError(msg)
        return self._values[:, i]

    def to_frame(self) -> pd.DataFrame:
        """Transformed predictors as a DataFrame (rows = dimensions)."""
        return pd.DataFrame(self._values.T, columns=list(self._names))
