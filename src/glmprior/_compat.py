"""Predictor tables from pandas or (optionally) Polars frames.

A frame hands over predictors column-wise: one column per predictor,
one row per modelled dimension.  :func:`_frame_columns` reads such a
frame into the ``(names, vectors)`` pair that
:class:`~glmprior.predictors.PredictorSet` is built from, so the rest of
the package never touches a frame type directly.

Polars is **not** a required dependency.  Columns are read with
``Series.to_numpy()`` on both libraries, so no pandas round-trip (and no
pyarrow) is needed for Polars input.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeAlias

import numpy as np
import pandas as pd

from ._exceptions import ConfigError

if TYPE_CHECKING:
    import polars as pl

    FrameLike: TypeAlias = pd.DataFrame | pl.DataFrame | pl.LazyFrame
else:
    FrameLike: TypeAlias = pd.DataFrame

# Runtime detection; Polars is optional.
try:
    import polars as pl

    _HAS_POLARS = True
except ImportError:
    _HAS_POLARS = False


def _is_dataframe_like(obj: object) -> bool:
    """Whether *obj* is a pandas or (when installed) Polars frame."""
    if isinstance(obj, pd.DataFrame):
        return True
    return _HAS_POLARS and isinstance(obj, (pl.DataFrame, pl.LazyFrame))


def _column_as_float(series: Any, column: str, name: str) -> np.ndarray:
    try:
        if isinstance(series, pd.Series):
            return series.to_numpy(dtype=float, na_value=np.nan)
        return np.asarray(series.to_numpy(), dtype=float)
    except (TypeError, ValueError):
        msg = f"Column {column!r} of '{name}' is not numeric."
        raise ConfigError(msg) from None


def _frame_columns(
    obj: FrameLike, *, name: str = "predictors"
) -> tuple[list[str], list[np.ndarray]]:
    """Column names and float vectors of a pandas or Polars frame.

    A Polars ``LazyFrame`` is collected first.  Missing values become
    ``nan`` and are left for the caller to reject.

    Args:
        obj: A pandas or Polars DataFrame (or LazyFrame).
        name: Label used in error messages.

    Returns:
        ``(names, vectors)`` in column order.

    Raises:
        TypeError: If *obj* is not a recognised frame type.
        ConfigError: If a column cannot be read as floats.
    """
    if isinstance(obj, pd.DataFrame):
        labels = [str(col) for col in obj.columns]
        return labels, [
            _column_as_float(obj.iloc[:, j], labels[j], name) for j in range(len(labels))
        ]

    if _HAS_POLARS and isinstance(obj, (pl.DataFrame, pl.LazyFrame)):
        frame = obj.collect() if isinstance(obj, pl.LazyFrame) else obj
        labels = list(frame.columns)
        return labels, [
            _column_as_float(frame.get_column(col), col, name) for col in labels
        ]

    raise TypeError(
        f"'{name}' must be a pandas DataFrame"
        + (" or Polars DataFrame/LazyFrame" if _HAS_POLARS else "")
        + f", got {type(obj).__name__}."
    )
