"""Typed outcome records for MCMC proposals.

Every call to a move's ``propose()`` returns a plain float (the log
Hastings ratio, or :data:`REJECT`) because that is what a host sampler
consumes.  The richer :class:`ProposalOutcome` describing *why* a step
was accepted or rejected is kept on the move as ``last_outcome``.

Outcomes are frozen dataclasses that provide:

* **Attribute access** — ``outcome.accepted``, ``outcome.reason``, etc.
* **Dict-like access** — ``outcome["reason"]``, ``outcome.get("key")``,
  ``"key" in outcome``.
* **Serialisation** — ``.to_dict()`` returns a plain ``dict[str, Any]``
  with all NumPy types converted to native Python.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, fields
from typing import Any, ClassVar

import numpy as np

REJECT = -math.inf
"""Log Hastings ratio signalling "always reject this proposal"."""


class RejectReason(str, enum.Enum):
    """Why a proposal was rejected."""

    COEFFICIENT_BOUNDS = "coefficient_bounds"
    RESPONSE_BOUNDS = "response_bounds"
    PARAMETER_BOUNDS = "parameter_bounds"
    DOMAIN = "domain"
    NO_OP = "no_op"


# ------------------------------------------------------------------ #
# Serialisation helper
# ------------------------------------------------------------------ #


def _numpy_to_python(obj: Any) -> Any:
    """Recursively convert NumPy scalars/arrays to Python-native types."""
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, dict):
        return {k: _numpy_to_python(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        converted = [_numpy_to_python(item) for item in obj]
        return type(obj)(converted)
    return obj


class _DictAccessMixin:
    """Dict-like access convenience for outcome dataclasses."""

    _EXCLUDE_FROM_DICT: ClassVar[frozenset[str]] = frozenset()

    def __getitem__(self, key: str) -> Any:
        try:
            return getattr(self, key)
        except AttributeError:
            raise KeyError(key) from None

    def get(self, key: str, default: Any = None) -> Any:
        return getattr(self, key, default)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return hasattr(self, key)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serialisable plain dictionary."""
        result: dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            if f.name in self._EXCLUDE_FROM_DICT:
                continue
            result[f.name] = _numpy_to_python(getattr(self, f.name))
        return result


@dataclass(frozen=True)
class ProposalOutcome(_DictAccessMixin):
    """Result of one proposal attempt.

    Attributes:
        move: Name of the move that produced the outcome.
        accepted: Whether the proposal passed the move's own checks.
            (The host sampler may still reject it on the posterior
            ratio.)
        log_hastings_ratio: ``0.0`` on success, :data:`REJECT` otherwise.
        reason: Why the proposal was rejected, ``None`` on success.
        coefficient_indices: Coefficients perturbed by the proposal.
        mean_shift: Per-dimension μ_new − μ_old applied to the response
            vector (``None`` when no shift was computed).
        message: Error text of the rejection cause, if any.
    """

    move: str
    accepted: bool
    log_hastings_ratio: float
    reason: RejectReason | None = None
    coefficient_indices: tuple[int, ...] = ()
    mean_shift: np.ndarray | None = None
    message: str | None = None

    @classmethod
    def success(
        cls,
        move: str,
        coefficient_indices: tuple[int, ...] = (),
        mean_shift: np.ndarray | None = None,
    ) -> ProposalOutcome:
        return cls(
            move=move,
            accepted=True,
            log_hastings_ratio=0.0,
            coefficient_indices=coefficient_indices,
            mean_shift=mean_shift,
        )

    @classmethod
    def rejected(
        cls,
        move: str,
        reason: RejectReason,
        coefficient_indices: tuple[int, ...] = (),
        message: str | None = None,
    ) -> ProposalOutcome:
        return cls(
            move=move,
            accepted=False,
            log_hastings_ratio=REJECT,
            reason=reason,
            coefficient_indices=coefficient_indices,
            message=message,
        )
