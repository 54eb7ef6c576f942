"""Error taxonomy for the GLM prior engine.

Two families of errors exist and they are handled differently:

* **Construction-time** — :class:`ConfigError` (and its subclass
  :class:`TransformError`) plus structural :class:`DimensionError`.
  These mean the model cannot be built and always propagate to the
  caller.

* **Per-step** — :class:`DomainError` and :class:`BoundsViolation`.
  These arise while the sampler is running (a coefficient proposal
  pushes μ outside its family's domain, or a coupled response value
  leaves its bounds).  The moves in :mod:`glmprior.coupling` and the
  :class:`~glmprior.prior.GLMPrior` facade catch them and convert them
  to a reject decision; they never crash a sampling run.

``ConfigError``, ``DomainError`` and ``DimensionError`` subclass
``ValueError`` so that callers written against plain ``ValueError``
keep working.
"""

from __future__ import annotations


class GLMPriorError(Exception):
    """Root of every error raised by :mod:`glmprior`."""


class ConfigError(GLMPriorError, ValueError):
    """Invalid model configuration discovered at construction time."""


class TransformError(ConfigError):
    """A one-time predictor transform could not be applied."""


class DomainError(GLMPriorError, ValueError):
    """A mean or linear predictor falls outside its declared domain."""


class DimensionError(GLMPriorError, ValueError):
    """A value vector does not match the configured dimensionality."""


class BoundsViolation(GLMPriorError):
    """A proposed value lies outside its parameter's bounds.

    Attributes:
        index: Position of the offending entry.
        value: The rejected value.
        lower: Lower bound of the parameter.
        upper: Upper bound of the parameter.
    """

    def __init__(self, index: int, value: float, lower: float, upper: float) -> None:
        self.index = index
        self.value = value
        self.lower = lower
        self.upper = upper
        super().__init__(
            f"Value {value!r} at index {index} is outside bounds [{lower}, {upper}]."
        )
