"""Auxiliary moves and helpers for GLM state.

* :class:`SingleIndexRandomWalk` — random walk on one fixed entry of a
  bounded parameter (typically one coefficient, or the intercept stored
  as a length-1 parameter), with a Bactrian kernel by default.
* :func:`single_index_indicators` — an indicator vector activating
  exactly one predictor, for initialising variable-selection runs.
"""

from __future__ import annotations

import numpy as np

from ._exceptions import ConfigError
from ._results import RejectReason
from .coupling import _TunableMove
from .kernels import Kernel, resolve_kernel
from .parameters import BoundedParameter


class SingleIndexRandomWalk(_TunableMove):
    """Perturb ``parameter[index]`` by ``kernel() * window_size``.

    Returns ``0.0`` (symmetric kernel) or
    :data:`~glmprior._results.REJECT` when the proposed value falls
    outside the parameter's bounds, in which case nothing is written.

    Raises:
        ConfigError: For an out-of-range *index*, a non-positive
            window, or an unknown kernel.
    """

    name = "single_index_random_walk"
    suggestion_high = 0.40

    def __init__(
        self,
        parameter: BoundedParameter,
        index: int,
        window_size: float = 1.0,
        kernel: str | Kernel = "bactrian",
        *,
        optimise: bool = True,
        rng: np.random.Generator | int | None = None,
    ) -> None:
        super().__init__(window_size, optimise)
        if not 0 <= index < len(parameter):
            msg = f"index must be between 0 and {len(parameter) - 1} (found {index})"
            raise ConfigError(msg)
        self.parameter = parameter
        self.index = int(index)
        self.kernel = resolve_kernel(kernel)
        self.rng = np.random.default_rng(rng)

    @property
    def target_acceptance(self) -> float:
        return 0.3

    def propose(self) -> float:
        tx = self._begin()
        proposed = self.parameter[self.index] + self.kernel(self.rng) * self.window_size
        if not self.parameter.in_bounds(proposed):
            msg = (
                f"{self.parameter.name or 'parameter'}[{self.index}] proposal {proposed} "
                f"outside [{self.parameter.lower}, {self.parameter.upper}]"
            )
            return self._reject(tx, RejectReason.PARAMETER_BOUNDS, (self.index,), msg)
        tx.write(self.parameter, self.index, proposed)
        return self._succeed(tx, (self.index,))


def single_index_indicators(dimension: int, true_index: int) -> np.ndarray:
    """Boolean vector of length *dimension* with only *true_index* set.

    Raises:
        ConfigError: If *dimension* is not positive or *true_index* is
            out of range.
    """
    if dimension <= 0:
        msg = f"Dimension must be positive, got: {dimension}"
        raise ConfigError(msg)
    if not 0 <= true_index < dimension:
        msg = f"true_index must be in range [0, {dimension - 1}], got: {true_index}"
        raise ConfigError(msg)
    out = np.zeros(dimension, dtype=bool)
    out[true_index] = True
    return out
