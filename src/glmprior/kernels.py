"""Unit-scale proposal kernels for random-walk moves.

A kernel draws a random *unit* delta; the move multiplies it by its
current window size.  Three kernels are available:

* ``"gaussian"`` — δ ~ N(0, 1).
* ``"uniform"`` — δ ~ U(−1, 1).
* ``"bactrian"`` — the two-humped mixture of Yang & Rodríguez (2013),
  ``½ N(−m, 1 − m²) + ½ N(+m, 1 − m²)`` with ``m = 0.95``.  It has unit
  variance like the Gaussian but puts little mass near zero, so small,
  wasted steps are rare.

All kernels draw from an explicit :class:`numpy.random.Generator`.
"""

from __future__ import annotations

import math
from collections.abc import Callable

import numpy as np

from ._exceptions import ConfigError

Kernel = Callable[[np.random.Generator], float]

BACTRIAN_M = 0.95


def gaussian(rng: np.random.Generator) -> float:
    return float(rng.standard_normal())


def uniform(rng: np.random.Generator) -> float:
    return float(rng.uniform(-1.0, 1.0))


def bactrian(rng: np.random.Generator, m: float = BACTRIAN_M) -> float:
    """One draw from the Bactrian mixture with hump offset *m*."""
    z = float(rng.standard_normal())
    delta = m + math.sqrt(1.0 - m * m) * z
    if rng.random() < 0.5:
        return -delta
    return delta


_KERNELS: dict[str, Kernel] = {
    "gaussian": gaussian,
    "normal": gaussian,
    "uniform": uniform,
    "bactrian": bactrian,
}


def resolve_kernel(kernel: str | Kernel) -> Kernel:
    """Look up a kernel by name; callables are passed through.

    Raises:
        ConfigError: If *kernel* names no known kernel.
    """
    if callable(kernel):
        return kernel
    key = str(kernel).strip().lower()
    if key not in _KERNELS:
        msg = (
            f"Unknown proposal kernel {kernel!r}. "
            f"Valid kernels: {', '.join(sorted(set(_KERNELS) - {'normal'}))}."
        )
        raise ConfigError(msg)
    return _KERNELS[key]
