"""Tests for kernels, the single-index random walk and indicator helpers."""

import numpy as np
import pytest

from glmprior import (
    REJECT,
    BoundedParameter,
    ConfigError,
    SingleIndexRandomWalk,
    single_index_indicators,
)
from glmprior import kernels

# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture()
def rng():
    return np.random.default_rng(42)


# ------------------------------------------------------------------ #
# Kernels
# ------------------------------------------------------------------ #


class TestKernels:
    def test_resolve_by_name(self):
        assert kernels.resolve_kernel("Gaussian") is kernels.gaussian
        assert kernels.resolve_kernel("normal") is kernels.gaussian
        assert kernels.resolve_kernel("uniform") is kernels.uniform
        assert kernels.resolve_kernel("BACTRIAN") is kernels.bactrian

    def test_callable_passes_through(self):
        fn = lambda rng: 0.5  # noqa: E731
        assert kernels.resolve_kernel(fn) is fn

    def test_unknown(self):
        with pytest.raises(ConfigError, match="Valid kernels: bactrian, gaussian, uniform"):
            kernels.resolve_kernel("laplace")

    def test_uniform_range(self, rng):
        draws = np.array([kernels.uniform(rng) for _ in range(2000)])
        assert draws.min() >= -1.0
        assert draws.max() < 1.0
        assert draws.mean() == pytest.approx(0.0, abs=0.05)

    def test_gaussian_moments(self, rng):
        draws = np.array([kernels.gaussian(rng) for _ in range(4000)])
        assert draws.mean() == pytest.approx(0.0, abs=0.05)
        assert draws.var() == pytest.approx(1.0, abs=0.08)

    def test_bactrian_is_bimodal_with_unit_variance(self, rng):
        draws = np.array([kernels.bactrian(rng) for _ in range(4000)])
        assert draws.mean() == pytest.approx(0.0, abs=0.06)
        assert draws.var() == pytest.approx(1.0, abs=0.08)
        # little mass near zero: humps sit at ±0.95 with sd ≈ 0.31
        assert np.mean(np.abs(draws) < 0.2) < 0.02


# ------------------------------------------------------------------ #
# SingleIndexRandomWalk
# ------------------------------------------------------------------ #


class TestSingleIndexRandomWalk:
    def test_moves_only_selected_entry(self):
        p = BoundedParameter([1.0, 2.0, 3.0])
        move = SingleIndexRandomWalk(p, 1, rng=np.random.default_rng(5))
        assert move.propose() == 0.0
        assert p[0] == 1.0
        assert p[2] == 3.0
        assert p[1] != 2.0

    def test_out_of_bounds_rejects_without_writing(self):
        p = BoundedParameter([0.5], lower=0.0, upper=1.0)
        move = SingleIndexRandomWalk(p, 0, window_size=1.0, kernel=lambda rng: 2.0)
        version = p.version
        assert move.propose() == REJECT
        assert p[0] == 0.5
        assert p.version == version

    def test_rollback(self):
        p = BoundedParameter([0.5])
        move = SingleIndexRandomWalk(p, 0, window_size=0.1, kernel=lambda rng: 1.0)
        move.propose()
        assert p[0] == pytest.approx(0.6)
        move.rollback()
        assert p[0] == 0.5

    def test_defaults(self):
        move = SingleIndexRandomWalk(BoundedParameter([0.0]), 0)
        assert move.kernel is kernels.bactrian
        assert move.window_size == 1.0
        assert move.target_acceptance == 0.3

    def test_bad_index(self):
        with pytest.raises(ConfigError, match="index must be between 0 and 1"):
            SingleIndexRandomWalk(BoundedParameter([0.0, 1.0]), 2)

    def test_optimize(self):
        move = SingleIndexRandomWalk(BoundedParameter([0.0]), 0, window_size=1.0)
        move.stats.record_proposal()
        move.optimize(0.0)
        assert move.window_size == pytest.approx(np.exp(0.7))

    def test_suggestion_upper_threshold(self):
        move = SingleIndexRandomWalk(BoundedParameter([0.0]), 0, window_size=1.0)
        for _ in range(5):
            move.stats.record_accept()
        for _ in range(5):
            move.stats.record_reject()
        # 0.5 > 0.40 → suggest a wider window (ratio 0.5 / 0.3)
        assert move.performance_suggestion() == "Try setting windowSize to about 1.67"


# ------------------------------------------------------------------ #
# single_index_indicators
# ------------------------------------------------------------------ #


class TestSingleIndexIndicators:
    def test_one_active_entry(self):
        ind = single_index_indicators(4, 2)
        np.testing.assert_array_equal(ind, [False, False, True, False])
        assert ind.dtype == bool

    def test_non_positive_dimension(self):
        with pytest.raises(ConfigError, match="Dimension must be positive"):
            single_index_indicators(0, 0)

    def test_index_out_of_range(self):
        with pytest.raises(ConfigError, match=r"range \[0, 2\]"):
            single_index_indicators(3, 3)
