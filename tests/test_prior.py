"""Tests for the GLMPrior sampler facade."""

import math

import numpy as np
import pytest
from scipy import stats

from glmprior import (
    REJECT,
    BoundedParameter,
    ConfigError,
    DimensionError,
    FamilyExtras,
    GLMParameters,
    GLMPrior,
    RejectReason,
    kernels,
)

# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture()
def params():
    return GLMParameters(0.0, [1.0, 2.0], extras=FamilyExtras(sigma=0.5))


@pytest.fixture()
def response():
    return BoundedParameter([5.0, 5.0], name="R")


@pytest.fixture()
def prior(params, response):
    # means = [β₀, β₁]
    return GLMPrior({"a": [1.0, 0.0], "b": [0.0, 1.0]}, params, response=response, rng=42)


def unit_kernel(rng):
    return 1.0


# ------------------------------------------------------------------ #
# Prior density
# ------------------------------------------------------------------ #


class TestEvaluateLogPrior:
    def test_matches_scipy(self, prior):
        values = np.array([0.8, 2.5])
        expected = stats.norm.logpdf(values, [1.0, 2.0], 0.5).sum()
        assert prior.evaluate_log_prior(values) == pytest.approx(expected)

    def test_domain_error_is_minus_inf(self):
        p = GLMPrior(
            {"x": [1.0, -1.0]},
            GLMParameters(0.0, [1.0]),
            family="poisson",
            link="identity",
        )
        assert p.evaluate_log_prior([1, 1]) == -math.inf

    def test_dimension_mismatch_raises(self, prior):
        with pytest.raises(DimensionError):
            prior.evaluate_log_prior([1.0, 2.0, 3.0])

    def test_current_means_and_variances(self, prior):
        np.testing.assert_allclose(prior.current_means(), [1.0, 2.0])
        np.testing.assert_allclose(prior.current_variances(), [0.25, 0.25])

    def test_predictor_transforms(self):
        p = GLMPrior(
            {"x": [0.0, math.e - 1.0]},
            GLMParameters(0.0, [1.0], extras=FamilyExtras(sigma=1.0)),
            log_transform=True,
        )
        np.testing.assert_allclose(p.current_means(), [0.0, 1.0])

    def test_without_response_has_no_moves(self, params):
        p = GLMPrior({"a": [1.0, 0.0], "b": [0.0, 1.0]}, params)
        assert p.response is None
        with pytest.raises(ConfigError, match="requires a response parameter"):
            p.propose_coefficient_move()
        with pytest.raises(ConfigError, match="requires a response parameter"):
            p.synchronise()

    def test_response_length_must_match(self, params):
        with pytest.raises(DimensionError, match="must match GLM distribution dimensions"):
            GLMPrior({"a": [1.0, 0.0], "b": [0.0, 1.0]}, params, response=[1.0, 2.0, 3.0])


# ------------------------------------------------------------------ #
# Coupled moves
# ------------------------------------------------------------------ #


class TestCoefficientMoves:
    def test_propose_and_accept(self, prior, response):
        assert prior.propose_coefficient_move(unit_kernel, width=0.1, scope="all") == 0.0
        np.testing.assert_allclose(prior.current_means(), [1.1, 2.1])
        np.testing.assert_allclose(response.values, [5.1, 5.1])
        assert prior.last_outcome.accepted
        assert prior.accept()
        np.testing.assert_allclose(prior.glm.stored_means(), [1.1, 2.1])

    def test_reject_restores_state(self, prior, response):
        prior.propose_coefficient_move(unit_kernel, width=0.1, scope="all")
        assert prior.reject()
        np.testing.assert_allclose(prior.parameters.coefficients.values, [1.0, 2.0])
        np.testing.assert_allclose(response.values, [5.0, 5.0])
        # nothing pending any more
        assert not prior.reject()
        assert not prior.accept()

    def test_residual_preserved_over_many_steps(self, prior, response):
        residual = response.values - prior.current_means()
        for _ in range(50):
            if prior.propose_coefficient_move(width=0.2) > REJECT:
                prior.accept()
        np.testing.assert_allclose(response.values - prior.current_means(), residual)

    def test_unresolved_proposal_is_committed_on_next_propose(self, prior, response):
        prior.propose_coefficient_move(unit_kernel, width=0.1, scope="all")
        prior.propose_coefficient_move(unit_kernel, width=0.1, scope="all")
        prior.reject()
        np.testing.assert_allclose(prior.parameters.coefficients.values, [1.1, 2.1])
        np.testing.assert_allclose(response.values, [5.1, 5.1])

    def test_moves_cached_by_kernel_and_scope(self, prior):
        prior.propose_coefficient_move(unit_kernel, width=0.1, scope="all")
        prior.accept()
        prior.propose_coefficient_move(unit_kernel, width=0.3, scope="ALL")
        prior.accept()
        assert len(prior.coefficient_moves) == 1
        move = prior.coefficient_moves[0]
        assert move.window_size == pytest.approx(0.3)
        assert move.stats.n_accepted == 2

    def test_invalid_width(self, prior):
        with pytest.raises(ConfigError, match="window_size must be a positive"):
            prior.propose_coefficient_move(width=0.0)
        prior.propose_coefficient_move(width=0.1)
        prior.accept()
        with pytest.raises(ConfigError, match="window_size must be a positive"):
            prior.propose_coefficient_move(width=-1.0)

    def test_unknown_scope(self, prior):
        with pytest.raises(ConfigError, match="Unknown scope"):
            prior.propose_coefficient_move(scope="some")

    def test_response_bounds_rejection(self, params):
        response = BoundedParameter([5.0, 5.0], upper=5.05)
        p = GLMPrior({"a": [1.0, 0.0], "b": [0.0, 1.0]}, params, response=response)
        assert p.propose_coefficient_move(unit_kernel, width=0.1, scope="all") == REJECT
        assert p.last_outcome.reason is RejectReason.RESPONSE_BOUNDS
        np.testing.assert_allclose(params.coefficients.values, [1.0, 2.0])
        np.testing.assert_allclose(response.values, [5.0, 5.0])


# ------------------------------------------------------------------ #
# Synchronisation
# ------------------------------------------------------------------ #


class TestSynchronise:
    def test_realigns_response_after_external_change(self, prior, params, response):
        prior.glm.store()
        params.coefficients.set_value(0, 1.5)
        assert prior.synchronise() == 0.0
        np.testing.assert_allclose(response.values, [5.5, 5.0])
        prior.accept()
        np.testing.assert_allclose(prior.glm.stored_means(), [1.5, 2.0])

    def test_reject_restores_response(self, prior, params, response):
        prior.glm.store()
        params.coefficients.set_value(1, 1.0)
        prior.synchronise()
        np.testing.assert_allclose(response.values, [5.0, 4.0])
        prior.reject()
        np.testing.assert_allclose(response.values, [5.0, 5.0])

    def test_no_change_is_zero_shift(self, prior, response):
        prior.glm.store()
        assert prior.synchronise() == 0.0
        np.testing.assert_allclose(response.values, [5.0, 5.0])

    def test_baseline_taken_at_construction(self, prior, params, response):
        # no explicit store(): the change is measured from construction
        params.coefficients.set_value(0, 1.5)
        assert prior.synchronise() == 0.0
        np.testing.assert_allclose(response.values, [5.5, 5.0])

    def test_unresolved_move_then_synchronise(self, prior, params, response):
        prior.propose_coefficient_move(unit_kernel, width=0.5, scope="all")
        prior.propose_coefficient_move(unit_kernel, width=0.5, scope="all")
        prior.reject()
        np.testing.assert_allclose(params.coefficients.values, [1.5, 2.5])
        np.testing.assert_allclose(response.values, [5.5, 5.5])
        prior.synchronise()
        np.testing.assert_allclose(response.values, [5.5, 5.5])


# ------------------------------------------------------------------ #
# Construction
# ------------------------------------------------------------------ #


class TestConstruction:
    def test_resize_warning_points_at_caller(self):
        params = GLMParameters(0.0, [1.0], extras=FamilyExtras(sigma=1.0))
        with pytest.warns(UserWarning, match="Resizing coefficients") as record:
            GLMPrior({"a": [1.0, 0.0], "b": [0.0, 1.0]}, params, resize="lenient")
        assert record[0].filename == __file__
        np.testing.assert_allclose(params.coefficients.values, [1.0, 0.0])

    def test_kernel_aliases_share_a_move(self, prior):
        prior.propose_coefficient_move("gaussian", width=0.1)
        prior.accept()
        prior.propose_coefficient_move("Normal", width=0.1)
        prior.accept()
        prior.propose_coefficient_move(kernels.gaussian, width=0.1)
        prior.accept()
        assert len(prior.coefficient_moves) == 1
        assert prior.coefficient_moves[0].stats.n_proposals == 3
