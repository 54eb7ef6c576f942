"""Tests for the distribution-family layer and the family registry."""

import dataclasses
import math

import numpy as np
import pytest
from scipy import stats
from statsmodels.genmod.families import varfuncs

from glmprior import ConfigError, DomainError, FamilyExtras
from glmprior import families
from glmprior.families import FamilyKind, FamilySpec
from glmprior.links import LinkKind

# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture()
def rng():
    return np.random.default_rng(42)


# ------------------------------------------------------------------ #
# Registry
# ------------------------------------------------------------------ #


class TestResolveFamily:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("normal", FamilyKind.NORMAL),
            ("Gaussian", FamilyKind.NORMAL),
            ("POISSON", FamilyKind.POISSON),
            ("Inverse Gaussian", FamilyKind.INVERSE_GAUSSIAN),
            ("negative-binomial", FamilyKind.NEGATIVE_BINOMIAL),
            (FamilyKind.GAMMA, FamilyKind.GAMMA),
        ],
    )
    def test_names(self, name, expected):
        assert families.resolve_family(name) is expected

    def test_none_defaults_to_normal(self):
        assert families.resolve_family(None) is FamilyKind.NORMAL

    def test_unknown_family(self):
        with pytest.raises(ConfigError, match="Invalid family name"):
            families.resolve_family("tweedie")

    def test_display_name(self):
        assert FamilyKind.NEGATIVE_BINOMIAL.display_name == "Negative Binomial"
        assert str(FamilyKind.INVERSE_GAUSSIAN) == "Inverse Gaussian"


class TestRegisterFamily:
    def test_replace_and_restore(self):
        original = families.get_spec(FamilyKind.POISSON)
        custom = dataclasses.replace(original, display_name="Custom Poisson")
        try:
            families.register_family(custom)
            assert FamilyKind.POISSON.display_name == "Custom Poisson"
        finally:
            families.register_family(original)
        assert FamilyKind.POISSON.display_name == "Poisson"

    def test_rejects_non_spec(self):
        with pytest.raises(TypeError, match="not a FamilySpec"):
            families.register_family("poisson")

    def test_rejects_canonical_outside_valid(self):
        original = families.get_spec(FamilyKind.GAMMA)
        bad = dataclasses.replace(original, canonical_link=LinkKind.LOGIT)
        with pytest.raises(ConfigError, match="not among its valid links"):
            families.register_family(bad)
        assert families.get_spec(FamilyKind.GAMMA) is original

    def test_specs_are_frozen(self):
        spec = families.get_spec("normal")
        assert isinstance(spec, FamilySpec)
        with pytest.raises(dataclasses.FrozenInstanceError):
            spec.display_name = "x"


# ------------------------------------------------------------------ #
# Links per family
# ------------------------------------------------------------------ #


class TestFamilyLinks:
    @pytest.mark.parametrize(
        "family, canonical",
        [
            (FamilyKind.NORMAL, LinkKind.IDENTITY),
            (FamilyKind.POISSON, LinkKind.LOG),
            (FamilyKind.BINOMIAL, LinkKind.LOGIT),
            (FamilyKind.GAMMA, LinkKind.INVERSE),
            (FamilyKind.INVERSE_GAUSSIAN, LinkKind.INVERSE_SQUARED),
            (FamilyKind.NEGATIVE_BINOMIAL, LinkKind.LOG),
        ],
    )
    def test_canonical_link(self, family, canonical):
        assert families.canonical_link(family) is canonical
        assert families.valid_links(family)[0] is canonical

    def test_valid_link_sets(self):
        assert families.is_valid_link("normal", LinkKind.LOG)
        assert not families.is_valid_link("normal", LinkKind.LOGIT)
        assert families.is_valid_link("binomial", LinkKind.PROBIT)
        assert not families.is_valid_link("poisson", LinkKind.LOGIT)
        assert families.is_valid_link("poisson", LinkKind.SQRT)
        assert not families.is_valid_link("gamma", LinkKind.SQRT)
        assert families.is_valid_link("inverse_gaussian", LinkKind.INVERSE)


# ------------------------------------------------------------------ #
# Mean validation
# ------------------------------------------------------------------ #


class TestValidateMean:
    @pytest.mark.parametrize(
        "family, mu",
        [
            ("poisson", 0.0),
            ("gamma", -1.0),
            ("inverse_gaussian", 0.0),
            ("negative_binomial", -0.1),
            ("binomial", 1.2),
            ("binomial", -0.01),
            ("normal", math.nan),
            ("normal", math.inf),
        ],
    )
    def test_out_of_domain(self, family, mu):
        with pytest.raises(DomainError, match="mean must satisfy"):
            families.validate_mean(family, mu)

    def test_in_domain(self):
        families.validate_mean("normal", -1e6)
        families.validate_mean("binomial", 0.0)
        families.validate_mean("binomial", 1.0)
        families.validate_mean("poisson", 1e-12)

    def test_build_distribution_validates_first(self):
        with pytest.raises(DomainError):
            families.build_distribution("poisson", -2.0, FamilyExtras())


# ------------------------------------------------------------------ #
# Extras validation
# ------------------------------------------------------------------ #


class TestValidateExtras:
    def test_normal_requires_sigma_or_sigma2(self):
        with pytest.raises(ConfigError, match="requires either"):
            families.validate_extras("normal", FamilyExtras())

    def test_normal_rejects_both(self):
        with pytest.raises(ConfigError, match="not both"):
            families.validate_extras("normal", FamilyExtras(sigma=1.0, sigma2=1.0))

    def test_normal_accepts_either(self):
        families.validate_extras("normal", FamilyExtras(sigma=0.5))
        families.validate_extras("normal", FamilyExtras(sigma2=0.25))

    def test_missing_required(self):
        with pytest.raises(ConfigError, match="requires 'shape'"):
            families.validate_extras("gamma", FamilyExtras())
        with pytest.raises(ConfigError, match="requires 'nTrials'"):
            families.validate_extras("binomial", FamilyExtras())
        with pytest.raises(ConfigError, match="requires 'dispersion'"):
            families.validate_extras("negative_binomial", FamilyExtras())

    def test_superfluous(self):
        with pytest.raises(ConfigError, match="does not use 'shape'"):
            families.validate_extras("poisson", FamilyExtras(shape=2.0))
        with pytest.raises(ConfigError, match="does not use 'sigma'"):
            families.validate_extras("gamma", FamilyExtras(shape=2.0, sigma=1.0))

    @pytest.mark.parametrize(
        "family, extras",
        [
            ("normal", FamilyExtras(sigma=0.0)),
            ("normal", FamilyExtras(sigma2=-1.0)),
            ("gamma", FamilyExtras(shape=0.0)),
            ("inverse_gaussian", FamilyExtras(shape=-2.0)),
            ("negative_binomial", FamilyExtras(dispersion=0.0)),
        ],
    )
    def test_non_positive_values(self, family, extras):
        with pytest.raises(ConfigError, match="must be > 0"):
            families.validate_extras(family, extras)

    def test_n_trials_range(self):
        with pytest.raises(ConfigError, match="≥ 1"):
            families.validate_extras("binomial", FamilyExtras(n_trials=0))

    def test_n_trials_integer(self):
        with pytest.raises(ConfigError, match="integer"):
            families.validate_extras("binomial", FamilyExtras(n_trials=2.5))

    def test_n_trials_integral_float_ok(self):
        families.validate_extras("binomial", FamilyExtras(n_trials=10.0))


# ------------------------------------------------------------------ #
# Variance, cross-checked against statsmodels variance functions
# ------------------------------------------------------------------ #


class TestVariance:
    @pytest.mark.parametrize("mu", [0.2, 1.0, 3.7])
    def test_poisson(self, mu):
        assert families.variance("poisson", mu, FamilyExtras()) == pytest.approx(
            float(varfuncs.mu(np.array([mu]))[0])
        )

    @pytest.mark.parametrize("mu", [0.05, 0.5, 0.9])
    def test_binomial(self, mu):
        n = 12
        expected = n * float(varfuncs.binary(np.array([mu]))[0])
        assert families.variance("binomial", mu, FamilyExtras(n_trials=n)) == pytest.approx(expected)

    @pytest.mark.parametrize("mu", [0.4, 2.0, 6.6859])
    def test_gamma(self, mu):
        k = 2.5
        expected = float(varfuncs.mu_squared(np.array([mu]))[0]) / k
        assert families.variance("gamma", mu, FamilyExtras(shape=k)) == pytest.approx(expected)

    @pytest.mark.parametrize("mu", [0.3, 1.0, 4.0])
    def test_inverse_gaussian(self, mu):
        lam = 3.0
        expected = float(varfuncs.mu_cubed(np.array([mu]))[0]) / lam
        assert families.variance("inverse_gaussian", mu, FamilyExtras(shape=lam)) == pytest.approx(
            expected
        )

    @pytest.mark.parametrize("mu", [0.5, 2.0, 10.0])
    def test_negative_binomial(self, mu):
        alpha = 0.7
        expected = float(varfuncs.NegativeBinomial(alpha=alpha)(np.array([mu]))[0])
        assert families.variance(
            "negative_binomial", mu, FamilyExtras(dispersion=alpha)
        ) == pytest.approx(expected)

    def test_normal_ignores_mean(self):
        assert families.variance("normal", -4.0, FamilyExtras(sigma=0.5)) == 0.25
        assert families.variance("normal", 9.0, FamilyExtras(sigma2=0.3)) == 0.3


# ------------------------------------------------------------------ #
# DistributionHandle
# ------------------------------------------------------------------ #


class TestDistributionHandle:
    def test_normal_log_density_matches_scipy(self):
        d = families.build_distribution("normal", 2.0, FamilyExtras(sigma=0.5))
        assert d.log_density(2.3) == pytest.approx(stats.norm.logpdf(2.3, 2.0, 0.5))

    def test_normal_sigma2(self):
        d = families.build_distribution("normal", 0.0, FamilyExtras(sigma2=4.0))
        assert d.log_density(1.0) == pytest.approx(stats.norm.logpdf(1.0, 0.0, 2.0))

    def test_gamma_parameterisation(self):
        d = families.build_distribution("gamma", 3.0, FamilyExtras(shape=2.0))
        assert d.mean == pytest.approx(3.0)
        assert d.variance == pytest.approx(4.5)
        assert d.log_density(2.5) == pytest.approx(stats.gamma.logpdf(2.5, a=2.0, scale=1.5))

    def test_inverse_gaussian_parameterisation(self):
        d = families.build_distribution("inverse_gaussian", 2.0, FamilyExtras(shape=4.0))
        assert d.mean == pytest.approx(2.0)
        assert d.variance == pytest.approx(2.0**3 / 4.0)

    def test_negative_binomial_parameterisation(self):
        d = families.build_distribution("negative_binomial", 3.0, FamilyExtras(dispersion=0.5))
        assert d.mean == pytest.approx(3.0)
        assert d.variance == pytest.approx(3.0 + 0.5 * 9.0)

    def test_binomial_log_pmf(self):
        d = families.build_distribution("binomial", 0.3, FamilyExtras(n_trials=10))
        assert d.log_density(4) == pytest.approx(stats.binom.logpmf(4, 10, 0.3))
        assert d.mean == pytest.approx(3.0)

    def test_poisson_log_pmf(self):
        d = families.build_distribution("poisson", 2.0, FamilyExtras())
        assert d.log_density(3) == pytest.approx(stats.poisson.logpmf(3, 2.0))
        assert d.density(3) == pytest.approx(stats.poisson.pmf(3, 2.0))

    def test_discrete_non_integer_is_minus_inf(self):
        d = families.build_distribution("poisson", 2.0, FamilyExtras())
        assert d.log_density(2.5) == -math.inf

    def test_outside_support_is_minus_inf(self):
        assert families.build_distribution("poisson", 2.0, FamilyExtras()).log_density(-1) == -math.inf
        assert families.build_distribution(
            "gamma", 1.0, FamilyExtras(shape=2.0)
        ).log_density(-0.5) == -math.inf
        assert families.build_distribution(
            "binomial", 0.5, FamilyExtras(n_trials=3)
        ).log_density(4) == -math.inf

    def test_non_finite_input_is_minus_inf(self):
        d = families.build_distribution("normal", 0.0, FamilyExtras(sigma=1.0))
        assert d.log_density(math.nan) == -math.inf
        assert d.log_density(math.inf) == -math.inf

    def test_cdf_and_ppf(self):
        d = families.build_distribution("normal", 1.0, FamilyExtras(sigma=2.0))
        assert d.cdf(1.0) == pytest.approx(0.5)
        assert d.ppf(0.5) == pytest.approx(1.0)

    def test_sample_is_reproducible(self, rng):
        d = families.build_distribution("poisson", 4.0, FamilyExtras())
        a = d.sample(50, np.random.default_rng(7))
        b = d.sample(50, np.random.default_rng(7))
        np.testing.assert_array_equal(a, b)
        assert a.shape == (50,)
        assert d.sample(2000, rng).mean() == pytest.approx(4.0, abs=0.2)
