"""Link functions for the GLM prior engine.

A link function g maps the mean μ of a response distribution to the
unbounded linear predictor η = g(μ); its inverse maps η back to μ.
This module provides the closed set of links as the :class:`LinkKind`
enumeration together with four pure, stateless operations:

=====================  ============================================
Function               Contract
=====================  ============================================
:func:`apply`          μ → η; ``DomainError`` outside the domain
:func:`inverse`        η → μ; ``DomainError`` for invalid η
:func:`derivative`     dμ/dη evaluated at η
:func:`validate_domain` domain check on μ used by :func:`apply`
=====================  ============================================

Numerical policy
~~~~~~~~~~~~~~~~
Every exponential is evaluated with its argument clamped at
``MAX_EXP_ARG`` (700; ``exp(700) ≈ 1e304`` is close to the largest
double), so ``inverse(LOG, η)`` never overflows.  Probabilities produced
or consumed by the logit and probit links are clamped into
``[PROB_EPSILON, 1 − PROB_EPSILON]`` with ``PROB_EPSILON = 1e-15``:
``inverse(LOGIT, η)`` saturates smoothly rather than returning exactly
0 or 1, and ``apply`` never takes the log of 0.  Round trips
``inverse(link, apply(link, μ)) == μ`` hold to 1e-10 (1e-8 for probit)
for μ inside the domain.

The clamps above bound *intermediate* quantities only.  A μ that lies
outside a link's domain is never clamped into range; it raises
:class:`~glmprior.DomainError` so that the calling sampler can reject
the proposal.

The scalar functions accept and return Python floats.
:func:`inverse_array` is the vectorised form used by
:class:`~glmprior.multi_glm.MultiGLM`; both paths share one
implementation so they agree bit for bit.
"""

from __future__ import annotations

import enum

import numpy as np
from scipy import special

from ._exceptions import ConfigError, DomainError

# Lower bound on |η| accepted by the inverse link.
INVERSE_EPSILON = 1e-15

# Clamp for probabilities fed to / produced by logit and probit.
PROB_EPSILON = 1e-15

# Ceiling for exponent arguments.
MAX_EXP_ARG = 700.0


class LinkKind(str, enum.Enum):
    """Closed enumeration of supported link functions.

    Members are string-valued so that ``LinkKind("log")`` and
    comparisons against plain strings work; use :func:`resolve_link` for
    case-insensitive lookup.
    """

    IDENTITY = "identity"
    LOG = "log"
    LOGIT = "logit"
    PROBIT = "probit"
    INVERSE = "inverse"
    SQRT = "sqrt"
    INVERSE_SQUARED = "inverse_squared"

    @property
    def display_name(self) -> str:
        return _LINK_INFO[self][0]

    @property
    def formula(self) -> str:
        return _LINK_INFO[self][1]

    @property
    def domain(self) -> str:
        return _LINK_INFO[self][2]

    def __str__(self) -> str:
        return self.display_name


_LINK_INFO: dict[LinkKind, tuple[str, str, str]] = {
    LinkKind.IDENTITY: ("Identity", "g(μ) = μ", "μ ∈ ℝ"),
    LinkKind.LOG: ("Log", "g(μ) = log(μ)", "μ > 0"),
    LinkKind.LOGIT: ("Logit", "g(μ) = log(μ/(1-μ))", "μ ∈ (0,1)"),
    LinkKind.PROBIT: ("Probit", "g(μ) = Φ⁻¹(μ)", "μ ∈ (0,1)"),
    LinkKind.INVERSE: ("Inverse", "g(μ) = 1/μ", "μ > 0"),
    LinkKind.SQRT: ("Square Root", "g(μ) = √μ", "μ ≥ 0"),
    LinkKind.INVERSE_SQUARED: ("Inverse Squared", "g(μ) = 1/μ²", "μ > 0"),
}


def resolve_link(link: str | LinkKind) -> LinkKind:
    """Map a link name (case-insensitive) or member to a :class:`LinkKind`.

    Both the enum value (``"inverse_squared"``) and the display name
    (``"Inverse Squared"``) are accepted.

    Raises:
        ConfigError: If *link* does not name a supported link.
    """
    if isinstance(link, LinkKind):
        return link
    key = str(link).strip().lower().replace(" ", "_").replace("-", "_")
    if key == "square_root":
        key = "sqrt"
    try:
        return LinkKind(key)
    except ValueError:
        valid = ", ".join(member.value for member in LinkKind)
        msg = f"Invalid link function name: {link!r}.  Valid options: {valid}."
        raise ConfigError(msg) from None


# ------------------------------------------------------------------ #
# Domain validation
# ------------------------------------------------------------------ #
#
# Each entry is a predicate on a float array returning True where μ is
# acceptable.  The identity link imposes no restriction beyond
# finiteness, which is checked for every link before the predicate.

_MU_DOMAIN = {
    LinkKind.IDENTITY: lambda mu: np.ones_like(mu, dtype=bool),
    LinkKind.LOG: lambda mu: mu > 0.0,
    LinkKind.INVERSE: lambda mu: mu > 0.0,
    LinkKind.INVERSE_SQUARED: lambda mu: mu > 0.0,
    LinkKind.LOGIT: lambda mu: (mu > 0.0) & (mu < 1.0),
    LinkKind.PROBIT: lambda mu: (mu > 0.0) & (mu < 1.0),
    LinkKind.SQRT: lambda mu: mu >= 0.0,
}


def _validate_domain_array(link: LinkKind, mu: np.ndarray) -> None:
    finite = np.isfinite(mu)
    if not finite.all():
        bad = mu[~finite][0]
        msg = f"Mean parameter μ must be finite, got: {bad}"
        raise DomainError(msg)
    ok = _MU_DOMAIN[link](mu)
    if not ok.all():
        bad = mu[~ok][0]
        msg = f"{link.display_name} link requires {link.domain}, got μ = {bad}"
        raise DomainError(msg)


def validate_domain(link: str | LinkKind, mu: float) -> None:
    """Raise :class:`~glmprior.DomainError` if *mu* is outside *link*'s domain.

    Args:
        link: The link function.
        mu: Mean parameter μ.

    Raises:
        DomainError: If *mu* is non-finite or violates the link's
            domain (see :attr:`LinkKind.domain`).
    """
    _validate_domain_array(resolve_link(link), np.asarray([mu], dtype=float))


# ------------------------------------------------------------------ #
# Forward link  η = g(μ)
# ------------------------------------------------------------------ #


def _clamp_prob(p: np.ndarray) -> np.ndarray:
    return np.clip(p, PROB_EPSILON, 1.0 - PROB_EPSILON)


def _apply_array(link: LinkKind, mu: np.ndarray) -> np.ndarray:
    _validate_domain_array(link, mu)
    if link is LinkKind.IDENTITY:
        return mu.copy()
    if link is LinkKind.LOG:
        return np.log(mu)
    if link is LinkKind.LOGIT:
        return special.logit(_clamp_prob(mu))
    if link is LinkKind.PROBIT:
        return special.ndtri(_clamp_prob(mu))
    if link is LinkKind.INVERSE:
        return 1.0 / mu
    if link is LinkKind.SQRT:
        return np.sqrt(mu)
    # INVERSE_SQUARED
    return 1.0 / (mu * mu)


def apply(link: str | LinkKind, mu: float) -> float:
    """Apply the link function: η = g(μ).

    Args:
        link: The link function to apply.
        mu: The mean parameter μ.

    Returns:
        The linear predictor η.

    Raises:
        DomainError: If *mu* is non-finite or outside the link's domain.
    """
    eta = _apply_array(resolve_link(link), np.asarray([mu], dtype=float))
    return float(eta[0])


# ------------------------------------------------------------------ #
# Inverse link  μ = g⁻¹(η)
# ------------------------------------------------------------------ #
#
# The inverse link is where overflow and degenerate denominators can
# occur, so every branch either clamps an exponent argument or checks
# η before dividing.  ``scipy.special.expit`` evaluates the logistic
# function without forming exp(η)/(1 + exp(η)) explicitly, which keeps
# it stable for large negative η.


def _inverse_array(link: LinkKind, eta: np.ndarray) -> np.ndarray:
    finite = np.isfinite(eta)
    if not finite.all():
        bad = eta[~finite][0]
        msg = f"Linear predictor η must be finite, got: {bad}"
        raise DomainError(msg)

    if link is LinkKind.IDENTITY:
        return eta.copy()
    if link is LinkKind.LOG:
        return np.exp(np.minimum(eta, MAX_EXP_ARG))
    if link is LinkKind.LOGIT:
        return _clamp_prob(special.expit(np.clip(eta, -MAX_EXP_ARG, MAX_EXP_ARG)))
    if link is LinkKind.PROBIT:
        return _clamp_prob(special.ndtr(eta))
    if link is LinkKind.INVERSE:
        tiny = np.abs(eta) < INVERSE_EPSILON
        if tiny.any():
            bad = eta[tiny][0]
            msg = f"Cannot compute 1/η when η ≈ 0, got η = {bad}"
            raise DomainError(msg)
        mu = 1.0 / eta
        nonpos = mu <= 0.0
        if nonpos.any():
            idx = int(np.flatnonzero(nonpos)[0])
            msg = (
                f"Inverse link resulted in non-positive mean: "
                f"μ = {mu[idx]} (η = {eta[idx]})"
            )
            raise DomainError(msg)
        return mu
    if link is LinkKind.SQRT:
        neg = eta < 0.0
        if neg.any():
            bad = eta[neg][0]
            msg = f"Square root link requires η ≥ 0, got η = {bad}"
            raise DomainError(msg)
        return eta * eta
    # INVERSE_SQUARED
    nonpos = eta <= 0.0
    if nonpos.any():
        bad = eta[nonpos][0]
        msg = f"Inverse squared link requires η > 0, got η = {bad}"
        raise DomainError(msg)
    return 1.0 / np.sqrt(eta)


def inverse(link: str | LinkKind, eta: float) -> float:
    """Apply the inverse link: μ = g⁻¹(η).

    Args:
        link: The link function whose inverse to apply.
        eta: The linear predictor η.

    Returns:
        The mean parameter μ.

    Raises:
        DomainError: If *eta* is non-finite, or the inverse is undefined
            at *eta* (η ≈ 0 or a non-positive result for the inverse
            link, η < 0 for the square-root link, η ≤ 0 for the
            inverse-squared link).
    """
    mu = _inverse_array(resolve_link(link), np.asarray([eta], dtype=float))
    return float(mu[0])


def inverse_array(link: str | LinkKind, eta: np.ndarray) -> np.ndarray:
    """Vectorised :func:`inverse` over a 1-D array of linear predictors.

    Raises:
        DomainError: If any element is invalid for the inverse link.
    """
    return _inverse_array(resolve_link(link), np.asarray(eta, dtype=float))


# ------------------------------------------------------------------ #
# Derivative of the inverse link  dμ/dη
# ------------------------------------------------------------------ #


def derivative(link: str | LinkKind, eta: float) -> float:
    """Return dμ/dη, the derivative of the inverse link at *eta*.

    Used for diagnostics (delta-method standard errors on the mean
    scale); the sampler itself never needs it.
    """
    link = resolve_link(link)
    if link is LinkKind.IDENTITY:
        return 1.0
    if link is LinkKind.LOG:
        return float(np.exp(min(eta, MAX_EXP_ARG)))
    if link is LinkKind.LOGIT:
        if abs(eta) > MAX_EXP_ARG:
            return 0.0
        p = float(special.expit(eta))
        return p * (1.0 - p)
    if link is LinkKind.PROBIT:
        return float(np.exp(-0.5 * eta * eta) / np.sqrt(2.0 * np.pi))
    if link is LinkKind.INVERSE:
        return -1.0 / (eta * eta)
    if link is LinkKind.SQRT:
        return 2.0 * eta
    # INVERSE_SQUARED: μ = η^(-1/2)
    return -0.5 * eta ** -1.5
