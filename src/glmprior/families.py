"""Exponential-family distributions and their domain rules.

Each supported family is a member of :class:`FamilyKind` bound to an
immutable :class:`FamilySpec` record in a registry.  The spec carries
everything the GLM evaluators need to know about a family:

* the domain predicate on the mean μ,
* the canonical link and the set of links the family accepts,
* the family-specific extra parameters it requires,
* the variance formula Var(Y) = V(μ, extras),
* a factory that instantiates the concrete ``scipy.stats`` distribution.

Module-level functions (:func:`canonical_link`, :func:`is_valid_link`,
:func:`validate_mean`, :func:`variance`, :func:`build_distribution`,
:func:`validate_extras`) dispatch through the registry, so the GLM code
never branches on the family itself.

Family table
~~~~~~~~~~~~
=====================  =========  ================  =====================
Family                 Domain     Canonical link    Variance
=====================  =========  ================  =====================
Normal                 μ ∈ ℝ      Identity          σ²
Poisson                μ > 0      Log               μ
Binomial               μ ∈ [0,1]  Logit             n·μ·(1−μ)
Gamma                  μ > 0      Inverse           μ²/shape
Inverse Gaussian       μ > 0      Inverse squared   μ³/shape
Negative binomial      μ > 0      Log               μ + α·μ²
=====================  =========  ================  =====================

Extensibility
~~~~~~~~~~~~~
:func:`register_family` replaces or adds a registry entry.  The GLM
evaluators program against :class:`FamilySpec`, not against concrete families.
"""

from __future__ import annotations

import enum
import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import numpy as np
from scipy import stats

from ._exceptions import ConfigError, DomainError
from .links import LinkKind
from .parameters import FamilyExtras


class FamilyKind(str, enum.Enum):
    """Closed enumeration of supported distribution families."""

    NORMAL = "normal"
    POISSON = "poisson"
    BINOMIAL = "binomial"
    GAMMA = "gamma"
    INVERSE_GAUSSIAN = "inverse_gaussian"
    NEGATIVE_BINOMIAL = "negative_binomial"

    @property
    def spec(self) -> FamilySpec:
        return _FAMILIES[self]

    @property
    def display_name(self) -> str:
        return self.spec.display_name

    def __str__(self) -> str:
        return self.spec.display_name


@dataclass(frozen=True)
class FamilySpec:
    """Immutable description of one distribution family.

    Attributes:
        kind: The family this spec describes.
        display_name: Human-readable name used in messages.
        domain: Text form of the domain on μ.
        canonical_link: The link natively paired with the family.
        valid_links: Links the family accepts, canonical first.
        required_extras: Names of :class:`FamilyExtras` fields the
            family needs.  A tuple of alternatives (e.g. σ *or* σ²) is
            expressed by listing both names in *alternative_extras*.
        alternative_extras: Groups of mutually exclusive extras of which
            exactly one must be supplied.
        mean_ok: Predicate on a finite μ.
        variance_fn: ``(mu, extras) -> Var(Y)``.
        factory: ``(mu, extras) -> frozen scipy.stats distribution``.
        discrete: Whether the family has integer support.
    """

    kind: FamilyKind
    display_name: str
    domain: str
    canonical_link: LinkKind
    valid_links: tuple[LinkKind, ...]
    required_extras: frozenset[str]
    alternative_extras: tuple[frozenset[str], ...]
    mean_ok: Callable[[float], bool]
    variance_fn: Callable[[float, FamilyExtras], float]
    factory: Callable[[float, FamilyExtras], Any]
    discrete: bool = False

    @property
    def accepted_extras(self) -> frozenset[str]:
        accepted = set(self.required_extras)
        for group in self.alternative_extras:
            accepted |= group
        return frozenset(accepted)


# ------------------------------------------------------------------ #
# DistributionHandle
# ------------------------------------------------------------------ #


class DistributionHandle:
    """A concrete distribution instantiated at one mean value.

    Thin adapter over a frozen ``scipy.stats`` distribution that
    translates the scipy API into the handful of operations the GLM
    layer needs.  Log-density evaluation never raises: values outside
    the support, and non-integer values for discrete families, give
    ``-inf``.

    Attributes:
        family: The family this handle was built for.
        mu: The mean the handle was instantiated at.
    """

    def __init__(self, family: FamilyKind, mu: float, frozen: Any, discrete: bool) -> None:
        self.family = family
        self.mu = mu
        self._frozen = frozen
        self.is_discrete = discrete

    def __repr__(self) -> str:
        return f"DistributionHandle(family={self.family.value!r}, mu={self.mu!r})"

    def log_density(self, x: float) -> float:
        """Log pdf (continuous) or log pmf (discrete) at *x*."""
        x = float(x)
        if not math.isfinite(x):
            return -math.inf
        if self.is_discrete:
            if x != math.floor(x):
                return -math.inf
            value = self._frozen.logpmf(x)
        else:
            value = self._frozen.logpdf(x)
        value = float(value)
        if math.isnan(value):
            return -math.inf
        return value

    def density(self, x: float) -> float:
        return math.exp(self.log_density(x))

    def cdf(self, x: float) -> float:
        return float(self._frozen.cdf(x))

    def ppf(self, q: float) -> float:
        return float(self._frozen.ppf(q))

    @property
    def mean(self) -> float:
        return float(self._frozen.mean())

    @property
    def variance(self) -> float:
        return float(self._frozen.var())

    def sample(self, size: int = 1, rng: np.random.Generator | None = None) -> np.ndarray:
        """Draw *size* values (posterior-predictive checks only)."""
        if rng is None:
            rng = np.random.default_rng()
        return np.asarray(self._frozen.rvs(size=size, random_state=rng), dtype=float)


# ------------------------------------------------------------------ #
# Family definitions
# ------------------------------------------------------------------ #
#
# Parameterisations follow scipy.stats:
#   * gamma(a=k, scale=μ/k)              → mean μ, var μ²/k
#   * invgauss(mu=μ/λ, scale=λ)          → mean μ, var μ³/λ
#   * nbinom(n=1/α, p=1/(1 + α·μ))       → mean μ, var μ + α·μ²


def _positive(mu: float) -> bool:
    return mu > 0.0


_FAMILIES: dict[FamilyKind, FamilySpec] = {}
"""Registry mapping each FamilyKind to its FamilySpec."""


def register_family(spec: FamilySpec) -> None:
    """Register (or replace) the spec for ``spec.kind``.

    Raises:
        TypeError: If *spec* is not a :class:`FamilySpec`.
        ConfigError: If the spec's canonical link is not among its
            valid links.
    """
    if not isinstance(spec, FamilySpec):
        msg = f"{spec!r} is not a FamilySpec."
        raise TypeError(msg)
    if spec.canonical_link not in spec.valid_links:
        msg = (
            f"Canonical link {spec.canonical_link.display_name} of "
            f"{spec.display_name} is not among its valid links."
        )
        raise ConfigError(msg)
    _FAMILIES[spec.kind] = spec


def resolve_family(family: str | FamilyKind) -> FamilyKind:
    """Map a family name (case-insensitive) or member to a :class:`FamilyKind`.

    ``None`` or an empty string resolves to ``NORMAL``.

    Raises:
        ConfigError: If *family* does not name a registered family.
    """
    if isinstance(family, FamilyKind):
        kind = family
    else:
        key = (family or "normal").strip().lower().replace(" ", "_").replace("-", "_")
        if key == "gaussian":
            key = "normal"
        try:
            kind = FamilyKind(key)
        except ValueError:
            valid = ", ".join(k.value for k in _FAMILIES)
            msg = f"Invalid family name: {family!r}.  Valid options: {valid}."
            raise ConfigError(msg) from None
    if kind not in _FAMILIES:
        msg = f"Family {kind.value!r} has no registered spec."
        raise ConfigError(msg)
    return kind


def get_spec(family: str | FamilyKind) -> FamilySpec:
    return _FAMILIES[resolve_family(family)]


# ------------------------------------------------------------------ #
# Dispatch
# ------------------------------------------------------------------ #


def canonical_link(family: str | FamilyKind) -> LinkKind:
    """Return the canonical link of *family*."""
    return get_spec(family).canonical_link


def is_valid_link(family: str | FamilyKind, link: LinkKind) -> bool:
    """Whether *link* may be paired with *family*."""
    return link in get_spec(family).valid_links


def valid_links(family: str | FamilyKind) -> tuple[LinkKind, ...]:
    """Links accepted by *family*, canonical first."""
    return get_spec(family).valid_links


def validate_mean(family: str | FamilyKind, mu: float) -> None:
    """Raise :class:`~glmprior.DomainError` if *mu* is outside *family*'s domain."""
    spec = get_spec(family)
    if not math.isfinite(mu) or not spec.mean_ok(mu):
        msg = f"{spec.display_name} distribution mean must satisfy {spec.domain}, got: {mu}"
        raise DomainError(msg)


def variance(family: str | FamilyKind, mu: float, extras: FamilyExtras) -> float:
    """Return Var(Y) for *family* at mean *mu*."""
    return float(get_spec(family).variance_fn(mu, extras))


def build_distribution(
    family: str | FamilyKind,
    mu: float,
    extras: FamilyExtras,
) -> DistributionHandle:
    """Instantiate *family* at mean *mu*.

    The mean is validated first, so a handle is only ever built for an
    in-domain μ.

    Raises:
        DomainError: If *mu* violates the family's domain.
    """
    spec = get_spec(family)
    validate_mean(spec.kind, mu)
    return DistributionHandle(spec.kind, mu, spec.factory(mu, extras), spec.discrete)


# ------------------------------------------------------------------ #
# Extras validation
# ------------------------------------------------------------------ #
#
# Run once at construction.  Every family must receive exactly the
# extras it uses: a missing extra cannot be defaulted safely, and a
# superfluous one (e.g. ``shape`` on a Poisson GLM) almost always means
# the wrong family was chosen.

_EXTRA_LABELS = {
    "sigma": "sigma",
    "sigma2": "sigma2",
    "shape": "shape",
    "n_trials": "nTrials",
    "dispersion": "dispersion",
}


def validate_extras(family: str | FamilyKind, extras: FamilyExtras) -> None:
    """Check that *extras* supplies exactly what *family* requires.

    Raises:
        ConfigError: On missing or superfluous extras, on both σ and σ²
            being supplied, or on invalid values (σ ≤ 0, σ² ≤ 0,
            shape ≤ 0, nTrials < 1 or non-integer, dispersion ≤ 0).
    """
    spec = get_spec(family)
    name = spec.display_name
    present = extras.present()

    for group in spec.alternative_extras:
        supplied = sorted(present & group)
        labels = sorted(_EXTRA_LABELS[g] for g in group)
        if not supplied:
            msg = f"{name} distribution requires either {' or '.join(repr(x) for x in labels)}."
            raise ConfigError(msg)
        if len(supplied) > 1:
            msg = f"{name} distribution: specify either {' or '.join(repr(x) for x in labels)}, not both."
            raise ConfigError(msg)

    missing = sorted(spec.required_extras - present)
    if missing:
        msg = f"{name} distribution requires {', '.join(repr(_EXTRA_LABELS[m]) for m in missing)}."
        raise ConfigError(msg)

    superfluous = sorted(present - spec.accepted_extras)
    if superfluous:
        msg = (
            f"{name} distribution does not use "
            f"{', '.join(repr(_EXTRA_LABELS[s]) for s in superfluous)}."
        )
        raise ConfigError(msg)

    for field_name in ("sigma", "sigma2", "shape", "dispersion"):
        value = getattr(extras, field_name)
        if value is not None and not (math.isfinite(value) and value > 0.0):
            msg = f"{name} distribution: {_EXTRA_LABELS[field_name]} must be > 0, got {value}."
            raise ConfigError(msg)

    if extras.n_trials is not None:
        n = extras.n_trials
        if not math.isfinite(n) or n < 1:
            msg = f"{name} distribution: nTrials must be ≥ 1, got {n}."
            raise ConfigError(msg)
        if n != round(n):
            msg = f"{name} distribution: nTrials must be an integer, got {n}."
            raise ConfigError(msg)


# ------------------------------------------------------------------ #
# Register built-in families
# ------------------------------------------------------------------ #

register_family(
    FamilySpec(
        kind=FamilyKind.NORMAL,
        display_name="Normal",
        domain="μ ∈ ℝ",
        canonical_link=LinkKind.IDENTITY,
        valid_links=(LinkKind.IDENTITY, LinkKind.LOG),
        required_extras=frozenset(),
        alternative_extras=(frozenset({"sigma", "sigma2"}),),
        mean_ok=lambda mu: True,
        variance_fn=lambda mu, ex: ex.normal_variance(),
        factory=lambda mu, ex: stats.norm(loc=mu, scale=ex.normal_sd()),
    )
)
register_family(
    FamilySpec(
        kind=FamilyKind.POISSON,
        display_name="Poisson",
        domain="μ > 0",
        canonical_link=LinkKind.LOG,
        valid_links=(LinkKind.LOG, LinkKind.IDENTITY, LinkKind.SQRT),
        required_extras=frozenset(),
        alternative_extras=(),
        mean_ok=_positive,
        variance_fn=lambda mu, ex: mu,
        factory=lambda mu, ex: stats.poisson(mu=mu),
        discrete=True,
    )
)
register_family(
    FamilySpec(
        kind=FamilyKind.BINOMIAL,
        display_name="Binomial",
        domain="μ ∈ [0,1]",
        canonical_link=LinkKind.LOGIT,
        valid_links=(LinkKind.LOGIT, LinkKind.PROBIT, LinkKind.IDENTITY),
        required_extras=frozenset({"n_trials"}),
        alternative_extras=(),
        mean_ok=lambda mu: 0.0 <= mu <= 1.0,
        variance_fn=lambda mu, ex: ex.trials() * mu * (1.0 - mu),
        factory=lambda mu, ex: stats.binom(n=ex.trials(), p=mu),
        discrete=True,
    )
)
register_family(
    FamilySpec(
        kind=FamilyKind.GAMMA,
        display_name="Gamma",
        domain="μ > 0",
        canonical_link=LinkKind.INVERSE,
        valid_links=(LinkKind.INVERSE, LinkKind.LOG, LinkKind.IDENTITY),
        required_extras=frozenset({"shape"}),
        alternative_extras=(),
        mean_ok=_positive,
        variance_fn=lambda mu, ex: mu * mu / ex.shape,
        factory=lambda mu, ex: stats.gamma(a=ex.shape, scale=mu / ex.shape),
    )
)
register_family(
    FamilySpec(
        kind=FamilyKind.INVERSE_GAUSSIAN,
        display_name="Inverse Gaussian",
        domain="μ > 0",
        canonical_link=LinkKind.INVERSE_SQUARED,
        valid_links=(
            LinkKind.INVERSE_SQUARED,
            LinkKind.INVERSE,
            LinkKind.LOG,
            LinkKind.IDENTITY,
        ),
        required_extras=frozenset({"shape"}),
        alternative_extras=(),
        mean_ok=_positive,
        variance_fn=lambda mu, ex: mu**3 / ex.shape,
        factory=lambda mu, ex: stats.invgauss(mu=mu / ex.shape, scale=ex.shape),
    )
)
register_family(
    FamilySpec(
        kind=FamilyKind.NEGATIVE_BINOMIAL,
        display_name="Negative Binomial",
        domain="μ > 0",
        canonical_link=LinkKind.LOG,
        valid_links=(LinkKind.LOG, LinkKind.IDENTITY, LinkKind.SQRT),
        required_extras=frozenset({"dispersion"}),
        alternative_extras=(),
        mean_ok=_positive,
        variance_fn=lambda mu, ex: mu + ex.dispersion * mu * mu,
        factory=lambda mu, ex: stats.nbinom(
            n=1.0 / ex.dispersion, p=1.0 / (1.0 + ex.dispersion * mu)
        ),
        discrete=True,
    )
)
