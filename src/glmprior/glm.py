"""Single-dimension GLM evaluator.

A :class:`GLMUnit` turns shared GLM state plus one predictor slice into
a distribution over a single scalar:

    η = α + Σⱼ cⱼ · βⱼ · xⱼ        (linear predictor)
    μ = g⁻¹(η)                     (mean via the inverse link)
    y | μ, θ ~ Family(μ, θ)        (θ = family-specific extras)

where cⱼ = 1 when no indicators are configured or indicator j is true,
and 0 otherwise.  An inactive coefficient contributes exactly zero; the
predictor is not removed from the model.

The unit holds no value of its own.  Every call re-reads the
:class:`~glmprior.parameters.GLMParameters` it references, so it is
always consistent with whatever the sampler last wrote.

:func:`resolve_model` is the eager construction-time validation shared
with :class:`~glmprior.multi_glm.MultiGLM`: family / link resolution,
family–link compatibility, extras, and the coefficient / indicator
length policy.
"""

from __future__ import annotations

import logging
import warnings
from typing import Any

import numpy as np

from . import families, links
from ._config import resolve_resize_policy
from ._exceptions import BoundsViolation, ConfigError
from .families import DistributionHandle, FamilyKind
from .links import LinkKind
from .parameters import GLMParameters

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------ #
# Construction-time validation
# ------------------------------------------------------------------ #


def resolve_model(
    parameters: GLMParameters,
    n_predictors: int,
    family: str | FamilyKind | None,
    link: str | LinkKind | None,
    resize: str | bool | None = None,
    *,
    stacklevel: int = 4,
) -> tuple[FamilyKind, LinkKind]:
    """Validate a GLM configuration and return the resolved family and link.

    When *link* is ``None`` the family's canonical link is used.

    Coefficient and indicator vectors whose length differs from
    *n_predictors* are handled according to the resize policy (see
    :mod:`glmprior._config`): under ``"lenient"`` they are truncated or
    extended with ``0.0`` / ``False`` and a ``UserWarning`` is emitted;
    under ``"strict"`` a :class:`~glmprior.ConfigError` is raised.
    *stacklevel* is the ``warnings.warn`` stack level of that warning,
    counted from :func:`_reconcile_length`; callers that wrap this
    function in more frames pass a larger value so the warning points
    at user code.

    Raises:
        ConfigError: For unknown family or link names, an invalid
            family–link pair, invalid extras, a length mismatch under
            the strict policy, or (lenient policy) a padding value that
            lies outside the coefficient bounds.
    """
    kind = families.resolve_family(family)
    link_kind = families.canonical_link(kind) if link is None else links.resolve_link(link)

    if not families.is_valid_link(kind, link_kind):
        valid = ", ".join(lk.display_name for lk in families.valid_links(kind))
        msg = (
            f"Link function {link_kind.display_name} is not valid for "
            f"{kind.display_name} distribution.  Valid links: {valid}."
        )
        raise ConfigError(msg)

    families.validate_extras(kind, parameters.extras)

    policy = resolve_resize_policy(resize)
    _reconcile_length(
        "coefficients", parameters.n_coefficients, n_predictors, policy,
        lambda: parameters.coefficients.resize(n_predictors, 0.0),
        stacklevel,
    )
    if parameters.indicators is not None:
        _reconcile_length(
            "indicators", parameters.indicators.shape[0], n_predictors, policy,
            lambda: parameters.resize_indicators(n_predictors),
            stacklevel,
        )
    return kind, link_kind


def _reconcile_length(
    label: str,
    actual: int,
    expected: int,
    policy: str,
    do_resize,
    stacklevel: int = 4,
) -> None:
    if actual == expected:
        return
    if policy == "strict":
        msg = (
            f"Dimension mismatch: {label} has dimension {actual} but there "
            f"are {expected} predictors."
        )
        raise ConfigError(msg)
    try:
        do_resize()
    except BoundsViolation as exc:
        msg = f"Cannot resize {label} from {actual} to {expected} entries: {exc}"
        raise ConfigError(msg) from exc
    warnings.warn(
        f"Resizing {label} from {actual} to {expected} entries to match the "
        f"number of predictors (set resize='strict' to make this an error).",
        UserWarning,
        stacklevel=stacklevel,
    )
    logger.debug("Resized %s from %d to %d", label, actual, expected)


# ------------------------------------------------------------------ #
# GLMUnit
# ------------------------------------------------------------------ #


class GLMUnit:
    """GLM-driven distribution for one scalar value.

    Args:
        parameters: Shared GLM state (read on every call).
        predictors: The predictor values xⱼ for this dimension, one per
            coefficient.
        family: Distribution family name or member.  Default Normal.
        link: Link function name or member.  ``None`` selects the
            family's canonical link.
        resize: Length-mismatch policy for coefficients / indicators;
            ``None`` uses the process-wide policy.
        validate: Run :func:`resolve_model`.  Containers that have
            already validated the shared configuration pass ``False``
            together with resolved *family* and *link* members.
    """

    def __init__(
        self,
        parameters: GLMParameters,
        predictors: Any,
        family: str | FamilyKind | None = FamilyKind.NORMAL,
        link: str | LinkKind | None = None,
        *,
        resize: str | bool | None = None,
        validate: bool = True,
    ) -> None:
        x = np.atleast_1d(np.asarray(predictors, dtype=float))
        if x.ndim != 1 or x.shape[0] == 0:
            msg = "GLMUnit predictors must be a non-empty 1-D vector."
            raise ConfigError(msg)
        x.flags.writeable = False
        self._x = x
        self.parameters = parameters
        if validate:
            self.family, self.link = resolve_model(parameters, x.shape[0], family, link, resize)
        else:
            self.family = families.resolve_family(family)
            self.link = families.canonical_link(self.family) if link is None else links.resolve_link(link)

    def __repr__(self) -> str:
        return (
            f"GLMUnit(family={self.family.value!r}, link={self.link.value!r}, "
            f"predictors={self._x.tolist()})"
        )

    @property
    def predictors(self) -> np.ndarray:
        return self._x

    # ---- Linear predictor and mean ----------------------------------

    def linear_predictor(self) -> float:
        """η = α + Σⱼ cⱼ · βⱼ · xⱼ."""
        beta = self.parameters.active_coefficients()
        return self.parameters.intercept + float(np.dot(beta, self._x))

    def mean(self) -> float:
        """μ = g⁻¹(η), validated against the family's domain.

        Raises:
            DomainError: If η is invalid for the inverse link or μ falls
                outside the family's domain.  Never clamped.
        """
        mu = links.inverse(self.link, self.linear_predictor())
        families.validate_mean(self.family, mu)
        return mu

    def link_derivative(self) -> float:
        """dμ/dη at the current linear predictor."""
        return links.derivative(self.link, self.linear_predictor())

    # ---- Distribution ------------------------------------------------

    def distribution(self) -> DistributionHandle:
        """The family distribution instantiated at the current mean."""
        return families.build_distribution(self.family, self.mean(), self.parameters.extras)

    def variance(self) -> float:
        return families.variance(self.family, self.mean(), self.parameters.extras)

    def log_density(self, x: float) -> float:
        """Log density at *x*; ``-inf`` outside the family's support.

        Raises:
            DomainError: If the current mean is invalid.
        """
        return self.distribution().log_density(x)

    def density(self, x: float) -> float:
        return self.distribution().density(x)

    def sample(self, size: int = 1, rng: np.random.Generator | None = None) -> np.ndarray:
        return self.distribution().sample(size, rng)
