"""glmprior — Generalized-linear-model priors for MCMC samplers.

Places a prior on a vector-valued parameter whose mean is a GLM of
fixed predictors: link transforms (identity, log, logit, probit,
inverse, sqrt, inverse-squared), exponential-family distributions with
domain validation (Normal, Poisson, Binomial, Gamma, inverse Gaussian,
negative binomial), per-dimension and multi-dimension evaluators with
binary inclusion indicators, and a deterministic-coupling move that
keeps a dependent parameter aligned with the GLM mean as coefficients
change.

Public API:
    .. autosummary::
        GLMPrior
        MultiGLM
        GLMUnit
        GLMLogLinear
        PredictorSet
        GLMParameters
        FamilyExtras
        BoundedParameter
        LinkKind
        FamilyKind
        FamilySpec
        resolve_family
        register_family
        resolve_link
        CouplingMove
        SyncMove
        ProposalTransaction
        SingleIndexRandomWalk
        single_index_indicators
        MoveStatistics
        ProposalOutcome
        REJECT
        get_resize_policy
        set_resize_policy
"""

from ._config import get_resize_policy, set_resize_policy
from ._context import MoveStatistics
from ._exceptions import (
    BoundsViolation,
    ConfigError,
    DimensionError,
    DomainError,
    GLMPriorError,
    TransformError,
)
from ._results import REJECT, ProposalOutcome, RejectReason
from .coupling import CouplingMove, ProposalTransaction, SyncMove
from .families import FamilyKind, FamilySpec, register_family, resolve_family
from .glm import GLMUnit
from .links import LinkKind, resolve_link
from .log_linear import GLMLogLinear
from .multi_glm import MultiGLM
from .operators import SingleIndexRandomWalk, single_index_indicators
from .parameters import BoundedParameter, FamilyExtras, GLMParameters
from .predictors import PredictorSet
from .prior import GLMPrior

__all__ = [
    "GLMPrior",
    "MultiGLM",
    "GLMUnit",
    "GLMLogLinear",
    "PredictorSet",
    "GLMParameters",
    "FamilyExtras",
    "BoundedParameter",
    "LinkKind",
    "FamilyKind",
    "FamilySpec",
    "resolve_family",
    "register_family",
    "resolve_link",
    "CouplingMove",
    "SyncMove",
    "ProposalTransaction",
    "SingleIndexRandomWalk",
    "single_index_indicators",
    "MoveStatistics",
    "ProposalOutcome",
    "RejectReason",
    "REJECT",
    "get_resize_policy",
    "set_resize_policy",
    "GLMPriorError",
    "ConfigError",
    "TransformError",
    "DomainError",
    "DimensionError",
    "BoundsViolation",
]

__version__ = "0.1.0"
