"""Process-wide configuration for the glmprior package.

Controls how vector-length mismatches between the predictor set and the
coefficient / indicator vectors are handled when a model is built.

Resolution order (first match wins):
    1. Programmatic override via :func:`set_resize_policy`.
    2. The ``GLMPRIOR_RESIZE_POLICY`` environment variable.
    3. The default, ``"lenient"``.

Valid policy names are ``"lenient"`` and ``"strict"`` (case-insensitive);
``"auto"`` clears a programmatic override.

* ``"lenient"`` — coefficient vectors that are too short or too long are
  resized to the number of predictors, appending ``0.0`` (coefficients)
  or ``False`` (indicators).  A ``UserWarning`` is emitted every time.
* ``"strict"`` — any length mismatch raises
  :class:`~glmprior.ConfigError`.

Individual constructors accept a ``resize=`` argument that takes
precedence over the process-wide policy.

Examples:
    Fail fast on mismatched coefficient vectors from the shell::

        export GLMPRIOR_RESIZE_POLICY=strict

    The same, programmatically::

        import glmprior
        glmprior.set_resize_policy("strict")

    Restore the default resolution order::

        glmprior.set_resize_policy("auto")
"""

from __future__ import annotations

import os

_VALID_POLICIES = {"lenient", "strict", "auto"}

_DEFAULT_POLICY = "lenient"

_ENV_VAR = "GLMPRIOR_RESIZE_POLICY"

# Sentinel indicating "no programmatic override has been set".
_policy_override: str | None = None


def get_resize_policy() -> str:
    """Return the active resize policy (``"lenient"`` or ``"strict"``).

    Resolution order:
        1. Value set by :func:`set_resize_policy` (unless ``"auto"``).
        2. ``GLMPRIOR_RESIZE_POLICY`` environment variable.
        3. ``"lenient"``.

    Returns:
        ``"lenient"`` or ``"strict"``.
    """
    # 1. Programmatic override
    if _policy_override is not None and _policy_override != "auto":
        return _policy_override

    # 2. Environment variable
    env = os.environ.get(_ENV_VAR, "").strip().lower()
    if env in ("lenient", "strict"):
        return env

    # 3. Default
    return _DEFAULT_POLICY


def set_resize_policy(name: str) -> None:
    """Override the resize policy.

    Args:
        name: One of ``"lenient"``, ``"strict"``, or ``"auto"``
            (case-insensitive).  ``"auto"`` restores the default
            resolution order.

    Raises:
        ValueError: If *name* is not a recognised policy.
    """
    global _policy_override
    normalised = name.strip().lower()
    if normalised not in _VALID_POLICIES:
        raise ValueError(
            f"Unknown resize policy '{name}'. Choose from: {sorted(_VALID_POLICIES)}"
        )
    _policy_override = normalised


def resolve_resize_policy(resize: str | bool | None) -> str:
    """Resolve a per-object ``resize=`` argument to a policy name.

    ``None`` defers to :func:`get_resize_policy`.  Booleans are accepted
    as shorthand: ``True`` → ``"lenient"``, ``False`` → ``"strict"``.

    Raises:
        ValueError: If *resize* is a string that is not a policy name.
    """
    if resize is None:
        return get_resize_policy()
    if isinstance(resize, bool):
        return "lenient" if resize else "strict"
    normalised = resize.strip().lower()
    if normalised == "auto":
        return get_resize_policy()
    if normalised not in ("lenient", "strict"):
        raise ValueError(
            f"Unknown resize policy '{resize}'. Choose from: {sorted(_VALID_POLICIES)}"
        )
    return normalised
