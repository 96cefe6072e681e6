"""
Solver Settings
===============

Tuning parameters passed through to the block-structured QP backend.

The names follow the interior-point argument struct of the sparse
OCP-QP solvers (``alpha_min``, ``mu_max``, ``iter_max``, ``mu0``).
"""

from __future__ import annotations

from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Optional

from .exceptions import InvalidInputError


# Accepted aliases, same spelling as the ``params`` dict of ``lqocp.solve``
_ALIASES = {
    "max_iterations": "iter_max",
    "max_iters": "iter_max",
    "tolerance": "mu_max",
    "tol": "mu_max",
}


@dataclass
class SolverSettings:
    """
    Interior-point pass-through parameters.

    Attributes:
        alpha_min: Minimum step size before the solver gives up
        mu_max: Target duality measure (convergence tolerance)
        iter_max: Maximum number of solver iterations
        mu0: Initial barrier parameter
        verbose: Print memory sizes and solutions

    The exact backends (sparse KKT, Riccati) take a single factorization
    step and ignore the iteration parameters; ``iter_max`` and ``mu_max``
    only reach the iterative path of ``lqocp.solve``. Every solve records
    the full settings under ``result.problem_info["settings"]``.

    Example:
        >>> settings = SolverSettings.from_dict({"max_iterations": 50})
        >>> settings.iter_max
        50
    """
    alpha_min: float = 1e-8
    mu_max: float = 1e-12
    iter_max: int = 20
    mu0: float = 2.0
    verbose: bool = False

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Reject non-positive parameters."""
        if int(self.iter_max) != self.iter_max or self.iter_max < 1:
            raise InvalidInputError(
                f"iter_max must be a positive integer, got {self.iter_max}"
            )
        self.iter_max = int(self.iter_max)
        for name in ("alpha_min", "mu_max", "mu0"):
            value = getattr(self, name)
            if not value > 0:
                raise InvalidInputError(f"{name} must be positive, got {value}")

    @classmethod
    def from_dict(cls, params: Optional[Dict[str, Any]] = None) -> "SolverSettings":
        """
        Build settings from a plain parameter dict.

        Args:
            params: Mapping of setting names (or their aliases) to values

        Returns:
            SolverSettings with defaults for missing entries
        """
        params = params or {}
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in params.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                raise InvalidInputError(f"unknown solver setting '{key}'")
            kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Return the settings as a plain dict."""
        return asdict(self)

    def to_params(self) -> Dict[str, Any]:
        """Translate to the ``params`` dict understood by ``lqocp.solve``."""
        return {
            "max_iterations": self.iter_max,
            "tolerance": self.mu_max,
            "verbose": self.verbose,
        }


def as_settings(settings: Any) -> SolverSettings:
    """Coerce ``None``, a dict or a SolverSettings into SolverSettings."""
    if settings is None:
        return SolverSettings()
    if isinstance(settings, SolverSettings):
        return settings
    if isinstance(settings, dict):
        return SolverSettings.from_dict(settings)
    raise InvalidInputError(
        f"settings must be a SolverSettings or dict, got {type(settings).__name__}"
    )
