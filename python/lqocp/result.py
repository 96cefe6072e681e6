"""
lqocp Result Classes
====================

Data classes for solver results and status.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any

import numpy as np


class Status(Enum):
    """
    Solver status codes.

    Attributes:
        OPTIMAL: Solution found within tolerance
        MAX_ITERATIONS: Maximum iteration limit reached
        NUMERICAL_ERROR: Numerical issues encountered (e.g. singular KKT)
        UNSOLVED: Problem not yet solved
        INVALID_INPUT: Problem data rejected by the backend
    """
    OPTIMAL = "optimal"
    MAX_ITERATIONS = "max_iterations"
    NUMERICAL_ERROR = "numerical_error"
    UNSOLVED = "unsolved"
    INVALID_INPUT = "invalid_input"

    def __str__(self) -> str:
        return self.value

    @property
    def is_successful(self) -> bool:
        """True if an optimal solution was found."""
        return self == Status.OPTIMAL

    @property
    def has_solution(self) -> bool:
        """True if a (possibly suboptimal) solution is available."""
        return self in (
            Status.OPTIMAL,
            Status.MAX_ITERATIONS,
        )


@dataclass
class SolveResult:
    """
    Result of solving a QP.

    Attributes:
        status: Solver status
        objective: Optimal objective value
        x: Primal solution vector (stacked decision variables)
        y: Dual solution vector (equality multipliers)
        iterations: Number of iterations performed
        solve_time: Wall clock time in seconds
        primal_residual: Final primal residual (feasibility)
        dual_residual: Final dual residual (stationarity)

    Example:
        >>> result = solver.solve()
        >>> if result.status == Status.OPTIMAL:
        ...     print(f"Optimal value: {result.objective}")
    """

    status: Status
    objective: float
    x: np.ndarray
    y: np.ndarray
    iterations: int
    solve_time: float

    # Convergence metrics
    primal_residual: float = 0.0
    dual_residual: float = 0.0

    # Optional metadata
    setup_time: float = 0.0
    problem_info: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"SolveResult(status={self.status}, "
            f"objective={self.objective:.6g}, "
            f"iterations={self.iterations}, "
            f"time={self.solve_time:.4f}s)"
        )

    def summary(self) -> str:
        """Return a formatted summary of the solve result."""
        lines = [
            "=" * 50,
            "lqocp Solve Summary",
            "=" * 50,
            f"Status:           {self.status}",
            f"Objective:        {self.objective:.10g}",
            f"Iterations:       {self.iterations}",
            f"Solve time:       {self.solve_time:.4f} s",
            f"Setup time:       {self.setup_time:.4f} s",
            "-" * 50,
            f"Primal residual:  {self.primal_residual:.6e}",
            f"Dual residual:    {self.dual_residual:.6e}",
        ]
        for key, value in self.problem_info.items():
            lines.append(f"{key + ':':<18}{value}")
        lines.append("=" * 50)
        return "\n".join(lines)

    @classmethod
    def failed(
        cls,
        status: Status,
        n: int = 0,
        m: int = 0,
        iterations: int = 0,
        problem_info: Optional[Dict[str, Any]] = None,
    ) -> "SolveResult":
        """
        Create a SolveResult for a solve that produced no usable solution.

        Primal and dual vectors are NaN-filled so they are never mistaken
        for a solution.
        """
        return cls(
            status=status,
            objective=float("nan"),
            x=np.full(n, np.nan),
            y=np.full(m, np.nan),
            iterations=iterations,
            solve_time=0.0,
            primal_residual=float("nan"),
            dual_residual=float("nan"),
            problem_info=dict(problem_info or {}),
        )
