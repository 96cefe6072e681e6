"""
Solution Extraction
===================

Copies solver output back into trajectory form.
"""

from __future__ import annotations

from typing import Dict, Optional
import numpy as np

from ..exceptions import UninitializedHorizonError, UnsupportedOperationError
from .layout import QPSolution


class SolutionExtractor:
    """
    Read access to the last QP solution.

    The solver never treats x_0 as a variable, so the extracted state
    trajectory always starts with the fixed nominal initial state. Every
    getter returns a fresh copy and can be called repeatedly without
    re-solving.
    """

    def __init__(self) -> None:
        self._sol: Optional[QPSolution] = None
        self._x0: Optional[np.ndarray] = None

    def bind(self, sol: QPSolution, x0: np.ndarray) -> None:
        """Attach the solution buffers and the fixed initial state."""
        self._sol = sol
        self._x0 = np.array(x0, dtype=np.float64)

    @property
    def is_bound(self) -> bool:
        return self._sol is not None

    def _solution(self) -> QPSolution:
        if self._sol is None:
            raise UninitializedHorizonError("no solution available, call solve() first")
        return self._sol

    def get_solution_state(self) -> np.ndarray:
        """States (N+1, n); row 0 is the fixed initial state."""
        x = self._solution().x.copy()
        x[0] = self._x0
        return x

    def get_solution_control(self) -> np.ndarray:
        """Controls (N, m)."""
        return self._solution().u.copy()

    def get_costates(self) -> np.ndarray:
        """Co-states of the dynamics constraints (N, n)."""
        return self._solution().pi.copy()

    def get_bound_multipliers(self) -> Dict[str, np.ndarray]:
        """Inequality duals per stage; empty while no constraints exist."""
        sol = self._solution()
        return {
            "lam_lb": sol.lam_lb.copy(),
            "lam_ub": sol.lam_ub.copy(),
            "lam_lg": sol.lam_lg.copy(),
            "lam_ug": sol.lam_ug.copy(),
        }

    def get_feedback(self):
        raise UnsupportedOperationError("feedback extraction not implemented")
