"""
Structural Analysis
===================

Controllability and observability of LTI systems.

- Controllability matrix  CO = [B, AB, A^2 B, ..., A^{n-1} B]
- Observability matrix    O  = [C; CA; CA^2; ...; CA^{n-1}]
- Discrete-time Gramians by fixed-point summation

The rank tests are a direct rank computation and inherit its numerical
sensitivity for large or badly scaled systems.
"""

from __future__ import annotations

from dataclasses import dataclass
import numpy as np
from scipy import linalg

from ..exceptions import UnsupportedOperationError
from .lti import StateSpaceModel


@dataclass
class GramianResult:
    """
    Gramian estimate with its convergence history.

    Attributes:
        gramian: Last Gramian iterate (n, n)
        iterations: Number of accumulated terms
        residuals: Entrywise 1-norm of every increment
        converged: True if the increment fell below the tolerance
    """
    gramian: np.ndarray
    iterations: int
    residuals: np.ndarray
    converged: bool


def full_pivot_rank(M: np.ndarray) -> int:
    """
    Numerical rank from a column-pivoted QR factorization.

    A diagonal entry of R counts if it exceeds
    ``eps * min(rows, cols) * |R_00|``.
    """
    M = np.asarray(M, dtype=np.float64)
    if M.size == 0:
        return 0
    R = linalg.qr(M, mode="r", pivoting=True)[0]
    diag = np.abs(np.diag(R))
    if diag[0] == 0.0:
        return 0
    threshold = np.finfo(np.float64).eps * min(M.shape) * diag[0]
    return int(np.sum(diag > threshold))


class StructuralAnalyzer:
    """
    Structural properties of a StateSpaceModel.

    Args:
        model: System to analyze

    Example:
        >>> analyzer = StructuralAnalyzer(double_integrator(dt=0.1))
        >>> analyzer.is_controllable()
        True
    """

    def __init__(self, model: StateSpaceModel) -> None:
        self.model = model

    def controllability_matrix(self) -> np.ndarray:
        """
        Controllability matrix (n, n*m).

        Block i is ``A @ block_{i-1}``, starting from B.
        """
        A, B = self.model.A, self.model.B
        n, m = B.shape
        CO = np.zeros((n, n * m))
        if n == 0:
            return CO
        CO[:, :m] = B
        for i in range(1, n):
            CO[:, i * m:(i + 1) * m] = A @ CO[:, (i - 1) * m:i * m]
        return CO

    def is_controllable(self) -> bool:
        """True iff the controllability matrix has full row rank n."""
        return full_pivot_rank(self.controllability_matrix()) == self.model.n_states

    def observability_matrix(self) -> np.ndarray:
        """
        Observability matrix (n*p, n), blocks stacked by rows.

        Block i is ``block_{i-1} @ A``, starting from C.
        """
        A, C = self.model.A, self.model.C
        p, n = C.shape
        O = np.zeros((n * p, n))
        if n == 0:
            return O
        O[:p, :] = C
        for i in range(1, n):
            O[i * p:(i + 1) * p, :] = O[(i - 1) * p:i * p, :] @ A
        return O

    def is_observable(self) -> bool:
        """True iff the observability matrix has full column rank n."""
        return full_pivot_rank(self.observability_matrix()) == self.model.n_states

    def controllability_gramian(
        self,
        max_iters: int = 100,
        tolerance: float = 1e-9,
        full_output: bool = False,
    ):
        """
        Discrete-time controllability Gramian.

        Accumulates ``CG += A^i B B^T (A^i)^T`` until the entrywise 1-norm of
        the increment drops below ``tolerance`` or ``max_iters`` terms were
        added. Hitting ``max_iters`` is not an error; inspect the residuals
        via ``full_output=True``.

        Args:
            max_iters: Maximum number of terms
            tolerance: Stopping threshold on the increment norm
            full_output: Return a GramianResult instead of the matrix

        Raises:
            UnsupportedOperationError: For continuous-time models
        """
        if not self.model.is_discrete:
            raise UnsupportedOperationError(
                "computation of controllability Gramian not implemented "
                "for continuous-time systems yet"
            )
        B = self.model.B
        return self._fixed_point_gramian(
            lambda A_pow: A_pow @ B @ B.T @ A_pow.T,
            max_iters, tolerance, full_output,
        )

    def observability_gramian(
        self,
        max_iters: int = 100,
        tolerance: float = 1e-9,
        full_output: bool = False,
    ):
        """
        Discrete-time observability Gramian.

        Accumulates ``OG += (A^i)^T C^T C A^i``; stopping rule and return
        value as in :meth:`controllability_gramian`.

        Raises:
            UnsupportedOperationError: For continuous-time models
        """
        if not self.model.is_discrete:
            raise UnsupportedOperationError(
                "computation of observability Gramian not implemented "
                "for continuous-time systems yet"
            )
        C = self.model.C
        return self._fixed_point_gramian(
            lambda A_pow: A_pow.T @ C.T @ C @ A_pow,
            max_iters, tolerance, full_output,
        )

    def _fixed_point_gramian(self, term, max_iters, tolerance, full_output):
        A = self.model.A
        n = self.model.n_states

        G_prev = np.zeros((n, n))
        G = np.zeros((n, n))
        A_pow = np.eye(n)
        residuals = []
        converged = False

        n_iters = 0
        while n_iters < max_iters:
            G = G_prev + term(A_pow)

            # entrywise 1-norm of the increment
            norm1 = np.abs(G - G_prev).sum()
            residuals.append(norm1)
            if norm1 < tolerance:
                converged = True
                break

            A_pow = A_pow @ A
            G_prev = G
            n_iters += 1

        if full_output:
            return GramianResult(
                gramian=G,
                iterations=len(residuals),
                residuals=np.asarray(residuals),
                converged=converged,
            )
        return G
