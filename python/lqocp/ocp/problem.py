"""
LQ Optimal-Control Problems
===========================

Time-varying linear-quadratic problems over a finite horizon N, expressed
in local coordinates around a nominal trajectory (x_k, u_k):

    minimize    sum_{k=0}^{N-1} [ 1/2 dx_k' Q_k dx_k + q_k' dx_k
                                + 1/2 du_k' R_k du_k + r_k' du_k
                                + du_k' P_k dx_k ]
                + 1/2 dx_N' Q_N dx_N + q_N' dx_N
    subject to  dx_{k+1} = A_k dx_k + B_k du_k + b_k
                dx_0 = 0

with dx_k = x - x_k and du_k = u - u_k. Stage 0's state is the fixed
initial condition and stage N carries no control.
"""

from __future__ import annotations

from typing import Optional, Union
import numpy as np

from ..exceptions import DimensionError, InvalidInputError
from ..systems.lti import StateSpaceModel
from ..utils.validation import (
    as_matrix,
    as_trajectory,
    as_vector,
    check_finite,
    check_horizon,
)


class LQProblem:
    """
    Container for a time-varying LQ problem.

    All data is stored as stacked numpy arrays and may be written in place,
    e.g. ``problem.A[k] = A_k``.

    Attributes:
        x: Nominal states (N+1, n); x[0] is the fixed initial state
        u: Nominal controls (N, m)
        A: State sensitivities (N, n, n)
        B: Control sensitivities (N, n, m)
        b: Affine dynamics residuals (N, n)
        Q: State cost Hessians (N+1, n, n)
        P: Control/state cross terms (N, m, n)
        R: Control cost Hessians (N, m, m)
        q: State cost gradients (N+1, n)
        r: Control cost gradients (N, m)

    Args:
        n_states: State dimension n
        n_inputs: Control dimension m
        horizon: Number of stages N

    Example:
        >>> problem = LQProblem(n_states=2, n_inputs=1, horizon=10)
        >>> problem.A[:] = np.eye(2)
        >>> problem.Q[:] = np.eye(2)
        >>> problem.R[:] = 0.1 * np.eye(1)
    """

    def __init__(self, n_states: int, n_inputs: int, horizon: int) -> None:
        if n_states < 1 or n_inputs < 1:
            raise InvalidInputError(
                f"dimensions must be positive, got n={n_states}, m={n_inputs}"
            )
        self.n_states = int(n_states)
        self.n_inputs = int(n_inputs)
        self._horizon = None
        self.change_number_of_stages(horizon)

    @property
    def horizon(self) -> int:
        """Number of stages N."""
        return self._horizon

    @property
    def number_of_stages(self) -> int:
        return self._horizon

    def change_number_of_stages(self, horizon: int) -> None:
        """
        Resize every container to a new horizon, zero-filled.

        Nothing happens if the horizon is unchanged.
        """
        N = check_horizon(horizon)
        if N == self._horizon:
            return
        self._horizon = N
        self._allocate()

    def _allocate(self) -> None:
        N, n, m = self._horizon, self.n_states, self.n_inputs
        self.x = np.zeros((N + 1, n))
        self.u = np.zeros((N, m))
        self.A = np.zeros((N, n, n))
        self.B = np.zeros((N, n, m))
        self.b = np.zeros((N, n))
        self.Q = np.zeros((N + 1, n, n))
        self.P = np.zeros((N, m, n))
        self.R = np.zeros((N, m, m))
        self.q = np.zeros((N + 1, n))
        self.r = np.zeros((N, m))

    def set_zero(self) -> None:
        """Reset all data to zero."""
        for arr in self._arrays().values():
            arr[...] = 0.0

    def _arrays(self):
        return {
            "x": self.x, "u": self.u,
            "A": self.A, "B": self.B, "b": self.b,
            "Q": self.Q, "P": self.P, "R": self.R,
            "q": self.q, "r": self.r,
        }

    def _expected_shapes(self):
        N, n, m = self._horizon, self.n_states, self.n_inputs
        return {
            "x": (N + 1, n), "u": (N, m),
            "A": (N, n, n), "B": (N, n, m), "b": (N, n),
            "Q": (N + 1, n, n), "P": (N, m, n), "R": (N, m, m),
            "q": (N + 1, n), "r": (N, m),
        }

    def validate(self) -> None:
        """
        Check shapes and finiteness of all problem data.

        Raises:
            DimensionError: If an array was replaced by one of the wrong shape
            InvalidInputError: If any entry is NaN or inf
        """
        arrays = self._arrays()
        for name, shape in self._expected_shapes().items():
            arr = np.asarray(arrays[name])
            if arr.shape != shape:
                raise DimensionError(f"{name} must be {shape}, got {arr.shape}")
            check_finite(arr, name)

    def dynamics_defects(self, x: np.ndarray, u: np.ndarray) -> np.ndarray:
        """
        Residuals of the local dynamics for an absolute trajectory.

        Args:
            x: States (N+1, n)
            u: Controls (N, m)

        Returns:
            (N, n) array of dx_{k+1} - (A_k dx_k + B_k du_k + b_k)
        """
        dx, du = self._deviations(x, u)
        pred = (
            np.einsum("kij,kj->ki", self.A, dx[:-1])
            + np.einsum("kij,kj->ki", self.B, du)
            + self.b
        )
        return dx[1:] - pred

    def evaluate_cost(self, x: np.ndarray, u: np.ndarray) -> float:
        """
        Local quadratic cost of an absolute trajectory.

        Args:
            x: States (N+1, n)
            u: Controls (N, m)

        Returns:
            Cost value
        """
        dx, du = self._deviations(x, u)
        cost = 0.0
        for k in range(self._horizon):
            cost += 0.5 * dx[k] @ self.Q[k] @ dx[k] + self.q[k] @ dx[k]
            cost += 0.5 * du[k] @ self.R[k] @ du[k] + self.r[k] @ du[k]
            cost += du[k] @ self.P[k] @ dx[k]

        # Terminal cost
        N = self._horizon
        cost += 0.5 * dx[N] @ self.Q[N] @ dx[N] + self.q[N] @ dx[N]
        return float(cost)

    def _deviations(self, x, u):
        N, n, m = self._horizon, self.n_states, self.n_inputs
        x = np.asarray(x, dtype=np.float64)
        u = np.asarray(u, dtype=np.float64)
        if x.shape != (N + 1, n):
            raise DimensionError(f"x must be ({N + 1}, {n}), got {x.shape}")
        if u.shape != (N, m):
            raise DimensionError(f"u must be ({N}, {m}), got {u.shape}")
        return x - self.x, u - self.u

    def __repr__(self) -> str:
        return (
            f"LQProblem(n_states={self.n_states}, n_inputs={self.n_inputs}, "
            f"horizon={self._horizon})"
        )

    @classmethod
    def from_time_invariant(
        cls,
        system: StateSpaceModel,
        Q: np.ndarray,
        R: np.ndarray,
        horizon: int,
        x_nominal: np.ndarray,
        u_nominal: np.ndarray,
        Q_final: Optional[np.ndarray] = None,
        P: Optional[np.ndarray] = None,
        offset: Optional[np.ndarray] = None,
        x_ref: Optional[Union[np.ndarray, float]] = None,
        u_ref: Optional[Union[np.ndarray, float]] = None,
    ) -> "LQProblem":
        """
        Build the local LQ problem of a discrete affine system and a
        quadratic tracking cost around a nominal trajectory.

        Dynamics: x_{k+1} = A x_k + B u_k + offset
        Cost:     1/2 [x - x_ref; u - u_ref]' [[Q, P'], [P, R]] [x - x_ref; u - u_ref]
                  summed over k < N, plus 1/2 (x_N - x_ref)' Q_final (x_N - x_ref)

        The local data are the defects and gradients at the nominal
        trajectory:

            b_k = A x_k + B u_k + offset - x_{k+1}
            q_k = Q (x_k - x_ref) + P' (u_k - u_ref)
            r_k = R (u_k - u_ref) + P (x_k - x_ref)

        Args:
            system: Discrete StateSpaceModel
            Q: State cost (n, n)
            R: Input cost (m, m)
            horizon: Number of stages N
            x_nominal: Nominal states, one vector or (N+1, n)
            u_nominal: Nominal controls, one vector or (N, m)
            Q_final: Terminal cost (default: Q)
            P: Cross term (m, n) (default: zero)
            offset: Affine dynamics offset (n,) (default: zero)
            x_ref: State reference, one vector or (N+1, n) (default: origin)
            u_ref: Input reference, one vector or (N, m) (default: zero)

        Returns:
            Populated LQProblem
        """
        if not system.is_discrete:
            raise InvalidInputError("from_time_invariant requires a discrete-time system")

        n, m = system.n_states, system.n_inputs
        N = check_horizon(horizon)

        Q = as_matrix(Q, "Q", (n, n))
        R = as_matrix(R, "R", (m, m))
        Q_final = Q if Q_final is None else as_matrix(Q_final, "Q_final", (n, n))
        P = np.zeros((m, n)) if P is None else as_matrix(P, "P", (m, n))
        offset = np.zeros(n) if offset is None else as_vector(offset, "offset", n)

        x_nom = as_trajectory(x_nominal, "x_nominal", N + 1, n)
        u_nom = as_trajectory(u_nominal, "u_nominal", N, m)
        x_ref = as_trajectory(np.zeros(n) if x_ref is None else x_ref, "x_ref", N + 1, n)
        u_ref = as_trajectory(np.zeros(m) if u_ref is None else u_ref, "u_ref", N, m)

        problem = cls(n, m, N)
        problem.x[:] = x_nom
        problem.u[:] = u_nom
        problem.A[:] = system.A
        problem.B[:] = system.B
        problem.Q[:N] = Q
        problem.Q[N] = Q_final
        problem.R[:] = R
        problem.P[:] = P

        dx_ref = x_nom - x_ref
        du_ref = u_nom - u_ref
        problem.b[:] = x_nom[:-1] @ system.A.T + u_nom @ system.B.T + offset - x_nom[1:]
        problem.q[:N] = dx_ref[:N] @ Q.T + du_ref @ P
        problem.q[N] = Q_final @ dx_ref[N]
        problem.r[:] = du_ref @ R.T + dx_ref[:N] @ P.T

        return problem
