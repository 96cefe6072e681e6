"""
QP Backends
===========

Solvers for the transcribed, horizon-structured QP

    minimize    sum_{k=0}^{N-1} [ 1/2 x_k'Q_k x_k + u_k'S_k x_k + 1/2 u_k'R_k u_k
                                + q_k'x_k + r_k'u_k ]
                + 1/2 x_N'Q_N x_N + q_N'x_N
    subject to  x_{k+1} = A_k x_k + B_k u_k + b_k,   k = 0..N-1

where x_0 is not a decision variable (nx_0 = 0): stage 0 contributes only
``1/2 u_0'R_0 u_0 + r_0'u_0`` and ``x_1 = B_0 u_0 + b_0``.

A backend answers the sizing queries, creates its workspace, and writes the
primal solution and the co-states

    pi_{N-1} = Q_N x_N + q_N
    pi_{k-1} = Q_k x_k + S_k' u_k + q_k + A_k' pi_k

into a :class:`QPSolution`. Failures are reported through the returned
status, never raised.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import time
import numpy as np
from scipy import linalg, sparse

from ..result import SolveResult, Status
from ..settings import SolverSettings
from ..solver import solve
from .layout import (
    FLOAT_SIZE,
    QPSolution,
    StageDims,
    TranscribedQP,
    ocp_qp_memsize,
    ocp_qp_sol_memsize,
)


class QPBackend(ABC):
    """
    Interface of a block-structured QP solver.

    The caller sizes and allocates memory through the ``memsize_*`` queries
    before every structural change, then calls :meth:`solve` as often as
    needed with unchanged dimensions.
    """

    name = "abstract"

    def memsize_qp(self, dims: StageDims) -> int:
        """Bytes needed for the transcribed QP."""
        return ocp_qp_memsize(dims)

    def memsize_sol(self, dims: StageDims) -> int:
        """Bytes needed for the solution."""
        return ocp_qp_sol_memsize(dims)

    @abstractmethod
    def memsize_workspace(self, dims: StageDims, settings: SolverSettings) -> int:
        """Bytes needed for the solver workspace."""

    @abstractmethod
    def create_workspace(self, dims: StageDims, settings: SolverSettings, memory: np.ndarray):
        """Initialize the solver workspace inside ``memory``."""

    @abstractmethod
    def solve(
        self,
        qp: TranscribedQP,
        sol: QPSolution,
        workspace,
        settings: SolverSettings,
    ) -> SolveResult:
        """Solve ``qp`` and write the result into ``sol``."""


def _stage_slices(dims: StageDims):
    """
    Offsets of the stage-interleaved decision vector

        z = [u_0, x_1, u_1, ..., x_{N-1}, u_{N-1}, x_N]
    """
    N, n, m = dims.horizon, dims.n_states, dims.n_inputs
    x_idx = [None] * (N + 1)
    u_idx = [None] * N
    offset = 0
    for k in range(N + 1):
        if k > 0:
            x_idx[k] = slice(offset, offset + n)
            offset += n
        if k < N:
            u_idx[k] = slice(offset, offset + m)
            offset += m
    return x_idx, u_idx


class SparseQPBackend(QPBackend):
    """
    Assembles the stage blocks into one sparse QP and solves it with
    :func:`lqocp.solve`.

    The Hessian is block diagonal in ``z``; the dynamics form a banded
    equality constraint ``x_{k+1} - A_k x_k - B_k u_k = b_k``. The
    interior-point parameters pass through as ``max_iterations`` and
    ``tolerance``.
    """

    name = "sparse"

    def memsize_workspace(self, dims: StageDims, settings: SolverSettings) -> int:
        # KKT right-hand side and solution
        return 2 * (dims.n_variables + dims.n_equalities) * FLOAT_SIZE

    def create_workspace(self, dims, settings, memory):
        return {"dims": dims, "slices": _stage_slices(dims), "memory": memory}

    def assemble(self, qp: TranscribedQP):
        """
        Build (P, c, A_eq, b_eq) of the stacked QP.

        Returns:
            Tuple of sparse Hessian, linear cost, sparse dynamics matrix
            and dynamics right-hand side
        """
        dims = qp.dims
        N, n, m = dims.horizon, dims.n_states, dims.n_inputs
        x_idx, u_idx = _stage_slices(dims)

        # Hessian blocks in z-order: R_0, [Q_k S_k'; S_k R_k] for 0<k<N, Q_N
        H_blocks = [qp.R[0]]
        for k in range(1, N):
            H_blocks.append(np.block([[qp.Q[k], qp.S[k].T], [qp.S[k], qp.R[k]]]))
        H_blocks.append(qp.Q[N])
        P = sparse.block_diag(H_blocks, format='csr')

        c = np.zeros(dims.n_variables)
        c[u_idx[0]] = qp.r[0]
        for k in range(1, N):
            c[x_idx[k]] = qp.q[k]
            c[u_idx[k]] = qp.r[k]
        c[x_idx[N]] = qp.q[N]

        # -A_k x_k - B_k u_k + x_{k+1} = b_k
        A_eq = sparse.lil_matrix((dims.n_equalities, dims.n_variables))
        for k in range(N):
            rows = slice(k * n, (k + 1) * n)
            if k > 0:
                A_eq[rows, x_idx[k]] = -qp.A[k]
            A_eq[rows, u_idx[k]] = -qp.B[k]
            A_eq[rows, x_idx[k + 1]] = np.eye(n)
        b_eq = qp.b.reshape(-1).copy()

        return P, c, A_eq.tocsr(), b_eq

    def solve(self, qp, sol, workspace, settings):
        P, c, A_eq, b_eq = self.assemble(qp)
        result = solve(
            c=c,
            A=A_eq,
            b=b_eq,
            P=P,
            params=settings.to_params(),
        )
        result.problem_info.update({"backend": self.name, "horizon": qp.horizon})

        if result.status.has_solution:
            x_idx, u_idx = workspace["slices"]
            N, n = qp.horizon, qp.dims.n_states
            for k in range(1, N + 1):
                sol.x[k] = result.x[x_idx[k]]
            for k in range(N):
                sol.u[k] = result.x[u_idx[k]]
            # P z + c + A_eq' y = 0  =>  pi = -y
            sol.pi[:] = -result.y.reshape(N, n)
        return result


class RiccatiBackend(QPBackend):
    """
    Backward Riccati recursion over the stage blocks.

    For the equality-constrained QP a single backward/forward sweep is
    exact. Control Hessians are Cholesky-factorized; an indefinite Hessian
    ends the solve with ``Status.NUMERICAL_ERROR``.
    """

    name = "riccati"

    def memsize_workspace(self, dims: StageDims, settings: SolverSettings) -> int:
        N, n, m = dims.horizon, dims.n_states, dims.n_inputs
        # value function (P_k, p_k) and gains (K_k, k_k)
        return ((N + 1) * (n * n + n) + N * (m * n + m)) * FLOAT_SIZE

    def create_workspace(self, dims, settings, memory):
        N, n, m = dims.horizon, dims.n_states, dims.n_inputs
        floats = memory.view(np.float64)
        sizes = [(N + 1) * n * n, (N + 1) * n, N * m * n, N * m]
        parts = np.split(floats[:sum(sizes)], np.cumsum(sizes)[:-1])
        return {
            "V": parts[0].reshape(N + 1, n, n),
            "v": parts[1].reshape(N + 1, n),
            "K": parts[2].reshape(N, m, n),
            "k": parts[3].reshape(N, m),
        }

    def solve(self, qp, sol, workspace, settings):
        start_time = time.perf_counter()
        N = qp.horizon
        V, v = workspace["V"], workspace["v"]
        K, kff = workspace["K"], workspace["k"]
        info = {"backend": self.name, "horizon": N}

        V[N] = qp.Q[N]
        v[N] = qp.q[N]
        try:
            for k in range(N - 1, -1, -1):
                A, B, b = qp.A[k], qp.B[k], qp.b[k]
                Vb = V[k + 1] @ b + v[k + 1]
                H = qp.R[k] + B.T @ V[k + 1] @ B
                h = qp.r[k] + B.T @ Vb
                chol = linalg.cho_factor(H)
                kff[k] = -linalg.cho_solve(chol, h)
                if k == 0:
                    # x_0 is fixed: no state feedback at the first stage
                    K[0] = 0.0
                    break
                G = qp.S[k] + B.T @ V[k + 1] @ A
                K[k] = -linalg.cho_solve(chol, G)
                Vk = qp.Q[k] + A.T @ V[k + 1] @ A + G.T @ K[k]
                V[k] = 0.5 * (Vk + Vk.T)
                v[k] = qp.q[k] + A.T @ Vb + G.T @ kff[k]
        except (linalg.LinAlgError, ValueError) as e:
            if settings.verbose:
                print(f"Riccati recursion failed: {e}")
            return SolveResult.failed(Status.NUMERICAL_ERROR, qp.dims.n_variables,
                                      qp.dims.n_equalities, problem_info=info)

        # forward rollout
        sol.u[0] = kff[0]
        sol.x[1] = qp.B[0] @ sol.u[0] + qp.b[0]
        for k in range(1, N):
            sol.u[k] = K[k] @ sol.x[k] + kff[k]
            sol.x[k + 1] = qp.A[k] @ sol.x[k] + qp.B[k] @ sol.u[k] + qp.b[k]
        for k in range(N):
            sol.pi[k] = V[k + 1] @ sol.x[k + 1] + v[k + 1]

        objective = self._objective(qp, sol)
        dual_res = self._stationarity(qp, sol)
        return SolveResult(
            status=Status.OPTIMAL,
            objective=objective,
            x=sol.x[1:].reshape(-1).copy(),
            y=-sol.pi.reshape(-1).copy(),
            iterations=1,
            solve_time=time.perf_counter() - start_time,
            primal_residual=0.0,
            dual_residual=dual_res,
            problem_info=info,
        )

    @staticmethod
    def _objective(qp, sol):
        N = qp.horizon
        u0 = sol.u[0]
        cost = 0.5 * u0 @ qp.R[0] @ u0 + qp.r[0] @ u0
        for k in range(1, N):
            x, u = sol.x[k], sol.u[k]
            cost += 0.5 * x @ qp.Q[k] @ x + u @ qp.S[k] @ x + 0.5 * u @ qp.R[k] @ u
            cost += qp.q[k] @ x + qp.r[k] @ u
        cost += 0.5 * sol.x[N] @ qp.Q[N] @ sol.x[N] + qp.q[N] @ sol.x[N]
        return float(cost)

    @staticmethod
    def _stationarity(qp, sol):
        """Max-norm of the control gradient of the Lagrangian."""
        N = qp.horizon
        res = 0.0
        for k in range(N):
            g = qp.R[k] @ sol.u[k] + qp.r[k] + qp.B[k].T @ sol.pi[k]
            if k > 0:
                g = g + qp.S[k] @ sol.x[k]
            res = max(res, float(np.max(np.abs(g))))
        return res
