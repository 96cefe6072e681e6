"""
QP Transcription
================

Shifts an LQ problem given in local coordinates (deviations from a nominal
trajectory) into the absolute-coordinate QP consumed by block-structured
solvers, and writes it into the solver's per-stage layout.

For interior stages 1 <= k < N:

    b~_k = b_k + x_{k+1} - A_k x_k - B_k u_k
    q~_k = q_k - Q_k x_k - P_k' u_k
    r~_k = r_k - R_k u_k - P_k x_k

Stage 0 holds the fixed initial state, so A_0 x_0 and P_0 x_0 are constants:

    b~_0 = b_0 + x_1 - B_0 u_0
    r~_0 = r_0 - R_0 u_0                (general formula + P_0 x_0)

The final stage has no control:

    q~_N = q_N - Q_N x_N                S_N, R_N, r~_N absent

The shift is exact: the absolute QP's minimizer is the local minimizer
offset by the nominal trajectory.
"""

from __future__ import annotations

from typing import Callable, Optional
import numpy as np

from ..exceptions import DimensionError, UninitializedHorizonError
from .layout import StageDims, TranscribedQP, allocate, ocp_qp_memsize
from .problem import LQProblem


class QPTranscriber:
    """
    Owns the transcribed-QP buffers for one horizon length.

    Args:
        n_states: State dimension n
        n_inputs: Control dimension m
        memsize: Sizing query of the target solver, ``memsize(dims) -> bytes``

    Example:
        >>> transcriber = QPTranscriber(2, 1)
        >>> transcriber.change_number_of_stages(problem.horizon)
        >>> qp = transcriber.transcribe(problem)
        >>> qp.stage(problem.horizon).R is None
        True
    """

    def __init__(
        self,
        n_states: int,
        n_inputs: int,
        memsize: Callable[[StageDims], int] = ocp_qp_memsize,
    ) -> None:
        self.n_states = n_states
        self.n_inputs = n_inputs
        self._memsize = memsize
        self.dims: Optional[StageDims] = None
        self.qp: Optional[TranscribedQP] = None
        self.qp_size = 0
        self.allocations = 0

    @property
    def horizon(self) -> Optional[int]:
        """Current horizon length, None until set."""
        return None if self.dims is None else self.dims.horizon

    def change_number_of_stages(self, horizon: int) -> bool:
        """
        Size the QP buffers for a horizon length.

        Queries the memory size, allocates one raw buffer and lays the
        stage blocks out in it. Keeps the existing buffers if the horizon
        is unchanged.

        Returns:
            True if new buffers were allocated
        """
        if self.dims is not None and horizon == self.dims.horizon:
            return False

        dims = StageDims(horizon, self.n_states, self.n_inputs)
        self.qp_size = self._memsize(dims)
        self.qp = TranscribedQP(dims, allocate(self.qp_size))
        self.dims = dims
        self.allocations += 1
        return True

    def transcribe(self, problem: LQProblem) -> TranscribedQP:
        """
        Write the absolute-coordinate QP of ``problem`` into the buffers.

        Raises:
            UninitializedHorizonError: If no horizon length was set
            DimensionError: If the problem does not match the buffers
        """
        if self.dims is None:
            raise UninitializedHorizonError()
        self._check_problem(problem)

        qp = self.qp
        N = self.dims.horizon
        x, u = problem.x, problem.u
        A, B, b = problem.A, problem.B, problem.b
        Q, P, R = problem.Q, problem.P, problem.R
        q, r = problem.q, problem.r

        # transcribe the affine dynamics to the absolute origin
        qp.A[:] = A
        qp.B[:] = B
        qp.b[:] = (
            b + x[1:]
            - np.einsum("kij,kj->ki", A, x[:-1])
            - np.einsum("kij,kj->ki", B, u)
        )
        # first stage: x_0 is fixed, A_0 x_0 stays in the affine term
        qp.b[0] = b[0] + x[1] - B[0] @ u[0]

        # transcribe the cost into absolute coordinates
        qp.Q[:] = Q
        qp.S[:] = P
        qp.R[:] = R
        qp.q[:N] = (
            q[:N]
            - np.einsum("kij,kj->ki", Q[:N], x[:N])
            - np.einsum("kji,kj->ki", P, u)
        )
        qp.q[N] = q[N] - Q[N] @ x[N]
        qp.r[:] = (
            r
            - np.einsum("kij,kj->ki", R, u)
            - np.einsum("kij,kj->ki", P, x[:N])
        )
        # first stage: u_0' P_0 x_0 is linear in u_0
        qp.r[0] = qp.r[0] + P[0] @ x[0]

        return qp

    def _check_problem(self, problem: LQProblem) -> None:
        dims = self.dims
        if problem.horizon != dims.horizon:
            raise DimensionError(
                f"problem horizon {problem.horizon} != transcriber horizon "
                f"{dims.horizon}; call change_number_of_stages first"
            )
        if (problem.n_states, problem.n_inputs) != (dims.n_states, dims.n_inputs):
            raise DimensionError(
                f"problem dimensions (n={problem.n_states}, m={problem.n_inputs}) "
                f"!= transcriber dimensions (n={dims.n_states}, m={dims.n_inputs})"
            )
        problem.validate()
