"""
Stage Memory Layout
===================

Per-stage block storage in the layout expected by horizon-structured
OCP-QP solvers.

Each block type (A, B, b, Q, S, R, q, r, ...) owns one contiguous float64
segment of a single raw allocation. The block of stage k sits at offset
``k * rows * cols`` inside its segment and is stored column-major, so
``segment[k]`` is a Fortran-contiguous view.

Solver dimensions per stage:

    nx = (0, n, n, ..., n)    # x_0 is fixed, not a decision variable
    nu = (m, m, ..., m, 0)    # no control at the final stage
    nb = ng = (0, ..., 0)     # bounds/general constraints, reserved
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import numpy as np

from ..exceptions import DimensionError, InvalidInputError
from ..utils.validation import check_horizon

# Bytes per entry
FLOAT_SIZE = np.dtype(np.float64).itemsize
INT_SIZE = np.dtype(np.int32).itemsize

# (name, count, rows, cols); cols=None marks a vector block
BlockSpec = Tuple[str, int, int, Optional[int]]


@dataclass(frozen=True)
class StageDims:
    """
    Horizon length and per-stage dimensions.

    Attributes:
        horizon: Number of stages N
        n_states: State dimension n of the LQ problem
        n_inputs: Control dimension m of the LQ problem
        n_bounds: Box constraints per stage (always 0 here)
        n_general: General constraints per stage (always 0 here)
    """
    horizon: int
    n_states: int
    n_inputs: int
    n_bounds: int = 0
    n_general: int = 0

    def __post_init__(self):
        check_horizon(self.horizon)
        if self.n_states < 1 or self.n_inputs < 1:
            raise InvalidInputError(
                f"dimensions must be positive, got n={self.n_states}, m={self.n_inputs}"
            )
        if self.n_bounds != 0 or self.n_general != 0:
            raise InvalidInputError("inequality constraints are not supported")

    @property
    def nx(self) -> Tuple[int, ...]:
        """Decision states per stage; the initial state is fixed."""
        return (0,) + (self.n_states,) * self.horizon

    @property
    def nu(self) -> Tuple[int, ...]:
        """Decision controls per stage; the final stage has none."""
        return (self.n_inputs,) * self.horizon + (0,)

    @property
    def nb(self) -> Tuple[int, ...]:
        return (self.n_bounds,) * (self.horizon + 1)

    @property
    def ng(self) -> Tuple[int, ...]:
        return (self.n_general,) * (self.horizon + 1)

    @property
    def n_variables(self) -> int:
        """Total number of primal decision variables."""
        return sum(self.nx) + sum(self.nu)

    @property
    def n_equalities(self) -> int:
        """Number of dynamics equality constraints."""
        return self.horizon * self.n_states


def qp_layout(dims: StageDims) -> List[BlockSpec]:
    """Block specs of a transcribed QP."""
    N, n, m = dims.horizon, dims.n_states, dims.n_inputs
    nb, ng = dims.n_bounds, dims.n_general
    return [
        ("A", N, n, n),
        ("B", N, n, m),
        ("b", N, n, None),
        ("Q", N + 1, n, n),
        ("S", N, m, n),
        ("R", N, m, m),
        ("q", N + 1, n, None),
        ("r", N, m, None),
        ("d_lb", N + 1, nb, None),
        ("d_ub", N + 1, nb, None),
        ("C", N + 1, ng, n),
        ("D", N + 1, ng, m),
        ("d_lg", N + 1, ng, None),
        ("d_ug", N + 1, ng, None),
    ]


def solution_layout(dims: StageDims) -> List[BlockSpec]:
    """Block specs of a QP solution."""
    N, n, m = dims.horizon, dims.n_states, dims.n_inputs
    nb, ng = dims.n_bounds, dims.n_general
    return [
        ("x", N + 1, n, None),
        ("u", N, m, None),
        ("pi", N, n, None),
        ("lam_lb", N + 1, nb, None),
        ("lam_ub", N + 1, nb, None),
        ("lam_lg", N + 1, ng, None),
        ("lam_ug", N + 1, ng, None),
    ]


def arena_nbytes(layout: Sequence[BlockSpec]) -> int:
    """Bytes needed to hold every segment of a layout."""
    total = 0
    for _, count, rows, cols in layout:
        total += count * rows * (1 if cols is None else cols) * FLOAT_SIZE
    return total


def ocp_qp_memsize(dims: StageDims) -> int:
    """Memory size of a transcribed QP, including bound index arrays."""
    return arena_nbytes(qp_layout(dims)) + sum(dims.nb) * INT_SIZE


def ocp_qp_sol_memsize(dims: StageDims) -> int:
    """Memory size of a QP solution."""
    return arena_nbytes(solution_layout(dims))


def allocate(nbytes: int) -> np.ndarray:
    """Zero-filled raw buffer of ``nbytes`` bytes."""
    return np.zeros(nbytes, dtype=np.uint8)


class StageArena:
    """
    One raw buffer carved into contiguous per-block-type segments.

    Args:
        layout: Block specs, in memory order
        memory: Raw uint8 buffer of at least ``arena_nbytes(layout)`` bytes
    """

    def __init__(self, layout: Sequence[BlockSpec], memory: np.ndarray) -> None:
        required = arena_nbytes(layout)
        if memory.dtype != np.uint8 or memory.ndim != 1:
            raise InvalidInputError("arena memory must be a 1-D uint8 buffer")
        if memory.nbytes < required:
            raise DimensionError(
                f"arena needs {required} bytes, buffer has {memory.nbytes}"
            )
        self.memory = memory
        self._segments = {}

        offset = 0
        for name, count, rows, cols in layout:
            size = count * rows * (1 if cols is None else cols) * FLOAT_SIZE
            flat = memory[offset:offset + size].view(np.float64)
            if cols is None:
                seg = flat.reshape(count, rows)
            else:
                # column-major blocks: stage k is segment[k], Fortran-contiguous
                seg = flat.reshape(count, cols, rows).transpose(0, 2, 1)
            self._segments[name] = seg
            offset += size

    def segment(self, name: str) -> np.ndarray:
        return self._segments[name]

    def names(self) -> List[str]:
        return list(self._segments)

    def fill(self, value: float = 0.0) -> None:
        for seg in self._segments.values():
            seg[...] = value


@dataclass
class StageBlocks:
    """
    Views onto the blocks of one stage. Absent blocks are None.

    At the final stage A, B, b, S, R and r are None.
    """
    A: Optional[np.ndarray]
    B: Optional[np.ndarray]
    b: Optional[np.ndarray]
    Q: np.ndarray
    S: Optional[np.ndarray]
    R: Optional[np.ndarray]
    q: np.ndarray
    r: Optional[np.ndarray]


class TranscribedQP:
    """
    Absolute-coordinate QP data of one horizon, laid out per stage.

    Attributes:
        dims: Stage dimensions
        A, B, b: Dynamics blocks, stages 0..N-1
        Q, q: State cost blocks, stages 0..N
        S, R, r: Control cost blocks, stages 0..N-1
        idxb, d_lb, d_ub, C, D, d_lg, d_ug: Constraint descriptors (empty)
    """

    def __init__(self, dims: StageDims, memory: np.ndarray) -> None:
        self.dims = dims
        self.arena = StageArena(qp_layout(dims), memory)
        for name in self.arena.names():
            setattr(self, name, self.arena.segment(name))
        self.idxb = [np.zeros(nb, dtype=np.int32) for nb in dims.nb]

    @property
    def horizon(self) -> int:
        return self.dims.horizon

    def stage(self, k: int) -> StageBlocks:
        """Blocks of stage k (0 <= k <= N)."""
        N = self.dims.horizon
        if not 0 <= k <= N:
            raise IndexError(f"stage {k} outside [0, {N}]")
        if k == N:
            return StageBlocks(None, None, None, self.Q[N], None, None, self.q[N], None)
        return StageBlocks(
            self.A[k], self.B[k], self.b[k],
            self.Q[k], self.S[k], self.R[k],
            self.q[k], self.r[k],
        )


class QPSolution:
    """
    Primal and dual solution buffers of one horizon.

    Attributes:
        x: States (N+1, n); x[0] is not written by the solver
        u: Controls (N, m)
        pi: Co-states of the dynamics constraints (N, n)
        lam_lb, lam_ub, lam_lg, lam_ug: Inequality duals (empty)
    """

    def __init__(self, dims: StageDims, memory: np.ndarray) -> None:
        self.dims = dims
        self.arena = StageArena(solution_layout(dims), memory)
        for name in self.arena.names():
            setattr(self, name, self.arena.segment(name))

    @property
    def horizon(self) -> int:
        return self.dims.horizon
