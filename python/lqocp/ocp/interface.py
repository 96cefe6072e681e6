"""
LQ Optimal-Control Solvers
==========================

Solver interface for LQ problems and its block-structured QP
implementation.

Call sequence:

    solver.configure(settings)      # optional, tuning pass-through
    solver.set_problem(problem)     # resize if N changed, then transcribe
    result = solver.solve()         # one blocking call
    x = solver.get_solution_state()
    u = solver.get_solution_control()

Instances are single-threaded: buffers are mutated in place and a solver
must not be shared between concurrent solves.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import numpy as np

from ..exceptions import DimensionError, UninitializedHorizonError
from ..result import SolveResult
from ..settings import SolverSettings, as_settings
from .backends import QPBackend, SparseQPBackend
from .extractor import SolutionExtractor
from .layout import QPSolution, StageDims, TranscribedQP, allocate
from .problem import LQProblem
from .transcriber import QPTranscriber


class LQOCSolver(ABC):
    """
    Base class of LQ optimal-control solvers.

    Subclasses implement the transcription in :meth:`_set_problem_impl`
    and the solve/extraction methods.
    """

    def __init__(self) -> None:
        self.lq_problem: Optional[LQProblem] = None

    def set_problem(self, problem: LQProblem) -> None:
        """Hand a problem to the solver; it is read during this call."""
        # a failed transcription leaves no usable problem behind
        self.lq_problem = None
        self._set_problem_impl(problem)
        self.lq_problem = problem

    @abstractmethod
    def _set_problem_impl(self, problem: LQProblem) -> None:
        ...

    @abstractmethod
    def configure(self, settings: Any) -> None:
        ...

    @abstractmethod
    def solve(self) -> SolveResult:
        ...

    @abstractmethod
    def get_solution_state(self) -> np.ndarray:
        ...

    @abstractmethod
    def get_solution_control(self) -> np.ndarray:
        ...

    @abstractmethod
    def get_feedback(self) -> np.ndarray:
        ...


class BlockQPInterface(LQOCSolver):
    """
    LQ solver backed by a horizon-structured QP backend.

    Args:
        n_states: State dimension n
        n_inputs: Control dimension m
        backend: QP backend (default: SparseQPBackend)
        settings: SolverSettings or dict (default: SolverSettings())

    Example:
        >>> solver = BlockQPInterface(2, 1)
        >>> solver.set_problem(problem)
        >>> result = solver.solve()
        >>> x = solver.get_solution_state()    # (N+1, 2), x[0] == problem.x[0]
        >>> u = solver.get_solution_control()  # (N, 1)
    """

    def __init__(
        self,
        n_states: int,
        n_inputs: int,
        backend: Optional[QPBackend] = None,
        settings: Optional[Any] = None,
    ) -> None:
        super().__init__()
        self.n_states = n_states
        self.n_inputs = n_inputs
        self.backend = backend if backend is not None else SparseQPBackend()
        self.settings = as_settings(settings)
        self.transcriber = QPTranscriber(n_states, n_inputs, memsize=self.backend.memsize_qp)
        self.extractor = SolutionExtractor()

        self.solution: Optional[QPSolution] = None
        self.workspace = None
        self.qp_sol_size = 0
        self.ipm_size = 0
        self.last_result: Optional[SolveResult] = None
        self._transcribed = False

    @property
    def horizon(self) -> Optional[int]:
        return self.transcriber.horizon

    @property
    def dims(self) -> Optional[StageDims]:
        return self.transcriber.dims

    @property
    def qp(self) -> Optional[TranscribedQP]:
        return self.transcriber.qp

    def configure(self, settings: Any) -> None:
        """Set solver settings from a SolverSettings or a dict."""
        self.settings = as_settings(settings)

    def change_number_of_stages(self, horizon: int) -> bool:
        """
        Resize all buffers for a new horizon length.

        For each of QP, solution and workspace: query the size, allocate a
        raw buffer, initialize the structure in it. Nothing is reallocated
        if the horizon is unchanged.

        Returns:
            True if buffers were reallocated
        """
        if not self.transcriber.change_number_of_stages(horizon):
            return False

        dims = self.transcriber.dims
        verbose = self.settings.verbose
        if verbose: print(f"qp_size: {self.transcriber.qp_size}")

        self.qp_sol_size = self.backend.memsize_sol(dims)
        if verbose: print(f"qp_sol_size: {self.qp_sol_size}")
        self.solution = QPSolution(dims, allocate(self.qp_sol_size))

        self.ipm_size = self.backend.memsize_workspace(dims, self.settings)
        if verbose: print(f"ipm_size: {self.ipm_size}")
        self.workspace = self.backend.create_workspace(dims, self.settings, allocate(self.ipm_size))

        # previous problem and solution belong to the old horizon
        self.extractor = SolutionExtractor()
        self.last_result = None
        self.lq_problem = None
        self._transcribed = False
        return True

    def _set_problem_impl(self, problem: LQProblem) -> None:
        if (problem.n_states, problem.n_inputs) != (self.n_states, self.n_inputs):
            raise DimensionError(
                f"problem dimensions (n={problem.n_states}, m={problem.n_inputs}) "
                f"!= solver dimensions (n={self.n_states}, m={self.n_inputs})"
            )
        self.change_number_of_stages(problem.horizon)
        self._transcribed = False
        self.transcriber.transcribe(problem)
        self._transcribed = True

    def solve(self) -> SolveResult:
        """
        Solve the transcribed QP.

        Solver failures are returned in the result status and are not
        retried.

        Raises:
            UninitializedHorizonError: If no problem was transcribed into the
                current buffers
        """
        if self.lq_problem is None or not self._transcribed:
            raise UninitializedHorizonError()

        result = self.backend.solve(self.qp, self.solution, self.workspace, self.settings)
        result.problem_info["settings"] = self.settings.to_dict()
        if not result.status.has_solution:
            # never hand out the trajectories of an earlier solve
            self.solution.arena.fill(np.nan)
        self.extractor.bind(self.solution, self.lq_problem.x[0])
        self.last_result = result
        return result

    def get_solution_state(self) -> np.ndarray:
        """States (N+1, n) of the last solve, starting at the initial state."""
        return self.extractor.get_solution_state()

    def get_solution_control(self) -> np.ndarray:
        """Controls (N, m) of the last solve."""
        return self.extractor.get_solution_control()

    def get_costates(self) -> np.ndarray:
        """Dynamics co-states (N, n) of the last solve."""
        return self.extractor.get_costates()

    def get_bound_multipliers(self) -> Dict[str, np.ndarray]:
        return self.extractor.get_bound_multipliers()

    def get_feedback(self) -> np.ndarray:
        """Not implemented; raises UnsupportedOperationError."""
        return self.extractor.get_feedback()

    def print_solution(self) -> None:
        """Print the per-stage solution and the iteration count."""
        x = self.get_solution_state()
        u = self.get_solution_control()
        print("\nsolution\n")
        print("\nu")
        for k in range(len(u)):
            print(np.array2string(u[k], precision=5))
        print("\nx")
        for k in range(len(x)):
            print(np.array2string(x[k], precision=5))
        if self.last_result is not None:
            print(f"\n{self.backend.name} iter = {self.last_result.iterations}")
