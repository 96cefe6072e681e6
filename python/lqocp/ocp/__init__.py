"""
lqocp LQ Optimal Control
========================

Transcription of local LQ subproblems into absolute-coordinate,
horizon-structured QPs, and their solution.

Quick Start
-----------
>>> from lqocp.ocp import LQProblem, BlockQPInterface
>>> from lqocp.systems import double_integrator
>>>
>>> system = double_integrator(dt=0.1)
>>> problem = LQProblem.from_time_invariant(
...     system,
...     Q=np.diag([10.0, 1.0]),
...     R=np.array([[0.1]]),
...     horizon=20,
...     x_nominal=np.array([1.0, 0.0]),
...     u_nominal=np.zeros(1),
... )
>>> solver = BlockQPInterface(system.n_states, system.n_inputs)
>>> solver.set_problem(problem)
>>> result = solver.solve()
>>> x = solver.get_solution_state()     # (21, 2), x[0] is the initial state
>>> u = solver.get_solution_control()   # (20, 1)

Classes
-------
LQProblem
    Local LQ data around a nominal trajectory
QPTranscriber
    Re-centering into absolute coordinates and per-stage layout
BlockQPInterface
    Solver driving transcription, backend and extraction
SparseQPBackend, RiccatiBackend
    Interchangeable backends for the structured QP
SolutionExtractor
    Trajectory-form access to the last solution
"""

from .problem import LQProblem
from .layout import (
    StageDims,
    StageArena,
    StageBlocks,
    TranscribedQP,
    QPSolution,
    ocp_qp_memsize,
    ocp_qp_sol_memsize,
)
from .transcriber import QPTranscriber
from .backends import QPBackend, SparseQPBackend, RiccatiBackend
from .extractor import SolutionExtractor
from .interface import LQOCSolver, BlockQPInterface

__all__ = [
    # Problem
    "LQProblem",
    # Layout
    "StageDims",
    "StageArena",
    "StageBlocks",
    "TranscribedQP",
    "QPSolution",
    "ocp_qp_memsize",
    "ocp_qp_sol_memsize",
    # Transcription
    "QPTranscriber",
    # Backends
    "QPBackend",
    "SparseQPBackend",
    "RiccatiBackend",
    # Solvers
    "SolutionExtractor",
    "LQOCSolver",
    "BlockQPInterface",
]
