"""
lqocp: LQ Subproblems for Model-Based Optimal Control
=====================================================

lqocp represents linear (or linearized) dynamical systems and solves the
linear-quadratic subproblems that arise inside iterative optimal-control
solvers. An LQ problem given as local sensitivities around a nominal
trajectory is shifted into absolute coordinates, laid out per stage for a
horizon-structured QP backend, solved, and returned as trajectories.

Quick Start
-----------
>>> import lqocp
>>> import numpy as np
>>>
>>> system = lqocp.double_integrator(dt=0.1)
>>> problem = lqocp.LQProblem.from_time_invariant(
...     system, Q=np.eye(2), R=np.eye(1), horizon=10,
...     x_nominal=np.array([1.0, 0.0]), u_nominal=np.zeros(1),
... )
>>> solver = lqocp.BlockQPInterface(2, 1)
>>> solver.set_problem(problem)
>>> print(solver.solve().status)
optimal

Structural analysis of LTI systems:

>>> system.is_controllable()
True
>>> W = system.controllability_gramian()
"""

__version__ = "0.1.0"
__author__ = "lqocp Contributors"

# Import public API
from .systems import (
    StateSpaceModel,
    TimeType,
    StructuralAnalyzer,
    GramianResult,
    double_integrator,
)
from .ocp import (
    LQProblem,
    QPTranscriber,
    TranscribedQP,
    StageDims,
    QPBackend,
    SparseQPBackend,
    RiccatiBackend,
    SolutionExtractor,
    LQOCSolver,
    BlockQPInterface,
)
from .settings import SolverSettings
from .solver import solve
from .result import SolveResult, Status
from .exceptions import (
    LqocpError,
    NumericalError,
    DimensionError,
    InvalidInputError,
    UnsupportedOperationError,
    UninitializedHorizonError,
)

__all__ = [
    # Version
    "__version__",

    # Systems
    "StateSpaceModel",
    "TimeType",
    "StructuralAnalyzer",
    "GramianResult",
    "double_integrator",

    # LQ problems and solvers
    "LQProblem",
    "QPTranscriber",
    "TranscribedQP",
    "StageDims",
    "QPBackend",
    "SparseQPBackend",
    "RiccatiBackend",
    "SolutionExtractor",
    "LQOCSolver",
    "BlockQPInterface",
    "SolverSettings",

    # Solving
    "solve",

    # Results
    "SolveResult",
    "Status",

    # Exceptions
    "LqocpError",
    "NumericalError",
    "DimensionError",
    "InvalidInputError",
    "UnsupportedOperationError",
    "UninitializedHorizonError",
]


def info() -> str:
    """Return information about the lqocp installation."""
    import platform
    import numpy
    import scipy

    lines = [
        f"lqocp version: {__version__}",
        f"Python version: {platform.python_version()}",
        f"Platform: {platform.platform()}",
        f"NumPy version: {numpy.__version__}",
        f"SciPy version: {scipy.__version__}",
    ]
    return "\n".join(lines)
