"""
lqocp Systems
=============

Linear time-invariant state-space models and their structural analysis.

Quick Start
-----------
>>> from lqocp.systems import StateSpaceModel, TimeType
>>>
>>> A = np.array([[0.9, 0.1], [0.0, 0.8]])
>>> B = np.array([[0.0], [1.0]])
>>> system = StateSpaceModel(A, B, time_type=TimeType.DISCRETE)
>>> system.is_controllable()
True
>>> W = system.controllability_gramian(max_iters=500, tolerance=1e-12)

Classes
-------
StateSpaceModel
    Matrices (A, B, C, D) of a continuous- or discrete-time LTI system
StructuralAnalyzer
    Controllability/observability matrices, rank tests and Gramians
GramianResult
    Gramian estimate with its convergence history

Gramians are only defined here for discrete-time systems; continuous-time
models raise ``UnsupportedOperationError``.
"""

from .lti import StateSpaceModel, TimeType, double_integrator
from .analysis import StructuralAnalyzer, GramianResult, full_pivot_rank

__all__ = [
    "StateSpaceModel",
    "TimeType",
    "double_integrator",
    "StructuralAnalyzer",
    "GramianResult",
    "full_pivot_rank",
]
