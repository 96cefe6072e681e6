"""
State-Space Models
==================

Linear time-invariant systems in state-space form.

    continuous:  dx/dt   = A x + B u,    y = C x + D u
    discrete:    x_{k+1} = A x_k + B u_k, y_k = C x_k + D u_k

The state and control dimensions are fixed when the model is built; the
matrices may be replaced or mutated in place but never resized.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union
import numpy as np

from ..exceptions import DimensionError, InvalidInputError, UnsupportedOperationError
from ..utils.validation import as_matrix


class TimeType(Enum):
    """Time domain of a system."""
    DISCRETE = "discrete"
    CONTINUOUS = "continuous"

    def __str__(self) -> str:
        return self.value


def _as_time_type(value: Union[str, TimeType]) -> TimeType:
    try:
        return TimeType(value)
    except ValueError:
        raise InvalidInputError(
            f"time_type must be 'discrete' or 'continuous', got {value!r}"
        ) from None


class StateSpaceModel:
    """
    Linear time-invariant system (A, B, C, D).

    Args:
        A: State matrix (n, n)
        B: Input matrix (n, m)
        C: Output matrix (n, n), identity if omitted
        D: Feedthrough matrix (n, m), zero if omitted
        time_type: ``TimeType.CONTINUOUS`` (default) or ``TimeType.DISCRETE``
        dt: Sampling time of a discrete model (for reference only)

    Example:
        >>> A = np.array([[0.0, 1.0], [0.0, 0.0]])
        >>> B = np.array([[0.0], [1.0]])
        >>> system = StateSpaceModel(A, B)
        >>> system.is_controllable()
        True
    """

    def __init__(
        self,
        A: np.ndarray,
        B: np.ndarray,
        C: Optional[np.ndarray] = None,
        D: Optional[np.ndarray] = None,
        time_type: Union[str, TimeType] = TimeType.CONTINUOUS,
        dt: Optional[float] = None,
    ) -> None:
        A = as_matrix(A, "A")
        n = A.shape[0]
        if A.shape != (n, n):
            raise DimensionError(f"A must be square, got shape {A.shape}")
        B = as_matrix(B, "B")
        if B.shape[0] != n:
            raise DimensionError(f"B rows ({B.shape[0]}) must match A ({n})")
        m = B.shape[1]

        self._A = A
        self._B = B
        self._C = np.eye(n) if C is None else as_matrix(C, "C", (n, n))
        self._D = np.zeros((n, m)) if D is None else as_matrix(D, "D", (n, m))
        self.time_type = _as_time_type(time_type)
        self.dt = dt

    @classmethod
    def zeros(
        cls,
        n_states: int,
        n_inputs: int,
        time_type: Union[str, TimeType] = TimeType.CONTINUOUS,
    ) -> "StateSpaceModel":
        """Create a model with all four matrices set to zero."""
        model = cls(
            np.zeros((n_states, n_states)),
            np.zeros((n_states, n_inputs)),
            time_type=time_type,
        )
        model.C[:] = 0.0
        return model

    def _replace(self, name: str, value: np.ndarray) -> None:
        current = getattr(self, "_" + name)
        setattr(self, "_" + name, as_matrix(value, name, current.shape))

    @property
    def A(self) -> np.ndarray:
        """State matrix (n, n)."""
        return self._A

    @A.setter
    def A(self, value: np.ndarray) -> None:
        self._replace("A", value)

    @property
    def B(self) -> np.ndarray:
        """Input matrix (n, m)."""
        return self._B

    @B.setter
    def B(self, value: np.ndarray) -> None:
        self._replace("B", value)

    @property
    def C(self) -> np.ndarray:
        """Output matrix (n, n)."""
        return self._C

    @C.setter
    def C(self, value: np.ndarray) -> None:
        self._replace("C", value)

    @property
    def D(self) -> np.ndarray:
        """Feedthrough matrix (n, m)."""
        return self._D

    @D.setter
    def D(self, value: np.ndarray) -> None:
        self._replace("D", value)

    @property
    def n_states(self) -> int:
        """Number of states."""
        return self._A.shape[0]

    @property
    def n_inputs(self) -> int:
        """Number of inputs."""
        return self._B.shape[1]

    @property
    def is_discrete(self) -> bool:
        return self.time_type is TimeType.DISCRETE

    def __repr__(self) -> str:
        return (
            f"StateSpaceModel(n_states={self.n_states}, "
            f"n_inputs={self.n_inputs}, time_type={self.time_type})"
        )

    def get_derivative_state(self, x: np.ndarray, u: np.ndarray, t: float = 0.0) -> np.ndarray:
        """State sensitivity of the dynamics; A for every (x, u, t)."""
        return self._A

    def get_derivative_control(self, x: np.ndarray, u: np.ndarray, t: float = 0.0) -> np.ndarray:
        """Control sensitivity of the dynamics; B for every (x, u, t)."""
        return self._B

    def compute_output(self, state: np.ndarray, control: np.ndarray) -> np.ndarray:
        """
        Compute the measurement y = C x + D u.

        Raises:
            UnsupportedOperationError: Always. Output computation has not
                been ported to systems evolving on state manifolds.
        """
        raise UnsupportedOperationError(
            "compute_output() not ported to manifolds yet"
        )

    def is_stable(self) -> bool:
        """
        Check asymptotic stability.

        Discrete models need all eigenvalues inside the unit circle,
        continuous models need all eigenvalues in the open left half-plane.
        """
        eigenvalues = np.linalg.eigvals(self._A)
        if self.is_discrete:
            return bool(np.all(np.abs(eigenvalues) < 1.0))
        return bool(np.all(eigenvalues.real < 0.0))

    def copy(self) -> "StateSpaceModel":
        """Deep copy of the model."""
        return StateSpaceModel(
            self._A.copy(),
            self._B.copy(),
            self._C.copy(),
            self._D.copy(),
            time_type=self.time_type,
            dt=self.dt,
        )

    # Structural analysis, see StructuralAnalyzer

    def analyzer(self):
        """Return a StructuralAnalyzer bound to this model."""
        from .analysis import StructuralAnalyzer
        return StructuralAnalyzer(self)

    def controllability_matrix(self) -> np.ndarray:
        return self.analyzer().controllability_matrix()

    def is_controllable(self) -> bool:
        return self.analyzer().is_controllable()

    def observability_matrix(self) -> np.ndarray:
        return self.analyzer().observability_matrix()

    def is_observable(self) -> bool:
        return self.analyzer().is_observable()

    def controllability_gramian(self, max_iters: int = 100, tolerance: float = 1e-9, full_output: bool = False):
        return self.analyzer().controllability_gramian(max_iters, tolerance, full_output)

    def observability_gramian(self, max_iters: int = 100, tolerance: float = 1e-9, full_output: bool = False):
        return self.analyzer().observability_gramian(max_iters, tolerance, full_output)

    @classmethod
    def from_continuous(
        cls,
        Ac: np.ndarray,
        Bc: np.ndarray,
        dt: float,
        method: str = "zoh",
        C: Optional[np.ndarray] = None,
        D: Optional[np.ndarray] = None,
    ) -> "StateSpaceModel":
        """
        Create a discrete model from continuous-time dynamics.

        Continuous: dx/dt = Ac @ x + Bc @ u
        Discrete:   x_{k+1} = A @ x_k + B @ u_k

        Args:
            Ac: Continuous state matrix
            Bc: Continuous input matrix
            dt: Sampling time
            method: Discretization method ('zoh', 'euler', 'tustin')
            C: Output matrix, carried over unchanged
            D: Feedthrough matrix, carried over unchanged

        Returns:
            Discrete StateSpaceModel
        """
        Ac = as_matrix(Ac, "Ac")
        Bc = as_matrix(Bc, "Bc")
        if dt <= 0:
            raise InvalidInputError(f"dt must be positive, got {dt}")
        n = Ac.shape[0]

        if method == "euler":
            # Forward Euler: A = I + Ac*dt, B = Bc*dt
            A = np.eye(n) + Ac * dt
            B = Bc * dt

        elif method == "zoh":
            # Zero-Order Hold (exact discretization)
            from scipy.linalg import expm

            m = Bc.shape[1]

            # Build augmented matrix [Ac, Bc; 0, 0]
            M = np.zeros((n + m, n + m))
            M[:n, :n] = Ac * dt
            M[:n, n:] = Bc * dt

            eM = expm(M)
            A = eM[:n, :n]
            B = eM[:n, n:]

        elif method == "tustin":
            # Bilinear (Tustin) transform
            I = np.eye(n)
            inv_term = np.linalg.inv(I - (dt / 2) * Ac)
            A = inv_term @ (I + (dt / 2) * Ac)
            B = inv_term @ Bc * dt

        else:
            raise InvalidInputError(f"Unknown discretization method '{method}'")

        return cls(A, B, C, D, time_type=TimeType.DISCRETE, dt=dt)


def double_integrator(dt: Optional[float] = None) -> StateSpaceModel:
    """
    Create a double integrator (point mass) system.

    States: [position, velocity]
    Input: acceleration

    Args:
        dt: Sampling time. Without it the continuous canonical form
            A = [[0, 1], [0, 0]], B = [[0], [1]] is returned.

    Returns:
        StateSpaceModel for the double integrator
    """
    Ac = np.array([
        [0.0, 1.0],
        [0.0, 0.0]
    ])
    Bc = np.array([
        [0.0],
        [1.0]
    ])
    if dt is None:
        return StateSpaceModel(Ac, Bc)
    return StateSpaceModel.from_continuous(Ac, Bc, dt, method="zoh")
