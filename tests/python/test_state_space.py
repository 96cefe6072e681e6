"""
Tests for State-Space Models.

Tests covering:
1. StateSpaceModel creation and validation
2. Fixed dimensions under mutation
3. Unsupported output computation
4. Discretization from continuous-time
5. Stability
"""

import pytest
import numpy as np


class TestStateSpaceModel:
    """Test StateSpaceModel class."""

    def test_basic_creation(self):
        """Create basic model with default C and D."""
        from lqocp.systems import StateSpaceModel, TimeType

        A = np.array([[1, 0.1], [0, 1]])
        B = np.array([[0.005], [0.1]])

        system = StateSpaceModel(A, B)

        assert system.n_states == 2
        assert system.n_inputs == 1
        assert system.time_type is TimeType.CONTINUOUS
        np.testing.assert_allclose(system.C, np.eye(2))
        np.testing.assert_allclose(system.D, np.zeros((2, 1)))

    def test_zeros(self):
        """Zero-initialized model."""
        from lqocp.systems import StateSpaceModel

        system = StateSpaceModel.zeros(3, 2, time_type="discrete")

        assert system.A.shape == (3, 3)
        assert system.B.shape == (3, 2)
        assert system.C.shape == (3, 3)
        assert system.D.shape == (3, 2)
        assert system.is_discrete
        for M in (system.A, system.B, system.C, system.D):
            assert not M.any()

    def test_time_type_from_string(self):
        """Time type accepts its string value."""
        from lqocp.systems import StateSpaceModel, TimeType

        system = StateSpaceModel(np.eye(1), np.eye(1), time_type="discrete")
        assert system.time_type is TimeType.DISCRETE

    def test_invalid_time_type(self):
        """Unknown time types are rejected."""
        from lqocp import InvalidInputError
        from lqocp.systems import StateSpaceModel

        with pytest.raises(InvalidInputError, match="time_type"):
            StateSpaceModel(np.eye(1), np.eye(1), time_type="hybrid")

    def test_invalid_dimensions(self):
        """Error on invalid dimensions."""
        from lqocp import DimensionError
        from lqocp.systems import StateSpaceModel

        A = np.array([[1, 0], [0, 1]])
        B = np.array([[1], [1], [1]])  # Wrong rows

        with pytest.raises(DimensionError, match="B rows"):
            StateSpaceModel(A, B)

        with pytest.raises(DimensionError, match="square"):
            StateSpaceModel(np.ones((2, 3)), np.ones((2, 1)))

        with pytest.raises(DimensionError, match="C must be"):
            StateSpaceModel(A, np.ones((2, 1)), C=np.ones((1, 2)))

    def test_setter_keeps_dimensions(self):
        """Matrices can be replaced but never resized."""
        from lqocp import DimensionError
        from lqocp.systems import StateSpaceModel

        system = StateSpaceModel.zeros(2, 1)
        system.A = np.eye(2)
        np.testing.assert_allclose(system.A, np.eye(2))

        with pytest.raises(DimensionError):
            system.A = np.eye(3)
        with pytest.raises(DimensionError):
            system.B = np.ones((2, 2))
        with pytest.raises(DimensionError):
            system.D = np.ones((1, 1))

        assert system.n_states == 2
        assert system.n_inputs == 1

    def test_in_place_mutation(self):
        """Accessors return the stored arrays."""
        from lqocp.systems import StateSpaceModel

        system = StateSpaceModel.zeros(2, 1)
        system.B[1, 0] = 3.0
        assert system.B[1, 0] == 3.0

    def test_derivatives(self):
        """Sensitivities of an LTI system are A and B everywhere."""
        from lqocp.systems import StateSpaceModel

        A = np.array([[0.0, 1.0], [-2.0, -0.5]])
        B = np.array([[0.0], [1.0]])
        system = StateSpaceModel(A, B)

        x = np.array([3.0, -1.0])
        u = np.array([0.2])
        np.testing.assert_allclose(system.get_derivative_state(x, u, t=4.0), A)
        np.testing.assert_allclose(system.get_derivative_control(x, u), B)

    def test_compute_output_unsupported(self):
        """Output computation fails loudly instead of returning C x + D u."""
        from lqocp import UnsupportedOperationError
        from lqocp.systems import StateSpaceModel

        system = StateSpaceModel(np.eye(2), np.ones((2, 1)))

        with pytest.raises(UnsupportedOperationError, match="manifolds"):
            system.compute_output(np.zeros(2), np.zeros(1))

    def test_copy_is_independent(self):
        """copy() is a deep clone."""
        from lqocp.systems import StateSpaceModel

        system = StateSpaceModel(np.eye(2), np.ones((2, 1)), time_type="discrete", dt=0.1)
        clone = system.copy()
        clone.A[0, 0] = 5.0

        assert system.A[0, 0] == 1.0
        assert clone.time_type is system.time_type
        assert clone.dt == 0.1


class TestStability:
    """Test stability checks for both time types."""

    def test_discrete(self):
        from lqocp.systems import StateSpaceModel

        B = np.array([[1], [1]])
        stable = StateSpaceModel(np.diag([0.9, 0.8]), B, time_type="discrete")
        unstable = StateSpaceModel(np.diag([1.1, 1.0]), B, time_type="discrete")

        assert stable.is_stable()
        assert not unstable.is_stable()

    def test_continuous(self):
        from lqocp.systems import StateSpaceModel

        B = np.array([[1], [1]])
        stable = StateSpaceModel(np.diag([-1.0, -0.1]), B)
        # stable in discrete time, not in continuous time
        unstable = StateSpaceModel(np.diag([0.9, 0.8]), B)

        assert stable.is_stable()
        assert not unstable.is_stable()


class TestDiscretization:
    """Test continuous-to-discrete conversion."""

    def test_euler_discretization(self):
        """Euler discretization."""
        from lqocp.systems import StateSpaceModel

        # Simple integrator: dx/dt = u
        Ac = np.array([[0]])
        Bc = np.array([[1]])
        dt = 0.1

        system = StateSpaceModel.from_continuous(Ac, Bc, dt, method='euler')

        # A = I + Ac*dt = [[1]]
        # B = Bc*dt = [[0.1]]
        np.testing.assert_allclose(system.A, [[1]])
        np.testing.assert_allclose(system.B, [[0.1]])
        assert system.is_discrete
        assert system.dt == dt

    def test_zoh_discretization(self):
        """Zero-order hold discretization of the double integrator."""
        from lqocp.systems import double_integrator

        dt = 0.1
        system = double_integrator(dt=dt)

        np.testing.assert_allclose(system.A, [[1, dt], [0, 1]], atol=1e-12)
        np.testing.assert_allclose(system.B, [[0.5 * dt**2], [dt]], atol=1e-12)
        assert system.is_discrete

    def test_tustin_discretization(self):
        """Tustin maps a stable continuous pole inside the unit circle."""
        from lqocp.systems import StateSpaceModel

        system = StateSpaceModel.from_continuous(
            np.array([[-2.0]]), np.array([[1.0]]), 0.1, method='tustin'
        )

        # (1 - 0.1) / (1 + 0.1)
        assert system.A[0, 0] == pytest.approx(0.9 / 1.1)
        assert system.is_stable()

    def test_carries_output_matrices(self):
        from lqocp.systems import StateSpaceModel

        C = np.array([[1.0, 0.0], [0.0, 2.0]])
        system = StateSpaceModel.from_continuous(
            np.zeros((2, 2)), np.ones((2, 1)), 0.1, C=C
        )
        np.testing.assert_allclose(system.C, C)

    def test_invalid_method(self):
        """Error on invalid discretization method."""
        from lqocp import InvalidInputError
        from lqocp.systems import StateSpaceModel

        Ac = np.array([[0]])
        Bc = np.array([[1]])

        with pytest.raises(InvalidInputError, match="Unknown discretization method"):
            StateSpaceModel.from_continuous(Ac, Bc, 0.1, method='invalid')

    def test_continuous_double_integrator(self):
        """Without dt the canonical continuous form is returned."""
        from lqocp.systems import double_integrator

        system = double_integrator()

        assert not system.is_discrete
        np.testing.assert_allclose(system.A, [[0, 1], [0, 0]])
        np.testing.assert_allclose(system.B, [[0], [1]])
