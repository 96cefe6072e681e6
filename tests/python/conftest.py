"""
pytest configuration and fixtures for lqocp tests.
"""

import pytest
import numpy as np


# ============================================================================
# Helpers
# ============================================================================

def random_lq_problem(n=3, m=2, N=6, seed=0):
    """
    Random convex LQ problem around a random nominal trajectory.

    Every stage Hessian [[Q, P'], [P, R]] is positive definite.
    """
    from lqocp.ocp import LQProblem

    rng = np.random.default_rng(seed)
    problem = LQProblem(n, m, N)

    problem.x[:] = rng.standard_normal((N + 1, n))
    problem.u[:] = rng.standard_normal((N, m))
    problem.A[:] = np.eye(n) + 0.2 * rng.standard_normal((N, n, n))
    problem.B[:] = rng.standard_normal((N, n, m))
    problem.b[:] = 0.1 * rng.standard_normal((N, n))

    for k in range(N):
        M = rng.standard_normal((n + m, n + m))
        H = M @ M.T + (n + m) * np.eye(n + m)
        problem.Q[k] = H[:n, :n]
        problem.P[k] = H[n:, :n]
        problem.R[k] = H[n:, n:]
    M = rng.standard_normal((n, n))
    problem.Q[N] = M @ M.T + n * np.eye(n)

    problem.q[:] = rng.standard_normal((N + 1, n))
    problem.r[:] = rng.standard_normal((N, m))
    return problem


def solve_local_dense(problem):
    """
    Solve the LQ problem directly in local coordinates with a dense KKT
    system. Independent of the transcription.

    Returns:
        (x, u) absolute trajectories, x[0] equal to the nominal x_0
    """
    N, n, m = problem.horizon, problem.n_states, problem.n_inputs
    n_u, n_x = N * m, N * n
    nz = n_u + n_x

    def ui(k):
        return slice(k * m, (k + 1) * m)

    def xi(k):
        # dx_k for k = 1..N
        return slice(n_u + (k - 1) * n, n_u + k * n)

    H = np.zeros((nz, nz))
    g = np.zeros(nz)
    for k in range(N):
        H[ui(k), ui(k)] += problem.R[k]
        g[ui(k)] += problem.r[k]
        if k > 0:
            H[xi(k), xi(k)] += problem.Q[k]
            g[xi(k)] += problem.q[k]
            H[ui(k), xi(k)] += problem.P[k]
            H[xi(k), ui(k)] += problem.P[k].T
    H[xi(N), xi(N)] += problem.Q[N]
    g[xi(N)] += problem.q[N]

    # dx_{k+1} - A_k dx_k - B_k du_k = b_k
    E = np.zeros((n_x, nz))
    e = problem.b.reshape(-1).copy()
    for k in range(N):
        rows = slice(k * n, (k + 1) * n)
        E[rows, xi(k + 1)] = np.eye(n)
        E[rows, ui(k)] = -problem.B[k]
        if k > 0:
            E[rows, xi(k)] = -problem.A[k]

    K = np.block([[H, E.T], [E, np.zeros((n_x, n_x))]])
    sol = np.linalg.solve(K, np.concatenate([-g, e]))
    z = sol[:nz]

    du = z[:n_u].reshape(N, m)
    dx = np.vstack([np.zeros(n), z[n_u:].reshape(N, n)])
    return problem.x + dx, problem.u + du


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def discrete_double_integrator():
    """Double integrator discretized with zero-order hold, dt = 0.1."""
    from lqocp.systems import double_integrator
    return double_integrator(dt=0.1)


@pytest.fixture
def stable_system():
    """
    Strictly stable discrete system with spectral radius 0.5.

    A = diag(0.5, 0.3), B = [1, 1]', C = I
    """
    from lqocp.systems import StateSpaceModel, TimeType
    A = np.diag([0.5, 0.3])
    B = np.array([[1.0], [1.0]])
    return StateSpaceModel(A, B, time_type=TimeType.DISCRETE)


@pytest.fixture
def lq_problem():
    """Random convex LQ problem, n=3, m=2, N=6."""
    return random_lq_problem()


@pytest.fixture
def make_lq_problem():
    """Factory for random LQ problems."""
    return random_lq_problem


@pytest.fixture
def local_reference():
    """Dense reference solver working in local coordinates."""
    return solve_local_dense


@pytest.fixture
def tracking_problem(discrete_double_integrator):
    """
    Double integrator tracking problem with an affine offset and a
    non-trivial nominal trajectory.
    """
    from lqocp.ocp import LQProblem

    N = 15
    rng = np.random.default_rng(7)
    return LQProblem.from_time_invariant(
        discrete_double_integrator,
        Q=np.diag([10.0, 1.0]),
        R=np.array([[0.1]]),
        horizon=N,
        x_nominal=rng.standard_normal((N + 1, 2)),
        u_nominal=rng.standard_normal((N, 1)),
        Q_final=np.diag([50.0, 5.0]),
        offset=np.array([0.0, -0.0981]),
        x_ref=np.array([1.0, 0.0]),
    )


# ============================================================================
# Markers
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")
