#!/usr/bin/env python3
"""
lqocp LQ Benchmark: Sparse KKT vs Riccati backend over growing horizons
"""

import sys
sys.path.insert(0, '../python')

import time
import numpy as np

import lqocp
from lqocp.ocp import BlockQPInterface, LQProblem, RiccatiBackend, SparseQPBackend

print(f"lqocp version: {lqocp.__version__}")
print()


def generate_lq(n, m, N, seed=42):
    """Generate a random convex LQ problem around a random nominal trajectory."""
    rng = np.random.default_rng(seed)
    problem = LQProblem(n, m, N)

    problem.x[:] = rng.standard_normal((N + 1, n))
    problem.u[:] = rng.standard_normal((N, m))
    problem.A[:] = np.eye(n) + 0.1 * rng.standard_normal((N, n, n))
    problem.B[:] = rng.standard_normal((N, n, m))
    problem.b[:] = 0.01 * rng.standard_normal((N, n))
    problem.Q[:] = np.eye(n)
    problem.R[:] = 0.1 * np.eye(m)
    problem.q[:] = rng.standard_normal((N + 1, n))
    problem.r[:] = rng.standard_normal((N, m))
    return problem


def time_backend(backend, problem, repeats=5):
    """Time set_problem (transcription) and solve separately."""
    solver = BlockQPInterface(problem.n_states, problem.n_inputs, backend=backend)
    solver.set_problem(problem)  # first call allocates

    start = time.perf_counter()
    for _ in range(repeats):
        solver.set_problem(problem)
    transcribe_time = (time.perf_counter() - start) / repeats

    start = time.perf_counter()
    for _ in range(repeats):
        result = solver.solve()
    solve_time = (time.perf_counter() - start) / repeats

    return {
        'transcribe': transcribe_time,
        'solve': solve_time,
        'objective': result.objective,
        'status': result.status.value,
        'u': solver.get_solution_control(),
    }


def benchmark_horizons():
    """Benchmark across horizon lengths."""
    print("=" * 70)
    print("LQ Horizon Benchmark")
    print("=" * 70)

    n, m = 12, 4
    horizons = [10, 50, 100, 200, 500]
    all_results = []

    for N in horizons:
        print(f"\nHorizon N={N}: n={n}, m={m}")
        problem = generate_lq(n, m, N)

        sparse_res = time_backend(SparseQPBackend(), problem)
        riccati_res = time_backend(RiccatiBackend(), problem)
        max_diff = float(np.max(np.abs(sparse_res['u'] - riccati_res['u'])))

        for name, res in (('sparse', sparse_res), ('riccati', riccati_res)):
            print(f"    {name:<8} transcribe {res['transcribe']*1000:8.2f} ms, "
                  f"solve {res['solve']*1000:8.2f} ms, obj={res['objective']:12.4f}, "
                  f"status={res['status']}")
        print(f"    max |u_sparse - u_riccati| = {max_diff:.2e}")
        all_results.append((N, sparse_res, riccati_res))

    # Summary table
    print("\n" + "=" * 70)
    print("Summary")
    print("=" * 70)
    print(f"{'N':>8} {'Sparse (ms)':>14} {'Riccati (ms)':>14} {'Ratio':>10}")
    print("-" * 70)

    for N, sparse_res, riccati_res in all_results:
        sparse_ms = sparse_res['solve'] * 1000
        riccati_ms = riccati_res['solve'] * 1000
        print(f"{N:>8} {sparse_ms:>14.2f} {riccati_ms:>14.2f} {sparse_ms / riccati_ms:>10.2f}x")


if __name__ == "__main__":
    benchmark_horizons()
