"""lqocp generic QP solve."""

from __future__ import annotations
from typing import Any, Dict, Optional, Union
import time
import numpy as np
from scipy import sparse
from scipy.sparse import linalg as splinalg
from .exceptions import InvalidInputError, DimensionError
from .result import SolveResult, Status


def solve(
    c: np.ndarray,
    A: Optional[Union[np.ndarray, sparse.spmatrix]] = None,
    b: Optional[np.ndarray] = None,
    P: Optional[Union[np.ndarray, sparse.spmatrix]] = None,
    lb: Optional[np.ndarray] = None,
    ub: Optional[np.ndarray] = None,
    constraint_l: Optional[np.ndarray] = None,
    constraint_u: Optional[np.ndarray] = None,
    params: Optional[Dict[str, Any]] = None,
) -> SolveResult:
    """
    Solve the convex QP

        minimize    1/2 x'Px + c'x
        subject to  constraint_l <= A x <= constraint_u
                    lb <= x <= ub

    Equality-only problems without finite bounds are solved exactly through
    their sparse KKT system; everything else goes through SLSQP. The dual
    vector ``y`` satisfies ``P x + c + A' y = 0`` on the KKT path.
    """
    start_time = time.perf_counter()
    params = params or {}
    max_iters = params.get('max_iterations', params.get('max_iters', 10000))
    tol = params.get('tolerance', params.get('tol', 1e-9))
    verbose = params.get('verbose', False)

    c = np.asarray(c, dtype=np.float64).ravel()
    n = len(c)
    lb = np.full(n, -np.inf) if lb is None else np.asarray(lb, dtype=np.float64).ravel()
    ub = np.full(n, np.inf) if ub is None else np.asarray(ub, dtype=np.float64).ravel()

    if len(lb) != n or len(ub) != n:
        raise DimensionError(f"Bounds mismatch: lb={len(lb)}, ub={len(ub)}, n={n}")

    if A is not None:
        A = A.tocsr() if sparse.issparse(A) else sparse.csr_matrix(np.asarray(A, dtype=np.float64))
        if A.shape[1] != n:
            raise DimensionError(f"A columns {A.shape[1]} != n={n}")
    else:
        A = sparse.csr_matrix((0, n))
    m = A.shape[0]

    if constraint_l is not None or constraint_u is not None:
        constr_l = np.asarray(constraint_l, dtype=np.float64).ravel() if constraint_l is not None else np.full(m, -np.inf)
        constr_u = np.asarray(constraint_u, dtype=np.float64).ravel() if constraint_u is not None else np.full(m, np.inf)
    elif b is not None:
        constr_l = constr_u = np.asarray(b, dtype=np.float64).ravel()
    else:
        constr_l = constr_u = np.zeros(0)

    if len(constr_l) != m or len(constr_u) != m:
        raise DimensionError(f"Constraint bounds must have length {m}")
    if np.any(np.isnan(c)) or np.any(np.isnan(constr_l)) or np.any(np.isnan(constr_u)):
        raise InvalidInputError("problem data contains NaN values")

    if P is None:
        P = sparse.csr_matrix((n, n))
    else:
        P = P.tocsr() if sparse.issparse(P) else sparse.csr_matrix(np.asarray(P, dtype=np.float64))
        if P.shape != (n, n):
            raise DimensionError(f"P must be ({n},{n}), got {P.shape}")

    bounded = np.isfinite(lb).any() or np.isfinite(ub).any()
    equality_only = np.allclose(constr_l, constr_u, rtol=0.0, atol=1e-10)

    if not bounded and equality_only:
        result = _solve_kkt(c, A, P, constr_l, verbose)
    else:
        result = _solve_slsqp(c, A, P, lb, ub, constr_l, constr_u, max_iters, tol, verbose)

    result.solve_time = time.perf_counter() - start_time
    return result


def _solve_kkt(c, A, P, b, verbose):
    n, m = len(c), A.shape[0]
    K = sparse.bmat([[P, A.T], [A, None]], format='csc')
    rhs = np.concatenate([-c, b])
    try:
        sol = splinalg.spsolve(K, rhs)
    except (RuntimeError, ValueError) as e:
        if verbose: print(f"KKT solve failed: {e}")
        return SolveResult.failed(Status.NUMERICAL_ERROR, n, m)
    sol = np.atleast_1d(sol)
    if not np.all(np.isfinite(sol)):
        if verbose: print("KKT system is singular")
        return SolveResult.failed(Status.NUMERICAL_ERROR, n, m, iterations=1)

    x, y = sol[:n], sol[n:]
    primal_res = float(np.max(np.abs(A @ x - b), initial=0.0))
    dual_res = float(np.max(np.abs(P @ x + c + A.T @ y), initial=0.0))
    return SolveResult(status=Status.OPTIMAL, objective=float(0.5 * x @ (P @ x) + c @ x),
                       x=x, y=y, iterations=1, solve_time=0.0,
                       primal_residual=primal_res, dual_residual=dual_res)


def _solve_slsqp(c, A, P, lb, ub, constr_l, constr_u, max_iters, tol, verbose):
    from scipy.optimize import minimize
    n, m = len(c), A.shape[0]
    P_dense = P.toarray()
    A_dense = A.toarray()
    bounds = [(l if np.isfinite(l) else None, u if np.isfinite(u) else None) for l, u in zip(lb, ub)]
    constraints = []
    eq_mask = np.abs(constr_l - constr_u) < 1e-10
    if eq_mask.any():
        A_eq, b_eq = A_dense[eq_mask], constr_l[eq_mask]
        constraints.append({'type': 'eq', 'fun': lambda x, A=A_eq, b=b_eq: A @ x - b, 'jac': lambda x, A=A_eq: A})
    ineq_mask = ~eq_mask
    if ineq_mask.any():
        A_ineq = A_dense[ineq_mask]
        l_ineq, u_ineq = constr_l[ineq_mask], constr_u[ineq_mask]
        lo, hi = np.isfinite(l_ineq), np.isfinite(u_ineq)
        if lo.any():
            constraints.append({'type': 'ineq', 'fun': lambda x, A=A_ineq[lo], l=l_ineq[lo]: A @ x - l, 'jac': lambda x, A=A_ineq[lo]: A})
        if hi.any():
            constraints.append({'type': 'ineq', 'fun': lambda x, A=A_ineq[hi], u=u_ineq[hi]: u - A @ x, 'jac': lambda x, A=A_ineq[hi]: -A})
    x0 = np.clip(np.zeros(n), lb, ub)
    try:
        result = minimize(lambda x: 0.5 * x @ P_dense @ x + c @ x, x0, method='SLSQP',
                          jac=lambda x: P_dense @ x + c, bounds=bounds, constraints=constraints,
                          options={'maxiter': max_iters, 'ftol': tol})
    except (ValueError, np.linalg.LinAlgError) as e:
        if verbose: print(f"scipy QP failed: {e}")
        return SolveResult.failed(Status.NUMERICAL_ERROR, n, m)

    x = result.x
    viol = np.concatenate([constr_l - A_dense @ x, A_dense @ x - constr_u, lb - x, x - ub])
    primal_res = float(np.max(np.maximum(viol[np.isfinite(viol)], 0.0), initial=0.0))
    return SolveResult(status=Status.OPTIMAL if result.success else Status.MAX_ITERATIONS,
                       objective=float(result.fun), x=x, y=np.zeros(m), iterations=int(result.nit),
                       solve_time=0.0, primal_residual=primal_res)
