"""
Tests for the Stage Memory Layout.

Tests covering:
1. Per-stage solver dimensions
2. Memory size queries
3. Segment views into the raw buffer
"""

import pytest
import numpy as np


class TestStageDims:
    """Per-stage dimension vectors."""

    def test_dimension_vectors(self):
        from lqocp.ocp import StageDims

        dims = StageDims(horizon=4, n_states=3, n_inputs=2)

        assert dims.nx == (0, 3, 3, 3, 3)
        assert dims.nu == (2, 2, 2, 2, 0)
        assert dims.nb == (0,) * 5
        assert dims.ng == (0,) * 5
        assert dims.n_variables == 4 * 3 + 4 * 2
        assert dims.n_equalities == 12

    def test_single_stage(self):
        from lqocp.ocp import StageDims

        dims = StageDims(1, 2, 1)
        assert dims.nx == (0, 2)
        assert dims.nu == (1, 0)

    def test_inequalities_rejected(self):
        from lqocp import InvalidInputError
        from lqocp.ocp import StageDims

        with pytest.raises(InvalidInputError, match="inequality"):
            StageDims(3, 2, 1, n_bounds=2)
        with pytest.raises(InvalidInputError, match="inequality"):
            StageDims(3, 2, 1, n_general=1)

    def test_invalid_horizon(self):
        from lqocp import InvalidInputError
        from lqocp.ocp import StageDims

        with pytest.raises(InvalidInputError):
            StageDims(0, 2, 1)


class TestMemsize:
    """Sizing queries."""

    def test_qp_memsize(self):
        from lqocp.ocp import StageDims
        from lqocp.ocp.layout import FLOAT_SIZE, ocp_qp_memsize

        N, n, m = 5, 3, 2
        dims = StageDims(N, n, m)
        floats = (
            N * n * n + N * n * m + N * n        # A, B, b
            + (N + 1) * n * n + N * m * n        # Q, S
            + N * m * m + (N + 1) * n + N * m    # R, q, r
        )
        assert ocp_qp_memsize(dims) == floats * FLOAT_SIZE

    def test_sol_memsize(self):
        from lqocp.ocp import StageDims
        from lqocp.ocp.layout import FLOAT_SIZE, ocp_qp_sol_memsize

        N, n, m = 5, 3, 2
        dims = StageDims(N, n, m)
        assert ocp_qp_sol_memsize(dims) == ((N + 1) * n + N * m + N * n) * FLOAT_SIZE


class TestStageViews:
    """Blocks are views into one raw allocation."""

    @pytest.fixture
    def qp(self):
        from lqocp.ocp import StageDims, TranscribedQP
        from lqocp.ocp.layout import allocate, ocp_qp_memsize

        dims = StageDims(4, 3, 2)
        return TranscribedQP(dims, allocate(ocp_qp_memsize(dims)))

    def test_shapes(self, qp):
        assert qp.A.shape == (4, 3, 3)
        assert qp.B.shape == (4, 3, 2)
        assert qp.S.shape == (4, 2, 3)
        assert qp.Q.shape == (5, 3, 3)
        assert qp.q.shape == (5, 3)
        assert qp.r.shape == (4, 2)
        assert qp.d_lb.shape == (5, 0)
        assert len(qp.idxb) == 5
        assert all(idx.size == 0 and idx.dtype == np.int32 for idx in qp.idxb)

    def test_blocks_column_major(self, qp):
        for k in range(4):
            assert qp.A[k].flags["F_CONTIGUOUS"]
            assert qp.B[k].flags["F_CONTIGUOUS"]
            assert qp.S[k].flags["F_CONTIGUOUS"]

    def test_blocks_share_buffer(self, qp):
        memory = qp.arena.memory
        for name in ("A", "B", "b", "Q", "S", "R", "q", "r"):
            assert np.shares_memory(getattr(qp, name), memory)

    def test_writes_land_in_buffer(self, qp):
        """Stage k of B starts at offset k * n * m inside the B segment."""
        qp.B[2] = np.arange(6.0).reshape(3, 2)

        flat = qp.arena.memory.view(np.float64)
        start = 4 * 3 * 3 + 2 * 3 * 2  # A segment, then two B stages
        # column-major
        np.testing.assert_array_equal(flat[start:start + 6], [0, 2, 4, 1, 3, 5])

    def test_final_stage_blocks(self, qp):
        final = qp.stage(4)

        assert final.A is None
        assert final.B is None
        assert final.b is None
        assert final.S is None
        assert final.R is None
        assert final.r is None
        assert final.Q.shape == (3, 3)
        assert final.q.shape == (3,)

    def test_interior_stage_blocks(self, qp):
        stage = qp.stage(1)
        stage.R[:] = 7.0
        np.testing.assert_array_equal(qp.R[1], 7.0)

    def test_stage_out_of_range(self, qp):
        with pytest.raises(IndexError):
            qp.stage(5)
        with pytest.raises(IndexError):
            qp.stage(-1)


class TestArena:
    """Raw buffer checks."""

    def test_buffer_too_small(self):
        from lqocp import DimensionError
        from lqocp.ocp import StageDims, TranscribedQP
        from lqocp.ocp.layout import allocate, ocp_qp_memsize

        dims = StageDims(3, 2, 1)
        with pytest.raises(DimensionError, match="bytes"):
            TranscribedQP(dims, allocate(ocp_qp_memsize(dims) - 8))

    def test_wrong_buffer_dtype(self):
        from lqocp import InvalidInputError
        from lqocp.ocp import StageDims, QPSolution

        dims = StageDims(3, 2, 1)
        with pytest.raises(InvalidInputError, match="uint8"):
            QPSolution(dims, np.zeros(100))

    def test_fill(self):
        from lqocp.ocp import StageDims, QPSolution
        from lqocp.ocp.layout import allocate, ocp_qp_sol_memsize

        dims = StageDims(3, 2, 1)
        sol = QPSolution(dims, allocate(ocp_qp_sol_memsize(dims)))
        sol.arena.fill(1.5)

        np.testing.assert_array_equal(sol.x, 1.5)
        np.testing.assert_array_equal(sol.pi, 1.5)
        assert sol.x.shape == (4, 2)
        assert sol.u.shape == (3, 1)
