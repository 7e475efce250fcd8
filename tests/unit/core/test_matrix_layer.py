# =============================================================================
# CFSA v1.0.0 -- CORE: MATRIX LAYER -- Unit Tests
# File:   tests/unit/core/test_matrix_layer.py
# =============================================================================
#
# Coverage:
#   determinant      Laplace (n <= 6) and LU (7..10) against numpy.linalg.det
#   singular values  Jacobi on A^T A against numpy.linalg.svd; det^2 = prod sigma^2
#   eigen_spectrum   closed form, Francis QR, power iteration, complex pairs,
#                    equal-modulus (orthogonal) spectra against numpy.linalg.eigvals
#   condition number >= 1, inf when everything is negligible
#   INV-MA-04        empty matrix -> empty analysis, no exception
# numpy is used only as an independent reference.
# =============================================================================

from __future__ import annotations

import math

import numpy as np
import pytest

from cfsa.core import matrix_layer
from cfsa.core.exceptions import (
    ConfigurationError,
    EigenConvergenceError,
    MatrixDimensionError,
)
from cfsa.core.matrix_layer import (
    EigenSolver,
    analyze_matrix,
    condition_number,
    determinant,
    eigen_spectrum,
    frobenius_norm,
    power_iteration,
    singular_values,
    symmetric_eigenvalues,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _matrix(n: int, m: int = None, seed: int = 7) -> list:
    """Deterministic well-scaled test matrix."""
    rng = np.random.default_rng(seed)
    m = n if m is None else m
    return rng.uniform(-1.0, 1.0, size=(m, n)).tolist()


def _diag(*values: float) -> list:
    n = len(values)
    return [[values[i] if i == j else 0.0 for j in range(n)] for i in range(n)]


def _rotation(axis, angle: float) -> list:
    """Rodrigues rotation matrix about `axis`."""
    k = np.array(axis, dtype=float)
    k /= np.linalg.norm(k)
    K = np.array([[0.0, -k[2], k[1]], [k[2], 0.0, -k[0]], [-k[1], k[0], 0.0]])
    return (np.eye(3) + math.sin(angle) * K + (1.0 - math.cos(angle)) * K @ K).tolist()


_CYCLIC_3 = [[0.0, 0.0, 1.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]


# ---------------------------------------------------------------------------
# Frobenius norm
# ---------------------------------------------------------------------------

class TestFrobeniusNorm:

    def test_known_value(self):
        assert frobenius_norm([[3.0, 0.0], [0.0, 4.0]]) == pytest.approx(5.0)

    def test_empty(self):
        assert frobenius_norm([]) == 0.0

    def test_matches_numpy(self):
        a = _matrix(4, 3)
        assert frobenius_norm(a) == pytest.approx(float(np.linalg.norm(a, "fro")))


# ---------------------------------------------------------------------------
# Determinant
# ---------------------------------------------------------------------------

class TestDeterminant:

    @pytest.mark.parametrize("n", [1, 2, 3, 4, 5, 6])
    def test_laplace_matches_numpy(self, n):
        a = _matrix(n, seed=n)
        assert determinant(a) == pytest.approx(float(np.linalg.det(a)), rel=1e-9, abs=1e-12)

    @pytest.mark.parametrize("n", [7, 8, 10])
    def test_lu_matches_numpy(self, n):
        a = _matrix(n, seed=n)
        assert determinant(a) == pytest.approx(float(np.linalg.det(a)), rel=1e-9, abs=1e-12)

    def test_singular_matrix_is_zero(self):
        assert determinant([[1.0, 2.0], [2.0, 4.0]]) == pytest.approx(0.0)

    def test_singular_large_matrix_is_zero(self):
        a = _matrix(8)
        a[3] = list(a[0])
        assert determinant(a) == pytest.approx(0.0, abs=1e-12)

    def test_row_swap_sign(self):
        assert determinant([[0.0, 1.0], [1.0, 0.0]]) == pytest.approx(-1.0)

    def test_non_square_is_none(self):
        assert determinant([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]) is None

    def test_empty_is_zero(self):
        assert determinant([]) == 0.0

    def test_dimension_cap(self):
        with pytest.raises(MatrixDimensionError):
            determinant(_diag(*([1.0] * 11)))


# ---------------------------------------------------------------------------
# Eigenvalues
# ---------------------------------------------------------------------------

class TestEigenSpectrum:

    def test_one_by_one(self):
        spectrum = eigen_spectrum([[-3.0]])
        assert spectrum.real_parts == (-3.0,)
        assert spectrum.magnitudes == (3.0,)

    def test_two_by_two_real(self):
        spectrum = eigen_spectrum([[2.0, 1.0], [1.0, 2.0]])
        assert sorted(spectrum.real_parts) == pytest.approx([1.0, 3.0])
        assert not spectrum.has_complex

    def test_two_by_two_complex_rotation(self):
        spectrum = eigen_spectrum([[0.0, -1.0], [1.0, 0.0]])
        assert spectrum.has_complex
        assert spectrum.real_parts == pytest.approx((0.0, 0.0))
        assert spectrum.magnitudes == pytest.approx((1.0, 1.0))

    def test_qr_symmetric_matches_numpy(self):
        # Q diag(lambda) Q^T with well-separated magnitudes.
        q, _ = np.linalg.qr(np.array(_matrix(5, seed=3)))
        sym = (q @ np.diag([5.0, 3.0, 1.5, -0.7, 0.2]) @ q.T).tolist()
        spectrum = eigen_spectrum(sym, EigenSolver.QR)
        expected = sorted(np.linalg.eigvalsh(sym))
        assert sorted(spectrum.real_parts) == pytest.approx(expected, abs=1e-8)
        assert not spectrum.has_complex

    def test_qr_diagonal(self):
        spectrum = eigen_spectrum(_diag(3.0, 1.0, 2.0))
        assert sorted(spectrum.real_parts) == pytest.approx([1.0, 2.0, 3.0])

    def test_qr_complex_pair_in_3x3(self):
        a = [[0.0, -2.0, 0.0], [2.0, 0.0, 0.0], [0.0, 0.0, 5.0]]
        spectrum = eigen_spectrum(a)
        assert spectrum.has_complex
        assert sorted(spectrum.magnitudes) == pytest.approx([2.0, 2.0, 5.0])

    def test_power_iteration_dominant(self):
        spectrum = eigen_spectrum(_diag(4.0, 1.0, 2.0), EigenSolver.POWER_ITERATION)
        assert spectrum.real_parts == pytest.approx((4.0,), rel=1e-6)

    def test_power_iteration_zero_matrix(self):
        assert power_iteration([[0.0] * 3 for _ in range(3)]) == 0.0

    def test_non_square_is_none(self):
        assert eigen_spectrum([[1.0, 2.0]]) is None

    def test_symmetric_eigenvalues_sorted_descending(self):
        vals = symmetric_eigenvalues(_diag(1.0, 5.0, 3.0))
        assert vals == pytest.approx((5.0, 3.0, 1.0))


class TestEqualModulusSpectrum:
    """Orthogonal Jacobians: every eigenvalue has modulus 1."""

    def test_cyclic_permutation(self):
        spectrum = eigen_spectrum(_CYCLIC_3)
        assert spectrum.has_complex
        assert spectrum.magnitudes == pytest.approx((1.0, 1.0, 1.0), abs=1e-9)
        assert sorted(spectrum.real_parts) == pytest.approx([-0.5, -0.5, 1.0], abs=1e-9)

    def test_cyclic_permutation_analysis_consistent(self):
        analysis = analyze_matrix(_CYCLIC_3)
        assert abs(analysis.determinant) == pytest.approx(1.0)
        assert analysis.min_abs_eigenvalue == pytest.approx(1.0, abs=1e-9)

    @pytest.mark.parametrize("n", [4, 5])
    def test_cyclic_shift_of_order_n(self, n):
        shift = [[1.0 if i == (j + 1) % n else 0.0 for j in range(n)] for i in range(n)]
        spectrum = eigen_spectrum(shift)
        assert spectrum.magnitudes == pytest.approx([1.0] * n, abs=1e-8)
        expected = sorted(np.real(np.linalg.eigvals(np.array(shift))))
        assert sorted(spectrum.real_parts) == pytest.approx(expected, abs=1e-8)

    def test_rotation_about_skew_axis(self):
        r = _rotation((1.0, 2.0, 3.0), 0.7)
        spectrum = eigen_spectrum(r)
        ref = np.linalg.eigvals(np.array(r))
        assert spectrum.has_complex
        assert sorted(spectrum.magnitudes) == pytest.approx(sorted(np.abs(ref)), abs=1e-9)
        assert sorted(spectrum.real_parts) == pytest.approx(sorted(np.real(ref)), abs=1e-9)

    def test_signed_permutation(self):
        a = [[0.0, 0.0, -1.0], [1.0, 0.0, 0.0], [0.0, -1.0, 0.0]]
        spectrum = eigen_spectrum(a)
        assert spectrum.magnitudes == pytest.approx((1.0, 1.0, 1.0), abs=1e-9)


class TestGeneralSpectrum:

    @pytest.mark.parametrize("n", [3, 4, 5, 6, 7, 8, 9, 10])
    def test_nonsymmetric_matches_numpy(self, n):
        a = _matrix(n, seed=40 + n)
        spectrum = eigen_spectrum(a)
        ref = np.linalg.eigvals(np.array(a))
        assert len(spectrum.magnitudes) == n
        assert sorted(spectrum.magnitudes) == pytest.approx(sorted(np.abs(ref)), abs=1e-8)
        assert sorted(spectrum.real_parts) == pytest.approx(sorted(np.real(ref)), abs=1e-8)
        assert spectrum.has_complex == bool(np.any(np.abs(np.imag(ref)) > 1e-12))

    def test_singular_matrix_has_zero_eigenvalue(self):
        a = _matrix(5, seed=2)
        a[4] = [x + y for x, y in zip(a[0], a[1])]
        assert min(eigen_spectrum(a).magnitudes) == pytest.approx(0.0, abs=1e-9)

    def test_scaled_matrix(self):
        a = [[v * 1e6 for v in row] for row in _CYCLIC_3]
        assert eigen_spectrum(a).magnitudes == pytest.approx((1e6, 1e6, 1e6), rel=1e-9)

    def test_iteration_budget_exhausted(self, monkeypatch):
        monkeypatch.setattr(matrix_layer, "QR_MAX_ITERATIONS", 0)
        with pytest.raises(EigenConvergenceError) as exc_info:
            eigen_spectrum(_CYCLIC_3)
        assert exc_info.value.value == 0

    def test_product_must_match_determinant(self, monkeypatch):
        monkeypatch.setattr(
            matrix_layer, "_francis_qr", lambda H: ([0.0] * len(H), [0.0] * len(H)),
        )
        with pytest.raises(EigenConvergenceError) as exc_info:
            eigen_spectrum(_CYCLIC_3)
        assert "determinant" in str(exc_info.value)


# ---------------------------------------------------------------------------
# Singular values / condition number
# ---------------------------------------------------------------------------

class TestSingularValues:

    @pytest.mark.parametrize("shape", [(3, 3), (4, 2), (2, 4), (6, 6)])
    def test_matches_numpy(self, shape):
        cols, rows = shape
        a = _matrix(cols, rows, seed=cols * 10 + rows)
        ours = singular_values(a)
        ref = np.linalg.svd(np.array(a), compute_uv=False).tolist()
        # A^T A has `cols` eigenvalues; numpy returns min(rows, cols).
        assert ours[: len(ref)] == pytest.approx(ref, abs=1e-7)
        assert all(s >= 0.0 for s in ours)
        assert list(ours) == sorted(ours, reverse=True)

    @pytest.mark.parametrize("n", [1, 2, 3, 4, 5, 6, 7, 8, 9, 10])
    def test_determinant_squared_is_product_of_squared_singular_values(self, n):
        # |det A| = prod(sigma_i); covers both the Laplace and the LU path.
        a = _matrix(n, seed=100 + n)
        det = determinant(a)
        product = math.prod(s * s for s in singular_values(a))
        assert det * det == pytest.approx(product, rel=1e-7, abs=1e-12)

    def test_singular_matrix_has_zero_singular_value(self):
        a = _matrix(7, seed=5)
        a[6] = [2.0 * x for x in a[2]]
        assert determinant(a) == pytest.approx(0.0, abs=1e-12)
        assert singular_values(a)[-1] == pytest.approx(0.0, abs=1e-7)

    def test_empty(self):
        assert singular_values([]) == ()

    def test_condition_number_identity(self):
        assert condition_number(singular_values(_diag(1.0, 1.0, 1.0))) == pytest.approx(1.0)

    def test_condition_number_at_least_one(self):
        svals = singular_values(_matrix(4, seed=11))
        assert condition_number(svals) >= 1.0

    def test_condition_number_all_negligible_is_inf(self):
        assert condition_number((0.0, 0.0)) == math.inf

    def test_condition_number_skips_negligible(self):
        assert condition_number((4.0, 2.0, 1e-12)) == pytest.approx(2.0)

    def test_condition_number_empty_is_none(self):
        assert condition_number(()) is None


# ---------------------------------------------------------------------------
# analyze_matrix
# ---------------------------------------------------------------------------

class TestAnalyzeMatrix:

    def test_empty_analysis(self):
        result = analyze_matrix([])
        assert result.is_empty
        assert result.determinant is None
        assert result.spectrum is None
        assert result.singular_values == ()
        assert result.frobenius_norm == 0.0

    def test_identity(self):
        result = analyze_matrix(_diag(1.0, 1.0, 1.0))
        assert result.is_square
        assert result.determinant == pytest.approx(1.0)
        assert result.min_abs_eigenvalue == pytest.approx(1.0)
        assert result.eigenvalue_spread == pytest.approx(0.0, abs=1e-12)
        assert result.singular_value_ratio == pytest.approx(1.0)
        assert result.condition_number == pytest.approx(1.0)

    def test_zero_matrix(self):
        result = analyze_matrix([[0.0, 0.0], [0.0, 0.0]])
        assert result.determinant == 0.0
        assert result.singular_value_ratio == math.inf
        assert result.condition_number == math.inf
        assert result.min_abs_eigenvalue == 0.0

    def test_non_square_has_no_determinant_or_spectrum(self):
        result = analyze_matrix([[1.0, 0.0, 0.0], [0.0, 2.0, 0.0]])
        assert not result.is_square
        assert result.determinant is None
        assert result.eigenvalues is None
        assert len(result.singular_values) == 3

    def test_ragged_rejected(self):
        with pytest.raises(ConfigurationError):
            analyze_matrix([[1.0, 2.0], [3.0]])

    @pytest.mark.parametrize("negligible", [0.0, -1.0, float("nan"), float("inf")])
    def test_bad_negligible_rejected(self, negligible):
        with pytest.raises(ConfigurationError):
            analyze_matrix([[1.0]], negligible=negligible)
