# =============================================================================
# CFSA v1.0.0 -- CORE: MATRIX LAYER (MatrixAnalyzer)
# File:   cfsa/core/matrix_layer.py
# =============================================================================
#
# SCOPE
# -----
# Implements:
#   - Pure-stdlib matrix utilities (no numpy)
#   - determinant()            Laplace cofactor expansion / LU fallback
#   - eigen_spectrum()         2x2 closed form, Francis QR or power iteration
#   - symmetric_eigenvalues()  cyclic Jacobi method
#   - singular_values()        sqrt(eig(A^T A))
#   - condition_number(), frobenius_norm()
#   - MatrixAnalysis / Spectrum frozen result types
#   - analyze_matrix()         single entry point used by JacobianMatrix
#
# CONSTRAINTS
# -----------
# stdlib only: dataclasses, enum, math, typing.
# No numpy. No random. No logging. No I/O.
#
# DETERMINANT
# -----------
# Orders 1..LAPLACE_MAX_DIM use recursive Laplace (cofactor) expansion along
# the first row. This is exact but O(n!): 6! = 720 terms, 10! = 3.6M terms.
# Orders LAPLACE_MAX_DIM+1 .. MAX_LAYER_DIMS use Gaussian elimination with
# partial pivoting (O(n^3)). Orders above MAX_LAYER_DIMS are rejected with
# MatrixDimensionError; this is a scaling limit of the monitor, not a bug.
#
# EIGENVALUES (square matrices only)
# ----------------------------------
#   n == 1   the single entry.
#   n == 2   lambda = (tr +/- sqrt(tr^2 - 4 det)) / 2.
#   n > 2    EigenSolver.QR: Householder reduction to Hessenberg form, then
#            Francis double-shift QR with deflation and an exceptional shift
#            every 10 stalled iterations. The eigenvalue product is checked
#            against determinant() on A / ||A||_F. Running out of iterations
#            or failing the check raises EigenConvergenceError; a spectrum
#            that did not converge is never returned.
#            EigenSolver.POWER_ITERATION: fixed POWER_ITERATIONS steps from
#            the uniform unit vector, Rayleigh-quotient readout. Dominant
#            eigenvalue only.
#
# COMPLEX EIGENVALUES
# -------------------
# The spectrum is reported as real parts. A complex pair a +/- bi appears
# twice as `a` in Spectrum.real_parts and twice as sqrt(a^2 + b^2) in
# Spectrum.magnitudes, with Spectrum.has_complex = True. Magnitude-based
# consumers (the spectrum gate) must read `magnitudes`.
#
# SINGULAR VALUES
# ---------------
# A^T A is symmetric positive-semidefinite for any shape. Its eigenvalues are
# computed with the cyclic Jacobi method (full spectrum, numerically stable),
# clamped at 0 to absorb round-off, and square-rooted.
#
# INVARIANTS
# ----------
# INV-MA-01  singular values are >= 0 and sorted descending.
# INV-MA-02  determinant and spectrum are None for non-square matrices.
# INV-MA-03  condition_number >= 1 whenever it is finite.
# INV-MA-04  an empty matrix (zero rows or zero columns) yields an empty
#            analysis; no exception.
# =============================================================================

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from cfsa.core.exceptions import (
    ConfigurationError,
    EigenConvergenceError,
    MatrixDimensionError,
)
from cfsa.utils.constants import (
    EIGEN_DETERMINANT_TOLERANCE,
    JACOBI_MAX_SWEEPS,
    LAPLACE_MAX_DIM,
    MAX_LAYER_DIMS,
    NEGLIGIBLE_SINGULAR_VALUE,
    POWER_ITERATIONS,
    QR_MAX_ITERATIONS,
    QR_TOLERANCE,
)

Matrix = List[List[float]]

#: Epsilon for numerical guards.
_EPS: float = 1e-15


# ---------------------------------------------------------------------------
# Solver selection
# ---------------------------------------------------------------------------

class EigenSolver(str, Enum):
    """Eigenvalue routine for square matrices larger than 2x2."""
    QR              = "qr"
    POWER_ITERATION = "power_iteration"


# ---------------------------------------------------------------------------
# Pure-stdlib matrix utilities
# ---------------------------------------------------------------------------

def _as_matrix(entries: Sequence[Sequence[float]]) -> Matrix:
    """Deep-copy into a list-of-lists of floats."""
    return [[float(v) for v in row] for row in entries]


def _shape(A: Sequence[Sequence[float]]) -> Tuple[int, int]:
    rows: int = len(A)
    cols: int = len(A[0]) if rows > 0 else 0
    return rows, cols


def _transpose(A: Matrix) -> Matrix:
    """Matrix transpose."""
    r, c = _shape(A)
    return [[A[i][j] for i in range(r)] for j in range(c)]


def _mat_mul(A: Matrix, B: Matrix) -> Matrix:
    """Matrix multiplication A @ B. A is (r x k), B is (k x c)."""
    r: int = len(A)
    k: int = len(A[0])
    c: int = len(B[0])
    C: Matrix = [[0.0] * c for _ in range(r)]
    for i in range(r):
        for j in range(c):
            s: float = 0.0
            for l in range(k):
                s += A[i][l] * B[l][j]
            C[i][j] = s
    return C


def _mat_vec_mul(A: Matrix, v: List[float]) -> List[float]:
    """Matrix-vector multiplication A @ v."""
    return [sum(A[i][j] * v[j] for j in range(len(v))) for i in range(len(A))]


def _gram(A: Matrix) -> Matrix:
    """Return A^T A (cols x cols), symmetrised."""
    G: Matrix = _mat_mul(_transpose(A), A)
    n: int = len(G)
    for i in range(n):
        for j in range(i + 1, n):
            s: float = (G[i][j] + G[j][i]) * 0.5
            G[i][j] = s
            G[j][i] = s
    return G


def _minor(A: Matrix, row: int, col: int) -> Matrix:
    """Return A with one row and one column removed."""
    return [
        [A[i][j] for j in range(len(A[i])) if j != col]
        for i in range(len(A)) if i != row
    ]


def _check_dimension(n: int) -> None:
    if n > MAX_LAYER_DIMS:
        raise MatrixDimensionError(
            field_name="matrix",
            value=n,
            constraint="order must be <= " + str(MAX_LAYER_DIMS),
        )


# ---------------------------------------------------------------------------
# Frobenius norm
# ---------------------------------------------------------------------------

def frobenius_norm(entries: Sequence[Sequence[float]]) -> float:
    """sqrt(sum of squared entries). 0.0 for an empty matrix."""
    return math.sqrt(sum(v * v for row in entries for v in row))


# ---------------------------------------------------------------------------
# Determinant
# ---------------------------------------------------------------------------

def _laplace_determinant(A: Matrix) -> float:
    """Recursive cofactor expansion along the first row."""
    n: int = len(A)
    if n == 1:
        return A[0][0]
    if n == 2:
        return A[0][0] * A[1][1] - A[0][1] * A[1][0]
    det: float = 0.0
    for j in range(n):
        if A[0][j] == 0.0:
            continue
        sign: float = 1.0 if j % 2 == 0 else -1.0
        det += sign * A[0][j] * _laplace_determinant(_minor(A, 0, j))
    return det


def _lu_determinant(A: Matrix) -> float:
    """
    Gaussian elimination with partial pivoting. Each row swap flips the
    sign; the determinant is the signed product of the pivots.
    """
    n: int = len(A)
    U: Matrix = [list(row) for row in A]
    det: float = 1.0
    for col in range(n):
        max_val: float = abs(U[col][col])
        max_row: int = col
        for row in range(col + 1, n):
            if abs(U[row][col]) > max_val:
                max_val = abs(U[row][col])
                max_row = row
        if max_val < _EPS:
            return 0.0
        if max_row != col:
            U[col], U[max_row] = U[max_row], U[col]
            det = -det
        pivot: float = U[col][col]
        det *= pivot
        for row in range(col + 1, n):
            factor: float = U[row][col] / pivot
            if factor == 0.0:
                continue
            for j in range(col, n):
                U[row][j] -= factor * U[col][j]
    return det


def determinant(entries: Sequence[Sequence[float]]) -> Optional[float]:
    """
    Determinant of a square matrix.

    Returns None for a non-square matrix and 0.0 for an empty one.
    Raises MatrixDimensionError above MAX_LAYER_DIMS.
    """
    rows, cols = _shape(entries)
    if rows == 0 or cols == 0:
        return 0.0
    if rows != cols:
        return None
    _check_dimension(rows)
    A: Matrix = _as_matrix(entries)
    if rows <= LAPLACE_MAX_DIM:
        return _laplace_determinant(A)
    return _lu_determinant(A)


# ---------------------------------------------------------------------------
# Eigenvalues -- general square matrices
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Spectrum:
    """
    Eigenvalue readout for a square matrix.

    real_parts  : real part of each eigenvalue found.
    magnitudes  : modulus of each eigenvalue, aligned with real_parts.
    has_complex : True if at least one complex-conjugate pair was found.

    With EigenSolver.POWER_ITERATION only the dominant eigenvalue is
    reported for n > 2, so both tuples have length 1.
    """
    real_parts:  Tuple[float, ...]
    magnitudes:  Tuple[float, ...]
    has_complex: bool


def _block_2x2(a: float, b: float, c: float, d: float) -> Tuple[List[float], List[float], bool]:
    """
    Eigenvalues of [[a, b], [c, d]] from the characteristic quadratic
    lambda^2 - tr * lambda + det = 0.
    """
    trace: float = a + d
    det: float = a * d - b * c
    disc: float = trace * trace - 4.0 * det
    if disc >= 0.0:
        root: float = math.sqrt(disc)
        hi: float = (trace + root) / 2.0
        lo: float = (trace - root) / 2.0
        return [hi, lo], [abs(hi), abs(lo)], False
    re: float = trace / 2.0
    modulus: float = math.sqrt(max(det, 0.0))
    return [re, re], [modulus, modulus], True


def _hessenberg(A: Matrix) -> Matrix:
    """
    Reduce A to upper Hessenberg form by Householder similarity
    transforms H = P A P. Eigenvalues are unchanged.
    """
    n: int = len(A)
    H: Matrix = [list(row) for row in A]
    for k in range(n - 2):
        x: List[float] = [H[i][k] for i in range(k + 1, n)]
        alpha: float = math.sqrt(sum(v * v for v in x))
        if alpha == 0.0:
            continue
        if x[0] > 0.0:
            alpha = -alpha
        v: List[float] = list(x)
        v[0] -= alpha
        scale: float = 2.0 / sum(vi * vi for vi in v)
        m: int = len(v)
        # H <- P H  (rows k+1..n-1)
        for j in range(n):
            s: float = scale * sum(v[i] * H[k + 1 + i][j] for i in range(m))
            for i in range(m):
                H[k + 1 + i][j] -= s * v[i]
        # H <- H P  (columns k+1..n-1)
        for i in range(n):
            s = scale * sum(H[i][k + 1 + j] * v[j] for j in range(m))
            for j in range(m):
                H[i][k + 1 + j] -= s * v[j]
        for i in range(k + 2, n):
            H[i][k] = 0.0
    return H


def _francis_qr(H: Matrix) -> Tuple[List[float], List[float]]:
    """
    Eigenvalues of an upper Hessenberg matrix by Francis double-shift QR
    with deflation. H is overwritten.

    Returns (real parts, imaginary parts) in diagonal order. Every 10
    iterations without a deflation an exceptional shift is taken so that
    orthogonal and permutation matrices, on which the plain shift stalls,
    still converge. Raises EigenConvergenceError after QR_MAX_ITERATIONS
    iterations on a single eigenvalue.
    """
    n: int = len(H)
    wr: List[float] = [0.0] * n
    wi: List[float] = [0.0] * n
    anorm: float = 0.0
    for i in range(n):
        for j in range(max(i - 1, 0), n):
            anorm += abs(H[i][j])

    nn: int = n - 1
    t: float = 0.0
    its: int = 0
    while nn >= 0:
        # Look for a single small subdiagonal element.
        for l in range(nn, 0, -1):
            s: float = abs(H[l - 1][l - 1]) + abs(H[l][l])
            if s == 0.0:
                s = anorm
            if abs(H[l][l - 1]) <= QR_TOLERANCE * s:
                H[l][l - 1] = 0.0
                break
        else:
            l = 0

        x: float = H[nn][nn]
        if l == nn:
            wr[nn] = x + t
            wi[nn] = 0.0
            nn -= 1
            its = 0
            continue

        y: float = H[nn - 1][nn - 1]
        w: float = H[nn][nn - 1] * H[nn - 1][nn]
        if l == nn - 1:
            p: float = 0.5 * (y - x)
            q: float = p * p + w
            z: float = math.sqrt(abs(q))
            x += t
            if q >= 0.0:
                z = p + math.copysign(z, p)
                wr[nn - 1] = wr[nn] = x + z
                if z != 0.0:
                    wr[nn] = x - w / z
                wi[nn - 1] = wi[nn] = 0.0
            else:
                wr[nn - 1] = wr[nn] = x + p
                wi[nn - 1] = -z
                wi[nn] = z
            nn -= 2
            its = 0
            continue

        if its == QR_MAX_ITERATIONS:
            raise EigenConvergenceError(
                "Francis QR did not deflate eigenvalue " + str(nn)
                + " within " + str(QR_MAX_ITERATIONS) + " iterations",
                value=its,
            )
        if its > 0 and its % 10 == 0:
            # Exceptional shift.
            t += x
            for i in range(nn + 1):
                H[i][i] -= x
            s = abs(H[nn][nn - 1]) + abs(H[nn - 1][nn - 2])
            x = y = 0.75 * s
            w = -0.4375 * s * s
        its += 1

        # Look for two consecutive small subdiagonal elements.
        for m in range(nn - 2, l - 1, -1):
            z = H[m][m]
            r: float = x - z
            s = y - z
            p = (r * s - w) / H[m + 1][m] + H[m][m + 1]
            q = H[m + 1][m + 1] - z - r - s
            r = H[m + 2][m + 1]
            s = abs(p) + abs(q) + abs(r)
            p /= s
            q /= s
            r /= s
            if m == l:
                break
            u: float = abs(H[m][m - 1]) * (abs(q) + abs(r))
            v: float = abs(p) * (abs(H[m - 1][m - 1]) + abs(z) + abs(H[m + 1][m + 1]))
            if u + v == v:
                break

        for i in range(m + 2, nn + 1):
            H[i][i - 2] = 0.0
            if i != m + 2:
                H[i][i - 3] = 0.0

        # Chase the bulge down the subdiagonal.
        for k in range(m, nn):
            if k != m:
                p = H[k][k - 1]
                q = H[k + 1][k - 1]
                r = H[k + 2][k - 1] if k != nn - 1 else 0.0
                x = abs(p) + abs(q) + abs(r)
                if x != 0.0:
                    p /= x
                    q /= x
                    r /= x
            s = math.copysign(math.sqrt(p * p + q * q + r * r), p)
            if s == 0.0:
                continue
            if k == m:
                if l != m:
                    H[k][k - 1] = -H[k][k - 1]
            else:
                H[k][k - 1] = -s * x
            p += s
            x = p / s
            y = q / s
            z = r / s
            q /= p
            r /= p
            for j in range(k, nn + 1):
                p = H[k][j] + q * H[k + 1][j]
                if k != nn - 1:
                    p += r * H[k + 2][j]
                    H[k + 2][j] -= p * z
                H[k + 1][j] -= p * y
                H[k][j] -= p * x
            for i in range(l, min(nn, k + 3) + 1):
                p = x * H[i][k] + y * H[i][k + 1]
                if k != nn - 1:
                    p += z * H[i][k + 2]
                    H[i][k + 2] -= p * r
                H[i][k + 1] -= p * q
                H[i][k] -= p
    return wr, wi


def _check_determinant(A: Matrix, wr: List[float], wi: List[float]) -> None:
    """
    The eigenvalue product must reproduce det(A). Both sides are taken on
    A / ||A||_F so the comparison is scale-free and cannot overflow.
    """
    norm: float = frobenius_norm(A)
    if norm == 0.0:
        return
    scaled: Matrix = [[v / norm for v in row] for row in A]
    product: complex = complex(1.0, 0.0)
    for re, im in zip(wr, wi):
        product *= complex(re / norm, im / norm)
    det: float = determinant(scaled)
    residual: float = abs(product - det)
    if not residual <= EIGEN_DETERMINANT_TOLERANCE:
        raise EigenConvergenceError(
            "eigenvalue product disagrees with the determinant", value=residual,
        )


def _qr_spectrum(A: Matrix) -> Spectrum:
    """Full spectrum: Hessenberg reduction, Francis QR, determinant check."""
    wr, wi = _francis_qr(_hessenberg(A))
    _check_determinant(A, wr, wi)
    return Spectrum(
        real_parts=tuple(wr),
        magnitudes=tuple(math.hypot(re, im) for re, im in zip(wr, wi)),
        has_complex=any(im != 0.0 for im in wi),
    )


def power_iteration(entries: Sequence[Sequence[float]], iterations: int = POWER_ITERATIONS) -> float:
    """
    Dominant eigenvalue by power iteration with a Rayleigh-quotient readout.

    Starts from the uniform unit vector and runs a fixed number of steps.
    If A v collapses to the zero vector the dominant eigenvalue is 0.0.
    """
    A: Matrix = _as_matrix(entries)
    n: int = len(A)
    if n == 0:
        return 0.0
    v: List[float] = [1.0 / math.sqrt(n)] * n
    for _ in range(iterations):
        w: List[float] = _mat_vec_mul(A, v)
        norm: float = math.sqrt(sum(x * x for x in w))
        if norm < _EPS:
            return 0.0
        v = [x / norm for x in w]
    Av: List[float] = _mat_vec_mul(A, v)
    return sum(v[i] * Av[i] for i in range(n))


def eigen_spectrum(
    entries: Sequence[Sequence[float]],
    solver:  EigenSolver = EigenSolver.QR,
) -> Optional[Spectrum]:
    """
    Eigenvalues of a square matrix. None for non-square or empty input.

    Raises EigenConvergenceError when the QR solver does not converge.
    """
    rows, cols = _shape(entries)
    if rows == 0 or cols == 0 or rows != cols:
        return None
    _check_dimension(rows)
    A: Matrix = _as_matrix(entries)
    if rows == 1:
        return Spectrum((A[0][0],), (abs(A[0][0]),), False)
    if rows == 2:
        re, mag, cplx = _block_2x2(A[0][0], A[0][1], A[1][0], A[1][1])
        return Spectrum(tuple(re), tuple(mag), cplx)
    if solver is EigenSolver.POWER_ITERATION:
        lam: float = power_iteration(A)
        return Spectrum((lam,), (abs(lam),), False)
    return _qr_spectrum(A)


# ---------------------------------------------------------------------------
# Eigenvalues -- symmetric matrices (cyclic Jacobi)
# ---------------------------------------------------------------------------

def symmetric_eigenvalues(entries: Sequence[Sequence[float]]) -> Tuple[float, ...]:
    """
    Full spectrum of a real symmetric matrix by cyclic Jacobi rotations,
    sorted descending. Only the upper triangle is trusted; the input is
    symmetrised first.
    """
    A: Matrix = _as_matrix(entries)
    n: int = len(A)
    if n == 0:
        return ()
    for i in range(n):
        for j in range(i + 1, n):
            s: float = (A[i][j] + A[j][i]) * 0.5
            A[i][j] = s
            A[j][i] = s

    total: float = sum(A[i][j] * A[i][j] for i in range(n) for j in range(n))
    for _ in range(JACOBI_MAX_SWEEPS):
        off: float = sum(A[i][j] * A[i][j] for i in range(n) for j in range(n) if i != j)
        if off <= _EPS * _EPS * max(total, 1.0):
            break
        for p in range(n - 1):
            for q in range(p + 1, n):
                apq: float = A[p][q]
                if abs(apq) < _EPS * _EPS:
                    continue
                theta: float = (A[q][q] - A[p][p]) / (2.0 * apq)
                t: float = (1.0 if theta >= 0.0 else -1.0) / (abs(theta) + math.sqrt(theta * theta + 1.0))
                c: float = 1.0 / math.sqrt(t * t + 1.0)
                s = t * c
                # A <- A J (columns p, q)
                for k in range(n):
                    akp: float = A[k][p]
                    akq: float = A[k][q]
                    A[k][p] = c * akp - s * akq
                    A[k][q] = s * akp + c * akq
                # A <- J^T A (rows p, q)
                for k in range(n):
                    apk: float = A[p][k]
                    aqk: float = A[q][k]
                    A[p][k] = c * apk - s * aqk
                    A[q][k] = s * apk + c * aqk
    return tuple(sorted((A[i][i] for i in range(n)), reverse=True))


# ---------------------------------------------------------------------------
# Singular values / condition number
# ---------------------------------------------------------------------------

def singular_values(entries: Sequence[Sequence[float]]) -> Tuple[float, ...]:
    """
    Singular values of any m x n matrix (n values, descending, all >= 0).
    Empty tuple for an empty matrix.
    """
    rows, cols = _shape(entries)
    if rows == 0 or cols == 0:
        return ()
    _check_dimension(cols)
    gram_eigs: Tuple[float, ...] = symmetric_eigenvalues(_gram(_as_matrix(entries)))
    return tuple(math.sqrt(max(0.0, lam)) for lam in gram_eigs)


def condition_number(
    svals:      Sequence[float],
    negligible: float = NEGLIGIBLE_SINGULAR_VALUE,
) -> Optional[float]:
    """
    max(sv) / min(sv > negligible). inf if no singular value exceeds the
    floor. None for an empty sequence.
    """
    if not svals:
        return None
    significant: List[float] = [s for s in svals if s > negligible]
    if not significant:
        return math.inf
    return max(svals) / min(significant)


# ---------------------------------------------------------------------------
# MatrixAnalysis
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MatrixAnalysis:
    """
    Derived invariants of one matrix. Produced by analyze_matrix().

    determinant and spectrum are None unless the matrix is square and
    non-empty. condition_number is None only for an empty matrix.
    """

    rows:              int
    cols:              int
    determinant:       Optional[float]
    spectrum:          Optional[Spectrum]
    singular_values:   Tuple[float, ...]
    condition_number:  Optional[float]
    frobenius_norm:    float
    negligible:        float = NEGLIGIBLE_SINGULAR_VALUE

    @property
    def is_empty(self) -> bool:
        return self.rows == 0 or self.cols == 0

    @property
    def is_square(self) -> bool:
        return not self.is_empty and self.rows == self.cols

    @property
    def eigenvalues(self) -> Optional[Tuple[float, ...]]:
        return self.spectrum.real_parts if self.spectrum is not None else None

    @property
    def min_abs_eigenvalue(self) -> Optional[float]:
        if self.spectrum is None or not self.spectrum.magnitudes:
            return None
        return min(self.spectrum.magnitudes)

    @property
    def eigenvalue_spread(self) -> Optional[float]:
        if self.spectrum is None or not self.spectrum.real_parts:
            return None
        return max(self.spectrum.real_parts) - min(self.spectrum.real_parts)

    @property
    def singular_value_ratio(self) -> Optional[float]:
        """
        max(sv) / min(sv) over all singular values. inf when the smallest is
        negligible (including the all-zero matrix).
        """
        if not self.singular_values:
            return None
        smallest: float = min(self.singular_values)
        if smallest <= self.negligible:
            return math.inf
        return max(self.singular_values) / smallest


def analyze_matrix(
    entries:    Sequence[Sequence[float]],
    negligible: float = NEGLIGIBLE_SINGULAR_VALUE,
    solver:     EigenSolver = EigenSolver.QR,
) -> MatrixAnalysis:
    """
    Compute every derived invariant of a matrix in one pass.

    Never raises for empty input. Raises MatrixDimensionError when the
    column count (or order, for square input) exceeds MAX_LAYER_DIMS and
    ConfigurationError for a non-positive negligible floor or ragged rows.
    """
    if not (negligible > 0.0) or not math.isfinite(negligible):
        raise ConfigurationError(
            field_name="negligible",
            value=negligible,
            constraint="must be finite and > 0",
        )
    rows, cols = _shape(entries)
    if any(len(row) != cols for row in entries):
        raise ConfigurationError(
            field_name="entries",
            value=[len(row) for row in entries],
            constraint="all rows must have the same length",
        )
    if rows == 0 or cols == 0:
        return MatrixAnalysis(
            rows=rows,
            cols=cols,
            determinant=None,
            spectrum=None,
            singular_values=(),
            condition_number=None,
            frobenius_norm=0.0,
            negligible=negligible,
        )
    svals: Tuple[float, ...] = singular_values(entries)
    return MatrixAnalysis(
        rows=rows,
        cols=cols,
        determinant=determinant(entries),
        spectrum=eigen_spectrum(entries, solver),
        singular_values=svals,
        condition_number=condition_number(svals, negligible),
        frobenius_norm=frobenius_norm(entries),
        negligible=negligible,
    )


__all__ = [
    "EigenSolver",
    "Spectrum",
    "MatrixAnalysis",
    "analyze_matrix",
    "determinant",
    "eigen_spectrum",
    "power_iteration",
    "symmetric_eigenvalues",
    "singular_values",
    "condition_number",
    "frobenius_norm",
]
