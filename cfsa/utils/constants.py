# cfsa/utils/constants.py
# Version: 1.0.0
# Canonical numeric constants for the CFSA monitor.
#
# These are construction-time defaults only. Nothing in the engine reads
# them implicitly at runtime: every value reaches the engine through an
# explicit MonitorConfig / LayerThresholds / JacobianEstimator argument.
#
# Standard import pattern:
#   from cfsa.utils.constants import (
#       MAX_LAYER_DIMS,
#       DEFAULT_EPSILON,
#       NEGLIGIBLE_SINGULAR_VALUE,
#       OPERATIONAL_AUTHORIZATION_THRESHOLD,
#   )


# ---------------------------------------------------------------------------
# DIMENSIONAL LIMITS
# ---------------------------------------------------------------------------

# Hard cap on components per layer. The cofactor determinant is O(n!).
MAX_LAYER_DIMS: int = 10

# Largest order evaluated by recursive Laplace expansion. Orders
# LAPLACE_MAX_DIM + 1 .. MAX_LAYER_DIMS use LU with partial pivoting.
LAPLACE_MAX_DIM: int = 6


# ---------------------------------------------------------------------------
# NUMERICAL DIFFERENTIATION / LINEAR ALGEBRA
# ---------------------------------------------------------------------------

DEFAULT_EPSILON:           float = 1e-6    # forward-difference step
NEGLIGIBLE_SINGULAR_VALUE: float = 1e-10   # condition number floor

POWER_ITERATIONS: int = 100    # fixed step count
QR_MAX_ITERATIONS: int = 60      # per eigenvalue
QR_TOLERANCE: float = 1e-12
EIGEN_DETERMINANT_TOLERANCE: float = 1e-8   # on A / ||A||_F
JACOBI_MAX_SWEEPS: int = 100


# ---------------------------------------------------------------------------
# AGGREGATION / HISTORY
# ---------------------------------------------------------------------------

OPERATIONAL_AUTHORIZATION_THRESHOLD: float = 0.95
HISTORY_CAPACITY: int = 100


# ---------------------------------------------------------------------------
# DEFAULT LAYER THRESHOLDS
# ---------------------------------------------------------------------------
# Keys are Layer member values. Gates absent from a layer's dict are not
# evaluated for that layer. Weights sum to 1.0.

DEFAULT_LAYER_THRESHOLDS: dict = {
    "ecological": {
        "weight":          0.3,
        "min_sensitivity": 0.2,
    },
    "cognitive": {
        "weight":                0.3,
        "min_eigenvalue":        0.1,
        "min_coherence":         0.7,
        "max_eigenvalue_spread": 5.0,
    },
    "consent": {
        "weight":              0.2,
        "stability_floor":     1e-8,
        "max_imbalance_ratio": 10.0,
    },
    "temporal": {
        "weight":          0.2,
        "stability_floor": 1e-8,
        "min_eigenvalue":  0.1,
    },
}
