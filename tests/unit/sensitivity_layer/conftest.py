import pytest

from cfsa.core.matrix_layer import MatrixAnalysis, analyze_matrix
from cfsa.core.sensitivity_layer import (
    LayerThresholds,
    MonitorConfig,
    default_monitor_config,
)


@pytest.fixture
def identity_analysis() -> MatrixAnalysis:
    """3x3 identity: norm sqrt(3), det 1, all eigenvalues 1, cond 1."""
    return analyze_matrix([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]])


@pytest.fixture
def zero_analysis() -> MatrixAnalysis:
    """2x2 zero matrix: every Jacobian-derived gate degenerates."""
    return analyze_matrix([[0.0, 0.0], [0.0, 0.0]])


@pytest.fixture
def empty_analysis() -> MatrixAnalysis:
    return analyze_matrix([])


@pytest.fixture
def all_gates() -> LayerThresholds:
    """Every gate set, at moderate values."""
    return LayerThresholds(
        weight=1.0,
        min_sensitivity=0.2,
        stability_floor=1e-8,
        min_eigenvalue=0.1,
        max_imbalance_ratio=10.0,
        min_coherence=0.7,
        max_eigenvalue_spread=5.0,
        max_condition_number=100.0,
    )


@pytest.fixture
def default_config() -> MonitorConfig:
    return default_monitor_config()
