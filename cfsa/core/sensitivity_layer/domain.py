# =============================================================================
# CFSA v1.0.0 -- SENSITIVITY LAYER: DOMAIN
# File:   cfsa/core/sensitivity_layer/domain.py
# =============================================================================
#
# SCOPE
# -----
# Frozen domain types for threshold evaluation and aggregation:
#   Severity, ViolationType, CycleStage   enumerations
#   Violation                             one failed rule
#   LayerThresholds                       per-layer gates and weight
#   MonitorConfig                         full monitor configuration
#   LayerAssessment                       per-layer evaluation output
#   default_monitor_config()              explicit construction-time defaults
#
# No evaluation logic. No I/O.
#
# VALIDATION PHILOSOPHY
# ---------------------
# Validation is fail-fast, in this fixed order per dataclass:
#
#   V1  Type / finiteness  -- every numeric field is a finite real.
#   V2  Sign / range       -- field-local constraints (>= 0, > 0, [0,1], >= 1).
#   V3  Cross-field        -- weights sum > 0, thresholds cover every layer.
#
# Every violation raises ConfigurationError with the field name and value.
# No field is clipped or defaulted silently.
#
# INVARIANTS ENFORCED
# -------------------
# LayerThresholds
#   INV-LT-01  weight finite, >= 0.
#   INV-LT-02  every set gate finite, >= 0.
#   INV-LT-03  max_imbalance_ratio and max_condition_number >= 1 when set.
#   INV-LT-04  min_coherence in [0, 1] when set.
#
# MonitorConfig
#   INV-MC-01  epsilon finite, > 0.
#   INV-MC-02  operational_authorization_threshold in [0, 1].
#   INV-MC-03  history_capacity int >= 1.
#   INV-MC-04  negligible_singular_value finite, > 0.
#   INV-MC-05  thresholds non-empty, keyed by Layer.
#   INV-MC-06  sum of weights > 0.
# =============================================================================

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from cfsa.core.exceptions import ConfigurationError
from cfsa.core.jacobian_layer import JacobianMatrix
from cfsa.core.matrix_layer import EigenSolver, MatrixAnalysis
from cfsa.core.state_layer import Layer
from cfsa.utils.constants import (
    DEFAULT_EPSILON,
    DEFAULT_LAYER_THRESHOLDS,
    HISTORY_CAPACITY,
    NEGLIGIBLE_SINGULAR_VALUE,
    OPERATIONAL_AUTHORIZATION_THRESHOLD,
)


# =============================================================================
# SECTION 1 -- ENUMERATIONS
# =============================================================================

class Severity(str, Enum):
    MEDIUM   = "medium"
    HIGH     = "high"
    CRITICAL = "critical"


class ViolationType(str, Enum):
    """
    INVALID_INPUT                   non-finite / malformed state or objective
    EVALUATION_FAILURE              unexpected error inside a layer pipeline
    INSUFFICIENT_SENSITIVITY        Frobenius norm below min_sensitivity
    STABILITY_FLOOR_BREACH          |det| below stability_floor
    AUTHORITY_IMBALANCE             singular value ratio above bound
    EIGENVALUE_INSTABILITY          min |eigenvalue| below min_eigenvalue
    LOW_COHERENCE                   external coherence below min_coherence
    REASONING_BRITTLENESS           eigenvalue spread above bound
    ILL_CONDITIONED                 condition number above bound
    INSUFFICIENT_OVERALL_COHERENCE  aggregate below authorization threshold
    """
    INVALID_INPUT                  = "invalid_input"
    EVALUATION_FAILURE             = "evaluation_failure"
    INSUFFICIENT_SENSITIVITY       = "insufficient_sensitivity"
    STABILITY_FLOOR_BREACH         = "stability_floor_breach"
    AUTHORITY_IMBALANCE            = "authority_imbalance"
    EIGENVALUE_INSTABILITY         = "eigenvalue_instability"
    LOW_COHERENCE                  = "low_coherence"
    REASONING_BRITTLENESS          = "reasoning_brittleness"
    ILL_CONDITIONED                = "ill_conditioned"
    INSUFFICIENT_OVERALL_COHERENCE = "insufficient_overall_coherence"


class CycleStage(str, Enum):
    """Monitor cycle states. The cycle always returns to IDLE."""
    IDLE        = "idle"
    SAMPLING    = "sampling"
    ESTIMATING  = "estimating"
    ANALYZING   = "analyzing"
    EVALUATING  = "evaluating"
    AGGREGATING = "aggregating"
    REPORTING   = "reporting"


# =============================================================================
# SECTION 2 -- VIOLATION
# =============================================================================

@dataclass(frozen=True)
class Violation:
    """
    One failed rule. Created by the evaluator or aggregator; never mutated.

    layer is None only for the aggregate coherence gate.
    actual_value / threshold_value are None when the rule is not a numeric
    comparison (invalid input, evaluation failure).
    """

    layer:           Optional[Layer]
    type:            ViolationType
    severity:        Severity
    message:         str
    metric_name:     str
    actual_value:    Optional[float]
    threshold_value: Optional[float]
    requires_pause:  bool

    def as_dict(self) -> dict:
        return {
            "layer":           self.layer.value if self.layer is not None else None,
            "type":            self.type.value,
            "severity":        self.severity.value,
            "message":         self.message,
            "metric_name":     self.metric_name,
            "actual_value":    self.actual_value,
            "threshold_value": self.threshold_value,
            "requires_pause":  self.requires_pause,
        }


# =============================================================================
# SECTION 3 -- INTERNAL VALIDATION HELPERS
# =============================================================================

def _check_real(field_name: str, value: object) -> None:
    """V1: value must be a finite int or float (bool excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(field_name, value, "must be a real number")
    if not math.isfinite(value):
        raise ConfigurationError(field_name, value, "must be finite")


def _check_non_negative(field_name: str, value: float) -> None:
    if value < 0.0:
        raise ConfigurationError(field_name, value, "must be >= 0")


def _check_positive(field_name: str, value: float) -> None:
    if value <= 0.0:
        raise ConfigurationError(field_name, value, "must be > 0")


def _check_unit_interval_closed(field_name: str, value: float) -> None:
    if not (0.0 <= value <= 1.0):
        raise ConfigurationError(field_name, value, "must be in [0.0, 1.0]")


# =============================================================================
# SECTION 4 -- LAYER THRESHOLDS
# =============================================================================

_OPTIONAL_GATES: Tuple[str, ...] = (
    "min_sensitivity",
    "stability_floor",
    "min_eigenvalue",
    "max_imbalance_ratio",
    "min_coherence",
    "max_eigenvalue_spread",
    "max_condition_number",
)


@dataclass(frozen=True)
class LayerThresholds:
    """
    Per-layer gates and aggregation weight. Immutable for the lifetime of
    the monitor that owns it.

    A gate left as None is not evaluated for the layer. Which gates are set
    determines the layer's type (sensitivity-, stability-, balance-,
    spectrum- or coherence-gated; a layer may combine several).
    """

    weight:                float
    """Aggregation weight. Finite, >= 0."""

    min_sensitivity:       Optional[float] = None
    """Lower bound on the Jacobian Frobenius norm."""

    stability_floor:       Optional[float] = None
    """Lower bound on |determinant| (square Jacobians only)."""

    min_eigenvalue:        Optional[float] = None
    """Lower bound on the smallest eigenvalue magnitude."""

    max_imbalance_ratio:   Optional[float] = None
    """Upper bound on max(sv) / min(sv). >= 1."""

    min_coherence:         Optional[float] = None
    """Lower bound on the externally supplied coherence signal. In [0, 1]."""

    max_eigenvalue_spread: Optional[float] = None
    """Upper bound on max(eig) - min(eig) (real parts)."""

    max_condition_number:  Optional[float] = None
    """Upper bound on the condition number. >= 1."""

    def __post_init__(self) -> None:
        _check_real("weight", self.weight)
        _check_non_negative("weight", self.weight)

        for name in _OPTIONAL_GATES:
            value = getattr(self, name)
            if value is None:
                continue
            _check_real(name, value)
            _check_non_negative(name, value)

        for name in ("max_imbalance_ratio", "max_condition_number"):
            value = getattr(self, name)
            if value is not None and value < 1.0:
                raise ConfigurationError(name, value, "must be >= 1")

        if self.min_coherence is not None:
            _check_unit_interval_closed("min_coherence", self.min_coherence)

    @property
    def is_coherence_gated(self) -> bool:
        return self.min_coherence is not None

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, object]) -> "LayerThresholds":
        unknown = set(mapping) - set(_OPTIONAL_GATES) - {"weight"}
        if unknown:
            raise ConfigurationError(
                "thresholds",
                sorted(unknown),
                "unknown threshold keys",
            )
        if "weight" not in mapping:
            raise ConfigurationError("weight", None, "is required")
        return cls(**mapping)  # type: ignore[arg-type]


# =============================================================================
# SECTION 5 -- MONITOR CONFIG
# =============================================================================

@dataclass(frozen=True)
class MonitorConfig:
    """
    Complete, immutable monitor configuration. Passed explicitly to the
    MonitorController; there is no implicit global configuration.
    To change thresholds, construct a new controller.
    """

    thresholds:                          Mapping[Layer, LayerThresholds]
    epsilon:                             float = DEFAULT_EPSILON
    operational_authorization_threshold: float = OPERATIONAL_AUTHORIZATION_THRESHOLD
    history_capacity:                    int = HISTORY_CAPACITY
    negligible_singular_value:           float = NEGLIGIBLE_SINGULAR_VALUE
    eigen_solver:                        EigenSolver = EigenSolver.QR
    parallel_layers:                     bool = False

    def __post_init__(self) -> None:
        # --- V1 + V2: scalar fields ---
        _check_real("epsilon", self.epsilon)
        _check_positive("epsilon", self.epsilon)

        _check_real("operational_authorization_threshold", self.operational_authorization_threshold)
        _check_unit_interval_closed(
            "operational_authorization_threshold", self.operational_authorization_threshold
        )

        if (
            not isinstance(self.history_capacity, int)
            or isinstance(self.history_capacity, bool)
            or self.history_capacity < 1
        ):
            raise ConfigurationError(
                "history_capacity", self.history_capacity, "must be an integer >= 1"
            )

        _check_real("negligible_singular_value", self.negligible_singular_value)
        _check_positive("negligible_singular_value", self.negligible_singular_value)

        try:
            solver = EigenSolver(self.eigen_solver)
        except ValueError:
            raise ConfigurationError(
                "eigen_solver",
                self.eigen_solver,
                "must be one of " + repr([s.value for s in EigenSolver]),
            )
        object.__setattr__(self, "eigen_solver", solver)

        # --- V3: thresholds mapping ---
        if not self.thresholds:
            raise ConfigurationError("thresholds", self.thresholds, "must not be empty")
        for key, value in self.thresholds.items():
            if not isinstance(key, Layer):
                raise ConfigurationError("thresholds", key, "keys must be Layer members")
            if not isinstance(value, LayerThresholds):
                raise ConfigurationError(
                    "thresholds[" + key.value + "]", value, "must be a LayerThresholds"
                )
        total_weight = sum(t.weight for t in self.thresholds.values())
        if total_weight <= 0.0:
            raise ConfigurationError(
                "thresholds.weight", total_weight, "sum of weights must be > 0"
            )
        object.__setattr__(self, "thresholds", MappingProxyType(dict(self.thresholds)))

    @property
    def layers(self) -> Tuple[Layer, ...]:
        return tuple(layer for layer in Layer if layer in self.thresholds)

    def thresholds_for(self, layer: Layer) -> LayerThresholds:
        return self.thresholds[layer]


def default_monitor_config(**overrides: object) -> MonitorConfig:
    """
    Return a MonitorConfig built from the explicit defaults in
    cfsa.utils.constants. Keyword overrides replace scalar fields.
    """
    thresholds = {
        Layer(name): LayerThresholds.from_mapping(dict(values))
        for name, values in DEFAULT_LAYER_THRESHOLDS.items()
    }
    return MonitorConfig(thresholds=thresholds, **overrides)  # type: ignore[arg-type]


# =============================================================================
# SECTION 6 -- LAYER ASSESSMENT
# =============================================================================

@dataclass(frozen=True)
class LayerAssessment:
    """
    Output of one layer's pipeline.

    score           : in [0, 1]. 1.0 when no rule failed.
    violations      : tuple of Violations for this layer.
    analysis        : MatrixAnalysis, or None if the pipeline stopped early.
    jacobian        : JacobianMatrix, or None if estimation did not finish.
    coherence_signal: external coherence reading used by the coherence gate.
    stage_reached   : last stage completed (REPORTING on short-circuit).
    """

    layer:            Layer
    score:            float
    violations:       Tuple[Violation, ...]
    analysis:         Optional[MatrixAnalysis] = None
    jacobian:         Optional[JacobianMatrix] = field(default=None, repr=False)
    coherence_signal: Optional[float] = None
    stage_reached:    CycleStage = CycleStage.EVALUATING

    @property
    def requires_pause(self) -> bool:
        return any(v.requires_pause for v in self.violations)


__all__ = [
    "Severity",
    "ViolationType",
    "CycleStage",
    "Violation",
    "LayerThresholds",
    "MonitorConfig",
    "default_monitor_config",
    "LayerAssessment",
]
