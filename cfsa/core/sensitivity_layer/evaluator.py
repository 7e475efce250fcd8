# =============================================================================
# CFSA v1.0.0 -- SENSITIVITY LAYER: EVALUATOR
# File:   cfsa/core/sensitivity_layer/evaluator.py
# =============================================================================
#
# SCOPE
# -----
# Applies the per-layer threshold rules to a MatrixAnalysis and produces a
# LayerAssessment (score + violations). Public entry points:
#
#   evaluate_layer_sensitivity    -- rule table evaluation
#   invalid_input_assessment      -- input contract violation -> assessment
#   evaluation_failure_assessment -- unexpected pipeline error -> assessment
#
# RULE TABLE
# ----------
#   gate                   metric                   rule  type                      severity
#   min_sensitivity        Frobenius norm           >=    insufficient_sensitivity  critical, pause
#   stability_floor        |determinant|            >=    stability_floor_breach    critical, pause
#   max_imbalance_ratio    max sv / min sv          <=    authority_imbalance       high
#   min_eigenvalue         min |eigenvalue|         >=    eigenvalue_instability    high
#   min_coherence          coherence signal         >=    low_coherence             critical, pause
#   max_eigenvalue_spread  max(eig) - min(eig)      <=    reasoning_brittleness     medium
#   max_condition_number   condition number         <=    ill_conditioned           high
#
# Rules are evaluated in the table order. Each failing rule emits exactly one
# Violation. Equality with a threshold never fails.
#
# APPLICABILITY
# -------------
#   Empty Jacobian (n == 0 or m == 0): no Jacobian-derived gate applies.
#   Non-square Jacobian: stability_floor, min_eigenvalue and
#     max_eigenvalue_spread are skipped (no determinant, no spectrum).
#   min_coherence is independent of the Jacobian.
#
# SCORE
# -----
#   No failing rule                -> 1.0
#   Lower-bound rule failed        -> actual / threshold
#   Upper-bound rule failed        -> threshold / actual   (0.0 if actual is inf)
#   Layer score = min over failing rules, clamped to [0, 1].
#   Invalid input / evaluation failure -> 0.0
#
# DETERMINISM CONSTRAINTS
# -----------------------
# DET-01  Pure functions. Inputs are never mutated.
# DET-02  No logging, no I/O, no clock reads.
# DET-03  Message strings are built by concatenation from the inputs only.
#
# PROHIBITED ACTIONS CONFIRMED ABSENT
# ------------------------------------
#   No numpy
#   No logging module
#   No datetime.now() / time.time()
#   No global or module-level mutable state
# =============================================================================

from __future__ import annotations

import math
from typing import List, Optional

from cfsa.core.exceptions import InputContractViolation
from cfsa.core.jacobian_layer import JacobianMatrix
from cfsa.core.matrix_layer import MatrixAnalysis
from cfsa.core.state_layer import Layer

from .domain import (
    CycleStage,
    LayerAssessment,
    LayerThresholds,
    Severity,
    Violation,
    ViolationType,
)


# =============================================================================
# SECTION 1 -- INTERNAL HELPERS
# =============================================================================

def _fmt(value: float) -> str:
    """Stable short rendering for messages."""
    if math.isinf(value):
        return "inf"
    return "{:.6g}".format(value)


def _lower_bound_score(actual: float, threshold: float) -> float:
    # A zero threshold only fails for a negative reading.
    if threshold <= 0.0:
        return 0.0
    return actual / threshold


def _upper_bound_score(actual: float, threshold: float) -> float:
    if math.isinf(actual):
        return 0.0
    if actual <= 0.0:
        return 1.0
    return threshold / actual


def _clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, value))


class _RuleCollector:
    """Accumulates violations and the worst per-rule score for one layer."""

    def __init__(self, layer: Layer) -> None:
        self.layer = layer
        self.violations: List[Violation] = []
        self.score: float = 1.0

    def below(
        self,
        metric_name:    str,
        actual:         float,
        threshold:      float,
        violation_type: ViolationType,
        severity:       Severity,
        requires_pause: bool,
        label:          str,
    ) -> None:
        """Lower-bound rule: fails when actual < threshold."""
        if actual >= threshold:
            return
        self._record(
            metric_name, actual, threshold, violation_type, severity, requires_pause,
            label + " " + _fmt(actual) + " below threshold " + _fmt(threshold),
        )
        self.score = min(self.score, _lower_bound_score(actual, threshold))

    def above(
        self,
        metric_name:    str,
        actual:         float,
        threshold:      float,
        violation_type: ViolationType,
        severity:       Severity,
        requires_pause: bool,
        label:          str,
    ) -> None:
        """Upper-bound rule: fails when actual > threshold."""
        if actual <= threshold:
            return
        self._record(
            metric_name, actual, threshold, violation_type, severity, requires_pause,
            label + " " + _fmt(actual) + " exceeds bound " + _fmt(threshold),
        )
        self.score = min(self.score, _upper_bound_score(actual, threshold))

    def _record(
        self,
        metric_name:    str,
        actual:         float,
        threshold:      float,
        violation_type: ViolationType,
        severity:       Severity,
        requires_pause: bool,
        message:        str,
    ) -> None:
        self.violations.append(Violation(
            layer=self.layer,
            type=violation_type,
            severity=severity,
            message=self.layer.value + ": " + message,
            metric_name=metric_name,
            actual_value=actual,
            threshold_value=threshold,
            requires_pause=requires_pause,
        ))


# =============================================================================
# SECTION 2 -- RULE TABLE EVALUATION
# =============================================================================

def evaluate_layer_sensitivity(
    layer:            Layer,
    analysis:         MatrixAnalysis,
    thresholds:       LayerThresholds,
    coherence_signal: Optional[float] = None,
    jacobian:         Optional[JacobianMatrix] = None,
) -> LayerAssessment:
    """
    Evaluate one layer's Jacobian invariants against its thresholds.

    Args:
        layer:            Layer being evaluated.
        analysis:         MatrixAnalysis of the layer's Jacobian.
        thresholds:       The layer's LayerThresholds.
        coherence_signal: Externally supplied coherence reading. Required
                          when thresholds.min_coherence is set.
        jacobian:         Optional JacobianMatrix, attached to the result.

    Returns:
        LayerAssessment with stage_reached=EVALUATING.

    Raises:
        InputContractViolation: coherence-gated layer with a missing or
                                non-finite coherence signal.
    """
    rules = _RuleCollector(layer)

    if not analysis.is_empty:
        if thresholds.min_sensitivity is not None:
            rules.below(
                "frobenius_norm", analysis.frobenius_norm, thresholds.min_sensitivity,
                ViolationType.INSUFFICIENT_SENSITIVITY, Severity.CRITICAL, True,
                "sensitivity norm",
            )

        if thresholds.stability_floor is not None and analysis.determinant is not None:
            rules.below(
                "abs_determinant", abs(analysis.determinant), thresholds.stability_floor,
                ViolationType.STABILITY_FLOOR_BREACH, Severity.CRITICAL, True,
                "determinant magnitude",
            )

        ratio = analysis.singular_value_ratio
        if thresholds.max_imbalance_ratio is not None and ratio is not None:
            rules.above(
                "singular_value_ratio", ratio, thresholds.max_imbalance_ratio,
                ViolationType.AUTHORITY_IMBALANCE, Severity.HIGH, False,
                "singular value ratio",
            )

        min_eig = analysis.min_abs_eigenvalue
        if thresholds.min_eigenvalue is not None and min_eig is not None:
            rules.below(
                "min_abs_eigenvalue", min_eig, thresholds.min_eigenvalue,
                ViolationType.EIGENVALUE_INSTABILITY, Severity.HIGH, False,
                "smallest eigenvalue magnitude",
            )

    if thresholds.min_coherence is not None:
        if coherence_signal is None or not math.isfinite(coherence_signal):
            raise InputContractViolation(
                layer=layer.value,
                field_name="coherence_signal",
                value=coherence_signal,
                detail="coherence-gated layer requires a finite coherence signal",
            )
        rules.below(
            "coherence_signal", coherence_signal, thresholds.min_coherence,
            ViolationType.LOW_COHERENCE, Severity.CRITICAL, True,
            "coherence",
        )

    if not analysis.is_empty:
        spread = analysis.eigenvalue_spread
        if thresholds.max_eigenvalue_spread is not None and spread is not None:
            rules.above(
                "eigenvalue_spread", spread, thresholds.max_eigenvalue_spread,
                ViolationType.REASONING_BRITTLENESS, Severity.MEDIUM, False,
                "eigenvalue spread",
            )

        cond = analysis.condition_number
        if thresholds.max_condition_number is not None and cond is not None:
            rules.above(
                "condition_number", cond, thresholds.max_condition_number,
                ViolationType.ILL_CONDITIONED, Severity.HIGH, False,
                "condition number",
            )

    return LayerAssessment(
        layer=layer,
        score=_clamp_unit(rules.score),
        violations=tuple(rules.violations),
        analysis=analysis,
        jacobian=jacobian,
        coherence_signal=coherence_signal,
        stage_reached=CycleStage.EVALUATING,
    )


# =============================================================================
# SECTION 3 -- FAILURE ASSESSMENTS
# =============================================================================

def invalid_input_assessment(
    layer: Layer,
    error: InputContractViolation,
) -> LayerAssessment:
    """Single critical invalid_input violation; score 0.0."""
    violation = Violation(
        layer=layer,
        type=ViolationType.INVALID_INPUT,
        severity=Severity.CRITICAL,
        message=error.message,
        metric_name=error.field_name,
        actual_value=None,
        threshold_value=None,
        requires_pause=True,
    )
    return LayerAssessment(
        layer=layer,
        score=0.0,
        violations=(violation,),
        stage_reached=CycleStage.REPORTING,
    )


def evaluation_failure_assessment(
    layer: Layer,
    error: BaseException,
) -> LayerAssessment:
    """
    Single critical evaluation_failure violation; score 0.0. Used when a
    layer pipeline raises something other than InputContractViolation.
    """
    violation = Violation(
        layer=layer,
        type=ViolationType.EVALUATION_FAILURE,
        severity=Severity.CRITICAL,
        message=(
            layer.value + ": evaluation failed with "
            + type(error).__name__ + ": " + str(error)
        ),
        metric_name="pipeline",
        actual_value=None,
        threshold_value=None,
        requires_pause=True,
    )
    return LayerAssessment(
        layer=layer,
        score=0.0,
        violations=(violation,),
        stage_reached=CycleStage.REPORTING,
    )


# =============================================================================
# SECTION 4 -- MODULE __all__
# =============================================================================

__all__ = [
    "evaluate_layer_sensitivity",
    "invalid_input_assessment",
    "evaluation_failure_assessment",
]
