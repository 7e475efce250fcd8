# =============================================================================
# CFSA v1.0.0 -- SENSITIVITY LAYER: AGGREGATOR
# File:   cfsa/core/sensitivity_layer/aggregator.py
# =============================================================================
#
# SCOPE
# -----
# Combines per-layer scores into one overall coherence score and enforces
# the operational authorization threshold as an aggregate gate.
#
#   overall = sum(score_i * weight_i) / sum(weight_i)
#
# over the layers that were assessed. Weights come from LayerThresholds.
#
#   overall <  threshold                      -> insufficient_overall_coherence
#                                                (critical, pause)
#   overall >= threshold and no violations    -> triumph_flag = True
#
# The triumph flag is informational only. It never triggers an action.
#
# INVARIANTS
# ----------
# INV-CA-01  overall_coherence in [0, 1].
# INV-CA-02  triumph_flag implies gate_violation is None.
# INV-CA-03  weight sum > 0 is guaranteed by MonitorConfig; a zero sum over
#            the assessed subset yields overall 0.0 rather than a division.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from cfsa.core.state_layer import Layer

from .domain import (
    LayerAssessment,
    LayerThresholds,
    Severity,
    Violation,
    ViolationType,
)


@dataclass(frozen=True)
class CoherenceAggregate:
    """Output of aggregate_coherence()."""
    overall_coherence: float
    triumph_flag:      bool
    gate_violation:    Optional[Violation]


def weighted_coherence(
    assessments: Sequence[LayerAssessment],
    thresholds:  Mapping[Layer, LayerThresholds],
) -> float:
    """Weighted mean of layer scores, clamped to [0, 1]."""
    numerator: float = 0.0
    denominator: float = 0.0
    for assessment in assessments:
        weight: float = thresholds[assessment.layer].weight
        numerator += assessment.score * weight
        denominator += weight
    if denominator <= 0.0:
        return 0.0
    return max(0.0, min(1.0, numerator / denominator))


def aggregate_coherence(
    assessments:             Sequence[LayerAssessment],
    thresholds:              Mapping[Layer, LayerThresholds],
    authorization_threshold: float,
) -> CoherenceAggregate:
    """
    Aggregate layer assessments into the cycle's overall coherence.

    Args:
        assessments:             One LayerAssessment per evaluated layer.
        thresholds:              LayerThresholds keyed by Layer (weights).
        authorization_threshold: Operational authorization threshold in [0, 1].

    Returns:
        CoherenceAggregate. gate_violation is set iff overall is below the
        threshold.
    """
    overall: float = weighted_coherence(assessments, thresholds)
    layer_violations: int = sum(len(a.violations) for a in assessments)

    if overall < authorization_threshold:
        gate = Violation(
            layer=None,
            type=ViolationType.INSUFFICIENT_OVERALL_COHERENCE,
            severity=Severity.CRITICAL,
            message=(
                "overall coherence " + "{:.6g}".format(overall)
                + " below operational authorization threshold "
                + "{:.6g}".format(authorization_threshold)
            ),
            metric_name="overall_coherence",
            actual_value=overall,
            threshold_value=authorization_threshold,
            requires_pause=True,
        )
        return CoherenceAggregate(overall, False, gate)

    return CoherenceAggregate(overall, layer_violations == 0, None)


__all__ = [
    "CoherenceAggregate",
    "weighted_coherence",
    "aggregate_coherence",
]
