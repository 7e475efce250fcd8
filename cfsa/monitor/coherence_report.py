# cfsa/monitor/coherence_report.py
# Version: 1.0.0
# Per-cycle output record of the MonitorController.
#
# One CoherenceReport is created per evaluation cycle, never mutated, and
# appended to the owning controller's CoherenceHistory at the end of the
# REPORTING stage.
#
# Standard import:
#   from cfsa.monitor.coherence_report import CoherenceReport

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from cfsa.core.sensitivity_layer import LayerAssessment, Severity, Violation, ViolationType
from cfsa.core.state_layer import Layer


def make_cycle_id(counter: int) -> str:
    """Format: "CYC-{counter:016d}". Counter is per controller."""
    return "CYC-{:016d}".format(counter)


@dataclass(frozen=True)
class CoherenceReport:
    """
    Result of one monitor cycle.

    Fields
    ------
    cycle_id              : Deterministic per-controller id (CYC-...).
    timestamp             : Caller-supplied cycle timestamp.
    system_id             : Monitored system.
    per_layer_scores      : Layer -> score in [0, 1], read-only.
    overall_coherence     : Weighted mean of per_layer_scores, in [0, 1].
    violations            : Layer violations in layer order, then the
                            aggregate gate violation if any.
    triumph_flag          : overall >= authorization threshold and no
                            violations. Informational only.
    requires_intervention : True iff any violation requires a pause.
    assessments           : Per-layer LayerAssessment, in layer order.
    """

    cycle_id:              str
    timestamp:             datetime
    system_id:             str
    per_layer_scores:      Mapping[Layer, float]
    overall_coherence:     float
    violations:            Tuple[Violation, ...]
    triumph_flag:          bool
    requires_intervention: bool
    assessments:           Tuple[LayerAssessment, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "per_layer_scores", MappingProxyType(dict(self.per_layer_scores))
        )
        object.__setattr__(self, "violations", tuple(self.violations))
        object.__setattr__(self, "assessments", tuple(self.assessments))

    def violations_for(self, layer: Optional[Layer]) -> Tuple[Violation, ...]:
        return tuple(v for v in self.violations if v.layer is layer)

    def violations_of_type(self, violation_type: ViolationType) -> Tuple[Violation, ...]:
        return tuple(v for v in self.violations if v.type is violation_type)

    @property
    def critical_count(self) -> int:
        return sum(1 for v in self.violations if v.severity is Severity.CRITICAL)

    def assessment(self, layer: Layer) -> Optional[LayerAssessment]:
        for item in self.assessments:
            if item.layer is layer:
                return item
        return None


__all__ = ["CoherenceReport", "make_cycle_id"]
