from .domain import (
    CycleStage,
    LayerAssessment,
    LayerThresholds,
    MonitorConfig,
    Severity,
    Violation,
    ViolationType,
    default_monitor_config,
)
from .evaluator import (
    evaluate_layer_sensitivity,
    evaluation_failure_assessment,
    invalid_input_assessment,
)
from .aggregator import (
    CoherenceAggregate,
    aggregate_coherence,
    weighted_coherence,
)

__all__ = [
    # Enumerations
    "Severity",
    "ViolationType",
    "CycleStage",
    # Domain dataclasses
    "Violation",
    "LayerThresholds",
    "MonitorConfig",
    "default_monitor_config",
    "LayerAssessment",
    # Evaluation
    "evaluate_layer_sensitivity",
    "invalid_input_assessment",
    "evaluation_failure_assessment",
    # Aggregation
    "CoherenceAggregate",
    "aggregate_coherence",
    "weighted_coherence",
]
