# usage_example.py
# Minimal usage example for cfsa/monitor/controller.py.
# This file is not part of the cfsa package. For reference only.

from datetime import datetime

from cfsa.core.state_layer import Layer, LayerDeclaration, StateVector, SystemSnapshot
from cfsa.core.sensitivity_layer import default_monitor_config
from cfsa.monitor import MonitorController, RecordingSink
from cfsa.report.engine import format_report

COMPONENTS: dict[Layer, tuple[str, ...]] = {
    Layer.ECOLOGICAL: ("biodiversity", "water", "soil"),
    Layer.COGNITIVE:  ("clarity", "focus"),
    Layer.CONSENT:    ("community", "individual"),
    Layer.TEMPORAL:   ("short_term", "long_term"),
}


# Objectives: each reward component responds to exactly one state component,
# so every Jacobian is (approximately) the identity.
def identity_objective(layer_values, context):
    return list(layer_values)


class FixedProvider:
    def __init__(self, snapshot: SystemSnapshot) -> None:
        self.snapshot = snapshot

    def get_snapshot(self, system_id: str) -> SystemSnapshot:
        return self.snapshot


snapshot = SystemSnapshot(
    system_id="watershed-7",
    layers={
        layer: StateVector(layer, names, tuple(0.5 for _ in names))
        for layer, names in COMPONENTS.items()
    },
    coherence_signals={Layer.COGNITIVE: 0.9},
)

declarations = [
    LayerDeclaration(layer, names, identity_objective, reward_dims=len(names))
    for layer, names in COMPONENTS.items()
]

sink = RecordingSink()
with MonitorController(
    system_id="watershed-7",
    declarations=declarations,
    config=default_monitor_config(),
    state_provider=FixedProvider(snapshot),
    report_sink=sink,
    intervention_sink=sink,
) as controller:
    report = controller.run_cycle(datetime(2025, 1, 1, 12, 0, 0))

summary = format_report(report)
print(f"cycle:     {summary['cycle_id']}")
print(f"status:    {summary['status']}")
print(f"coherence: {summary['coherence']['overall']}")
print(f"triumph:   {summary['triumph']}")
print(f"pause:     {summary['requires_intervention']}")

# Expected output:
# cycle:     CYC-0000000000000001
# status:    COMPLIANT
# coherence: 100.0%
# triumph:   True
# pause:     False

# Degraded inputs:
# coherence_signals={Layer.COGNITIVE: 0.5}      -> low_coherence, pause
# identity_objective -> lambda v, c: [0.0] * len(v)
#                                                -> insufficient_sensitivity,
#                                                   stability_floor_breach, pause
# StateVector(..., values=(float("nan"), ...))   -> invalid_input for that layer
