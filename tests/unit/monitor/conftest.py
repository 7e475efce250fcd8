from datetime import datetime

import pytest

from cfsa.core.sensitivity_layer import MonitorConfig, default_monitor_config
from cfsa.core.state_layer import Layer, LayerDeclaration, StateVector, SystemSnapshot
from cfsa.monitor import MonitorController, RecordingSink

_SYSTEM_ID = "grid-north"

_COMPONENTS = {
    Layer.ECOLOGICAL: ("biodiversity", "water", "soil"),
    Layer.COGNITIVE:  ("clarity", "focus"),
    Layer.CONSENT:    ("community", "individual"),
    Layer.TEMPORAL:   ("short_term", "long_term"),
}


def _identity_objective(values, context):
    return list(values)


def _make_snapshot(values=0.5, coherence=0.9, system_id=_SYSTEM_ID, overrides=None) -> SystemSnapshot:
    layers = {
        layer: StateVector(layer, names, tuple(values for _ in names))
        for layer, names in _COMPONENTS.items()
    }
    for layer, vector in (overrides or {}).items():
        layers[layer] = vector
    signals = {} if coherence is None else {Layer.COGNITIVE: coherence}
    return SystemSnapshot(system_id, layers, signals)


def _make_declarations(objective=_identity_objective, objectives=None) -> list:
    objectives = objectives or {}
    return [
        LayerDeclaration(layer, names, objectives.get(layer, objective), reward_dims=len(names))
        for layer, names in _COMPONENTS.items()
    ]


class StaticProvider:
    def __init__(self, snapshot: SystemSnapshot) -> None:
        self.snapshot = snapshot
        self.calls = 0

    def get_snapshot(self, system_id: str) -> SystemSnapshot:
        self.calls += 1
        return self.snapshot


class FailingProvider:
    def get_snapshot(self, system_id: str) -> SystemSnapshot:
        raise ConnectionError("state bus unavailable")


class FailingSink:
    def __init__(self) -> None:
        self.attempts = 0

    def emit(self, report) -> None:
        self.attempts += 1
        raise RuntimeError("sink offline")

    def notify(self, system_id, violations) -> None:
        self.attempts += 1
        raise RuntimeError("pager offline")


def _make_controller(
    snapshot=None,
    declarations=None,
    config: MonitorConfig = None,
    provider=None,
    sink=None,
    intervention_sink=None,
    system_id=_SYSTEM_ID,
) -> MonitorController:
    if provider is None:
        provider = StaticProvider(snapshot if snapshot is not None else _make_snapshot(system_id=system_id))
    return MonitorController(
        system_id=system_id,
        declarations=declarations if declarations is not None else _make_declarations(),
        config=config if config is not None else default_monitor_config(),
        state_provider=provider,
        report_sink=sink if sink is not None else RecordingSink(),
        intervention_sink=intervention_sink,
    )


@pytest.fixture
def ts() -> datetime:
    return datetime(2025, 6, 1, 8, 0, 0)


@pytest.fixture
def system_id() -> str:
    return _SYSTEM_ID


@pytest.fixture
def components() -> dict:
    return dict(_COMPONENTS)


@pytest.fixture
def make_snapshot():
    """Factory: snapshot with every component at `values` and cognitive coherence."""
    return _make_snapshot


@pytest.fixture
def make_declarations():
    """Factory: one declaration per layer, identity objective unless overridden."""
    return _make_declarations


@pytest.fixture
def make_controller():
    """Factory: controller over a StaticProvider with default thresholds."""
    return _make_controller


@pytest.fixture
def static_provider():
    return StaticProvider


@pytest.fixture
def failing_provider() -> FailingProvider:
    return FailingProvider()


@pytest.fixture
def failing_sink() -> FailingSink:
    return FailingSink()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
