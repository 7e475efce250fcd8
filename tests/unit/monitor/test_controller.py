# =============================================================================
# CFSA v1.0.0 -- MONITOR: CONTROLLER -- Unit Tests
# File:   tests/unit/monitor/test_controller.py
# =============================================================================
#
# Coverage:
#   construction     fail-fast configuration errors
#   stage machine    IDLE -> ... -> REPORTING -> IDLE, always back to IDLE
#   per-layer faults invalid_input / evaluation_failure isolated to one layer
#   provider faults  one invalid_input per declared layer
#   sinks            emit every cycle, notify only on intervention,
#                    ReportEmissionError with report already in history
#   history / events bounded history, deterministic cycle ids, event stream
#   concurrency      parallel layers match sequential; concurrent cycles
#                    serialise
# =============================================================================

from __future__ import annotations

import threading
from datetime import timedelta

import pytest

from cfsa.core.exceptions import ConfigurationError, ReportEmissionError
from cfsa.core.logging_layer import (
    COHERENCE_TRIUMPH,
    CYCLE_COMPLETED,
    INTERVENTION_REQUESTED,
    LAYER_FAILURE,
    VIOLATION,
    EventFilter,
)
from cfsa.core.matrix_layer import EigenSolver
from cfsa.core.sensitivity_layer import (
    CycleStage,
    LayerThresholds,
    MonitorConfig,
    ViolationType,
    default_monitor_config,
)
from cfsa.core.state_layer import Layer, StateVector
from cfsa.monitor import MonitorController, RecordingSink


# =============================================================================
# SHARED HELPERS
# =============================================================================

def _constant(values, context):
    return [1.0] * len(values)


def _cyclic(values, context):
    return [values[2], values[0], values[1]]


def _spectrum_gated_config() -> MonitorConfig:
    thresholds = dict(default_monitor_config().thresholds)
    thresholds[Layer.ECOLOGICAL] = LayerThresholds(
        weight=0.3, min_sensitivity=0.2, stability_floor=1e-8, min_eigenvalue=0.1,
    )
    return MonitorConfig(thresholds=thresholds)


def _types(report) -> list:
    return [v.type for v in report.violations]


def _events(controller, event_type) -> list:
    return controller.events.query_events(EventFilter(event_type=event_type))


# =============================================================================
# SECTION 1 -- CONSTRUCTION
# =============================================================================

class TestConstruction:

    def test_empty_declarations_rejected(self, make_controller):
        with pytest.raises(ConfigurationError):
            make_controller(declarations=[])

    def test_duplicate_layer_rejected(self, make_controller, make_declarations):
        decls = make_declarations()
        with pytest.raises(ConfigurationError):
            make_controller(declarations=decls + [decls[0]])

    def test_layer_without_thresholds_rejected(self, make_controller):
        config = MonitorConfig(thresholds={Layer.ECOLOGICAL: LayerThresholds(weight=1.0)})
        with pytest.raises(ConfigurationError):
            make_controller(config=config)

    def test_empty_system_id_rejected(self, make_controller):
        with pytest.raises(ConfigurationError):
            make_controller(system_id="")

    def test_config_type_checked(self, make_declarations, static_provider, make_snapshot, sink):
        with pytest.raises(ConfigurationError):
            MonitorController(
                "grid-north", make_declarations(), {"epsilon": 1e-6},
                static_provider(make_snapshot()), sink,
            )

    def test_declarations_sorted_by_layer(self, make_controller, make_declarations):
        controller = make_controller(declarations=list(reversed(make_declarations())))
        assert [d.layer for d in controller.declarations] == list(Layer)

    def test_starts_idle(self, make_controller):
        controller = make_controller()
        assert controller.stage is CycleStage.IDLE
        assert len(controller.history) == 0


# =============================================================================
# SECTION 2 -- CLEAN CYCLE
# =============================================================================

class TestCleanCycle:

    def test_identity_cycle_is_clean(self, make_controller, sink, ts):
        controller = make_controller(sink=sink, intervention_sink=sink)
        report = controller.run_cycle(ts)
        assert report.violations == ()
        assert report.overall_coherence >= 0.95
        assert report.triumph_flag
        assert not report.requires_intervention
        assert sink.reports == (report,)
        assert sink.interventions == ()

    def test_report_fields(self, make_controller, ts, system_id):
        report = make_controller().run_cycle(ts)
        assert report.cycle_id == "CYC-0000000000000001"
        assert report.timestamp == ts
        assert report.system_id == system_id
        assert set(report.per_layer_scores) == set(Layer)
        assert [a.layer for a in report.assessments] == list(Layer)
        assert all(a.jacobian is not None for a in report.assessments)

    def test_stage_trace(self, make_controller, ts):
        controller = make_controller()
        controller.run_cycle(ts)
        assert controller.last_stage_trace == (
            CycleStage.IDLE,
            CycleStage.SAMPLING,
            CycleStage.ESTIMATING,
            CycleStage.ANALYZING,
            CycleStage.EVALUATING,
            CycleStage.AGGREGATING,
            CycleStage.REPORTING,
            CycleStage.IDLE,
        )
        assert controller.stage is CycleStage.IDLE

    def test_cycle_ids_increase(self, make_controller, ts):
        controller = make_controller()
        ids = [controller.run_cycle(ts + timedelta(seconds=i)).cycle_id for i in range(3)]
        assert ids == ["CYC-0000000000000001", "CYC-0000000000000002", "CYC-0000000000000003"]

    def test_power_iteration_solver(self, make_controller, ts):
        config = default_monitor_config(eigen_solver=EigenSolver.POWER_ITERATION)
        report = make_controller(config=config).run_cycle(ts)
        assert report.violations == ()

    def test_permutation_jacobian_is_not_degenerate(self, make_controller, make_declarations, ts):
        report = make_controller(
            declarations=make_declarations(objectives={Layer.ECOLOGICAL: _cyclic}),
            config=_spectrum_gated_config(),
        ).run_cycle(ts)
        assert report.violations == ()
        analysis = report.assessment(Layer.ECOLOGICAL).analysis
        assert analysis.min_abs_eigenvalue == pytest.approx(1.0, abs=1e-6)
        assert abs(analysis.determinant) == pytest.approx(1.0, abs=1e-6)
        assert report.per_layer_scores[Layer.ECOLOGICAL] == 1.0

    def test_non_datetime_timestamp_rejected(self, make_controller):
        controller = make_controller()
        with pytest.raises(ConfigurationError):
            controller.run_cycle("2025-06-01")
        assert len(controller.history) == 0


# =============================================================================
# SECTION 3 -- DEGRADED LAYERS
# =============================================================================

class TestDegradedLayers:

    def test_zero_jacobian_requests_intervention(self, make_controller, make_declarations, sink, ts):
        controller = make_controller(
            declarations=make_declarations(objective=_constant),
            sink=sink,
            intervention_sink=sink,
        )
        report = controller.run_cycle(ts)
        assert report.requires_intervention
        assert ViolationType.INSUFFICIENT_SENSITIVITY in _types(report)
        assert ViolationType.STABILITY_FLOOR_BREACH in _types(report)
        assert ViolationType.INSUFFICIENT_OVERALL_COHERENCE in _types(report)
        assert len(sink.interventions) == 1
        system_id, violations = sink.interventions[0]
        assert system_id == report.system_id
        assert violations == report.violations

    def test_nan_layer_isolated(self, make_controller, make_snapshot, ts):
        bad = StateVector(Layer.TEMPORAL, ("short_term", "long_term"), (float("nan"), 0.5))
        report = make_controller(snapshot=make_snapshot(overrides={Layer.TEMPORAL: bad})).run_cycle(ts)
        invalid = report.violations_of_type(ViolationType.INVALID_INPUT)
        assert len(invalid) == 1
        assert invalid[0].layer is Layer.TEMPORAL
        assert report.per_layer_scores[Layer.TEMPORAL] == 0.0
        assert report.assessment(Layer.TEMPORAL).stage_reached is CycleStage.REPORTING
        for layer in (Layer.ECOLOGICAL, Layer.COGNITIVE, Layer.CONSENT):
            assert report.per_layer_scores[layer] == 1.0
            assert report.assessment(layer).analysis is not None
        assert report.requires_intervention

    def test_missing_layer_is_invalid_input(self, make_controller, make_snapshot, ts):
        snap = make_snapshot()
        layers = {k: v for k, v in snap.layers.items() if k is not Layer.CONSENT}
        snap = type(snap)(snap.system_id, layers, snap.coherence_signals)
        report = make_controller(snapshot=snap).run_cycle(ts)
        assert [v.layer for v in report.violations_of_type(ViolationType.INVALID_INPUT)] == [Layer.CONSENT]

    def test_layout_mismatch_is_invalid_input(self, make_controller, make_snapshot, ts):
        swapped = StateVector(Layer.CONSENT, ("individual", "community"), (0.5, 0.5))
        report = make_controller(snapshot=make_snapshot(overrides={Layer.CONSENT: swapped})).run_cycle(ts)
        invalid = report.violations_of_type(ViolationType.INVALID_INPUT)
        assert len(invalid) == 1 and invalid[0].layer is Layer.CONSENT

    def test_missing_coherence_signal_is_invalid_input(self, make_controller, make_snapshot, ts):
        report = make_controller(snapshot=make_snapshot(coherence=None)).run_cycle(ts)
        invalid = report.violations_of_type(ViolationType.INVALID_INPUT)
        assert [v.layer for v in invalid] == [Layer.COGNITIVE]

    def test_low_coherence_signal(self, make_controller, make_snapshot, ts):
        report = make_controller(snapshot=make_snapshot(coherence=0.35)).run_cycle(ts)
        assert report.violations_for(Layer.COGNITIVE)[0].type is ViolationType.LOW_COHERENCE
        assert report.per_layer_scores[Layer.COGNITIVE] == pytest.approx(0.5)

    def test_raising_objective_is_invalid_input(self, make_controller, make_declarations, ts):
        def boom(values, context):
            raise ValueError("model unavailable")

        report = make_controller(
            declarations=make_declarations(objectives={Layer.ECOLOGICAL: boom})
        ).run_cycle(ts)
        invalid = report.violations_of_type(ViolationType.INVALID_INPUT)
        assert [v.layer for v in invalid] == [Layer.ECOLOGICAL]

    def test_unexpected_error_is_evaluation_failure(self, make_controller, ts, monkeypatch):
        import cfsa.monitor.controller as controller_module

        real = controller_module.evaluate_layer_sensitivity

        def flaky(layer, *args, **kwargs):
            if layer is Layer.CONSENT:
                raise ZeroDivisionError("unexpected")
            return real(layer, *args, **kwargs)

        monkeypatch.setattr(controller_module, "evaluate_layer_sensitivity", flaky)
        report = make_controller().run_cycle(ts)
        failures = report.violations_of_type(ViolationType.EVALUATION_FAILURE)
        assert [v.layer for v in failures] == [Layer.CONSENT]
        assert failures[0].requires_pause
        assert report.per_layer_scores[Layer.ECOLOGICAL] == 1.0

    def test_unconverged_spectrum_is_evaluation_failure(self, make_controller, make_declarations, ts, monkeypatch):
        import cfsa.core.matrix_layer as matrix_module

        monkeypatch.setattr(matrix_module, "QR_MAX_ITERATIONS", 0)
        report = make_controller(
            declarations=make_declarations(objectives={Layer.ECOLOGICAL: _cyclic}),
            config=_spectrum_gated_config(),
        ).run_cycle(ts)
        failures = report.violations_of_type(ViolationType.EVALUATION_FAILURE)
        assert [v.layer for v in failures] == [Layer.ECOLOGICAL]
        assert ViolationType.EIGENVALUE_INSTABILITY not in _types(report)
        assert report.requires_intervention


# =============================================================================
# SECTION 4 -- PROVIDER FAULTS / evaluate_snapshot
# =============================================================================

class TestProviderFaults:

    def test_provider_failure_reports_every_layer(self, make_controller, failing_provider, sink, ts):
        controller = make_controller(provider=failing_provider, sink=sink)
        report = controller.run_cycle(ts)
        invalid = report.violations_of_type(ViolationType.INVALID_INPUT)
        assert [v.layer for v in invalid] == list(Layer)
        assert report.overall_coherence == 0.0
        assert report.requires_intervention
        assert sink.reports == (report,)
        assert controller.stage is CycleStage.IDLE

    def test_wrong_system_id_reports_every_layer(self, make_controller, make_snapshot, ts):
        report = make_controller(snapshot=make_snapshot(system_id="other")).run_cycle(ts)
        assert len(report.violations_of_type(ViolationType.INVALID_INPUT)) == 4

    def test_evaluate_snapshot_bypasses_provider(self, make_controller, make_snapshot, static_provider, ts):
        provider = static_provider(make_snapshot(coherence=0.1))
        controller = make_controller(provider=provider)
        report = controller.evaluate_snapshot(make_snapshot(), ts)
        assert provider.calls == 0
        assert report.violations == ()
        assert controller.history.latest() is report


# =============================================================================
# SECTION 5 -- SINKS
# =============================================================================

class TestSinks:

    def test_report_sink_failure(self, make_controller, failing_sink, ts):
        controller = make_controller(sink=failing_sink)
        with pytest.raises(ReportEmissionError) as info:
            controller.run_cycle(ts)
        assert info.value.field_name == "report_sink"
        assert controller.history.latest() is info.value.report
        assert isinstance(info.value.cause, RuntimeError)
        assert controller.stage is CycleStage.IDLE

    def test_intervention_attempted_when_report_sink_fails(
        self, make_controller, make_declarations, failing_sink, sink, ts
    ):
        controller = make_controller(
            declarations=make_declarations(objective=_constant),
            sink=failing_sink,
            intervention_sink=sink,
        )
        with pytest.raises(ReportEmissionError):
            controller.run_cycle(ts)
        assert len(sink.interventions) == 1

    def test_intervention_sink_failure(self, make_controller, make_declarations, failing_sink, sink, ts):
        controller = make_controller(
            declarations=make_declarations(objective=_constant),
            sink=sink,
            intervention_sink=failing_sink,
        )
        with pytest.raises(ReportEmissionError) as info:
            controller.run_cycle(ts)
        assert info.value.field_name == "intervention_sink"
        assert len(sink.reports) == 1

    def test_no_intervention_sink_is_allowed(self, make_controller, make_declarations, ts):
        report = make_controller(declarations=make_declarations(objective=_constant)).run_cycle(ts)
        assert report.requires_intervention


# =============================================================================
# SECTION 6 -- HISTORY AND EVENTS
# =============================================================================

class TestHistoryAndEvents:

    def test_history_bounded(self, make_controller, ts):
        controller = make_controller(config=default_monitor_config(history_capacity=2))
        for i in range(3):
            controller.run_cycle(ts + timedelta(minutes=i))
        ids = [r.cycle_id for r in controller.history.reports()]
        assert ids == ["CYC-0000000000000002", "CYC-0000000000000003"]

    def test_clean_cycle_events(self, make_controller, ts):
        controller = make_controller()
        controller.run_cycle(ts)
        assert len(_events(controller, CYCLE_COMPLETED)) == 1
        assert len(_events(controller, COHERENCE_TRIUMPH)) == 1
        assert _events(controller, VIOLATION) == []
        assert _events(controller, INTERVENTION_REQUESTED) == []

    def test_violation_events_match_report(self, make_controller, make_declarations, ts):
        controller = make_controller(declarations=make_declarations(objective=_constant))
        report = controller.run_cycle(ts)
        assert len(_events(controller, VIOLATION)) == len(report.violations)
        assert len(_events(controller, INTERVENTION_REQUESTED)) == 1
        completed = _events(controller, CYCLE_COMPLETED)[0]
        assert completed.data["cycle_id"] == report.cycle_id
        assert completed.timestamp == ts

    def test_layer_failure_event(self, make_controller, make_snapshot, ts):
        bad = StateVector(Layer.ECOLOGICAL, ("biodiversity", "water", "soil"), (0.5, float("inf"), 0.5))
        controller = make_controller(snapshot=make_snapshot(overrides={Layer.ECOLOGICAL: bad}))
        controller.run_cycle(ts)
        failures = _events(controller, LAYER_FAILURE)
        assert len(failures) == 1
        assert failures[0].data["layer"] == "ecological"

    def test_trail_is_chained_per_cycle(self, make_controller, ts):
        controller = make_controller()
        first = controller.run_cycle(ts)
        controller.run_cycle(ts + timedelta(minutes=1))
        assert controller.events.verify_chain()
        assert {e.type for e in controller.events.events_for_cycle(first.cycle_id)} == {
            CYCLE_COMPLETED, COHERENCE_TRIUMPH,
        }

    def test_gate_violation_event_has_no_layer(self, make_controller, make_declarations, ts):
        controller = make_controller(declarations=make_declarations(objective=_constant))
        controller.run_cycle(ts)
        gate = [e for e in _events(controller, VIOLATION) if e.data["type"] == "insufficient_overall_coherence"]
        assert len(gate) == 1
        assert gate[0].data["layer"] is None


# =============================================================================
# SECTION 7 -- CONCURRENCY
# =============================================================================

class TestConcurrency:

    def test_parallel_layers_match_sequential(self, make_controller, make_snapshot, ts):
        snap = make_snapshot(coherence=0.4)
        sequential = make_controller(snapshot=snap).run_cycle(ts)
        with make_controller(
            snapshot=snap, config=default_monitor_config(parallel_layers=True)
        ) as controller:
            parallel = controller.run_cycle(ts)
        assert dict(parallel.per_layer_scores) == dict(sequential.per_layer_scores)
        assert _types(parallel) == _types(sequential)
        assert parallel.overall_coherence == sequential.overall_coherence

    def test_concurrent_cycles_serialise(self, make_controller, ts):
        controller = make_controller(config=default_monitor_config(history_capacity=50))
        reports = []
        lock = threading.Lock()

        def worker(offset):
            report = controller.run_cycle(ts + timedelta(seconds=offset))
            with lock:
                reports.append(report)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len({r.cycle_id for r in reports}) == 8
        assert len(controller.history) == 8
        assert controller.stage is CycleStage.IDLE

    def test_close_is_idempotent(self, make_controller):
        controller = make_controller(config=default_monitor_config(parallel_layers=True))
        controller.close()
        controller.close()

    def test_recording_sink_shared_between_controllers(self, make_controller, ts):
        shared = RecordingSink()
        make_controller(sink=shared, system_id="a").run_cycle(ts)
        make_controller(sink=shared, system_id="b").run_cycle(ts)
        assert [r.system_id for r in shared.reports] == ["a", "b"]
