# =============================================================================
# CFSA v1.0.0 -- MONITOR: CONTROLLER
# File:   cfsa/monitor/controller.py
# =============================================================================
#
# SCOPE
# -----
# MonitorController orchestrates one evaluation cycle end to end for one
# system_id:
#
#   IDLE -> SAMPLING -> ESTIMATING -> ANALYZING -> EVALUATING
#        -> AGGREGATING -> REPORTING -> IDLE
#
#   SAMPLING     pull a SystemSnapshot from the StateProvider
#   ESTIMATING   per layer: input contract checks + forward-difference Jacobian
#   ANALYZING    per layer: matrix invariants (cached on the JacobianMatrix)
#   EVALUATING   per layer: threshold rule table -> LayerAssessment
#   AGGREGATING  weighted coherence + authorization gate
#   REPORTING    build CoherenceReport, append to history, log events,
#                emit to sinks
#
# A layer that breaks its input contract short-circuits to REPORTING with a
# single critical invalid_input violation. Other layers keep running.
# Any other exception inside a layer pipeline becomes a critical
# evaluation_failure violation for that layer. A report is always produced.
#
# CONCURRENCY
# -----------
#   - One threading.Lock per controller serialises cycles. Two cycles of the
#     same controller never overlap.
#   - parallel_layers=True runs each per-layer phase on a ThreadPoolExecutor
#     owned by the controller; every phase is joined before the next stage.
#   - History is appended only at the end of REPORTING.
#
# ERRORS THAT ESCAPE
# ------------------
#   ConfigurationError    construction only, or a non-datetime timestamp.
#   ReportEmissionError   a sink raised. The report is in history and is
#                         attached to the exception.
# =============================================================================

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

from cfsa.core.exceptions import (
    ConfigurationError,
    InputContractViolation,
    ReportEmissionError,
)
from cfsa.core.jacobian_layer import JacobianEstimator, JacobianMatrix
from cfsa.core.logging_layer import (
    COHERENCE_TRIUMPH,
    CYCLE_COMPLETED,
    INTERVENTION_REQUESTED,
    LAYER_FAILURE,
    VIOLATION,
    EventLogger,
)
from cfsa.core.matrix_layer import MatrixAnalysis
from cfsa.core.sensitivity_layer import (
    CycleStage,
    LayerAssessment,
    MonitorConfig,
    Violation,
    ViolationType,
    aggregate_coherence,
    evaluate_layer_sensitivity,
    evaluation_failure_assessment,
    invalid_input_assessment,
)
from cfsa.core.state_layer import (
    Layer,
    LayerDeclaration,
    StateProvider,
    StateVector,
    SystemSnapshot,
)
from cfsa.monitor.coherence_report import CoherenceReport, make_cycle_id
from cfsa.monitor.history import CoherenceHistory
from cfsa.monitor.sinks import InterventionSink, ReportSink

T = TypeVar("T")
R = TypeVar("R")

_FAILURE_TYPES = (ViolationType.INVALID_INPUT, ViolationType.EVALUATION_FAILURE)


# =============================================================================
# SECTION 1 -- INPUT CONTRACT CHECKS
# =============================================================================

def _checked_vector(declaration: LayerDeclaration, snapshot: SystemSnapshot) -> StateVector:
    """Missing layer or a layout different from the declaration."""
    layer = declaration.layer
    if layer not in snapshot.layers:
        raise InputContractViolation(
            layer=layer.value,
            field_name="layers",
            value=sorted(present.value for present in snapshot.layers),
            detail="snapshot does not contain the declared layer",
        )
    vector = snapshot.vector(layer)
    if vector.components != declaration.components:
        raise InputContractViolation(
            layer=layer.value,
            field_name="components",
            value=vector.components,
            detail="component layout must be " + repr(declaration.components),
        )
    return vector


def _checked_signal(
    declaration: LayerDeclaration,
    snapshot:    SystemSnapshot,
    config:      MonitorConfig,
) -> Optional[float]:
    layer = declaration.layer
    signal = snapshot.coherence_signals.get(layer)
    if config.thresholds_for(layer).is_coherence_gated and signal is None:
        raise InputContractViolation(
            layer=layer.value,
            field_name="coherence_signals",
            value=None,
            detail="coherence-gated layer requires a coherence signal",
        )
    return signal


# =============================================================================
# SECTION 2 -- CONTROLLER
# =============================================================================

class MonitorController:
    """
    Runs monitor cycles for exactly one system_id.

    Thresholds, epsilon and layer declarations are fixed for the lifetime of
    the controller. To change them, build a new controller.
    """

    def __init__(
        self,
        system_id:         str,
        declarations:      Sequence[LayerDeclaration],
        config:            MonitorConfig,
        state_provider:    StateProvider,
        report_sink:       ReportSink,
        intervention_sink: Optional[InterventionSink] = None,
        event_logger:      Optional[EventLogger] = None,
    ) -> None:
        if not isinstance(system_id, str) or not system_id:
            raise ConfigurationError("system_id", system_id, "must be a non-empty string")
        if not isinstance(config, MonitorConfig):
            raise ConfigurationError("config", config, "must be a MonitorConfig")
        declarations = tuple(declarations)
        if not declarations:
            raise ConfigurationError("declarations", declarations, "must not be empty")
        seen: Dict[Layer, LayerDeclaration] = {}
        for declaration in declarations:
            if not isinstance(declaration, LayerDeclaration):
                raise ConfigurationError(
                    "declarations", declaration, "must contain LayerDeclaration instances"
                )
            if declaration.layer in seen:
                raise ConfigurationError(
                    "declarations", declaration.layer.value, "layers must be unique"
                )
            if declaration.layer not in config.thresholds:
                raise ConfigurationError(
                    "declarations",
                    declaration.layer.value,
                    "layer has no LayerThresholds in config",
                )
            seen[declaration.layer] = declaration
        if state_provider is None:
            raise ConfigurationError("state_provider", None, "is required")
        if report_sink is None:
            raise ConfigurationError("report_sink", None, "is required")

        self._system_id = system_id
        self._config = config
        # Layer enum order keeps reports deterministic regardless of
        # declaration order.
        self._declarations: Tuple[LayerDeclaration, ...] = tuple(
            seen[layer] for layer in Layer if layer in seen
        )
        self._state_provider = state_provider
        self._report_sink = report_sink
        self._intervention_sink = intervention_sink
        self._events = event_logger if event_logger is not None else EventLogger()

        self._estimator = JacobianEstimator(
            epsilon=config.epsilon,
            negligible=config.negligible_singular_value,
            solver=config.eigen_solver,
        )
        self._history = CoherenceHistory(config.history_capacity)
        self._lock = threading.Lock()
        self._stage: CycleStage = CycleStage.IDLE
        self._stage_trace: List[CycleStage] = []
        self._cycle_counter: int = 0
        self._executor: Optional[ThreadPoolExecutor] = None
        if config.parallel_layers:
            self._executor = ThreadPoolExecutor(
                max_workers=len(self._declarations),
                thread_name_prefix="cfsa-" + system_id,
            )

    # -----------------------------------------------------------------------
    # Properties
    # -----------------------------------------------------------------------

    @property
    def system_id(self) -> str:
        return self._system_id

    @property
    def config(self) -> MonitorConfig:
        return self._config

    @property
    def declarations(self) -> Tuple[LayerDeclaration, ...]:
        return self._declarations

    @property
    def stage(self) -> CycleStage:
        return self._stage

    @property
    def last_stage_trace(self) -> Tuple[CycleStage, ...]:
        """Stages visited by the most recent cycle, ending in IDLE."""
        return tuple(self._stage_trace)

    @property
    def history(self) -> CoherenceHistory:
        return self._history

    @property
    def events(self) -> EventLogger:
        return self._events

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "MonitorController":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    def run_cycle(self, timestamp: datetime) -> CoherenceReport:
        """
        Pull a snapshot from the StateProvider and run one full cycle.

        A StateProvider failure yields a report with one invalid_input
        violation per declared layer.

        Raises
        ------
        ConfigurationError  : timestamp is not a datetime.
        ReportEmissionError : a sink raised; the report is attached.
        """
        _check_timestamp(timestamp)
        with self._lock:
            self._begin()
            try:
                self._enter(CycleStage.SAMPLING)
                try:
                    snapshot = self._state_provider.get_snapshot(self._system_id)
                except Exception as exc:
                    error = InputContractViolation(
                        layer="",
                        field_name="state_provider",
                        value=type(exc).__name__ + ": " + str(exc),
                        detail="state provider failed to supply a snapshot",
                    )
                    assessments = self._fail_all(error)
                else:
                    assessments = self._assess_snapshot(snapshot, timestamp)
                return self._finish(assessments, timestamp)
            finally:
                self._enter(CycleStage.IDLE)

    def evaluate_snapshot(self, snapshot: SystemSnapshot, timestamp: datetime) -> CoherenceReport:
        """
        Run one full cycle on a caller-supplied snapshot instead of pulling
        from the StateProvider. History, events and sinks behave exactly as
        in run_cycle().
        """
        _check_timestamp(timestamp)
        with self._lock:
            self._begin()
            try:
                self._enter(CycleStage.SAMPLING)
                return self._finish(self._assess_snapshot(snapshot, timestamp), timestamp)
            finally:
                self._enter(CycleStage.IDLE)

    # -----------------------------------------------------------------------
    # Stage machine
    # -----------------------------------------------------------------------

    def _begin(self) -> None:
        self._stage_trace = [CycleStage.IDLE]

    def _enter(self, stage: CycleStage) -> None:
        self._stage = stage
        self._stage_trace.append(stage)

    def _map(self, fn: Callable[[T], R], items: Iterable[T]) -> List[R]:
        if self._executor is None:
            return [fn(item) for item in items]
        return list(self._executor.map(fn, items))

    # -----------------------------------------------------------------------
    # Per-layer pipeline
    # -----------------------------------------------------------------------

    def _fail_all(self, error: InputContractViolation) -> List[LayerAssessment]:
        return [invalid_input_assessment(d.layer, error) for d in self._declarations]

    def _assess_snapshot(
        self,
        snapshot:  SystemSnapshot,
        timestamp: datetime,
    ) -> List[LayerAssessment]:
        if not isinstance(snapshot, SystemSnapshot):
            return self._fail_all(InputContractViolation(
                layer="",
                field_name="snapshot",
                value=type(snapshot).__name__,
                detail="state provider must return a SystemSnapshot",
            ))
        if snapshot.system_id != self._system_id:
            return self._fail_all(InputContractViolation(
                layer="",
                field_name="system_id",
                value=snapshot.system_id,
                detail="snapshot belongs to a different system than " + repr(self._system_id),
            ))

        done: Dict[Layer, LayerAssessment] = {}
        signals: Dict[Layer, Optional[float]] = {}

        # ESTIMATING
        self._enter(CycleStage.ESTIMATING)

        def estimate(declaration: LayerDeclaration) -> Union[JacobianMatrix, LayerAssessment]:
            try:
                _checked_vector(declaration, snapshot)
                signals[declaration.layer] = _checked_signal(declaration, snapshot, self._config)
                return self._estimator.estimate(
                    declaration.objective,
                    snapshot,
                    declaration.layer,
                    timestamp,
                    declaration.reward_dims,
                )
            except InputContractViolation as exc:
                return invalid_input_assessment(declaration.layer, exc)
            except Exception as exc:
                return evaluation_failure_assessment(declaration.layer, exc)

        jacobians: Dict[Layer, JacobianMatrix] = {}
        for declaration, result in zip(self._declarations, self._map(estimate, self._declarations)):
            if isinstance(result, LayerAssessment):
                done[declaration.layer] = result
            else:
                jacobians[declaration.layer] = result

        # ANALYZING
        self._enter(CycleStage.ANALYZING)

        def analyze(jacobian: JacobianMatrix) -> Union[MatrixAnalysis, LayerAssessment]:
            try:
                return jacobian.analysis
            except Exception as exc:
                return evaluation_failure_assessment(jacobian.layer, exc)

        analyses: Dict[Layer, MatrixAnalysis] = {}
        for layer, result in zip(list(jacobians), self._map(analyze, list(jacobians.values()))):
            if isinstance(result, LayerAssessment):
                done[layer] = result
            else:
                analyses[layer] = result

        # EVALUATING
        self._enter(CycleStage.EVALUATING)

        def evaluate(layer: Layer) -> LayerAssessment:
            try:
                return evaluate_layer_sensitivity(
                    layer,
                    analyses[layer],
                    self._config.thresholds_for(layer),
                    coherence_signal=signals.get(layer),
                    jacobian=jacobians[layer],
                )
            except InputContractViolation as exc:
                return invalid_input_assessment(layer, exc)
            except Exception as exc:
                return evaluation_failure_assessment(layer, exc)

        for assessment in self._map(evaluate, list(analyses)):
            done[assessment.layer] = assessment

        return [done[d.layer] for d in self._declarations]

    # -----------------------------------------------------------------------
    # Aggregation + reporting
    # -----------------------------------------------------------------------

    def _finish(
        self,
        assessments: Sequence[LayerAssessment],
        timestamp:   datetime,
    ) -> CoherenceReport:
        self._enter(CycleStage.AGGREGATING)
        aggregate = aggregate_coherence(
            assessments,
            self._config.thresholds,
            self._config.operational_authorization_threshold,
        )
        violations: List[Violation] = [v for a in assessments for v in a.violations]
        if aggregate.gate_violation is not None:
            violations.append(aggregate.gate_violation)

        self._enter(CycleStage.REPORTING)
        self._cycle_counter += 1
        report = CoherenceReport(
            cycle_id=make_cycle_id(self._cycle_counter),
            timestamp=timestamp,
            system_id=self._system_id,
            per_layer_scores={a.layer: a.score for a in assessments},
            overall_coherence=aggregate.overall_coherence,
            violations=tuple(violations),
            triumph_flag=aggregate.triumph_flag,
            requires_intervention=any(v.requires_pause for v in violations),
            assessments=tuple(assessments),
        )
        self._history.append(report)
        self._log_report(report)
        self._emit(report)
        return report

    def _emit(self, report: CoherenceReport) -> None:
        """
        Report sink first, then the intervention sink. Both are attempted
        even if the first raises; the first failure is re-raised.
        """
        failure: Optional[ReportEmissionError] = None
        try:
            self._report_sink.emit(report)
        except Exception as exc:
            failure = ReportEmissionError("report_sink", report, exc)

        if report.requires_intervention and self._intervention_sink is not None:
            try:
                self._intervention_sink.notify(report.system_id, report.violations)
            except Exception as exc:
                if failure is None:
                    failure = ReportEmissionError("intervention_sink", report, exc)

        if failure is not None:
            raise failure

    def _log_report(self, report: CoherenceReport) -> None:
        ts = report.timestamp
        for assessment in report.assessments:
            for v in assessment.violations:
                if v.type in _FAILURE_TYPES:
                    self._events.log_event(LAYER_FAILURE, {
                        "cycle_id":  report.cycle_id,
                        "system_id": report.system_id,
                        "layer":     assessment.layer.value,
                        "type":      v.type.value,
                        "message":   v.message,
                    }, ts)

        for v in report.violations:
            self._events.log_event(VIOLATION, {
                "cycle_id":        report.cycle_id,
                "system_id":       report.system_id,
                "layer":           v.layer.value if v.layer is not None else None,
                "type":            v.type.value,
                "severity":        v.severity.value,
                "metric_name":     v.metric_name,
                "actual_value":    v.actual_value,
                "threshold_value": v.threshold_value,
                "requires_pause":  v.requires_pause,
            }, ts)

        if report.triumph_flag:
            self._events.log_event(COHERENCE_TRIUMPH, {
                "cycle_id":          report.cycle_id,
                "system_id":         report.system_id,
                "overall_coherence": report.overall_coherence,
            }, ts)

        if report.requires_intervention:
            self._events.log_event(INTERVENTION_REQUESTED, {
                "cycle_id":       report.cycle_id,
                "system_id":      report.system_id,
                "critical_count": report.critical_count,
            }, ts)

        self._events.log_event(CYCLE_COMPLETED, {
            "cycle_id":              report.cycle_id,
            "system_id":             report.system_id,
            "overall_coherence":     report.overall_coherence,
            "violation_count":       len(report.violations),
            "requires_intervention": report.requires_intervention,
            "triumph_flag":          report.triumph_flag,
        }, ts)


def _check_timestamp(timestamp: object) -> None:
    if not isinstance(timestamp, datetime):
        raise ConfigurationError("timestamp", timestamp, "must be a caller-supplied datetime")


__all__ = ["MonitorController"]
