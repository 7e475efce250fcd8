# cfsa/monitor/sinks.py
# Version: 1.0.0
# Output interfaces of the MonitorController and an in-memory recorder.
#
#   ReportSink.emit(report)                        every cycle
#   InterventionSink.notify(system_id, violations) only when
#                                                  requires_intervention
#
# Sinks are called synchronously from the cycle thread. A sink that raises
# surfaces as ReportEmissionError from run_cycle(); the report is already
# in history at that point.

from __future__ import annotations

import threading
from typing import List, Protocol, Sequence, Tuple

from cfsa.core.sensitivity_layer import Violation
from cfsa.monitor.coherence_report import CoherenceReport


class ReportSink(Protocol):
    def emit(self, report: CoherenceReport) -> None:
        ...


class InterventionSink(Protocol):
    def notify(self, system_id: str, violations: Sequence[Violation]) -> None:
        ...


class RecordingSink:
    """
    Thread-safe in-memory sink implementing both ReportSink and
    InterventionSink. Intended for tests, examples and embedding hosts that
    poll instead of subscribing.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._reports: List[CoherenceReport] = []
        self._interventions: List[Tuple[str, Tuple[Violation, ...]]] = []

    def emit(self, report: CoherenceReport) -> None:
        with self._lock:
            self._reports.append(report)

    def notify(self, system_id: str, violations: Sequence[Violation]) -> None:
        with self._lock:
            self._interventions.append((system_id, tuple(violations)))

    @property
    def reports(self) -> Tuple[CoherenceReport, ...]:
        with self._lock:
            return tuple(self._reports)

    @property
    def interventions(self) -> Tuple[Tuple[str, Tuple[Violation, ...]], ...]:
        with self._lock:
            return tuple(self._interventions)

    def clear(self) -> None:
        with self._lock:
            self._reports.clear()
            self._interventions.clear()


__all__ = ["ReportSink", "InterventionSink", "RecordingSink"]
