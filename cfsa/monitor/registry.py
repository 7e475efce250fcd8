# cfsa/monitor/registry.py
# Version: 1.0.0
# One MonitorController per system_id; cycles for different systems run in
# parallel.
#
# Each controller still serialises its own cycles with its own lock. The
# registry only fans out across systems and joins before returning.
#
# Standard import:
#   from cfsa.monitor.registry import MonitorRegistry

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from cfsa.core.exceptions import ConfigurationError, ReportEmissionError
from cfsa.monitor.coherence_report import CoherenceReport
from cfsa.monitor.controller import MonitorController


@dataclass(frozen=True)
class RegistryCycle:
    """
    Result of MonitorRegistry.run_all().

    reports         : system_id -> report, including reports whose emission
                      failed.
    emission_errors : system_id -> ReportEmissionError for failed sinks.
    """
    reports:         Mapping[str, CoherenceReport]
    emission_errors: Mapping[str, ReportEmissionError]

    @property
    def requires_intervention(self) -> Tuple[str, ...]:
        return tuple(
            system_id for system_id, report in sorted(self.reports.items())
            if report.requires_intervention
        )


class MonitorRegistry:
    """Thread-safe system_id -> MonitorController map."""

    def __init__(self, max_workers: Optional[int] = None) -> None:
        if max_workers is not None and (not isinstance(max_workers, int) or max_workers < 1):
            raise ConfigurationError("max_workers", max_workers, "must be None or an integer >= 1")
        self._max_workers = max_workers
        self._controllers: Dict[str, MonitorController] = {}
        self._lock = threading.Lock()

    def register(self, controller: MonitorController) -> None:
        with self._lock:
            if controller.system_id in self._controllers:
                raise ConfigurationError(
                    "system_id", controller.system_id, "is already registered"
                )
            self._controllers[controller.system_id] = controller

    def unregister(self, system_id: str) -> MonitorController:
        with self._lock:
            if system_id not in self._controllers:
                raise KeyError(system_id)
            return self._controllers.pop(system_id)

    def get(self, system_id: str) -> MonitorController:
        with self._lock:
            return self._controllers[system_id]

    def system_ids(self) -> Tuple[str, ...]:
        with self._lock:
            return tuple(sorted(self._controllers))

    def __contains__(self, system_id: object) -> bool:
        with self._lock:
            return system_id in self._controllers

    def __len__(self) -> int:
        with self._lock:
            return len(self._controllers)

    def run_cycle(self, system_id: str, timestamp: datetime) -> CoherenceReport:
        return self.get(system_id).run_cycle(timestamp)

    def run_all(self, timestamp: datetime) -> RegistryCycle:
        """
        Run one cycle for every registered system in parallel.

        Sink failures do not abort other systems; they are collected in
        RegistryCycle.emission_errors. ConfigurationError propagates.
        """
        with self._lock:
            controllers = dict(self._controllers)
        if not controllers:
            return RegistryCycle(MappingProxyType({}), MappingProxyType({}))

        def run(
            controller: MonitorController,
        ) -> Tuple[CoherenceReport, Optional[ReportEmissionError]]:
            try:
                return controller.run_cycle(timestamp), None
            except ReportEmissionError as exc:
                return exc.report, exc

        workers = self._max_workers or len(controllers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="cfsa-registry") as pool:
            futures = {sid: pool.submit(run, c) for sid, c in controllers.items()}
            outcomes = {sid: future.result() for sid, future in futures.items()}

        reports: Dict[str, CoherenceReport] = {}
        errors: Dict[str, ReportEmissionError] = {}
        for system_id in sorted(outcomes):
            report, error = outcomes[system_id]
            reports[system_id] = report
            if error is not None:
                errors[system_id] = error
        return RegistryCycle(MappingProxyType(reports), MappingProxyType(errors))

    def close(self) -> None:
        with self._lock:
            controllers = list(self._controllers.values())
        for controller in controllers:
            controller.close()


__all__ = ["MonitorRegistry", "RegistryCycle"]
