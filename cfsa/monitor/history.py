# cfsa/monitor/history.py
# Version: 1.0.0
# Bounded ring buffer of CoherenceReports owned by one MonitorController.
#
# Capacity is fixed at construction; the oldest report is dropped on
# overflow. summary() condenses the window with numpy.
#
# Standard import:
#   from cfsa.monitor.history import CoherenceHistory, HistorySummary

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Tuple

import numpy as np

from cfsa.core.exceptions import ConfigurationError
from cfsa.monitor.coherence_report import CoherenceReport


@dataclass(frozen=True)
class HistorySummary:
    """
    Aggregate view of the reports currently held.

    Fields
    ------
    count             : reports in the window.
    mean              : mean overall coherence. None if count == 0.
    minimum           : lowest overall coherence. None if count == 0.
    p05               : 5th percentile of overall coherence. None if empty.
    intervention_rate : fraction of reports requiring intervention.
    triumph_count     : reports with triumph_flag set.
    """
    count:             int
    mean:              Optional[float]
    minimum:           Optional[float]
    p05:               Optional[float]
    intervention_rate: float
    triumph_count:     int


class CoherenceHistory:
    """Fixed-capacity FIFO of CoherenceReports. Appends are locked."""

    def __init__(self, capacity: int) -> None:
        if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity < 1:
            raise ConfigurationError("capacity", capacity, "must be an integer >= 1")
        self._capacity: int = capacity
        self._buffer: Deque[CoherenceReport] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, report: CoherenceReport) -> None:
        with self._lock:
            self._buffer.append(report)

    def latest(self) -> Optional[CoherenceReport]:
        with self._lock:
            return self._buffer[-1] if self._buffer else None

    def reports(self) -> Tuple[CoherenceReport, ...]:
        """Oldest first."""
        with self._lock:
            return tuple(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)

    def summary(self) -> HistorySummary:
        reports = self.reports()
        if not reports:
            return HistorySummary(
                count=0,
                mean=None,
                minimum=None,
                p05=None,
                intervention_rate=0.0,
                triumph_count=0,
            )

        coherence = np.array([r.overall_coherence for r in reports], dtype=float)
        interventions = np.array([r.requires_intervention for r in reports], dtype=bool)
        return HistorySummary(
            count=len(reports),
            mean=float(np.mean(coherence)),
            minimum=float(np.min(coherence)),
            p05=float(np.percentile(coherence, 5)),
            intervention_rate=float(np.mean(interventions)),
            triumph_count=sum(1 for r in reports if r.triumph_flag),
        )


__all__ = ["CoherenceHistory", "HistorySummary"]
