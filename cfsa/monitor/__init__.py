from .coherence_report import CoherenceReport, make_cycle_id
from .history import CoherenceHistory, HistorySummary
from .sinks import InterventionSink, RecordingSink, ReportSink
from .controller import MonitorController
from .registry import MonitorRegistry, RegistryCycle

__all__ = [
    # Records
    "CoherenceReport",
    "make_cycle_id",
    # History
    "CoherenceHistory",
    "HistorySummary",
    # Sinks
    "ReportSink",
    "InterventionSink",
    "RecordingSink",
    # Orchestration
    "MonitorController",
    "MonitorRegistry",
    "RegistryCycle",
]
