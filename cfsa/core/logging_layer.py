# cfsa/core/logging_layer.py
# CFSA v1.0.0 -- Logging Layer
#
# Scope: append-only audit trail of monitor cycles.
# Every event is hash-chained to its predecessor so a stored trail can be
# re-verified end to end. Timestamps always come from the caller.
#
# Canonical import:
#   from cfsa.core.logging_layer import EventLogger, Event, EventFilter
#
# Prohibited: datetime.now(), uuid, random, file IO, global mutable state,
#             stdlib logging handlers, print.

# ===========================================================================
# SECTION 1 -- IMPORTS
# ===========================================================================

import hashlib
import math
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

# ===========================================================================
# SECTION 2 -- CONSTANTS
# ===========================================================================

# Stored in place of non-finite floats so payloads stay JSON-safe and
# hashable by repr.
NAN_MARKER: str = "NaN_DETECTED"
INF_MARKER: str = "Inf_DETECTED"

GENESIS_HASH: str = "0" * 64

_FIELD_SEP: str = "|"

# Event types emitted by the MonitorController.
CYCLE_COMPLETED:        str = "CYCLE_COMPLETED"
VIOLATION:              str = "VIOLATION"
LAYER_FAILURE:          str = "LAYER_FAILURE"
COHERENCE_TRIUMPH:      str = "COHERENCE_TRIUMPH"
INTERVENTION_REQUESTED: str = "INTERVENTION_REQUESTED"

# ===========================================================================
# SECTION 3 -- RECORDS
# ===========================================================================

@dataclass(frozen=True)
class Event:
    """
    One entry of the audit trail.

    Fields
    ------
    id        : "EVT-" + 16-digit sequence number, per logger.
    type      : CYCLE_COMPLETED, VIOLATION, LAYER_FAILURE, ...
    timestamp : cycle timestamp supplied by the controller.
    data      : payload with non-finite floats replaced by markers, nested
                containers included.
    prev_hash : hash of the preceding event, GENESIS_HASH for the first.
    hash      : SHA-256 over (prev_hash, id, type, timestamp, data).
    """
    id:        str
    type:      str
    timestamp: datetime
    data:      Dict[str, Any]
    prev_hash: str
    hash:      str

    @property
    def system_id(self) -> Optional[str]:
        return self.data.get("system_id")

    @property
    def cycle_id(self) -> Optional[str]:
        return self.data.get("cycle_id")


@dataclass
class EventFilter:
    """
    Criteria for EventLogger.query_events(). None means "any".

    system_id / cycle_id match the payload keys of the same name. Time
    bounds are inclusive. limit keeps the oldest matches.
    """
    event_type: Optional[str] = None
    system_id:  Optional[str] = None
    cycle_id:   Optional[str] = None
    start_time: Optional[datetime] = None
    end_time:   Optional[datetime] = None
    limit:      Optional[int] = None

    def matches(self, event: Event) -> bool:
        if self.event_type is not None and event.type != self.event_type:
            return False
        if self.system_id is not None and event.system_id != self.system_id:
            return False
        if self.cycle_id is not None and event.cycle_id != self.cycle_id:
            return False
        if self.start_time is not None and event.timestamp < self.start_time:
            return False
        if self.end_time is not None and event.timestamp > self.end_time:
            return False
        return True


# ===========================================================================
# SECTION 4 -- PAYLOAD HELPERS
# ===========================================================================

def _clean(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return NAN_MARKER if math.isnan(value) else INF_MARKER
    if isinstance(value, dict):
        return {k: _clean(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_clean(v) for v in value]
    return value


def _digest(
    prev_hash:  str,
    event_id:   str,
    event_type: str,
    timestamp:  datetime,
    data:       Dict[str, Any],
) -> str:
    """SHA-256 hex digest; data enters as repr of its sorted items."""
    preimage = _FIELD_SEP.join((
        prev_hash,
        event_id,
        event_type,
        timestamp.isoformat(),
        repr(sorted(data.items())),
    ))
    return hashlib.sha256(preimage.encode("ascii", errors="replace")).hexdigest()


# ===========================================================================
# SECTION 5 -- EventLogger
# ===========================================================================

class EventLogger:
    """
    In-memory, hash-chained event trail.

    One logger per controller by default; a single logger may also be
    passed to several controllers (e.g. every controller of a registry).
    All mutation happens under one lock, so ids are gap-free and the chain
    stays linear under concurrent cycles.
    """

    def __init__(self) -> None:
        self._events: List[Event] = []
        self._sequence: int = 0
        self._lock = threading.Lock()

    def log_event(self, event_type: str, data: Dict[str, Any], timestamp: datetime) -> str:
        """
        Append one event and return its id.

        Raises LoggingError for an empty event_type, a non-datetime
        timestamp or a non-dict payload. Nothing is appended in that case.
        """
        if not isinstance(event_type, str) or not event_type:
            raise LoggingError("event_type must be a non-empty string")
        if not isinstance(timestamp, datetime):
            raise LoggingError(
                "timestamp must be a caller-supplied datetime; got "
                + type(timestamp).__name__
            )
        if not isinstance(data, dict):
            raise LoggingError("data must be a dict; got " + type(data).__name__)

        payload: Dict[str, Any] = _clean(data)
        with self._lock:
            self._sequence += 1
            event_id = "EVT-{:016d}".format(self._sequence)
            prev_hash = self._events[-1].hash if self._events else GENESIS_HASH
            self._events.append(Event(
                id=event_id,
                type=event_type,
                timestamp=timestamp,
                data=payload,
                prev_hash=prev_hash,
                hash=_digest(prev_hash, event_id, event_type, timestamp, payload),
            ))
        return event_id

    def _copy(self) -> List[Event]:
        with self._lock:
            return list(self._events)

    def query_events(self, filter: EventFilter) -> List[Event]:
        """Matching events in insertion order, truncated to filter.limit."""
        if not isinstance(filter, EventFilter):
            raise LoggingError("filter must be an EventFilter")
        matched = [event for event in self._copy() if filter.matches(event)]
        if filter.limit is not None:
            matched = matched[: filter.limit]
        return matched

    def events_for_cycle(self, cycle_id: str) -> List[Event]:
        return self.query_events(EventFilter(cycle_id=cycle_id))

    def get_event_stream(self, start_time: datetime) -> Iterator[Event]:
        """Events with timestamp >= start_time, in insertion order."""
        if not isinstance(start_time, datetime):
            raise LoggingError(
                "start_time must be a caller-supplied datetime; got "
                + type(start_time).__name__
            )
        for event in self._copy():
            if event.timestamp >= start_time:
                yield event

    def verify_chain(self) -> bool:
        """Recompute every hash and link. False on the first mismatch."""
        prev_hash = GENESIS_HASH
        for event in self._copy():
            if event.prev_hash != prev_hash:
                return False
            expected = _digest(prev_hash, event.id, event.type, event.timestamp, event.data)
            if event.hash != expected:
                return False
            prev_hash = event.hash
        return True

    def event_count(self) -> int:
        with self._lock:
            return len(self._events)


# ===========================================================================
# SECTION 6 -- EXCEPTIONS
# ===========================================================================

class LoggingError(Exception):
    """Invalid call into EventLogger. Always propagated to the caller."""


__all__ = [
    "CYCLE_COMPLETED",
    "VIOLATION",
    "LAYER_FAILURE",
    "COHERENCE_TRIUMPH",
    "INTERVENTION_REQUESTED",
    "NAN_MARKER",
    "INF_MARKER",
    "GENESIS_HASH",
    "Event",
    "EventFilter",
    "EventLogger",
    "LoggingError",
]
