# =============================================================================
# CFSA v1.0.0 -- CORE: EXCEPTION HIERARCHY
# File:   cfsa/core/exceptions.py
# =============================================================================
#
# SCOPE
# -----
# Defines the exception hierarchy shared by every CFSA layer.
# All exceptions are pure value objects: no side effects, no logging,
# no I/O of any kind.
#
# EXCEPTION HIERARCHY
# -------------------
#   CFSAError(Exception)                          -- base; never raised directly
#     ConfigurationError(CFSAError)               -- bad thresholds / epsilon
#       MatrixDimensionError(ConfigurationError)  -- layer dimension cap exceeded
#     EigenConvergenceError(CFSAError)            -- eigen solver did not converge
#     InputContractViolation(CFSAError)           -- NaN / Inf / malformed input
#     ReportEmissionError(CFSAError)              -- report sink failure
#
# ERROR TAXONOMY
# --------------
#   ConfigurationError      fatal; raised at construction; never recovered.
#   InputContractViolation  recovered per layer by the MonitorController and
#                           converted into a critical invalid_input Violation.
#   EigenConvergenceError   recovered per layer by the MonitorController and
#                           converted into a critical evaluation_failure.
#   Numerical degeneracy    NOT an exception. Represented as data (inf,
#                           None, or a threshold Violation).
#
# MESSAGE CONTRACT
# ----------------
# Every exception message is:
#   - Deterministic: identical inputs -> identical message string.
#   - Explicit: field name and violating value always included.
#   - ASCII-safe.
#   - Non-empty.
#
# PROHIBITED ACTIONS CONFIRMED ABSENT
# ------------------------------------
#   No logging module
#   No numpy
#   No datetime.now() / time.time()
#   No domain imports (exceptions must remain leaf dependencies)
# =============================================================================

from __future__ import annotations

from typing import Any, Optional


# =============================================================================
# BASE EXCEPTION
# =============================================================================

class CFSAError(Exception):
    """
    Base class for all CFSA exceptions.

    Never raised directly. Use a concrete subclass.

    Attributes:
        field_name:  Name of the offending field, or empty string if not
                     applicable.
        value:       The offending value, or None if the violation is not
                     tied to a single value.
        message:     Human-readable description. Always non-empty.
    """

    def __init__(
        self,
        message:    str,
        field_name: str = "",
        value:      Any = None,
    ) -> None:
        if not isinstance(message, str) or not message:
            raise ValueError("CFSAError: message must be a non-empty string")
        if not isinstance(field_name, str):
            raise ValueError("CFSAError: field_name must be a string")
        super().__init__(message)
        self.field_name: str = field_name
        self.value:      Any = value
        self.message:    str = message

    def __repr__(self) -> str:
        return (
            self.__class__.__name__
            + "(field_name=" + repr(self.field_name)
            + ", value=" + repr(self.value)
            + ", message=" + repr(self.message)
            + ")"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CFSAError):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.field_name == other.field_name
            and repr(self.value) == repr(other.value)
            and self.message == other.message
        )

    __hash__ = Exception.__hash__


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(CFSAError):
    """
    Raised when a configuration field violates a range, sign, type or
    cross-field constraint.

    Configuration errors are fatal. They are raised synchronously while a
    config object, estimator or controller is being constructed, before any
    state is read. They are never recovered inside the monitor.

    Message format:
        "ConfigurationError: field '<field_name>' violates constraint
         '<constraint>': got <value>."

    Args:
        field_name:  Name of the offending field. Must be non-empty.
        value:       The offending value.
        constraint:  Human-readable constraint, e.g. "must be > 0".
    """

    def __init__(
        self,
        field_name: str,
        value:      Any,
        constraint: str,
    ) -> None:
        if not field_name:
            raise ValueError(
                "ConfigurationError: field_name must be a non-empty string"
            )
        if not isinstance(constraint, str) or not constraint:
            raise ValueError(
                "ConfigurationError: constraint must be a non-empty string"
            )
        message = (
            self.__class__.__name__
            + ": field '"
            + field_name
            + "' violates constraint '"
            + constraint
            + "': got "
            + repr(value)
            + "."
        )
        super().__init__(message=message, field_name=field_name, value=value)
        self.constraint: str = constraint


class MatrixDimensionError(ConfigurationError):
    """
    Raised when a matrix or layer exceeds the supported dimensional cap.

    The cofactor determinant is O(n!); layer dimensionality is therefore
    hard-capped (see cfsa.utils.constants.MAX_LAYER_DIMS).
    """


# =============================================================================
# SOLVER FAILURES
# =============================================================================

class EigenConvergenceError(CFSAError):
    """
    Raised when the eigenvalue solver cannot produce a trustworthy spectrum:
    the iteration budget ran out, or the product of the eigenvalues found
    disagrees with the determinant.

    The MonitorController converts it into a critical evaluation_failure
    for the layer. A spectrum that did not converge is never reported.

    Message format:
        "EigenConvergenceError: <detail>. Got <value>."

    Args:
        detail: What failed. Must be non-empty.
        value:  Diagnostic value (iteration count or residual).
    """

    def __init__(self, detail: str, value: Any = None) -> None:
        if not isinstance(detail, str) or not detail:
            raise ValueError(
                "EigenConvergenceError: detail must be a non-empty string"
            )
        message = "EigenConvergenceError: " + detail + ". Got " + repr(value) + "."
        super().__init__(message=message, field_name="spectrum", value=value)
        self.detail: str = detail


# =============================================================================
# INPUT CONTRACT VIOLATIONS
# =============================================================================

class InputContractViolation(CFSAError):
    """
    Raised when an external collaborator breaks its input contract:
    a non-finite state component, a malformed snapshot, an objective that
    raises, or an objective output of the wrong length or non-finite.

    The MonitorController catches this per layer and converts it into a
    critical invalid_input Violation. Other layers keep running.

    Message format:
        "InputContractViolation: layer '<layer>' field '<field_name>':
         <detail>. Got <value>."

    Args:
        layer:       Layer identifier (string value) the violation belongs
                     to, or empty string when not layer-scoped.
        field_name:  Offending field or component. Must be non-empty.
        value:       The offending value.
        detail:      Human-readable description. Must be non-empty.
    """

    def __init__(
        self,
        layer:      str,
        field_name: str,
        value:      Any,
        detail:     str,
    ) -> None:
        if not field_name:
            raise ValueError(
                "InputContractViolation: field_name must be a non-empty string"
            )
        if not isinstance(detail, str) or not detail:
            raise ValueError(
                "InputContractViolation: detail must be a non-empty string"
            )
        message = (
            "InputContractViolation: layer '"
            + str(layer)
            + "' field '"
            + field_name
            + "': "
            + detail
            + ". Got "
            + repr(value)
            + "."
        )
        super().__init__(message=message, field_name=field_name, value=value)
        self.layer:  str = str(layer)
        self.detail: str = detail


# =============================================================================
# OUTPUT FAILURES
# =============================================================================

class ReportEmissionError(CFSAError):
    """
    Raised when a ReportSink or InterventionSink fails while a completed
    report is being pushed out.

    The report has already been appended to the controller's history when
    this is raised. It is attached so the caller can retry emission; the
    monitor never retries internally.

    Args:
        sink_name:  Name of the failing sink ("report_sink" or
                    "intervention_sink").
        report:     The CoherenceReport that could not be delivered.
        cause:      The exception raised by the sink.
    """

    def __init__(
        self,
        sink_name: str,
        report:    Any,
        cause:     Optional[BaseException] = None,
    ) -> None:
        if not sink_name:
            raise ValueError(
                "ReportEmissionError: sink_name must be a non-empty string"
            )
        message = (
            "ReportEmissionError: sink '"
            + sink_name
            + "' failed to accept report: "
            + (repr(cause) if cause is not None else "unknown cause")
            + "."
        )
        super().__init__(message=message, field_name=sink_name, value=None)
        self.report: Any = report
        self.cause:  Optional[BaseException] = cause


# =============================================================================
# MODULE __all__
# =============================================================================

__all__ = [
    "CFSAError",
    "ConfigurationError",
    "MatrixDimensionError",
    "EigenConvergenceError",
    "InputContractViolation",
    "ReportEmissionError",
]
