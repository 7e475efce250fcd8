# cfsa/core/__init__.py
# Core canonical types for the CFSA monitor.
# Authoritative import source: cfsa.core.state_layer

from cfsa.core.exceptions import (
    CFSAError,
    ConfigurationError,
    MatrixDimensionError,
    EigenConvergenceError,
    InputContractViolation,
    ReportEmissionError,
)
from cfsa.core.logging_layer import EventLogger, Event, EventFilter, LoggingError
from cfsa.core.state_layer import (
    Layer,
    StateVector,
    SystemSnapshot,
    ObjectiveFunction,
    StateProvider,
    LayerDeclaration,
)
from cfsa.core.matrix_layer import (
    EigenSolver,
    Spectrum,
    MatrixAnalysis,
    analyze_matrix,
)
from cfsa.core.jacobian_layer import JacobianMatrix, JacobianEstimator
