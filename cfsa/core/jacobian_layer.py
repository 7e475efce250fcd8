# =============================================================================
# CFSA v1.0.0 -- CORE: JACOBIAN LAYER
# File:   cfsa/core/jacobian_layer.py
# =============================================================================
#
# SCOPE
# -----
# Implements:
#   - JacobianMatrix    frozen m x n matrix of d(reward_i)/d(state_j) with
#                       lazily computed, cached invariants
#   - JacobianEstimator forward-difference estimator over one layer
#
# FORWARD DIFFERENCE
# ------------------
#   f0        = objective(x, snapshot)
#   x_j       = x + epsilon * e_j
#   J[i][j]   = (objective(x_j, snapshot_j)[i] - f0[i]) / epsilon
#
# where snapshot_j is the snapshot with only the target layer replaced by
# x_j. Cost: n + 1 objective evaluations per layer.
#
# INPUT CONTRACT
# --------------
# Raises InputContractViolation (never returns a partial matrix) when:
#   - a layer value is NaN / Inf
#   - the objective raises
#   - the objective output has a different length than on the base point,
#     or than the declared reward length when one is supplied
#   - any objective output or resulting Jacobian entry is NaN / Inf
#
# INVARIANTS
# ----------
# INV-JM-01  entries are an immutable tuple of equal-length row tuples.
# INV-JM-02  derived invariants are computed from entries on first access
#            and cached; there is no setter, so they cannot drift.
# INV-JE-01  epsilon is validated once at construction (finite, > 0).
# INV-JE-02  n == 0 yields an empty matrix without calling the objective.
# =============================================================================

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from functools import cached_property
from typing import List, Optional, Sequence, Tuple

from cfsa.core.exceptions import ConfigurationError, InputContractViolation
from cfsa.core.matrix_layer import (
    EigenSolver,
    MatrixAnalysis,
    Spectrum,
    analyze_matrix,
)
from cfsa.core.state_layer import Layer, ObjectiveFunction, StateVector, SystemSnapshot
from cfsa.utils.constants import DEFAULT_EPSILON, NEGLIGIBLE_SINGULAR_VALUE


# =============================================================================
# SECTION 1 -- JACOBIAN MATRIX
# =============================================================================

@dataclass(frozen=True)
class JacobianMatrix:
    """
    Numerical Jacobian of one layer's objective, tagged with the layer and
    the cycle timestamp.

    Derived invariants (analysis, determinant, eigenvalues, singular_values,
    condition_number, frobenius_norm) are computed on first access and
    cached for the lifetime of the instance.
    """

    layer:      Layer
    timestamp:  datetime
    entries:    Tuple[Tuple[float, ...], ...]
    negligible: float = NEGLIGIBLE_SINGULAR_VALUE
    solver:     EigenSolver = EigenSolver.QR

    def __post_init__(self) -> None:
        rows = tuple(tuple(float(v) for v in row) for row in self.entries)
        if rows and any(len(row) != len(rows[0]) for row in rows):
            raise ConfigurationError(
                field_name="entries",
                value=[len(row) for row in rows],
                constraint="all rows must have the same length",
            )
        object.__setattr__(self, "entries", rows)

    @property
    def rows(self) -> int:
        return len(self.entries)

    @property
    def cols(self) -> int:
        return len(self.entries[0]) if self.entries else 0

    @property
    def is_empty(self) -> bool:
        return self.rows == 0 or self.cols == 0

    @cached_property
    def analysis(self) -> MatrixAnalysis:
        return analyze_matrix(self.entries, self.negligible, self.solver)

    @property
    def determinant(self) -> Optional[float]:
        return self.analysis.determinant

    @property
    def spectrum(self) -> Optional[Spectrum]:
        return self.analysis.spectrum

    @property
    def eigenvalues(self) -> Optional[Tuple[float, ...]]:
        return self.analysis.eigenvalues

    @property
    def singular_values(self) -> Tuple[float, ...]:
        return self.analysis.singular_values

    @property
    def condition_number(self) -> Optional[float]:
        return self.analysis.condition_number

    @property
    def frobenius_norm(self) -> float:
        return self.analysis.frobenius_norm


# =============================================================================
# SECTION 2 -- INTERNAL HELPERS
# =============================================================================

def _evaluate(
    objective: ObjectiveFunction,
    vector:    StateVector,
    context:   SystemSnapshot,
    expected:  Optional[int],
) -> List[float]:
    """
    Call the objective once and enforce its output contract.
    Any exception from the objective becomes an InputContractViolation.
    """
    try:
        raw = objective(vector.values, context)
        output: List[float] = [float(v) for v in raw]
    except Exception as exc:
        raise InputContractViolation(
            layer=vector.layer.value,
            field_name="objective",
            value=repr(exc),
            detail="objective function raised",
        ) from exc
    if expected is not None and len(output) != expected:
        raise InputContractViolation(
            layer=vector.layer.value,
            field_name="objective",
            value=len(output),
            detail="objective output length must be " + str(expected),
        )
    for i, v in enumerate(output):
        if not math.isfinite(v):
            raise InputContractViolation(
                layer=vector.layer.value,
                field_name="objective[" + str(i) + "]",
                value=v,
                detail="objective output must be finite",
            )
    return output


# =============================================================================
# SECTION 3 -- JACOBIAN ESTIMATOR
# =============================================================================

class JacobianEstimator:
    """
    Forward-difference Jacobian estimator.

    epsilon is fixed for the estimator's lifetime and validated here, so a
    bad step size fails at construction rather than mid-cycle.
    """

    def __init__(
        self,
        epsilon:    float = DEFAULT_EPSILON,
        negligible: float = NEGLIGIBLE_SINGULAR_VALUE,
        solver:     EigenSolver = EigenSolver.QR,
    ) -> None:
        if isinstance(epsilon, bool) or not isinstance(epsilon, (int, float)):
            raise ConfigurationError("epsilon", epsilon, "must be a real number")
        if not math.isfinite(epsilon) or epsilon <= 0.0:
            raise ConfigurationError("epsilon", epsilon, "must be finite and > 0")
        self._epsilon: float = float(epsilon)
        self._negligible: float = negligible
        self._solver: EigenSolver = solver

    @property
    def epsilon(self) -> float:
        return self._epsilon

    def estimate(
        self,
        objective:   ObjectiveFunction,
        snapshot:    SystemSnapshot,
        layer:       Layer,
        timestamp:   datetime,
        reward_dims: Optional[int] = None,
    ) -> JacobianMatrix:
        """
        Estimate d(objective)/d(layer) at the snapshot.

        Parameters
        ----------
        objective   : pure function of (layer values, snapshot).
        snapshot    : base point. Never mutated.
        layer       : layer to differentiate with respect to.
        timestamp   : caller-supplied cycle timestamp used to tag the result.
        reward_dims : expected objective output length, if declared.

        Raises
        ------
        InputContractViolation : non-finite input or objective contract
                                 breach. KeyError if the layer is absent
                                 from the snapshot.
        """
        base: StateVector = snapshot.vector(layer)
        bad: Tuple[str, ...] = base.non_finite_components()
        if bad:
            raise InputContractViolation(
                layer=layer.value,
                field_name=bad[0],
                value=base.as_dict()[bad[0]],
                detail="state components must be finite",
            )

        n: int = base.dimension
        if n == 0:
            return self._wrap(layer, timestamp, ())

        f0: List[float] = _evaluate(objective, base, snapshot, reward_dims)
        m: int = len(f0)
        columns: List[List[float]] = []
        for j in range(n):
            perturbed: StateVector = base.with_component(j, base.values[j] + self._epsilon)
            f_j: List[float] = _evaluate(
                objective, perturbed, snapshot.replace_layer(perturbed), m
            )
            column: List[float] = [(f_j[i] - f0[i]) / self._epsilon for i in range(m)]
            for i, v in enumerate(column):
                if not math.isfinite(v):
                    raise InputContractViolation(
                        layer=layer.value,
                        field_name="jacobian[" + str(i) + "][" + str(j) + "]",
                        value=v,
                        detail="Jacobian entries must be finite",
                    )
            columns.append(column)

        entries = tuple(tuple(columns[j][i] for j in range(n)) for i in range(m))
        return self._wrap(layer, timestamp, entries)

    def _wrap(
        self,
        layer:     Layer,
        timestamp: datetime,
        entries:   Sequence[Sequence[float]],
    ) -> JacobianMatrix:
        return JacobianMatrix(
            layer=layer,
            timestamp=timestamp,
            entries=tuple(tuple(row) for row in entries),
            negligible=self._negligible,
            solver=self._solver,
        )


__all__ = [
    "JacobianMatrix",
    "JacobianEstimator",
]
