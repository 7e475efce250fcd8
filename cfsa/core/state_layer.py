# =============================================================================
# CFSA v1.0.0 -- CORE: STATE LAYER
# File:   cfsa/core/state_layer.py
# =============================================================================
#
# SCOPE
# -----
# Typed containers for a monitored system snapshot:
#   - Layer            closed enum of monitored layers
#   - StateVector      one layer's ordered, named numeric components
#   - LayerDeclaration fixed layout + objective function for one layer
#   - SystemSnapshot   all layers plus external coherence signals
#   - ObjectiveFunction / StateProvider  consumed interfaces (Protocols)
#
# No Jacobian logic. No thresholds. No I/O.
#
# DEPENDENCIES
# ------------
# stdlib only: dataclasses, enum, math, types, typing.
#
# INVARIANTS ENFORCED
# -------------------
# INV-SV-01  len(components) == len(values).
# INV-SV-02  component names are non-empty and unique.
# INV-SV-03  len(components) <= MAX_LAYER_DIMS.
# INV-SV-04  Frozen: a vector's component count never changes. Perturbation
#            returns a new vector with identical layout.
# INV-SV-05  Non-finite values are NOT rejected here. They are an input
#            contract violation detected and reported per layer by the
#            cycle, so a single bad layer cannot prevent a report.
# INV-LD-01  reward_dims >= 1.
# INV-SS-01  Snapshot layers are keyed by their own StateVector.layer.
# =============================================================================

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Protocol, Sequence, Tuple

from cfsa.core.exceptions import ConfigurationError, MatrixDimensionError
from cfsa.utils.constants import MAX_LAYER_DIMS


# =============================================================================
# SECTION 1 -- LAYER ENUM
# =============================================================================

class Layer(str, Enum):
    """
    Closed set of monitored layers. Inherits from str for clean
    serialisation: Layer.ECOLOGICAL == "ecological" is True.
    """
    ECOLOGICAL = "ecological"
    COGNITIVE  = "cognitive"
    CONSENT    = "consent"
    TEMPORAL   = "temporal"


# =============================================================================
# SECTION 2 -- VALIDATION HELPERS
# =============================================================================

def _check_layer(field_name: str, value: object) -> None:
    if not isinstance(value, Layer):
        raise ConfigurationError(
            field_name=field_name,
            value=value,
            constraint="must be a Layer enum member",
        )


def _check_components(layer: Layer, components: Tuple[str, ...]) -> None:
    """INV-SV-02 and INV-SV-03."""
    if len(components) > MAX_LAYER_DIMS:
        raise MatrixDimensionError(
            field_name=layer.value + ".components",
            value=len(components),
            constraint="must have at most " + str(MAX_LAYER_DIMS) + " components",
        )
    for name in components:
        if not isinstance(name, str) or not name:
            raise ConfigurationError(
                field_name=layer.value + ".components",
                value=name,
                constraint="component names must be non-empty strings",
            )
    if len(set(components)) != len(components):
        raise ConfigurationError(
            field_name=layer.value + ".components",
            value=components,
            constraint="component names must be unique",
        )


# =============================================================================
# SECTION 3 -- STATE VECTOR
# =============================================================================

@dataclass(frozen=True)
class StateVector:
    """
    One layer's state: ordered component names and their values.

    Component order defines Jacobian column identity (column j is the
    derivative with respect to components[j]).
    """

    layer:      Layer
    components: Tuple[str, ...]
    values:     Tuple[float, ...]

    def __post_init__(self) -> None:
        _check_layer("layer", self.layer)
        object.__setattr__(self, "components", tuple(self.components))
        object.__setattr__(self, "values", tuple(float(v) for v in self.values))
        if len(self.components) != len(self.values):
            raise ConfigurationError(
                field_name=self.layer.value + ".values",
                value=len(self.values),
                constraint=(
                    "must have exactly one value per component ("
                    + str(len(self.components)) + ")"
                ),
            )
        _check_components(self.layer, self.components)

    @classmethod
    def from_mapping(cls, layer: Layer, mapping: Mapping[str, float]) -> "StateVector":
        """Build from an insertion-ordered name -> value mapping."""
        return cls(
            layer=layer,
            components=tuple(mapping.keys()),
            values=tuple(mapping.values()),
        )

    @property
    def dimension(self) -> int:
        return len(self.values)

    def as_dict(self) -> dict:
        return dict(zip(self.components, self.values))

    def with_component(self, index: int, value: float) -> "StateVector":
        """Return a copy with values[index] replaced. Layout is unchanged."""
        values = list(self.values)
        values[index] = value
        return StateVector(layer=self.layer, components=self.components, values=tuple(values))

    def non_finite_components(self) -> Tuple[str, ...]:
        return tuple(
            name for name, value in zip(self.components, self.values)
            if not math.isfinite(value)
        )


# =============================================================================
# SECTION 4 -- SYSTEM SNAPSHOT
# =============================================================================

@dataclass(frozen=True)
class SystemSnapshot:
    """
    Immutable snapshot of every monitored layer of one system.

    coherence_signals carries externally supplied scalar coherence values
    (e.g. a cognitive coherence reading). They are not derived from any
    Jacobian; the coherence gate compares them against min_coherence.

    Objective functions receive the whole snapshot as read-only context.
    """

    system_id:         str
    layers:            Mapping[Layer, StateVector]
    coherence_signals: Mapping[Layer, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.system_id, str) or not self.system_id:
            raise ConfigurationError(
                field_name="system_id",
                value=self.system_id,
                constraint="must be a non-empty string",
            )
        for key, vector in self.layers.items():
            _check_layer("layers key", key)
            if not isinstance(vector, StateVector) or vector.layer is not key:
                raise ConfigurationError(
                    field_name="layers[" + key.value + "]",
                    value=vector,
                    constraint="must be a StateVector whose layer matches its key",
                )
        for key in self.coherence_signals:
            _check_layer("coherence_signals key", key)
        object.__setattr__(self, "layers", MappingProxyType(dict(self.layers)))
        object.__setattr__(
            self,
            "coherence_signals",
            MappingProxyType({k: float(v) for k, v in self.coherence_signals.items()}),
        )

    def vector(self, layer: Layer) -> StateVector:
        return self.layers[layer]

    def replace_layer(self, vector: StateVector) -> "SystemSnapshot":
        """Return a new snapshot with one layer swapped; everything else shared."""
        layers = dict(self.layers)
        layers[vector.layer] = vector
        return SystemSnapshot(
            system_id=self.system_id,
            layers=layers,
            coherence_signals=self.coherence_signals,
        )


# =============================================================================
# SECTION 5 -- CONSUMED INTERFACES
# =============================================================================

class ObjectiveFunction(Protocol):
    """
    Pure mapping from one layer's values (plus read-only snapshot context)
    to a reward vector of fixed length.

    Must be deterministic and side-effect free: the Jacobian estimator calls
    it n + 1 times per layer per cycle and assumes identical context yields
    identical output.
    """

    def __call__(
        self,
        layer_values: Tuple[float, ...],
        context:      SystemSnapshot,
    ) -> Sequence[float]:
        ...


class StateProvider(Protocol):
    """Synchronous pull source. Returns a fully populated snapshot or raises."""

    def get_snapshot(self, system_id: str) -> SystemSnapshot:
        ...


# =============================================================================
# SECTION 6 -- LAYER DECLARATION
# =============================================================================

@dataclass(frozen=True)
class LayerDeclaration:
    """
    Declares one monitored layer for the lifetime of a MonitorController:
    its component layout, its objective function and the objective's output
    length. A snapshot whose layout for this layer differs is an input
    contract violation for the layer.
    """

    layer:       Layer
    components:  Tuple[str, ...]
    objective:   ObjectiveFunction
    reward_dims: int

    def __post_init__(self) -> None:
        _check_layer("layer", self.layer)
        object.__setattr__(self, "components", tuple(self.components))
        _check_components(self.layer, self.components)
        if not callable(self.objective):
            raise ConfigurationError(
                field_name=self.layer.value + ".objective",
                value=self.objective,
                constraint="must be callable",
            )
        if (
            not isinstance(self.reward_dims, int)
            or isinstance(self.reward_dims, bool)
            or self.reward_dims < 1
        ):
            raise ConfigurationError(
                field_name=self.layer.value + ".reward_dims",
                value=self.reward_dims,
                constraint="must be an integer >= 1",
            )


# =============================================================================
# SECTION 7 -- MODULE __all__
# =============================================================================

__all__ = [
    "Layer",
    "StateVector",
    "SystemSnapshot",
    "ObjectiveFunction",
    "StateProvider",
    "LayerDeclaration",
]
