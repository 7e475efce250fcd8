# cfsa/utils/config_loader.py
# Version: 1.0.0
# Configuration source for MonitorConfig.
#
# Accepts YAML (.yaml / .yml) or JSON (.json) documents of the form:
#
#   epsilon: 1.0e-6
#   operational_authorization_threshold: 0.95
#   history_capacity: 100
#   negligible_singular_value: 1.0e-10
#   eigen_solver: qr                # or power_iteration
#   parallel_layers: false
#   thresholds:
#     ecological: {weight: 0.3, min_sensitivity: 0.2}
#     cognitive:  {weight: 0.3, min_eigenvalue: 0.1, min_coherence: 0.7}
#
# Every scalar key is optional and falls back to the MonitorConfig default.
# "thresholds" is optional; when absent the default layer thresholds are
# used. When present it replaces the defaults entirely (no per-key merge).
# Unknown keys are a ConfigurationError.
#
# Standard import:
#   from cfsa.utils.config_loader import load_monitor_config

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Union

import yaml

from cfsa.core.exceptions import ConfigurationError
from cfsa.core.sensitivity_layer import LayerThresholds, MonitorConfig, default_monitor_config
from cfsa.core.state_layer import Layer

_SCALAR_KEYS = frozenset({
    "epsilon",
    "operational_authorization_threshold",
    "history_capacity",
    "negligible_singular_value",
    "eigen_solver",
    "parallel_layers",
})


def _parse_layer(name: object) -> Layer:
    try:
        return Layer(name)
    except ValueError:
        raise ConfigurationError(
            "thresholds",
            name,
            "layer must be one of " + repr([layer.value for layer in Layer]),
        )


def monitor_config_from_mapping(mapping: Mapping[str, Any]) -> MonitorConfig:
    """Build a validated MonitorConfig from a plain mapping."""
    if not isinstance(mapping, Mapping):
        raise ConfigurationError("config", type(mapping).__name__, "document must be a mapping")

    unknown = set(mapping) - _SCALAR_KEYS - {"thresholds"}
    if unknown:
        raise ConfigurationError("config", sorted(unknown), "unknown configuration keys")

    scalars: Dict[str, Any] = {k: v for k, v in mapping.items() if k in _SCALAR_KEYS}
    if "parallel_layers" in scalars and not isinstance(scalars["parallel_layers"], bool):
        raise ConfigurationError(
            "parallel_layers", scalars["parallel_layers"], "must be a boolean"
        )

    raw_thresholds = mapping.get("thresholds")
    if raw_thresholds is None:
        return default_monitor_config(**scalars)
    if not isinstance(raw_thresholds, Mapping):
        raise ConfigurationError("thresholds", raw_thresholds, "must be a mapping")

    thresholds: Dict[Layer, LayerThresholds] = {}
    for name, values in raw_thresholds.items():
        if not isinstance(values, Mapping):
            raise ConfigurationError("thresholds." + str(name), values, "must be a mapping")
        thresholds[_parse_layer(name)] = LayerThresholds.from_mapping(values)
    return MonitorConfig(thresholds=thresholds, **scalars)


def load_monitor_config(path: Union[str, Path]) -> MonitorConfig:
    """
    Read a YAML or JSON file and return a validated MonitorConfig.

    Raises ConfigurationError for a missing file, unparsable content or any
    invalid field.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError("path", str(path), "must be a readable file") from exc

    try:
        if path.suffix.lower() == ".json":
            document = json.loads(text)
        else:
            document = yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise ConfigurationError("path", str(path), "must contain valid YAML or JSON") from exc

    if document is None:
        document = {}
    return monitor_config_from_mapping(document)


__all__ = ["monitor_config_from_mapping", "load_monitor_config"]
