# cfsa/report/engine.py
# Version: 1.0.0
# External report layer.
# Reads CoherenceReports; never feeds back into cfsa/core/ or cfsa/monitor/.
#
# DETERMINISM GUARANTEE:
#   No clock reads. No file I/O. No logging. No global mutable state.
#   Output is a pure function of the report.
#
# PURPOSE:
#   Condenses a CoherenceReport into a flat, JSON-ready dict for dashboards
#   and audit hosts: percentage strings for coherence values, a
#   compliant / violations status, violation and critical counts, and one
#   metrics block per layer.
#
# Standard import pattern:
#   from cfsa.report.engine import format_report

from cfsa.core.matrix_layer import MatrixAnalysis
from cfsa.monitor.coherence_report import CoherenceReport

STATUS_COMPLIANT:  str = "COMPLIANT"
STATUS_VIOLATIONS: str = "VIOLATIONS DETECTED"


def _percent(value: float) -> str:
    return f"{value * 100.0:.1f}%"


def _number(value):
    """JSON-safe float: inf / nan become strings, None passes through."""
    if value is None:
        return None
    value = float(value)
    if value != value:
        return "nan"
    if value in (float("inf"), float("-inf")):
        return "inf" if value > 0 else "-inf"
    return value


def _layer_metrics(analysis: MatrixAnalysis) -> dict[str, object]:
    return {
        "frobenius_norm":       _number(analysis.frobenius_norm),
        "determinant":          _number(analysis.determinant),
        "min_abs_eigenvalue":   _number(analysis.min_abs_eigenvalue),
        "eigenvalue_spread":    _number(analysis.eigenvalue_spread),
        "singular_value_ratio": _number(analysis.singular_value_ratio),
        "condition_number":     _number(analysis.condition_number),
        "has_complex":          (
            analysis.spectrum.has_complex if analysis.spectrum is not None else False
        ),
    }


def format_report(report: CoherenceReport) -> dict[str, object]:
    """
    Summarise one CoherenceReport.

    Parameters
    ----------
    report : CoherenceReport
        Not mutated.

    Returns
    -------
    dict[str, object]
        "cycle_id", "timestamp" (ISO-8601), "system_id",
        "coherence"  -- {"overall": "97.5%", "<layer>": "100.0%", ...},
        "status"     -- "COMPLIANT" when no violations, else
                        "VIOLATIONS DETECTED",
        "violations", "critical_violations" -- counts,
        "triumph", "requires_intervention",
        "layers"     -- {"<layer>": {"score", "violations", "metrics"}},
                        metrics is None when the layer stopped before
                        analysis.
        "violation_details" -- list of Violation.as_dict().
    """
    coherence: dict[str, str] = {"overall": _percent(report.overall_coherence)}
    for layer, score in report.per_layer_scores.items():
        coherence[layer.value] = _percent(score)

    layers: dict[str, object] = {}
    for assessment in report.assessments:
        layers[assessment.layer.value] = {
            "score":      assessment.score,
            "violations": [v.type.value for v in assessment.violations],
            "metrics":    (
                _layer_metrics(assessment.analysis)
                if assessment.analysis is not None else None
            ),
        }

    return {
        "cycle_id":              report.cycle_id,
        "timestamp":             report.timestamp.isoformat(),
        "system_id":             report.system_id,
        "coherence":             coherence,
        "status":                STATUS_COMPLIANT if not report.violations else STATUS_VIOLATIONS,
        "violations":            len(report.violations),
        "critical_violations":   report.critical_count,
        "triumph":               report.triumph_flag,
        "requires_intervention": report.requires_intervention,
        "layers":                layers,
        "violation_details":     [
            {k: _number(v) if isinstance(v, float) else v for k, v in item.as_dict().items()}
            for item in report.violations
        ],
    }
