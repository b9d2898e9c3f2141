"""
CABAS metric catalog.

Client-facing names and academic terms for the 14 metrics, listed in
strategic priority order (CABAS v2.1 benchmarks).
"""

from typing import Dict, List, NamedTuple, Optional


class MetricDefinition(NamedTuple):
    code: str
    client_name: str
    academic_term: str


METRIC_ORDER: List[MetricDefinition] = [
    MetricDefinition("M1", "Operational Strength", "Technical Fitness"),
    MetricDefinition("M2", "Future Readiness", "Evolutionary Fitness"),
    MetricDefinition("M9", "Run/Transform Balance", "Ambidexterity"),
    MetricDefinition("M5", "Market Radar", "Sensing"),
    MetricDefinition("M3", "Insight-to-Action", "Learning Effectiveness"),
    MetricDefinition("M13", "Defensible Strengths", "VRIN Competitive Advantage"),
    MetricDefinition("M4", "Implementation Speed", "Execution Agility"),
    MetricDefinition("M6", "Decision Flow", "Information Flow Quality"),
    MetricDefinition("M7", "Knowledge Leverage", "Integration & Reuse"),
    MetricDefinition("M8", "Accountability Speed", "Ownership Latency"),
    MetricDefinition("M10", "Change Readiness", "Organizational Readiness"),
    MetricDefinition("M11", "Structure Fitness", "Organizational Design"),
    MetricDefinition("M12", "Capacity & Tools", "Resource Availability"),
    MetricDefinition("M14", "Risk Tolerance", "Risk Appetite"),
]

_BY_CODE: Dict[str, MetricDefinition] = {m.code: m for m in METRIC_ORDER}
_PRIORITY: Dict[str, int] = {m.code: i for i, m in enumerate(METRIC_ORDER)}

UNKNOWN_PRIORITY = 999


def get_metric_definition(code: str) -> Optional[MetricDefinition]:
    return _BY_CODE.get(code)


def metric_priority(code: str) -> int:
    """Position in the strategic order; unknown codes sort last."""
    return _PRIORITY.get(code, UNKNOWN_PRIORITY)


def metric_display_name(code: Optional[str], name: Optional[str] = None) -> str:
    """
    Display label for a metric.

    Examples:
        >>> metric_display_name("M9")
        'Run/Transform Balance (Ambidexterity)'
        >>> metric_display_name("X1", "Custom")
        'Custom'
    """
    definition = _BY_CODE.get(code) if code else None
    if definition:
        return f"{definition.client_name} ({definition.academic_term})"
    return name or code or "Unknown Metric"
