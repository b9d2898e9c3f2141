"""
Refined report models - Evaluation Console
eval_console/models/report.py

Narrative insight overlay for a run. Older backends return key_actions,
critical_issues and strengths as plain strings; these are normalized here,
once, into the rich objects (kind="legacy") so callers only ever see one
shape per list.
"""

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class EvidenceQuote(BaseModel):
    quote: str
    role: str = ""
    supports: Optional[Literal["strength", "gap", "context"]] = None


class AIReasoning(BaseModel):
    methodology: str = ""
    data_points_analyzed: int = 0
    confidence_factors: List[str] = Field(default_factory=list)
    key_signals: List[str] = Field(default_factory=list)
    limitations: List[str] = Field(default_factory=list)


class MetricInsight(BaseModel):
    metric_code: str
    metric_name: str = ""
    category: str = ""
    score: float = 0.0
    health_status: Literal["strong", "developing", "attention", "critical"] = "developing"
    summary: str = ""
    observations: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    evidence: List[EvidenceQuote] = Field(default_factory=list)
    ai_reasoning: Optional[AIReasoning] = None
    benchmark_narrative: Optional[str] = None


class KeyAction(BaseModel):
    kind: Literal["rich", "legacy"] = "rich"
    title: str
    description: str = ""
    owner: str = ""
    timeline: str = ""
    priority: Literal["critical", "high", "medium"] = "medium"
    impact: Literal["high", "medium", "low"] = "medium"
    effort: Literal["high", "medium", "low"] = "medium"


class CriticalIssue(BaseModel):
    kind: Literal["rich", "legacy"] = "rich"
    title: str
    severity: Literal["critical", "warning"] = "warning"
    metrics: List[str] = Field(default_factory=list)
    avg_score: Optional[float] = None
    description: str = ""
    evidence: List[EvidenceQuote] = Field(default_factory=list)
    root_causes: List[str] = Field(default_factory=list)
    business_impact: str = ""


class Strength(BaseModel):
    kind: Literal["rich", "legacy"] = "rich"
    title: str
    metrics: List[str] = Field(default_factory=list)
    avg_score: Optional[float] = None
    description: str = ""
    evidence: List[EvidenceQuote] = Field(default_factory=list)
    opportunity: str = ""


def _normalize_items(items: Any) -> List[Any]:
    """Turn legacy string entries into {kind: legacy, title: <text>} dicts."""
    normalized = []
    for item in items or []:
        if isinstance(item, str):
            normalized.append({"kind": "legacy", "title": item})
        else:
            normalized.append(item)
    return normalized


class RefinedReport(BaseModel):
    metrics: List[MetricInsight] = Field(default_factory=list)
    executive_summary: str = ""
    key_actions: List[KeyAction] = Field(default_factory=list)
    critical_issues: List[CriticalIssue] = Field(default_factory=list)
    strengths: List[Strength] = Field(default_factory=list)
    generated_at: Optional[datetime] = None
    evaluation_id: Optional[str] = None
    business_id: Optional[str] = None

    @field_validator("key_actions", "critical_issues", "strengths", mode="before")
    @classmethod
    def normalize_legacy_entries(cls, v):
        return _normalize_items(v)

    @field_validator("metrics", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or []


class RefinedReportResponse(BaseModel):
    run_id: str
    assessment_id: Optional[str] = None
    run_number: int = 0
    report: RefinedReport
