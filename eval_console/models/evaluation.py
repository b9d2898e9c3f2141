"""
Evaluation API models - Evaluation Console
eval_console/models/evaluation.py

Pydantic models for the payloads returned by the admin evaluation API, plus
the enriched business → assessment → runs tree built by the data loader.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class SelectionRef(BaseModel):
    """Minimal id/name pair kept in navigation state."""

    id: str
    name: str = ""


# =============================================================================
# BUSINESSES AND ASSESSMENTS
# =============================================================================

class Business(BaseModel):
    """Business with evaluation rollups (admin board view)."""

    id: str
    name: str
    slug: Optional[str] = None
    status: Optional[str] = None
    total_reviews: int = 0
    completed_reviews: int = 0
    pending_reviews: int = 0
    has_pending: bool = False
    evaluated_reviews: Optional[int] = None
    latest_evaluation_at: Optional[datetime] = None
    most_recent_pending: Optional[datetime] = None

    def ref(self) -> SelectionRef:
        return SelectionRef(id=self.id, name=self.name)


class ReviewStats(BaseModel):
    total_submitted: int = 0
    total_invited: Optional[int] = None
    completion_rate: Optional[float] = None


class Assessment(BaseModel):
    """A review (assessment) belonging to one business."""

    id: str
    name: str
    goal: Optional[str] = None
    status: str = "pending"
    question_set_id: Optional[str] = None
    question_set_name: Optional[str] = None
    stats: ReviewStats = Field(default_factory=ReviewStats)
    interview_count: int = 0
    submitted_at: Optional[datetime] = None
    evaluated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def ref(self) -> SelectionRef:
        return SelectionRef(id=self.id, name=self.name)


class BusinessReviewsResponse(BaseModel):
    business: Optional[SelectionRef] = None
    pending: List[Assessment] = Field(default_factory=list)
    completed: List[Assessment] = Field(default_factory=list)

    @field_validator("pending", "completed", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or []

    def all_reviews(self) -> List[Assessment]:
        """Pending and completed reviews; both can be evaluated."""
        return [*self.pending, *self.completed]


# =============================================================================
# EVALUATION RUNS
# =============================================================================

class EvaluationRunSummary(BaseModel):
    id: str
    assessment_id: Optional[str] = None
    run_number: int = 0
    status: str
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    overall_score: Optional[float] = None
    average_metric_score: Optional[float] = None
    total_flags: Optional[int] = None
    unresolved_flags: Optional[int] = None
    flags_requiring_review: Optional[int] = None
    total_sources: Optional[int] = None
    total_questions_scored: Optional[int] = None
    total_metrics_calculated: Optional[int] = None


class EvaluationSource(BaseModel):
    """One interview contributing to a run."""

    id: str
    source_type: str = "interview"
    name: Optional[str] = None
    reference_id: Optional[str] = None


class FlagEvidence(BaseModel):
    question_id: Optional[str] = None
    response_excerpt: str = ""
    relevance: str = ""


class EvaluationFlag(BaseModel):
    id: str
    flag_type: Optional[str] = None
    severity: str = "info"
    title: str = ""
    description: Optional[str] = None
    ai_explanation: Optional[str] = None
    source_ids: List[str] = Field(default_factory=list)
    question_ids: List[str] = Field(default_factory=list)
    evidence: List[FlagEvidence] = Field(default_factory=list)
    requires_review: bool = False
    is_resolved: bool = False
    resolution: Optional[str] = None
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @field_validator("source_ids", "question_ids", "evidence", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or []


class EvaluationRunDetail(EvaluationRunSummary):
    triggered_by: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)
    sources: List[EvaluationSource] = Field(default_factory=list)
    flags: List[EvaluationFlag] = Field(default_factory=list)

    @field_validator("sources", "flags", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or []


# =============================================================================
# SCORES
# =============================================================================

class QuestionContribution(BaseModel):
    question_id: str
    question_code: str = ""
    score: float = 0.0
    weight: float = 0.0
    weighted_contribution: float = 0.0


class MetricScoreDetail(BaseModel):
    """
    Metric score for a run.

    source_id is None for a run-level entry pre-aggregated by the backend
    across all interviews; otherwise it names the interview it was scored on.
    """

    id: str
    metric_id: Optional[str] = None
    metric_code: str
    metric_name: Optional[str] = None
    overall_score: Optional[float] = None
    source_id: Optional[str] = None
    question_contributions: List[QuestionContribution] = Field(default_factory=list)
    confidence: Optional[str] = None
    interpretation: Optional[str] = None

    @field_validator("question_contributions", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or []


class DimensionScoreDetail(BaseModel):
    dimension_id: str
    dimension_name: str = ""
    description: Optional[str] = None
    weight: Optional[float] = None
    score: float = 0.0
    confidence: Optional[str] = None
    reasoning: str = ""


class InterdependencyCheckResult(BaseModel):
    """What the scorer checked between two linked questions."""

    id: str
    check_type: str = ""
    primary_question_code: str = ""
    linked_question_code: str = ""
    interdependency_description: str = ""
    primary_score: Optional[float] = None
    linked_score: Optional[float] = None
    passed: bool = True
    reasoning: str = ""
    flag_id: Optional[str] = None


class QuestionScoreDetail(BaseModel):
    id: str
    source_id: str
    question_id: str
    question_code: str
    question_text: Optional[str] = None
    overall_score: Optional[float] = None
    dimension_scores: List[DimensionScoreDetail] = Field(default_factory=list)
    check_results: List[InterdependencyCheckResult] = Field(default_factory=list)
    confidence: Optional[str] = None
    response_quality: Optional[str] = None
    scoring_reasoning: Optional[str] = None
    requires_review: bool = False

    @field_validator("dimension_scores", "check_results", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or []


class EvaluationScoresResponse(BaseModel):
    run_id: Optional[str] = None
    metric_scores: List[MetricScoreDetail] = Field(default_factory=list)
    question_scores: List[QuestionScoreDetail] = Field(default_factory=list)

    @field_validator("metric_scores", "question_scores", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or []


class RunEvaluationResponse(BaseModel):
    run_id: str
    run_number: int = 0
    status: str = "pending"
    message: Optional[str] = None
    interviews_to_evaluate: Optional[int] = None


class AdminProfile(BaseModel):
    id: str
    email: str
    name: str = ""
    role: str = "admin"
    permissions: List[str] = Field(default_factory=list)

    @property
    def first_name(self) -> str:
        return self.name.split(" ")[0] if self.name else ""

    @property
    def last_name(self) -> str:
        return " ".join(self.name.split(" ")[1:])


# =============================================================================
# ENRICHED TREE (built client-side)
# =============================================================================

class EnrichedAssessment(BaseModel):
    assessment: Assessment
    runs: List[EvaluationRunSummary] = Field(default_factory=list)

    @property
    def latest_run(self) -> Optional[EvaluationRunSummary]:
        """Most recent run by created_at (runs are kept sorted newest first)."""
        return self.runs[0] if self.runs else None


class EnrichedBusiness(BaseModel):
    business: Business
    assessments: List[EnrichedAssessment] = Field(default_factory=list)
