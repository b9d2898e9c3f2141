"""
Detail view models - Evaluation Console
eval_console/navigation/view_models.py

Read-only projections of a loaded run for the three detail sub-levels:

    RunSummaryView          aggregated run scores and strategic position
    InterviewBreakdownView  one InterviewStats row per interview
    InterviewDetailView     a single interview drill-down
"""

from dataclasses import dataclass, field
from typing import List, Optional

from eval_console.models.enumerations import (
    ConfidenceLevel,
    RAGStatus,
    SummaryBand,
)
from eval_console.models.evaluation import (
    EvaluationFlag,
    EvaluationRunDetail,
    EvaluationScoresResponse,
    EvaluationSource,
    MetricScoreDetail,
    QuestionScoreDetail,
)
from eval_console.scoring.aggregation import (
    aggregate_metrics,
    average_score,
    confidence_level,
    flags_for_interview,
    format_interview_id,
    metrics_for_interview,
    rag_status,
    sort_metrics_by_code,
    sort_questions_by_code,
    summary_band,
    unresolved,
)
from eval_console.scoring.strategic_position import (
    StrategicPositionCalculator,
    StrategicPositionResult,
)

TOP_N = 3


def _position(
    metrics: List[MetricScoreDetail], calculator: StrategicPositionCalculator
) -> Optional[StrategicPositionResult]:
    # Without any weighted metric the (0, 0) corner would read as At-Risk
    result = calculator.calculate(metrics)
    return result if result.has_data else None


@dataclass
class RunSummaryView:
    run: EvaluationRunDetail
    metrics: List[MetricScoreDetail]
    overall_score: int
    band: SummaryBand
    strong_count: int
    moderate_count: int
    needs_work_count: int
    interview_count: int
    unresolved_flag_count: int
    strategic_position: Optional[StrategicPositionResult] = None


@dataclass
class InterviewStats:
    source: EvaluationSource
    question_count: int
    metric_count: int
    avg_score: int
    flag_count: int

    @property
    def formatted_id(self) -> str:
        return format_interview_id(self.source.id)


@dataclass
class InterviewBreakdownView:
    run: EvaluationRunDetail
    interviews: List[InterviewStats] = field(default_factory=list)


@dataclass
class InterviewDetailView:
    source_id: str
    formatted_id: str
    source: Optional[EvaluationSource]
    metrics: List[MetricScoreDetail]
    questions: List[QuestionScoreDetail]
    flags: List[EvaluationFlag]
    unresolved_flags: List[EvaluationFlag]
    avg_score: int
    rag: RAGStatus
    confidence: ConfidenceLevel
    top_performers: List[MetricScoreDetail]
    bottom_performers: List[MetricScoreDetail]
    strategic_position: Optional[StrategicPositionResult] = None


def build_summary_view(
    run: EvaluationRunDetail,
    scores: EvaluationScoresResponse,
    calculator: Optional[StrategicPositionCalculator] = None,
) -> RunSummaryView:
    calculator = calculator or StrategicPositionCalculator()
    metrics = sort_metrics_by_code(aggregate_metrics(scores.metric_scores))
    bands = [summary_band(m.overall_score or 0) for m in metrics]
    overall = average_score(metrics)

    return RunSummaryView(
        run=run,
        metrics=metrics,
        overall_score=overall,
        band=summary_band(overall),
        strong_count=bands.count(SummaryBand.STRONG),
        moderate_count=bands.count(SummaryBand.MODERATE),
        needs_work_count=bands.count(SummaryBand.NEEDS_WORK),
        interview_count=len(run.sources),
        unresolved_flag_count=len(unresolved(run.flags)),
        strategic_position=_position(metrics, calculator),
    )


def interview_stats(
    run: EvaluationRunDetail,
    scores: EvaluationScoresResponse,
    source: EvaluationSource,
) -> InterviewStats:
    """Per-interview row; the average comes from metric scores, not questions."""
    metrics = metrics_for_interview(scores.metric_scores, source.id)
    return InterviewStats(
        source=source,
        question_count=sum(1 for q in scores.question_scores if q.source_id == source.id),
        metric_count=len(metrics),
        avg_score=average_score(metrics),
        flag_count=len(flags_for_interview(run.flags, source.id)),
    )


def build_breakdown_view(
    run: EvaluationRunDetail, scores: EvaluationScoresResponse
) -> InterviewBreakdownView:
    return InterviewBreakdownView(
        run=run,
        interviews=[interview_stats(run, scores, s) for s in run.sources],
    )


def build_interview_view(
    run: EvaluationRunDetail,
    scores: EvaluationScoresResponse,
    source_id: str,
    calculator: Optional[StrategicPositionCalculator] = None,
) -> InterviewDetailView:
    calculator = calculator or StrategicPositionCalculator()
    metrics = sort_metrics_by_code(metrics_for_interview(scores.metric_scores, source_id))
    questions = sort_questions_by_code(
        q for q in scores.question_scores if q.source_id == source_id
    )
    flags = flags_for_interview(run.flags, source_id)
    avg = average_score(metrics)

    by_score = sorted(metrics, key=lambda m: m.overall_score or 0, reverse=True)

    return InterviewDetailView(
        source_id=source_id,
        formatted_id=format_interview_id(source_id),
        source=next((s for s in run.sources if s.id == source_id), None),
        metrics=metrics,
        questions=questions,
        flags=flags,
        unresolved_flags=unresolved(flags),
        avg_score=avg,
        rag=rag_status(avg),
        confidence=confidence_level(metrics),
        top_performers=by_score[:TOP_N],
        bottom_performers=list(reversed(by_score[-TOP_N:])),
        strategic_position=_position(metrics, calculator),
    )
