"""
Metric aggregation
eval_console/scoring/aggregation.py

Pure functions that fold the flat score lists returned for a run into
run-level and interview-level views. None of them mutate their input or
raise on missing numbers (a missing score counts as 0).
"""

import re
from typing import Dict, Iterable, List, Optional, Sequence

from eval_console.models.enumerations import ConfidenceLevel, RAGStatus, SummaryBand
from eval_console.models.evaluation import (
    EvaluationFlag,
    MetricScoreDetail,
    QuestionScoreDetail,
)
from eval_console.scoring.catalog import metric_priority
from eval_console.scoring.utils import mean, round_half_up

_DIGITS = re.compile(r"\d+")
_SEVEN_DIGITS = re.compile(r"\d{7}")

# Sort key for codes with no number in them
_NO_NUMBER = float("inf")


def _dedupe_by_code(metrics: Iterable[MetricScoreDetail]) -> List[MetricScoreDetail]:
    seen = set()
    result = []
    for m in metrics:
        if m.metric_code in seen:
            continue
        seen.add(m.metric_code)
        result.append(m)
    return result


def aggregate_metrics(scores: Sequence[MetricScoreDetail]) -> List[MetricScoreDetail]:
    """
    Run-level view of a run's metric scores.

    If the backend sent pre-aggregated entries (source_id is None) those are
    authoritative: return them deduplicated by metric_code, first seen wins.
    Otherwise average every per-interview entry sharing a code (unweighted)
    and synthesize one entry per code with id "agg-<code>" and source_id None.
    """
    pre_aggregated = [m for m in scores if m.source_id is None]
    if pre_aggregated:
        return _dedupe_by_code(pre_aggregated)

    grouped: Dict[str, List[MetricScoreDetail]] = {}
    for m in scores:
        grouped.setdefault(m.metric_code, []).append(m)

    aggregated = []
    for code, entries in grouped.items():
        values = [e.overall_score or 0.0 for e in entries]
        aggregated.append(
            entries[0].model_copy(
                update={
                    "id": f"agg-{code}",
                    "source_id": None,
                    "overall_score": sum(values) / len(values),
                }
            )
        )
    return aggregated


def metrics_for_interview(
    scores: Sequence[MetricScoreDetail], source_id: str
) -> List[MetricScoreDetail]:
    """Metrics scored on one interview, deduplicated by metric_code."""
    return _dedupe_by_code(m for m in scores if m.source_id == source_id)


def _code_number(code: Optional[str]) -> float:
    match = _DIGITS.search(code or "")
    return int(match.group()) if match else _NO_NUMBER


def sort_metrics_by_code(metrics: Iterable[MetricScoreDetail]) -> List[MetricScoreDetail]:
    """M1 < M2 < ... < M14; codes without a number last; stable for ties."""
    return sorted(metrics, key=lambda m: _code_number(m.metric_code))


def sort_metrics_by_priority(metrics: Iterable[MetricScoreDetail]) -> List[MetricScoreDetail]:
    """Order by the CABAS strategic priority list; unknown codes last."""
    return sorted(metrics, key=lambda m: metric_priority(m.metric_code))


def sort_questions_by_code(
    questions: Iterable[QuestionScoreDetail],
) -> List[QuestionScoreDetail]:
    """By the first number in the code ("S1", "X3a"), then by the code itself."""
    return sorted(
        questions,
        key=lambda q: (_code_number(q.question_code), q.question_code),
    )


def average_score(metrics: Sequence[MetricScoreDetail]) -> int:
    """Rounded mean of overall_score; 0 for no metrics."""
    if not metrics:
        return 0
    return round_half_up(mean(m.overall_score for m in metrics))


def summary_band(score: float) -> SummaryBand:
    if score >= 70:
        return SummaryBand.STRONG
    if score >= 50:
        return SummaryBand.MODERATE
    return SummaryBand.NEEDS_WORK


def rag_status(score: float) -> RAGStatus:
    if score >= 80:
        return RAGStatus.GREEN
    if score >= 60:
        return RAGStatus.AMBER
    return RAGStatus.RED


def confidence_level(metrics: Sequence[MetricScoreDetail]) -> ConfidenceLevel:
    """Share of high-confidence metrics: >=70% High, >=40% Medium, else Low."""
    if not metrics:
        return ConfidenceLevel.LOW
    high = sum(1 for m in metrics if (m.confidence or "").lower() == "high")
    ratio = high / len(metrics)
    if ratio >= 0.7:
        return ConfidenceLevel.HIGH
    if ratio >= 0.4:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def flags_for_interview(flags: Iterable[EvaluationFlag], source_id: str) -> List[EvaluationFlag]:
    return [f for f in flags if source_id in f.source_ids]


def flags_for_metric(
    flags: Iterable[EvaluationFlag], metric: MetricScoreDetail
) -> List[EvaluationFlag]:
    """Flags raised on any question that contributes to `metric`."""
    question_ids = {qc.question_id for qc in metric.question_contributions}
    return [f for f in flags if question_ids.intersection(f.question_ids)]


def unresolved(flags: Iterable[EvaluationFlag]) -> List[EvaluationFlag]:
    return [f for f in flags if not f.is_resolved]


def format_interview_id(source_id: str) -> str:
    """
    Anonymous interview label.

    Examples:
        >>> format_interview_id("assessment_1768663930241_om0qsig")
        'INT-1768663'
        >>> format_interview_id("abc")
        'INT-ABC'
    """
    match = _SEVEN_DIGITS.search(source_id)
    if match:
        return f"INT-{match.group()}"
    return f"INT-{source_id[:7].upper()}"
