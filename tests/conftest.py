# tests/conftest.py

"""
Pytest Fixtures - Shared test data and collaborators

FIXTURE ID REFERENCE:
- Businesses:  biz-acme, biz-globex, biz-initech
- Assessments: asmt-acme-q1, asmt-acme-q2, asmt-globex-1
- Runs:        run-day1, run-day3, run-processing, run-new
- Interviews:  assessment_1768663930241_om0qsig (src-1), assessment_1768700000000_b (src-2)
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from eval_console.config import Settings
from eval_console.core.exceptions import ApiRequestException
from eval_console.models.evaluation import (
    Assessment,
    Business,
    BusinessReviewsResponse,
    EvaluationFlag,
    EvaluationRunDetail,
    EvaluationRunSummary,
    EvaluationScoresResponse,
    EvaluationSource,
    MetricScoreDetail,
    QuestionContribution,
    QuestionScoreDetail,
    RunEvaluationResponse,
)

SRC_1 = "assessment_1768663930241_om0qsig"
SRC_2 = "assessment_1768700000000_b"

DAY_1 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
DAY_3 = DAY_1 + timedelta(days=2)


# =============================================================================
# BUILDERS
# =============================================================================

def make_metric(
    code: str,
    score: Optional[float],
    source_id: Optional[str] = None,
    **kwargs,
) -> MetricScoreDetail:
    """Metric score entry; source_id None marks a run-level entry."""
    suffix = source_id or "run"
    return MetricScoreDetail(
        id=kwargs.pop("id", f"{code}-{suffix}"),
        metric_code=code,
        metric_name=kwargs.pop("metric_name", f"Metric {code}"),
        overall_score=score,
        source_id=source_id,
        **kwargs,
    )


def make_question(code: str, source_id: str, score: float = 60.0) -> QuestionScoreDetail:
    return QuestionScoreDetail(
        id=f"qs-{code}-{source_id}",
        source_id=source_id,
        question_id=f"q-{code}",
        question_code=code,
        overall_score=score,
    )


def make_flag(
    flag_id: str,
    source_ids: List[str],
    question_ids: Optional[List[str]] = None,
    is_resolved: bool = False,
) -> EvaluationFlag:
    return EvaluationFlag(
        id=flag_id,
        severity="warning",
        title=f"Flag {flag_id}",
        source_ids=source_ids,
        question_ids=question_ids or [],
        is_resolved=is_resolved,
    )


def make_run(
    run_id: str,
    status: str = "completed",
    run_number: int = 1,
    assessment_id: str = "asmt-acme-q1",
    created_at: Optional[datetime] = DAY_1,
    **kwargs,
) -> EvaluationRunDetail:
    return EvaluationRunDetail(
        id=run_id,
        assessment_id=assessment_id,
        run_number=run_number,
        status=status,
        created_at=created_at,
        **kwargs,
    )


def make_summary(run_id: str, created_at: Optional[datetime], run_number: int = 1) -> EvaluationRunSummary:
    return EvaluationRunSummary(
        id=run_id, run_number=run_number, status="completed", created_at=created_at
    )


# =============================================================================
# FAKE ADMIN API
# =============================================================================

class FakeAdminApi:
    """
    In-memory stand-in for AdminApiClient.

    `failures` maps a method name, or (method name, first argument), to the
    exception that call should raise. `run_details[run_id]` is a sequence
    returned on successive fetches; the last entry repeats. `delays[run_id]`
    holds a run fetch open for that many seconds; `finished` lists the run
    fetches that ran to completion.
    """

    def __init__(self):
        self.businesses: List[Business] = []
        self.reviews: Dict[str, BusinessReviewsResponse] = {}
        self.runs_by_assessment: Dict[str, List[EvaluationRunSummary]] = {}
        self.run_details: Dict[str, List[EvaluationRunDetail]] = {}
        self.scores: Dict[str, EvaluationScoresResponse] = {}
        self.reports: Dict[str, Any] = {}
        self.run_evaluation_result: Optional[RunEvaluationResponse] = None
        self.failures: Dict[Any, Exception] = {}
        self.calls: List[tuple] = []
        self.on_call = None
        self.closed = False
        self.delays: Dict[str, float] = {}
        self.finished: List[str] = []

    def _record(self, name: str, key: Any = None) -> None:
        self.calls.append((name, key))
        if self.on_call:
            self.on_call(name, key)
        error = self.failures.get((name, key)) or self.failures.get(name)
        if error is not None:
            raise error

    def call_count(self, name: str, key: Any = None) -> int:
        return sum(1 for n, k in self.calls if n == name and (key is None or k == key))

    async def get_businesses_with_evaluations(self):
        self._record("get_businesses_with_evaluations")
        return list(self.businesses)

    async def get_business_reviews(self, business_id):
        self._record("get_business_reviews", business_id)
        return self.reviews.get(business_id, BusinessReviewsResponse())

    async def get_assessment_evaluation_runs(self, assessment_id):
        self._record("get_assessment_evaluation_runs", assessment_id)
        return list(self.runs_by_assessment.get(assessment_id, []))

    async def get_evaluation_run(self, run_id, include_audit_log=False):
        previous = self.call_count("get_evaluation_run", run_id)
        self._record("get_evaluation_run", run_id)
        await asyncio.sleep(self.delays.get(run_id, 0))
        self.finished.append(run_id)
        if run_id not in self.run_details:
            raise ApiRequestException(404, "Run not found")
        sequence = self.run_details[run_id]
        return sequence[min(previous, len(sequence) - 1)]

    async def get_evaluation_scores(self, run_id):
        self._record("get_evaluation_scores", run_id)
        return self.scores.get(run_id, EvaluationScoresResponse(run_id=run_id))

    async def get_refined_report(self, run_id):
        self._record("get_refined_report", run_id)
        if run_id not in self.reports:
            raise ApiRequestException(404, "Report not found")
        return self.reports[run_id]

    async def run_evaluation(self, assessment_id, config_overrides=None, dry_run=None):
        self._record("run_evaluation", assessment_id)
        return self.run_evaluation_result

    async def resolve_flag(self, flag_id, resolution, override_score=None):
        self._record("resolve_flag", flag_id)
        return {"message": "Flag resolved"}

    async def aclose(self):
        self.closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()


class ErrorRecorder:
    """Collects on_error messages."""

    def __init__(self):
        self.messages: List[str] = []

    def __call__(self, message: str) -> None:
        self.messages.append(message)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def fast_settings():
    """Settings with the timers shrunk so async scenarios finish quickly."""
    return Settings(
        _env_file=None,
        ADMIN_API_URL="http://testserver/api/v1",
        ADMIN_TOKEN="test-token",
        RUN_POLL_INTERVAL_SECONDS=0.01,
        PROGRESS_STEP_SECONDS=0.001,
        RUN_SETTLE_DELAY_SECONDS=0,
    )


@pytest.fixture
def fake_api():
    return FakeAdminApi()


@pytest.fixture
def errors():
    return ErrorRecorder()


@pytest.fixture
def interview_metrics():
    """Per-interview metric scores for two interviews (no run-level entries)."""
    return [
        make_metric("M1", 80, SRC_1),
        make_metric("M2", 60, SRC_1),
        make_metric("M1", 60, SRC_2),
        make_metric("M2", None, SRC_2),
        make_metric("M10", 40, SRC_1),
    ]


@pytest.fixture
def completed_scores():
    """Scores for a completed two-interview run."""
    return EvaluationScoresResponse(
        run_id="run-day3",
        metric_scores=[
            make_metric("M1", 90, SRC_1, question_contributions=[
                QuestionContribution(question_id="q-S1", question_code="S1"),
            ]),
            make_metric("M2", 70, SRC_1),
            make_metric("M4", 40, SRC_1),
            make_metric("M1", 70, SRC_2),
            make_metric("M2", 50, SRC_2),
        ],
        question_scores=[
            make_question("S10", SRC_1),
            make_question("S2", SRC_1),
            make_question("S1", SRC_1),
            make_question("S1", SRC_2),
        ],
    )


@pytest.fixture
def completed_run():
    return make_run(
        "run-day3",
        run_number=1,
        created_at=DAY_3,
        sources=[
            EvaluationSource(id=SRC_1, name="Interview one"),
            EvaluationSource(id=SRC_2, name="Interview two"),
        ],
        flags=[
            make_flag("flag-1", [SRC_1], ["q-S1"]),
            make_flag("flag-2", [SRC_1, SRC_2], is_resolved=True),
            make_flag("flag-3", [SRC_2]),
        ],
    )


@pytest.fixture
def seeded_api(fake_api, completed_run, completed_scores):
    """
    Fake API with one business tree:

    biz-acme    asmt-acme-q1 (runs day1 #2, day3 #1), asmt-acme-q2 (no runs)
    biz-globex  asmt-globex-1 (no runs)
    biz-initech (no reviews)
    """
    fake_api.businesses = [
        Business(id="biz-initech", name="Initech"),
        Business(id="biz-acme", name="Acme", latest_evaluation_at=DAY_3, total_reviews=2),
        Business(id="biz-globex", name="Globex", most_recent_pending=DAY_1),
    ]
    fake_api.reviews = {
        "biz-acme": BusinessReviewsResponse(
            pending=[Assessment(id="asmt-acme-q2", name="Q2 review", created_at=DAY_1)],
            completed=[Assessment(id="asmt-acme-q1", name="Q1 review")],
        ),
        "biz-globex": BusinessReviewsResponse(
            completed=[Assessment(id="asmt-globex-1", name="Globex review")],
        ),
    }
    # run_number does not decide recency: #2 is the older run
    fake_api.runs_by_assessment = {
        "asmt-acme-q1": [
            make_summary("run-day1", DAY_1, run_number=2),
            make_summary("run-day3", DAY_3, run_number=1),
        ],
    }
    fake_api.run_details = {"run-day3": [completed_run]}
    fake_api.scores = {"run-day3": completed_scores}
    return fake_api
