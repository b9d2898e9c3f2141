"""
Evaluation Data Loader - Evaluation Console
eval_console/services/data_loader.py

Sequences the admin API reads behind each navigation level.

Every public call:
  - catches AdminApiException, logs it, and reports one user-facing message
    through `on_error`, returning None (an empty list for the level loads)
  - clears `is_loading` in a finally block (polling re-fetches never touch it)

Sort order:
  businesses   latest_evaluation_at ?? most_recent_pending ?? epoch, desc
  assessments  latest_run.created_at ?? evaluated_at ?? submitted_at ?? created_at ?? epoch, desc
  runs         created_at ?? epoch, desc
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional

import structlog

from eval_console.core.exceptions import AdminApiException, ApiRequestException
from eval_console.models.evaluation import (
    Business,
    EnrichedAssessment,
    EnrichedBusiness,
    EvaluationRunDetail,
    EvaluationRunSummary,
    EvaluationScoresResponse,
)
from eval_console.models.report import RefinedReportResponse
from eval_console.services.admin_api import AdminApiClient

logger = structlog.get_logger(__name__)

ErrorCallback = Callable[[str], None]

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


async def _gather_all(*aws: Awaitable) -> list:
    """
    Run `aws` concurrently and wait for every one of them.

    The first exception, in argument order, is raised once all have settled,
    so a failing sibling never leaves another fetch running unobserved.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for outcome in results:
        if isinstance(outcome, BaseException):
            raise outcome
    return results


def _sort_key(*candidates: Optional[datetime]) -> datetime:
    """First non-null timestamp, naive values read as UTC; epoch when none."""
    for value in candidates:
        if value is not None:
            return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return EPOCH


def sort_runs(runs: List[EvaluationRunSummary]) -> List[EvaluationRunSummary]:
    """Most recent first by created_at; run_number plays no part."""
    return sorted(runs, key=lambda r: _sort_key(r.created_at), reverse=True)


def sort_businesses(businesses: List[EnrichedBusiness]) -> List[EnrichedBusiness]:
    return sorted(
        businesses,
        key=lambda eb: _sort_key(
            eb.business.latest_evaluation_at, eb.business.most_recent_pending
        ),
        reverse=True,
    )


def sort_assessments(assessments: List[EnrichedAssessment]) -> List[EnrichedAssessment]:
    def key(ea: EnrichedAssessment) -> datetime:
        latest = ea.latest_run
        a = ea.assessment
        return _sort_key(
            latest.created_at if latest else None,
            a.evaluated_at,
            a.submitted_at,
            a.created_at,
        )

    return sorted(assessments, key=key, reverse=True)


@dataclass
class RunDetailBundle:
    """A run's detail and its scores, fetched together."""
    run: EvaluationRunDetail
    scores: EvaluationScoresResponse


class EvaluationDataLoader:
    """API reads for the navigator, with error reporting and a loading flag."""

    def __init__(
        self,
        api: AdminApiClient,
        on_error: Optional[ErrorCallback] = None,
    ):
        self.api = api
        self.on_error = on_error
        self.is_loading = False
        # number of messages reported through on_error so far
        self.error_count = 0

    def _report(self, message: str, error: AdminApiException, **context) -> None:
        logger.warning("load_failed", user_message=message, error=str(error), **context)
        self.error_count += 1
        if self.on_error:
            self.on_error(message)

    # ------------------------------------------------------------------
    # Businesses
    # ------------------------------------------------------------------

    async def load_enriched_businesses(
        self, quiet: bool = False
    ) -> Optional[List[EnrichedBusiness]]:
        """
        All businesses, each with its assessments and their runs.

        Returns None when the business list itself could not be fetched, so
        callers can tell a failure from an empty backend. With quiet=True a
        failure is only logged (background refreshes).
        """
        self.is_loading = True
        try:
            businesses = await self.api.get_businesses_with_evaluations()
            enriched = await asyncio.gather(
                *(self._enrich_business(b) for b in businesses)
            )
            result = sort_businesses(list(enriched))
            logger.info(
                "businesses_loaded",
                businesses=len(result),
                assessments=sum(len(eb.assessments) for eb in result),
            )
            return result
        except AdminApiException as e:
            if quiet:
                logger.warning("businesses_refresh_failed", error=str(e))
            else:
                self._report("Failed to load businesses", e)
            return None
        finally:
            self.is_loading = False

    async def _enrich_business(self, business: Business) -> EnrichedBusiness:
        try:
            assessments = await self._fetch_assessments(business.id)
        except AdminApiException as e:
            # isolated: this business is shown without assessments
            logger.warning(
                "business_enrichment_failed",
                business_id=business.id,
                error=str(e),
            )
            assessments = []
        return EnrichedBusiness(business=business, assessments=assessments)

    async def _fetch_assessments(self, business_id: str) -> List[EnrichedAssessment]:
        reviews = await self.api.get_business_reviews(business_id)
        assessments = reviews.all_reviews()
        runs_per_assessment = await _gather_all(
            *(self.api.get_assessment_evaluation_runs(a.id) for a in assessments)
        )
        return sort_assessments([
            EnrichedAssessment(assessment=a, runs=sort_runs(runs))
            for a, runs in zip(assessments, runs_per_assessment)
        ])

    # ------------------------------------------------------------------
    # Assessments and runs
    # ------------------------------------------------------------------

    async def load_assessments(self, business_id: str) -> List[EnrichedAssessment]:
        """Pending and completed reviews of one business, with their runs."""
        self.is_loading = True
        try:
            return await self._fetch_assessments(business_id)
        except AdminApiException as e:
            self._report("Failed to load assessments", e, business_id=business_id)
            return []
        finally:
            self.is_loading = False

    async def load_runs(self, assessment_id: str) -> List[EvaluationRunSummary]:
        self.is_loading = True
        try:
            runs = await self.api.get_assessment_evaluation_runs(assessment_id)
            return sort_runs(runs)
        except AdminApiException as e:
            self._report("Failed to load evaluation runs", e, assessment_id=assessment_id)
            return []
        finally:
            self.is_loading = False

    async def load_run_detail(
        self, run_id: str, is_polling: bool = False
    ) -> Optional[RunDetailBundle]:
        """
        Run detail and scores, fetched concurrently. Both fetches settle
        before a failure is reported.

        Polling re-fetches pass is_polling=True so the loading flag does not
        flicker on every interval.
        """
        if not is_polling:
            self.is_loading = True
        try:
            run, scores = await _gather_all(
                self.api.get_evaluation_run(run_id),
                self.api.get_evaluation_scores(run_id),
            )
            logger.info(
                "run_detail_loaded",
                run_id=run_id,
                status=run.status,
                metric_scores=len(scores.metric_scores),
                is_polling=is_polling,
            )
            return RunDetailBundle(run=run, scores=scores)
        except AdminApiException as e:
            self._report("Failed to load evaluation details", e, run_id=run_id)
            return None
        finally:
            if not is_polling:
                self.is_loading = False

    async def load_refined_report(self, run_id: str) -> Optional[RefinedReportResponse]:
        """Narrative report for a run; None when the run has none yet."""
        self.is_loading = True
        try:
            return await self.api.get_refined_report(run_id)
        except ApiRequestException as e:
            if e.status_code == 404:
                logger.info("refined_report_missing", run_id=run_id)
                return None
            self._report("Failed to load report", e, run_id=run_id)
            return None
        except AdminApiException as e:
            self._report("Failed to load report", e, run_id=run_id)
            return None
        finally:
            self.is_loading = False
