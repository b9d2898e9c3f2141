"""
Evaluation Navigator - Evaluation Console
eval_console/navigation/state_machine.py

Drill-down controller for evaluation results:

    businesses ─select_business─▶ assessments ─select_assessment─▶ runs
        ▲                                                           │
        │                                                      select_run
        │                                                           ▼
        └──────────── back (from summary) ─────────────── detail(summary)
                                                            │        ▲
                                               view_breakdown        back
                                                            ▼        │
                                                      detail(breakdown)
                                                            │
                                                 select_interview
                                                            ▼
                                                      detail(interview)

Loads triggered by a transition are awaited by the method that triggers them.
The selection is committed to state before the child fetch starts, and a
result that arrives after the user has moved on is dropped.

While the selected run is pending or processing it is re-fetched through a
RunPoller; leaving the run (back to businesses, a breadcrumb jump, close())
cancels the outstanding re-fetch.
"""

from typing import Iterable, List, Optional, Tuple, Union

import structlog

from eval_console.core.exceptions import InvalidTransitionException
from eval_console.models.enumerations import (
    NON_TERMINAL_STATUSES,
    DetailSubLevel,
    NavigationLevel,
)
from eval_console.models.evaluation import (
    EnrichedAssessment,
    EnrichedBusiness,
    EvaluationRunDetail,
    EvaluationRunSummary,
    EvaluationScoresResponse,
    SelectionRef,
)
from eval_console.models.navigation import NavigationState
from eval_console.models.report import RefinedReportResponse
from eval_console.navigation.view_models import (
    InterviewBreakdownView,
    InterviewDetailView,
    RunSummaryView,
    build_breakdown_view,
    build_interview_view,
    build_summary_view,
)
from eval_console.scoring.aggregation import format_interview_id
from eval_console.scoring.strategic_position import StrategicPositionCalculator
from eval_console.services.data_loader import EvaluationDataLoader, RunDetailBundle
from eval_console.services.poller import RunPoller

logger = structlog.get_logger(__name__)

_LEVEL_ORDER = [
    NavigationLevel.BUSINESSES,
    NavigationLevel.ASSESSMENTS,
    NavigationLevel.RUNS,
    NavigationLevel.DETAIL,
]

Crumb = Tuple[Union[NavigationLevel, DetailSubLevel], str]


def _as_ref(item) -> SelectionRef:
    """Accept a SelectionRef, an API model with ref(), or an enriched wrapper."""
    if isinstance(item, SelectionRef):
        return item
    if isinstance(item, EnrichedBusiness):
        return item.business.ref()
    if isinstance(item, EnrichedAssessment):
        return item.assessment.ref()
    return item.ref()


class EvaluationNavigator:
    """Owns the NavigationState and the data loaded for it."""

    def __init__(
        self,
        loader: EvaluationDataLoader,
        poller: Optional[RunPoller] = None,
        calculator: Optional[StrategicPositionCalculator] = None,
    ):
        self.loader = loader
        self.poller = poller or RunPoller()
        self.calculator = calculator or StrategicPositionCalculator()

        self.state = NavigationState()
        self.businesses: List[EnrichedBusiness] = []
        self.assessments: List[EnrichedAssessment] = []
        self.runs: List[EvaluationRunSummary] = []
        self.scores: Optional[EvaluationScoresResponse] = None
        self.refined_report: Optional[RefinedReportResponse] = None

        # bumped on every transition; loads compare it to drop stale results
        self._generation = 0
        # bumped when a run load starts; only the latest request may commit
        self._run_request = 0

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @property
    def level(self) -> NavigationLevel:
        return self.state.level

    @property
    def is_loading(self) -> bool:
        return self.loader.is_loading

    def _commit(self, state: NavigationState) -> int:
        previous = self.state
        self.state = state
        self._generation += 1
        logger.debug(
            "navigation_transition",
            from_level=previous.level.value,
            to_level=state.level.value,
            sub_level=state.detail_sub_level.value if state.detail_sub_level else None,
        )
        return self._generation

    def _require(
        self,
        action: str,
        levels: Iterable[NavigationLevel],
        sub_levels: Optional[Iterable[DetailSubLevel]] = None,
    ) -> None:
        if self.state.level not in set(levels):
            raise InvalidTransitionException(self.state.level.value, action)
        if sub_levels is not None and self.state.detail_sub_level not in set(sub_levels):
            raise InvalidTransitionException(
                f"{self.state.level.value}/{self.state.detail_sub_level.value}", action
            )

    def _clear_run_data(self) -> None:
        self.scores = None
        self.refined_report = None

    def _selected_run_id(self) -> Optional[str]:
        run = self.state.selected_run
        return run.id if run else None

    def _apply_bundle(self, bundle: RunDetailBundle) -> None:
        """Swap in a re-fetched copy of the selected run, keeping the sub-level."""
        self.state = self.state.evolve(selected_run=bundle.run)
        self.scores = bundle.scores
        self._schedule_poll(bundle.run)

    def _schedule_poll(self, run: EvaluationRunDetail) -> None:
        if run.status in NON_TERMINAL_STATUSES:
            self.poller.schedule(run.id, self._poll)
        else:
            self.poller.cancel()

    async def _poll(self, run_id: str) -> None:
        if self._selected_run_id() != run_id:
            logger.info("poll_discarded", run_id=run_id, reason="run no longer selected")
            return
        bundle = await self.loader.load_run_detail(run_id, is_polling=True)
        if bundle is None:
            return
        if self._selected_run_id() != run_id:
            logger.info("poll_discarded", run_id=run_id, reason="run no longer selected")
            return
        logger.info("run_polled", run_id=run_id, status=bundle.run.status)
        self._apply_bundle(bundle)

    def _begin_run_request(self) -> int:
        self._run_request += 1
        return self._run_request

    def _find_business(self, business_id: str) -> Optional[EnrichedBusiness]:
        return next((eb for eb in self.businesses if eb.business.id == business_id), None)

    # ------------------------------------------------------------------
    # Loads
    # ------------------------------------------------------------------

    async def start(self) -> List[EnrichedBusiness]:
        """Load the enriched business list for the initial level."""
        generation = self._generation
        businesses = await self.loader.load_enriched_businesses() or []
        if generation == self._generation:
            self.businesses = businesses
        return businesses

    async def refresh_businesses(self, quiet: bool = False) -> List[EnrichedBusiness]:
        """
        Reload the business list without touching the navigation state.

        A quiet refresh that fails keeps the list already loaded.
        """
        businesses = await self.loader.load_enriched_businesses(quiet=quiet)
        if businesses is not None:
            self.businesses = businesses
        elif not quiet:
            self.businesses = []
        return self.businesses

    # ------------------------------------------------------------------
    # Forward transitions
    # ------------------------------------------------------------------

    async def select_business(self, business) -> List[EnrichedAssessment]:
        self._require("select_business", [NavigationLevel.BUSINESSES])
        ref = _as_ref(business)
        self.assessments, self.runs = [], []
        self._clear_run_data()
        generation = self._commit(
            NavigationState(level=NavigationLevel.ASSESSMENTS, selected_business=ref)
        )

        assessments = await self.loader.load_assessments(ref.id)
        if generation == self._generation:
            self.assessments = assessments
        return assessments

    async def select_assessment(self, assessment) -> List[EvaluationRunSummary]:
        self._require("select_assessment", [NavigationLevel.ASSESSMENTS])
        ref = _as_ref(assessment)
        self.runs = []
        generation = self._commit(
            self.state.evolve(level=NavigationLevel.RUNS, selected_assessment=ref)
        )

        runs = await self.loader.load_runs(ref.id)
        if generation == self._generation:
            self.runs = runs
        return runs

    async def select_run(self, run_id: str) -> bool:
        """
        Load a run and show its summary.

        Returns False (and stays on the runs level) when the load failed, the
        user navigated elsewhere, or a later run was selected while it was in
        flight.
        """
        self._require("select_run", [NavigationLevel.RUNS])
        generation = self._generation
        request = self._begin_run_request()

        bundle = await self.loader.load_run_detail(run_id)
        if bundle is None or generation != self._generation or request != self._run_request:
            return False

        self.scores = bundle.scores
        self.refined_report = None
        self._commit(
            self.state.evolve(
                level=NavigationLevel.DETAIL,
                selected_run=bundle.run,
                detail_sub_level=DetailSubLevel.SUMMARY,
                selected_source_id=None,
            )
        )
        self._schedule_poll(bundle.run)
        return True

    async def open_run(self, run_id: str, business_id: Optional[str] = None) -> bool:
        """
        Jump straight to detail(summary) for `run_id` from any level.

        With `business_id`, the business (and the run's assessment, when it
        is part of the loaded tree) are restored as the selection so the
        breadcrumbs lead back to them.
        """
        self.poller.cancel()
        generation = self._generation
        request = self._begin_run_request()

        bundle = await self.loader.load_run_detail(run_id)
        if bundle is None or generation != self._generation or request != self._run_request:
            return False

        business_ref = assessment_ref = None
        enriched = self._find_business(business_id) if business_id else None
        if enriched is not None:
            business_ref = enriched.business.ref()
            self.assessments = enriched.assessments
            match = next(
                (ea for ea in enriched.assessments
                 if ea.assessment.id == bundle.run.assessment_id),
                None,
            )
            if match is not None:
                assessment_ref = match.assessment.ref()
                self.runs = match.runs

        self.scores = bundle.scores
        self.refined_report = None
        self._commit(
            NavigationState(
                level=NavigationLevel.DETAIL,
                selected_business=business_ref,
                selected_assessment=assessment_ref,
                selected_run=bundle.run,
                detail_sub_level=DetailSubLevel.SUMMARY,
            )
        )
        self._schedule_poll(bundle.run)
        return True

    def view_breakdown(self) -> None:
        self._require("view_breakdown", [NavigationLevel.DETAIL], [DetailSubLevel.SUMMARY])
        self._commit(self.state.evolve(detail_sub_level=DetailSubLevel.BREAKDOWN))

    def select_interview(self, source_id: str) -> None:
        self._require(
            "select_interview",
            [NavigationLevel.DETAIL],
            [DetailSubLevel.SUMMARY, DetailSubLevel.BREAKDOWN],
        )
        self._commit(
            self.state.evolve(
                detail_sub_level=DetailSubLevel.INTERVIEW,
                selected_source_id=source_id,
            )
        )

    # ------------------------------------------------------------------
    # Backward transitions
    # ------------------------------------------------------------------

    def back(self) -> None:
        state = self.state

        if state.level == NavigationLevel.DETAIL:
            if state.detail_sub_level in (DetailSubLevel.INTERVIEW, DetailSubLevel.BREAKDOWN):
                self._commit(
                    state.evolve(
                        detail_sub_level=DetailSubLevel.SUMMARY,
                        selected_source_id=None,
                    )
                )
                return
            self.poller.cancel()
            self._clear_run_data()

        elif state.level == NavigationLevel.BUSINESSES:
            # already at the root
            return

        # selected_business stays set so the list can re-highlight it
        self._commit(
            NavigationState(
                level=NavigationLevel.BUSINESSES,
                selected_business=state.selected_business,
            )
        )

    async def navigate_to(self, level: NavigationLevel) -> None:
        """
        Breadcrumb jump to `level` (an ancestor of, or the same as, the
        current level), re-running that level's load.
        """
        level = NavigationLevel(level)
        current = self.state
        if _LEVEL_ORDER.index(level) > _LEVEL_ORDER.index(current.level):
            raise InvalidTransitionException(current.level.value, f"navigate_to {level.value}")

        if level == NavigationLevel.DETAIL:
            self._commit(
                current.evolve(detail_sub_level=DetailSubLevel.SUMMARY, selected_source_id=None)
            )
            await self.reload_run()
            return

        self.poller.cancel()
        self._clear_run_data()

        if level == NavigationLevel.BUSINESSES:
            generation = self._commit(
                NavigationState(level=level, selected_business=current.selected_business)
            )
            businesses = await self.loader.load_enriched_businesses() or []
            if generation == self._generation:
                self.businesses = businesses
            return

        if current.selected_business is None:
            raise InvalidTransitionException(current.level.value, f"navigate_to {level.value}")

        if level == NavigationLevel.ASSESSMENTS:
            self.runs = []
            generation = self._commit(
                NavigationState(level=level, selected_business=current.selected_business)
            )
            assessments = await self.loader.load_assessments(current.selected_business.id)
            if generation == self._generation:
                self.assessments = assessments
            return

        if current.selected_assessment is None:
            raise InvalidTransitionException(current.level.value, f"navigate_to {level.value}")

        generation = self._commit(
            NavigationState(
                level=level,
                selected_business=current.selected_business,
                selected_assessment=current.selected_assessment,
            )
        )
        runs = await self.loader.load_runs(current.selected_assessment.id)
        if generation == self._generation:
            self.runs = runs

    # ------------------------------------------------------------------
    # Detail level
    # ------------------------------------------------------------------

    async def reload_run(self) -> bool:
        """Re-fetch the selected run (after resolving a flag, or on demand)."""
        self._require("reload_run", [NavigationLevel.DETAIL])
        run_id = self.state.selected_run.id

        bundle = await self.loader.load_run_detail(run_id)
        if bundle is None or self._selected_run_id() != run_id:
            return False
        self._apply_bundle(bundle)
        return True

    async def load_report(self) -> Optional[RefinedReportResponse]:
        self._require("load_report", [NavigationLevel.DETAIL])
        run_id = self.state.selected_run.id

        report = await self.loader.load_refined_report(run_id)
        if self._selected_run_id() == run_id:
            self.refined_report = report
        return report

    def _detail_data(self, action: str) -> Tuple[EvaluationRunDetail, EvaluationScoresResponse]:
        self._require(action, [NavigationLevel.DETAIL])
        scores = self.scores or EvaluationScoresResponse(run_id=self.state.selected_run.id)
        return self.state.selected_run, scores

    def summary_view(self) -> RunSummaryView:
        run, scores = self._detail_data("summary_view")
        return build_summary_view(run, scores, self.calculator)

    def breakdown_view(self) -> InterviewBreakdownView:
        run, scores = self._detail_data("breakdown_view")
        return build_breakdown_view(run, scores)

    def interview_view(self, source_id: Optional[str] = None) -> InterviewDetailView:
        run, scores = self._detail_data("interview_view")
        source_id = source_id or self.state.selected_source_id
        if not source_id:
            raise InvalidTransitionException(
                f"{self.state.level.value}/{self.state.detail_sub_level.value}",
                "interview_view without an interview",
            )
        return build_interview_view(run, scores, source_id, self.calculator)

    def breadcrumbs(self) -> List[Crumb]:
        state = self.state
        depth = _LEVEL_ORDER.index(state.level)
        crumbs: List[Crumb] = [(NavigationLevel.BUSINESSES, "Businesses")]

        if depth >= 1 and state.selected_business:
            crumbs.append((NavigationLevel.ASSESSMENTS, state.selected_business.name))
        if depth >= 2 and state.selected_assessment:
            crumbs.append((NavigationLevel.RUNS, state.selected_assessment.name))
        if state.selected_run is not None:
            crumbs.append((NavigationLevel.DETAIL, f"Run #{state.selected_run.run_number}"))
            if state.detail_sub_level == DetailSubLevel.BREAKDOWN:
                crumbs.append((DetailSubLevel.BREAKDOWN, "Interview Breakdown"))
            elif state.detail_sub_level == DetailSubLevel.INTERVIEW:
                crumbs.append(
                    (DetailSubLevel.INTERVIEW, format_interview_id(state.selected_source_id))
                )
        return crumbs

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def wait_for_polling(self) -> None:
        """Block until the selected run stops being re-fetched."""
        await self.poller.wait()

    async def close(self) -> None:
        self.poller.cancel()
        await self.loader.api.aclose()
