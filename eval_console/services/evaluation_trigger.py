"""
Evaluation Trigger - Evaluation Console
eval_console/services/evaluation_trigger.py

Starts a new evaluation run and resolves flags.

trigger_evaluation ends in exactly one of two ways:
  - failure: the progress indicator is cleared and on_error is called once,
    whether the trigger itself failed or the new run could not be opened
  - success: after the progress finishes, the business list is refreshed
    quietly and the navigator opens the new run at detail(summary)

Without an explicit on_error the orchestrator reports through the loader's
callback, so a UI wires a single error sink.
"""

import asyncio
from typing import Callable, Optional

import structlog

from eval_console.config import Settings
from eval_console.core.exceptions import AdminApiException
from eval_console.models.enumerations import NavigationLevel
from eval_console.models.evaluation import RunEvaluationResponse
from eval_console.navigation.state_machine import EvaluationNavigator
from eval_console.services.admin_api import AdminApiClient
from eval_console.services.progress import SimulatedProgress, StepCallback

logger = structlog.get_logger(__name__)


class EvaluationTriggerOrchestrator:
    """Run-evaluation and resolve-flag actions on top of the navigator."""

    def __init__(
        self,
        api: AdminApiClient,
        navigator: EvaluationNavigator,
        settings: Settings,
        on_error: Optional[Callable[[str], None]] = None,
        on_progress: Optional[StepCallback] = None,
    ):
        self.api = api
        self.navigator = navigator
        self.settings = settings
        self.on_error = on_error if on_error is not None else navigator.loader.on_error
        self.progress = SimulatedProgress(
            step_seconds=settings.PROGRESS_STEP_SECONDS,
            on_step=on_progress,
        )
        self.triggering_assessment_id: Optional[str] = None

    def _report(
        self, message: str, error: Optional[AdminApiException] = None, **context
    ) -> None:
        logger.warning(
            "action_failed",
            user_message=message,
            error=str(error) if error else None,
            **context,
        )
        if self.on_error:
            self.on_error(message)

    async def trigger_evaluation(
        self,
        assessment_id: str,
        business_id: Optional[str] = None,
    ) -> Optional[RunEvaluationResponse]:
        """
        Start a run for `assessment_id` and open it once created.

        The simulated progress always plays to the end on success, even when
        the API answers sooner.
        """
        self.triggering_assessment_id = assessment_id
        progress_task = asyncio.create_task(self.progress.play())
        try:
            try:
                result = await self.api.run_evaluation(assessment_id)
            except AdminApiException as e:
                progress_task.cancel()
                self.progress.clear()
                self._report("Failed to trigger evaluation", e, assessment_id=assessment_id)
                return None

            logger.info(
                "evaluation_triggered",
                assessment_id=assessment_id,
                run_id=result.run_id,
                run_number=result.run_number,
                interviews=result.interviews_to_evaluate,
            )

            await progress_task
            self.progress.clear()

            await self.navigator.refresh_businesses(quiet=True)
            await asyncio.sleep(self.settings.RUN_SETTLE_DELAY_SECONDS)

            loader = self.navigator.loader
            reported_before = loader.error_count
            if not await self.navigator.open_run(result.run_id, business_id):
                # the loader already told the same sink when it was the fetch that failed
                already_reported = (
                    loader.error_count > reported_before and loader.on_error is self.on_error
                )
                if not already_reported:
                    self._report(
                        "Failed to open evaluation run",
                        assessment_id=assessment_id,
                        run_id=result.run_id,
                    )
                return None
            return result
        finally:
            if not progress_task.done():
                progress_task.cancel()
            self.triggering_assessment_id = None

    async def resolve_flag(
        self,
        flag_id: str,
        resolution: str,
        override_score: Optional[float] = None,
    ) -> bool:
        """Resolve a flag and reload the open run; state is untouched on failure."""
        try:
            await self.api.resolve_flag(flag_id, resolution, override_score)
        except AdminApiException as e:
            self._report("Failed to resolve flag", e, flag_id=flag_id)
            return False

        logger.info("flag_resolved", flag_id=flag_id)
        if self.navigator.level == NavigationLevel.DETAIL:
            await self.navigator.reload_run()
        return True
