#!/usr/bin/env python
"""
Browse and drive evaluation runs from the command line.

Reads ADMIN_API_URL and ADMIN_TOKEN from the environment (or `.env`).

Usage:
    python -m eval_console.scripts.browse_evaluations --businesses
    python -m eval_console.scripts.browse_evaluations --run RUN_ID
    python -m eval_console.scripts.browse_evaluations --run RUN_ID --watch
    python -m eval_console.scripts.browse_evaluations --run RUN_ID --interview SOURCE_ID
    python -m eval_console.scripts.browse_evaluations --trigger ASSESSMENT_ID [--business BUSINESS_ID]
    python -m eval_console.scripts.browse_evaluations --run RUN_ID --resolve FLAG_ID --resolution "Reviewed"

Exit code is 1 when any error was reported.
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from pydantic import ValidationError

from eval_console.config import Settings, get_settings
from eval_console.core.auth import AuthContext
from eval_console.core.logging_config import configure_logging
from eval_console.models.enumerations import NON_TERMINAL_STATUSES
from eval_console.models.evaluation import EnrichedBusiness
from eval_console.navigation.state_machine import EvaluationNavigator
from eval_console.navigation.view_models import InterviewDetailView, RunSummaryView
from eval_console.scoring.catalog import metric_display_name
from eval_console.scoring.strategic_position import (
    StrategicPositionCalculator,
    StrategicPositionResult,
)
from eval_console.services.admin_api import AdminApiClient
from eval_console.services.data_loader import EvaluationDataLoader
from eval_console.services.evaluation_trigger import EvaluationTriggerOrchestrator
from eval_console.services.poller import RunPoller
from eval_console.services.progress import PROGRESS_LABELS


# =============================================================================
# Rendering
# =============================================================================

def _score(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:.0f}"


def format_businesses(businesses: List[EnrichedBusiness]) -> str:
    lines = []
    for eb in businesses:
        b = eb.business
        lines.append(f"{b.name}  [{b.completed_reviews}/{b.total_reviews} reviews]  id={b.id}")
        if not eb.assessments:
            lines.append("    (no assessments)")
        for ea in eb.assessments:
            latest = ea.latest_run
            run_info = (
                f"run #{latest.run_number} {latest.status} score={_score(latest.overall_score)}"
                if latest else "not evaluated"
            )
            lines.append(f"    {ea.assessment.name}  ({run_info})  id={ea.assessment.id}")
    return "\n".join(lines) if lines else "No businesses found."


def format_position(position: Optional[StrategicPositionResult]) -> List[str]:
    if position is None:
        return ["Strategic position: not enough metric data"]
    return [
        f"Strategic position: {position.quadrant.value}",
        f"  Operational Strength {position.operational_strength}"
        f" | Future Readiness {position.future_readiness}"
        f" | Overall {position.overall} | Gap {position.gap:+d}",
    ]


def format_summary(view: RunSummaryView) -> str:
    run = view.run
    lines = [
        f"Run #{run.run_number} ({run.id})  status={run.status}",
        f"Overall {view.overall_score} ({view.band.value})  "
        f"strong={view.strong_count} moderate={view.moderate_count} "
        f"needs work={view.needs_work_count}",
        f"Interviews: {view.interview_count}  Unresolved flags: {view.unresolved_flag_count}",
        *format_position(view.strategic_position),
        "",
    ]
    for m in view.metrics:
        lines.append(f"  {m.metric_code:<4} {_score(m.overall_score):>4}  "
                     f"{metric_display_name(m.metric_code, m.metric_name)}")
    return "\n".join(lines)


def format_interview(view: InterviewDetailView) -> str:
    lines = [
        f"Interview {view.formatted_id}  avg={view.avg_score} ({view.rag.value})  "
        f"confidence={view.confidence.value}",
        f"Questions: {len(view.questions)}  Flags: {len(view.flags)} "
        f"(unresolved {len(view.unresolved_flags)})",
        *format_position(view.strategic_position),
        "",
    ]
    for m in view.metrics:
        lines.append(f"  {m.metric_code:<4} {_score(m.overall_score):>4}  "
                     f"{metric_display_name(m.metric_code, m.metric_name)}")
    for f in view.unresolved_flags:
        lines.append(f"  ! [{f.severity}] {f.title}  id={f.id}")
    return "\n".join(lines)


# =============================================================================
# Commands
# =============================================================================

async def main(args: argparse.Namespace, settings: Settings) -> int:
    errors: List[str] = []

    def on_error(message: str) -> None:
        errors.append(message)
        print(f"error: {message}", file=sys.stderr)

    def on_progress(index: int, label: str) -> None:
        print(f"[{index + 1}/{len(PROGRESS_LABELS)}] {label}...")

    auth = AuthContext.from_settings(settings)
    if not auth.is_authenticated:
        on_error("ADMIN_TOKEN is not set")
        return 1

    async with AdminApiClient(settings, auth) as api:
        loader = EvaluationDataLoader(api, on_error=on_error)
        navigator = EvaluationNavigator(
            loader,
            poller=RunPoller(settings.RUN_POLL_INTERVAL_SECONDS),
            calculator=StrategicPositionCalculator(settings.QUADRANT_THRESHOLD),
        )
        orchestrator = EvaluationTriggerOrchestrator(
            api, navigator, settings, on_error=on_error, on_progress=on_progress
        )

        try:
            if args.businesses:
                print(format_businesses(await navigator.start()))

            if args.trigger:
                if args.business:
                    await navigator.start()
                result = await orchestrator.trigger_evaluation(args.trigger, args.business)
                if result is not None:
                    print(result.message or f"Started run #{result.run_number} ({result.run_id})")

            if args.run:
                await navigator.open_run(args.run)

            if args.resolve:
                if await orchestrator.resolve_flag(args.resolve, args.resolution):
                    print(f"Flag {args.resolve} resolved")

            if navigator.state.is_detail:
                run = navigator.state.selected_run
                if args.watch and run.status in NON_TERMINAL_STATUSES:
                    print(f"Run {run.id} is {run.status}; waiting for it to finish...")
                    await navigator.wait_for_polling()
                if args.interview:
                    navigator.select_interview(args.interview)
                    print(format_interview(navigator.interview_view()))
                else:
                    print(format_summary(navigator.summary_view()))
        finally:
            navigator.poller.cancel()

    return 1 if errors else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Browse and trigger CABAS evaluation runs")
    parser.add_argument("--businesses", action="store_true",
                        help="Print businesses with their assessments and latest runs")
    parser.add_argument("--run", metavar="RUN_ID", help="Show the summary of one run")
    parser.add_argument("--watch", action="store_true",
                        help="With --run: poll until the run is completed or failed")
    parser.add_argument("--interview", metavar="SOURCE_ID",
                        help="With --run: show one interview instead of the run summary")
    parser.add_argument("--trigger", metavar="ASSESSMENT_ID",
                        help="Start a new evaluation run and show it")
    parser.add_argument("--business", metavar="BUSINESS_ID",
                        help="With --trigger: business owning the assessment")
    parser.add_argument("--resolve", metavar="FLAG_ID", help="Resolve a flag")
    parser.add_argument("--resolution", metavar="TEXT", help="Resolution note for --resolve")
    return parser


def validate_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    if not (args.businesses or args.run or args.trigger or args.resolve):
        parser.error("one of --businesses, --run, --trigger or --resolve is required")
    if (args.watch or args.interview) and not args.run:
        parser.error("--watch and --interview require --run")
    if args.resolve and not args.resolution:
        parser.error("--resolve requires --resolution")
    if args.business and not args.trigger:
        parser.error("--business requires --trigger")


def cli(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    validate_args(parser, args)

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"error: invalid configuration\n{e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(settings)
    sys.exit(asyncio.run(main(args, settings)))


if __name__ == "__main__":
    cli()
