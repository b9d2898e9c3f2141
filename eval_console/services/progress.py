"""
Simulated progress - Evaluation Console
eval_console/services/progress.py

Cosmetic step indicator shown while an evaluation is being triggered. The
steps are timed locally and say nothing about the backend's real progress;
nothing should be gated on them for correctness.
"""

import asyncio
from typing import Callable, Optional, Sequence

PROGRESS_LABELS = (
    "Preparing interview data",
    "Scoring responses",
    "Calculating metrics",
    "Detecting inconsistencies",
    "Finalizing report",
)

StepCallback = Callable[[int, str], None]


class SimulatedProgress:
    """Walks through fixed labels, `step_seconds` each."""

    def __init__(
        self,
        step_seconds: float = 0.8,
        on_step: Optional[StepCallback] = None,
        labels: Sequence[str] = PROGRESS_LABELS,
    ):
        self.step_seconds = step_seconds
        self.on_step = on_step
        self.labels = tuple(labels)
        self.current_step: Optional[int] = None

    @property
    def current_label(self) -> Optional[str]:
        if self.current_step is None:
            return None
        return self.labels[self.current_step]

    @property
    def finished(self) -> bool:
        return self.current_step == len(self.labels) - 1

    async def play(self) -> None:
        for index, label in enumerate(self.labels):
            self.current_step = index
            if self.on_step:
                self.on_step(index, label)
            await asyncio.sleep(self.step_seconds)

    def clear(self) -> None:
        self.current_step = None
