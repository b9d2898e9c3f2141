"""
scoring/strategic_position.py

Two-axis strategic position of an organization from its metric scores.

Formula:
    Operational Strength = M1×0.40 + M4×0.20 + M9×0.15 + M11×0.15 + M8×0.10
    Future Readiness     = M2×0.40 + M5×0.20 + M3×0.15 + M14×0.15 + M10×0.10
    Overall              = round((OS + FR) / 2)
    Gap                  = OS − FR

Each axis is rounded half-up to an integer on its own; missing metrics
contribute 0. The quadrant splits both axes at 50 (inclusive on the upper
side).
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence

from eval_console.models.enumerations import Quadrant
from eval_console.models.evaluation import MetricScoreDetail
from eval_console.scoring.utils import round_half_up

logger = logging.getLogger(__name__)

OPERATIONAL_STRENGTH_WEIGHTS: Dict[str, Decimal] = {
    "M1":  Decimal("0.40"),
    "M4":  Decimal("0.20"),
    "M9":  Decimal("0.15"),
    "M11": Decimal("0.15"),
    "M8":  Decimal("0.10"),
}

FUTURE_READINESS_WEIGHTS: Dict[str, Decimal] = {
    "M2":  Decimal("0.40"),
    "M5":  Decimal("0.20"),
    "M3":  Decimal("0.15"),
    "M14": Decimal("0.15"),
    "M10": Decimal("0.10"),
}

QUADRANT_THRESHOLD = 50


def weighted_composite(
    scores: Mapping[str, Optional[float]],
    weights: Mapping[str, Decimal],
) -> int:
    """
    round(Σ score[code] × weight[code]) over the weight table.

    Examples:
        >>> weighted_composite({"M1": 100, "M4": 100, "M9": 100, "M11": 100, "M8": 100},
        ...                    OPERATIONAL_STRENGTH_WEIGHTS)
        100
        >>> weighted_composite({}, FUTURE_READINESS_WEIGHTS)
        0
    """
    total = Decimal("0")
    for code, weight in weights.items():
        score = scores.get(code)
        if score is None:
            continue
        total += Decimal(str(score)) * Decimal(str(weight))
    return round_half_up(total)


def classify_quadrant(
    op_strength: float,
    fut_ready: float,
    threshold: float = QUADRANT_THRESHOLD,
) -> Quadrant:
    """Place (operational strength, future readiness) in one of four quadrants."""
    strong_now = op_strength >= threshold
    ready_next = fut_ready >= threshold
    if strong_now and ready_next:
        return Quadrant.ADAPTIVE_LEADER
    if strong_now:
        return Quadrant.SOLID_PERFORMER
    if ready_next:
        return Quadrant.SCATTERED_EXPERIMENTER
    return Quadrant.AT_RISK


@dataclass
class StrategicPositionResult:
    """Output of StrategicPositionCalculator.calculate()."""
    operational_strength: int
    future_readiness: int
    overall: int                 # round((OS + FR) / 2)
    gap: int                     # OS − FR, signed
    quadrant: Quadrant
    contributing_codes: List[str] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        """False when none of the weighted metrics were present."""
        return bool(self.contributing_codes)


class StrategicPositionCalculator:
    """Calculate the Operational Strength / Future Readiness position."""

    def __init__(self, threshold: int = QUADRANT_THRESHOLD):
        self.threshold = threshold

    def calculate(self, metrics: Sequence[MetricScoreDetail]) -> StrategicPositionResult:
        """
        Args:
            metrics: Metric scores of one view (run-level or one interview).
                     The first entry per metric_code is used.
        """
        scores: Dict[str, Optional[float]] = {}
        for m in metrics:
            scores.setdefault(m.metric_code, m.overall_score)
        return self.calculate_from_scores(scores)

    def calculate_from_scores(
        self, scores: Mapping[str, Optional[float]]
    ) -> StrategicPositionResult:
        op_strength = weighted_composite(scores, OPERATIONAL_STRENGTH_WEIGHTS)
        fut_ready = weighted_composite(scores, FUTURE_READINESS_WEIGHTS)
        overall = round_half_up(Decimal(op_strength + fut_ready) / 2)
        quadrant = classify_quadrant(op_strength, fut_ready, self.threshold)

        contributing = [
            code
            for code in (*OPERATIONAL_STRENGTH_WEIGHTS, *FUTURE_READINESS_WEIGHTS)
            if code in scores
        ]

        logger.debug(
            "strategic_position_calculated",
            extra={
                "operational_strength": op_strength,
                "future_readiness": fut_ready,
                "overall": overall,
                "quadrant": quadrant.value,
                "contributing_codes": contributing,
            },
        )

        return StrategicPositionResult(
            operational_strength=op_strength,
            future_readiness=fut_ready,
            overall=overall,
            gap=op_strength - fut_ready,
            quadrant=quadrant,
            contributing_codes=contributing,
        )
