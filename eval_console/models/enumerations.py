from enum import Enum


class EvaluationStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# Runs in these states are re-fetched until they leave the set
NON_TERMINAL_STATUSES = frozenset({EvaluationStatus.PENDING.value, EvaluationStatus.PROCESSING.value})


class FlagSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class NavigationLevel(str, Enum):
    BUSINESSES = "businesses"
    ASSESSMENTS = "assessments"
    RUNS = "runs"
    DETAIL = "detail"


class DetailSubLevel(str, Enum):
    SUMMARY = "summary"      # aggregated run view
    BREAKDOWN = "breakdown"  # one row per interview
    INTERVIEW = "interview"  # single interview drill-down


class Quadrant(str, Enum):
    ADAPTIVE_LEADER = "Adaptive Leader"
    SOLID_PERFORMER = "Solid Performer"
    SCATTERED_EXPERIMENTER = "Scattered Experimenter"
    AT_RISK = "At-Risk"


class SummaryBand(str, Enum):
    STRONG = "Strong"
    MODERATE = "Moderate"
    NEEDS_WORK = "Needs Work"


class RAGStatus(str, Enum):
    GREEN = "green"
    AMBER = "amber"
    RED = "red"
