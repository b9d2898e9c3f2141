from typing import Optional

from pydantic import BaseModel, model_validator

from eval_console.models.enumerations import DetailSubLevel, NavigationLevel
from eval_console.models.evaluation import EvaluationRunDetail, SelectionRef


class NavigationState(BaseModel):
    """
    Drill-down position of the evaluations view.

    Every transition builds a fresh instance through `evolve`, so the
    invariants below are re-checked on each step.
    """

    level: NavigationLevel = NavigationLevel.BUSINESSES
    selected_business: Optional[SelectionRef] = None
    selected_assessment: Optional[SelectionRef] = None
    selected_run: Optional[EvaluationRunDetail] = None
    detail_sub_level: Optional[DetailSubLevel] = None
    selected_source_id: Optional[str] = None

    @model_validator(mode="after")
    def validate_selection_chain(self):
        if self.selected_assessment is not None and self.selected_business is None:
            raise ValueError("selected_assessment requires selected_business")
        if self.selected_run is not None and self.level != NavigationLevel.DETAIL:
            raise ValueError("selected_run is only allowed at the detail level")
        if self.detail_sub_level is not None and self.level != NavigationLevel.DETAIL:
            raise ValueError("detail_sub_level is only allowed at the detail level")
        if self.detail_sub_level == DetailSubLevel.INTERVIEW and not self.selected_source_id:
            raise ValueError("interview sub-level requires selected_source_id")
        return self

    def evolve(self, **changes) -> "NavigationState":
        """Return a validated copy with `changes` applied."""
        return NavigationState.model_validate({**dict(self), **changes})

    @property
    def is_detail(self) -> bool:
        return self.level == NavigationLevel.DETAIL
