"""
Derived metric models for the SOP metrics system.

These models are never stored. They are produced by the analyzers from a
snapshot of entities and serialized as-is for the presentation layer.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, model_validator

from sopmetrics.data.models.base_model import ResultModel
from sopmetrics.data.models.enums import ActiveView, TimeWindow, WarningCode


class StatusShare(ResultModel):
    """One slice of a status distribution chart."""

    name: str
    value: int


class StatusBreakdown(ResultModel):
    """Completed / in progress / not started percentages summing to 100."""

    completed: int = 0
    in_progress: int = 0
    not_started: int = 100

    @model_validator(mode="after")
    def check_total(self) -> "StatusBreakdown":
        total = self.completed + self.in_progress + self.not_started
        if total != 100:
            raise ValueError(f"status percentages must sum to 100, got {total}")
        if min(self.completed, self.in_progress, self.not_started) < 0:
            raise ValueError("status percentages must not be negative")
        return self

    def to_distribution(self) -> List[StatusShare]:
        """Chart-ready slices in display order."""
        return [
            StatusShare(name="Completed", value=self.completed),
            StatusShare(name="In Progress", value=self.in_progress),
            StatusShare(name="Not Started", value=self.not_started),
        ]


class MonthlyRate(ResultModel):
    """Completion rate of the events created in one monthly bucket."""

    month: str
    rate: int
    total: int
    completed: int


class DropoffPoint(ResultModel):
    """Number of completion events recorded at one funnel position."""

    step_label: str
    order_index: int
    user_count: int


class SopCompletionRate(ResultModel):
    """Per-SOP completion percentage for bar charts."""

    sop_id: str
    name: str
    value: int


class SopSummary(ResultModel):
    """A SOP card: progress plus "N of M steps" counts."""

    id: str
    title: str
    category: str
    status: str
    progress: int
    steps: int
    completed_steps: int


class UserProgress(ResultModel):
    """Per-user event counts and percentage breakdown."""

    user_id: str
    name: str
    completed: int
    in_progress: int
    not_started: int
    breakdown: StatusBreakdown


class ActivityItem(ResultModel):
    """An entry in the recent activity feed."""

    id: str
    user: str
    avatar: Optional[str] = None
    action: str
    sop: str
    time: str


class MetricWarning(ResultModel):
    """A data-integrity anomaly noticed while computing metrics."""

    code: WarningCode
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)


class ViewMetrics(ResultModel):
    """Everything a dashboard or analytics view needs for one request."""

    window: TimeWindow
    view: ActiveView
    generated_at: datetime
    total_sop_count: int
    avg_completion_rate_percent: int
    active_user_count: int
    avg_completion_time_days: float
    monthly_completion_rate: List[MonthlyRate] = Field(default_factory=list)
    status_distribution: List[StatusShare] = Field(default_factory=list)
    per_sop_completion_rates: List[SopCompletionRate] = Field(default_factory=list)
    per_user_progress: List[UserProgress] = Field(default_factory=list)
    dropoff_curve: List[DropoffPoint] = Field(default_factory=list)
    recent_sops: List[SopSummary] = Field(default_factory=list)
    recent_activity: List[ActivityItem] = Field(default_factory=list)
    my_sops: List[SopSummary] = Field(default_factory=list)
    skipped_records: int = 0
    warnings: List[MetricWarning] = Field(default_factory=list)

    def to_json(self, indent: Optional[int] = None) -> str:
        """Serialize to JSON text."""
        return self.model_dump_json(indent=indent)
