"""
Models package for the SOP metrics system.

This package contains the typed entities read from the store and the
derived metric models produced by the analyzers.
"""

# Re-export enums
from .enums import (
    SopStatus,
    TimeWindow,
    ActiveView,
    CompletionStatus,
    MonthlyBucketing,
    DropoffPosition,
    WarningCode,
)

# Re-export base models
from .base_model import EntityModel, ResultModel, EntityId, UtcDatetime

# Re-export entity models
from .completion_model import CompletionEvent
from .sop_model import Sop, Step
from .profile_model import Profile
from .snapshot_model import Snapshot

# Re-export derived models
from .metrics_model import (
    StatusShare,
    StatusBreakdown,
    MonthlyRate,
    DropoffPoint,
    SopCompletionRate,
    SopSummary,
    UserProgress,
    ActivityItem,
    MetricWarning,
    ViewMetrics,
)

__all__ = [
    # Enums
    "SopStatus",
    "TimeWindow",
    "ActiveView",
    "CompletionStatus",
    "MonthlyBucketing",
    "DropoffPosition",
    "WarningCode",
    # Base models
    "EntityModel",
    "ResultModel",
    "EntityId",
    "UtcDatetime",
    # Entity models
    "CompletionEvent",
    "Sop",
    "Step",
    "Profile",
    "Snapshot",
    # Derived models
    "StatusShare",
    "StatusBreakdown",
    "MonthlyRate",
    "DropoffPoint",
    "SopCompletionRate",
    "SopSummary",
    "UserProgress",
    "ActivityItem",
    "MetricWarning",
    "ViewMetrics",
]
