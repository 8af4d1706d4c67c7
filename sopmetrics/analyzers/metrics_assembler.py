"""
Metrics assembler for the SOP metrics system.

This module provides the MetricsAssembler class, which turns one snapshot,
one time window and one active view into the ViewMetrics object a
dashboard or analytics tab renders. The same cutoff is applied to every
record-level filter so the cards, charts and tables of a view never
disagree about which records are in the period.

The assembler holds configuration only. Each call is a pure function of
its arguments: the same snapshot, window, view and reference time always
produce the same result.
"""

import logging
from datetime import datetime
from typing import Dict, FrozenSet, Optional, Union

from config.settings import Settings
from sopmetrics.analyzers.activity_analyzer import compute_recent_activity, count_active_users
from sopmetrics.analyzers.dropoff_analyzer import compute_dropoff, find_funnel_increases
from sopmetrics.analyzers.progress_calculator import (
    compute_completion_rate,
    compute_sop_completion_rates,
    compute_status_distribution,
    compute_user_progress,
    recent_sops,
    summarize_sop,
)
from sopmetrics.analyzers.time_series_aggregator import (
    compute_avg_completion_time,
    compute_monthly_completion_rate,
    find_negative_elapsed,
)
from sopmetrics.data.data_repository import DataRepository
from sopmetrics.data.models.enums import (
    ActiveView,
    DropoffPosition,
    MonthlyBucketing,
    TimeWindow,
)
from sopmetrics.data.models.metrics_model import ViewMetrics
from sopmetrics.data.models.snapshot_model import Snapshot
from sopmetrics.utils.data_processing_utils import filter_events_since
from sopmetrics.utils.safe_ops import safe_parse_datetime

# Optional aggregates and the views that need them
OPTIONAL_AGGREGATES: Dict[str, FrozenSet[ActiveView]] = {
    "recent_sops": frozenset({ActiveView.OVERVIEW, ActiveView.SOPS}),
    "per_sop_completion_rates": frozenset({ActiveView.SOPS}),
    "per_user_progress": frozenset({ActiveView.USERS}),
    "dropoff_curve": frozenset({ActiveView.DROPOFF}),
    "recent_activity": frozenset({ActiveView.ACTIVITY}),
    "my_sops": frozenset({ActiveView.MY_SOPS}),
}


class MetricsAssembler:
    """
    Assembles the metrics of one dashboard/analytics view.

    The base figures (totals, rates, monthly trend, status distribution)
    are always computed; the more expensive per-SOP, per-user, funnel,
    activity and "my SOPs" aggregates only when the active view shows them.
    ``ActiveView.ALL`` computes everything.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        top_n_sops: Optional[int] = None,
        top_n_users: Optional[int] = None,
        activity_limit: Optional[int] = None,
        bucketing: Optional[Union[str, MonthlyBucketing]] = None,
        dropoff_position: Optional[Union[str, DropoffPosition]] = None,
    ):
        """
        Initialize the assembler.

        Args:
            settings: Settings supplying defaults for the options below
            top_n_sops: Number of most recent SOPs in per-SOP aggregates
            top_n_users: Number of users in the per-user breakdown
            activity_limit: Number of entries in the activity feed
            bucketing: Monthly bucketing mode
            dropoff_position: Funnel position mode (rank inside the SOP or
                raw order_index)
        """
        self._logger = logging.getLogger(self.__class__.__name__)
        settings = settings or Settings()

        self._top_n_sops = top_n_sops if top_n_sops is not None else settings.TOP_N_SOPS
        self._top_n_users = top_n_users if top_n_users is not None else settings.TOP_N_USERS
        self._activity_limit = (
            activity_limit if activity_limit is not None else settings.RECENT_ACTIVITY_LIMIT
        )
        self._bucketing = MonthlyBucketing(bucketing or settings.MONTHLY_BUCKETING)
        self._dropoff_position = DropoffPosition(dropoff_position or settings.DROPOFF_POSITION)

    @staticmethod
    def _wants(view: ActiveView, aggregate: str) -> bool:
        return view is ActiveView.ALL or view in OPTIONAL_AGGREGATES[aggregate]

    def assemble(
        self,
        snapshot: Snapshot,
        window: Union[str, TimeWindow] = TimeWindow.LAST_30_DAYS,
        view: Union[str, ActiveView] = ActiveView.OVERVIEW,
        now: Optional[datetime] = None,
        user_id: Optional[str] = None,
    ) -> ViewMetrics:
        """
        Compute the metrics of one view.

        Args:
            snapshot: Complete entity snapshot
            window: Time window applied to every record filter
            view: Active view deciding which optional aggregates run
            now: Reference time for the window (defaults to the snapshot's
                capture time, keeping the call reproducible)
            user_id: User whose own SOPs and progress feed the "my SOPs" view

        Returns:
            ViewMetrics: Assembled metrics

        Raises:
            ValueError: If the window or view is unknown, or the "my SOPs"
                view is requested without a user
        """
        window = TimeWindow(window)
        view = ActiveView(view)
        if view is ActiveView.MY_SOPS and user_id is None:
            raise ValueError("The my_sops view needs a user_id")
        if user_id is not None:
            user_id = str(user_id)

        now = safe_parse_datetime(now or snapshot.captured_at)
        cutoff = window.cutoff(now)
        events = filter_events_since(snapshot.completion_events, cutoff)

        self._logger.info(
            f"Assembling {view.value} metrics for {window.value} "
            f"({len(events)} of {len(snapshot.completion_events)} events in window)"
        )

        warnings = find_negative_elapsed(events)
        fields = {
            "window": window,
            "view": view,
            "generated_at": now,
            "total_sop_count": len(snapshot.sops),
            "avg_completion_rate_percent": compute_completion_rate(events),
            "active_user_count": count_active_users(snapshot.profiles, cutoff),
            "avg_completion_time_days": compute_avg_completion_time(events),
            "monthly_completion_rate": compute_monthly_completion_rate(events, self._bucketing),
            "status_distribution": compute_status_distribution(events).to_distribution(),
            "skipped_records": snapshot.invalid_record_count,
        }

        if self._wants(view, "recent_sops"):
            fields["recent_sops"] = [
                summarize_sop(sop, cutoff=cutoff)
                for sop in recent_sops(snapshot.sops, self._top_n_sops)
            ]

        if self._wants(view, "per_sop_completion_rates"):
            fields["per_sop_completion_rates"] = compute_sop_completion_rates(
                snapshot.sops, limit=self._top_n_sops, cutoff=cutoff
            )

        if self._wants(view, "per_user_progress"):
            fields["per_user_progress"] = compute_user_progress(
                snapshot.profiles, events, limit=self._top_n_users
            )

        if self._wants(view, "dropoff_curve"):
            curve = compute_dropoff(
                snapshot.steps, cutoff=cutoff, position=self._dropoff_position
            )
            fields["dropoff_curve"] = curve
            warnings.extend(find_funnel_increases(curve))

        if self._wants(view, "recent_activity"):
            fields["recent_activity"] = compute_recent_activity(
                events,
                snapshot.steps,
                snapshot.sops,
                snapshot.profiles,
                now=now,
                limit=self._activity_limit,
            )

        if self._wants(view, "my_sops") and user_id is not None:
            fields["my_sops"] = [
                summarize_sop(sop, user_id=user_id, cutoff=cutoff)
                for sop in recent_sops(snapshot.sops, None)
                if sop.created_by == user_id
            ]

        for warning in warnings:
            self._logger.debug(f"{warning.code.value}: {warning.message}")

        return ViewMetrics(warnings=warnings, **fields)

    def assemble_from_reader(
        self,
        reader: DataRepository,
        window: Union[str, TimeWindow] = TimeWindow.LAST_30_DAYS,
        view: Union[str, ActiveView] = ActiveView.OVERVIEW,
        now: Optional[datetime] = None,
        user_id: Optional[str] = None,
    ) -> ViewMetrics:
        """
        Read a snapshot and assemble a view from it.

        Reader failures propagate as EntityReaderError before any metric
        is computed.
        """
        snapshot = reader.snapshot(now=now)
        return self.assemble(snapshot, window=window, view=view, now=now, user_id=user_id)
