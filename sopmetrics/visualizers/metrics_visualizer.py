"""
Metrics visualization module for the SOP metrics system.

This module renders an assembled ViewMetrics object as the report charts
the command-line tool writes next to its JSON output: monthly completion
trend, status distribution, per-SOP completion, per-user progress and the
drop-off funnel. Only aggregates present in the metrics are drawn.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

import pandas as pd
from matplotlib.figure import Figure

from sopmetrics.data.models.metrics_model import ViewMetrics
from sopmetrics.utils.chart_utils import (
    ACCENT_COLOR,
    STATUS_COLORS,
    annotated_bars,
    colors_for,
    finish_axes,
    new_axes,
    placeholder,
    write_figure,
)


class MetricsVisualizer:
    """
    Visualizer for assembled dashboard metrics.

    Each ``plot_*`` method returns a figure; ``render_all`` saves every
    chart the metrics have data for and returns the written file paths.
    """

    def __init__(
        self,
        output_dir: Union[str, Path],
        save_formats: Sequence[str] = ("png",),
        figsize=(10, 6),
    ):
        """
        Initialize the metrics visualizer.

        Args:
            output_dir: Directory the charts are written to
            save_formats: File formats for each chart
            figsize: Default figure size (width, height) in inches
        """
        self._logger = logging.getLogger(self.__class__.__name__)
        self._output_dir = Path(output_dir)
        self._save_formats = tuple(save_formats)
        self._figsize = figsize

    def plot_monthly_completion(self, metrics: ViewMetrics) -> Figure:
        """Line chart of the monthly completion rate."""
        fig, ax = new_axes(self._figsize)

        if not metrics.monthly_completion_rate:
            placeholder(ax)
        else:
            df = pd.DataFrame([m.model_dump() for m in metrics.monthly_completion_rate])
            ax.plot(df["month"], df["rate"], marker="o", color=ACCENT_COLOR)

        finish_axes(
            ax,
            "Completion Rate Over Time",
            xlabel="Month",
            ylabel="Completion rate (%)",
            ylim=(0, 100),
        )
        return fig

    def plot_status_distribution(self, metrics: ViewMetrics) -> Figure:
        """Pie chart of completed / in progress / not started."""
        fig, ax = new_axes(self._figsize)
        slices = [s for s in metrics.status_distribution if s.value > 0]

        if not slices:
            placeholder(ax)
        else:
            ax.pie(
                [s.value for s in slices],
                labels=[s.name for s in slices],
                colors=[STATUS_COLORS[s.name] for s in slices],
                autopct="%1.0f%%",
                startangle=90,
            )
            ax.axis("equal")

        finish_axes(ax, "Completion Status")
        return fig

    def plot_sop_completion(self, metrics: ViewMetrics) -> Figure:
        """Bar chart of completion per SOP."""
        fig, ax = new_axes(self._figsize)
        labels: List[str] = []
        for rate in metrics.per_sop_completion_rates:
            # Titles are not unique; suffix repeats so no bar is lost
            labels.append(rate.name if rate.name not in labels else f"{rate.name} ({rate.sop_id})")
        values = [rate.value for rate in metrics.per_sop_completion_rates]

        annotated_bars(ax, labels, values, colors=colors_for(len(labels)))
        finish_axes(
            ax,
            "SOP Completion Rates",
            ylabel="Completion (%)",
            ylim=(0, 105),
            rotate_xticks=30,
        )
        return fig

    def plot_user_progress(self, metrics: ViewMetrics) -> Figure:
        """Stacked bar chart of each user's event counts per status."""
        fig, ax = new_axes(self._figsize)

        if not metrics.per_user_progress:
            placeholder(ax)
        else:
            df = pd.DataFrame(
                {
                    "Completed": [u.completed for u in metrics.per_user_progress],
                    "In Progress": [u.in_progress for u in metrics.per_user_progress],
                    "Not Started": [u.not_started for u in metrics.per_user_progress],
                },
                index=[u.name for u in metrics.per_user_progress],
            )
            df.plot(
                kind="bar",
                stacked=True,
                ax=ax,
                color=[STATUS_COLORS[column] for column in df.columns],
            )

        finish_axes(ax, "User Progress", ylabel="Steps", rotate_xticks=30)
        return fig

    def plot_dropoff(self, metrics: ViewMetrics) -> Figure:
        """Bar chart of completion events per step position."""
        fig, ax = new_axes(self._figsize)
        labels = [point.step_label for point in metrics.dropoff_curve]
        values = [point.user_count for point in metrics.dropoff_curve]
        annotated_bars(ax, labels, values, colors=colors_for(len(labels), sequential=True))
        finish_axes(ax, "Drop-off Points", ylabel="Completion events")
        return fig

    def render_all(self, metrics: ViewMetrics, prefix: Optional[str] = None) -> List[str]:
        """
        Save every chart the metrics have data for.

        The monthly trend and status charts are always drawn; the other
        charts only when their aggregate was computed for the view.

        Args:
            metrics: Assembled metrics
            prefix: Filename prefix (defaults to "<view>_<window>")

        Returns:
            List[str]: Paths of the written files
        """
        prefix = prefix or f"{metrics.view.value}_{metrics.window.value}"
        charts = [
            ("monthly_completion", self.plot_monthly_completion),
            ("status_distribution", self.plot_status_distribution),
        ]
        if metrics.per_sop_completion_rates:
            charts.append(("sop_completion", self.plot_sop_completion))
        if metrics.per_user_progress:
            charts.append(("user_progress", self.plot_user_progress))
        if metrics.dropoff_curve:
            charts.append(("dropoff", self.plot_dropoff))

        saved = []
        for name, plot in charts:
            saved.extend(
                write_figure(
                    plot(metrics),
                    f"{prefix}_{name}",
                    self._output_dir,
                    formats=self._save_formats,
                )
            )

        self._logger.info(f"Rendered {len(charts)} charts to {self._output_dir}")
        return saved
