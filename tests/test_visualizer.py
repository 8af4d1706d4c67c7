from pathlib import Path

import pytest

from sopmetrics.analyzers import MetricsAssembler
from sopmetrics.data.models import Snapshot
from sopmetrics.utils.chart_utils import STATUS_COLORS, colors_for
from sopmetrics.visualizers import MetricsVisualizer


@pytest.fixture
def visualizer(tmp_path):
    return MetricsVisualizer(tmp_path / "charts")


class TestMetricsVisualizer:
    def test_overview_renders_base_charts_only(self, visualizer, settings, snapshot):
        metrics = MetricsAssembler(settings).assemble(snapshot, "last30days", "overview")

        saved = visualizer.render_all(metrics)

        assert [Path(p).name for p in saved] == [
            "overview_last30days_monthly_completion.png",
            "overview_last30days_status_distribution.png",
        ]
        assert all(Path(p).stat().st_size > 0 for p in saved)

    def test_all_view_renders_every_chart(self, visualizer, settings, snapshot):
        metrics = MetricsAssembler(settings).assemble(
            snapshot, "allTime", "all", user_id="user-1"
        )

        saved = visualizer.render_all(metrics, prefix="report")

        assert sorted(Path(p).name for p in saved) == [
            "report_dropoff.png",
            "report_monthly_completion.png",
            "report_sop_completion.png",
            "report_status_distribution.png",
            "report_user_progress.png",
        ]

    def test_empty_metrics_still_render(self, tmp_path, settings, now):
        metrics = MetricsAssembler(settings).assemble(Snapshot(captured_at=now), "allTime")
        visualizer = MetricsVisualizer(tmp_path, save_formats=("png", "pdf"))

        saved = visualizer.render_all(metrics)

        assert len(saved) == 4
        assert {Path(p).suffix for p in saved} == {".png", ".pdf"}


class TestChartColors:
    def test_categorical_colors_cycle(self):
        colors = colors_for(12)
        assert len(colors) == 12
        assert colors[10] == colors[0]

    def test_sequential_colors_are_distinct(self):
        colors = colors_for(4, sequential=True)
        assert len(set(colors)) == 4

    def test_no_series_gives_no_colors(self):
        assert colors_for(0) == []

    def test_every_status_has_a_color(self, settings, snapshot):
        metrics = MetricsAssembler(settings).assemble(snapshot, "last30days", "overview")
        assert {s.name for s in metrics.status_distribution} == set(STATUS_COLORS)
