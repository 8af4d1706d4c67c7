"""
Chart helpers shared by the metrics visualizer.

Dependencies:
- matplotlib (Agg backend, charts are only ever written to files)
- seaborn
- numpy
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import seaborn as sns  # noqa: E402
from matplotlib.axes import Axes  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

sns.set_theme(style="whitegrid", context="notebook")

logger = logging.getLogger(__name__)

# Dashboard colours for the three completion states
STATUS_COLORS = {
    "Completed": "#4f46e5",
    "In Progress": "#8b5cf6",
    "Not Started": "#d1d5db",
}
ACCENT_COLOR = STATUS_COLORS["Completed"]


def colors_for(count: int, sequential: bool = False) -> List[str]:
    """
    Hex colours for ``count`` series.

    Categorical colours cycle through ``tab10``; sequential ones are
    spread over the ``crest`` ramp, darkest first.
    """
    if count <= 0:
        return []
    if sequential:
        return sns.color_palette("crest", n_colors=count).as_hex()[::-1]
    base = sns.color_palette("tab10").as_hex()
    return [base[i % len(base)] for i in range(count)]


def new_axes(figsize: Tuple[float, float] = (10.0, 6.0), dpi: int = 100) -> Tuple[Figure, Axes]:
    fig, ax = plt.subplots(figsize=figsize, dpi=dpi)
    return fig, ax


def finish_axes(
    ax: Axes,
    title: str,
    xlabel: Optional[str] = None,
    ylabel: Optional[str] = None,
    ylim: Optional[Tuple[float, float]] = None,
    rotate_xticks: float = 0,
) -> None:
    """Apply the title, labels and limits every chart sets."""
    ax.set_title(title, fontweight="bold")
    if xlabel:
        ax.set_xlabel(xlabel)
    if ylabel:
        ax.set_ylabel(ylabel)
    if ylim:
        ax.set_ylim(*ylim)
    if rotate_xticks:
        ax.tick_params(axis="x", labelrotation=rotate_xticks)
        for label in ax.get_xticklabels():
            label.set_horizontalalignment("right")


def placeholder(ax: Axes, message: str = "No data for this window") -> None:
    ax.text(0.5, 0.5, message, ha="center", va="center", color="grey", transform=ax.transAxes)
    ax.set_xticks([])
    ax.set_yticks([])


def annotated_bars(
    ax: Axes,
    labels: Sequence[str],
    values: Sequence[Union[int, float]],
    colors: Optional[Sequence[str]] = None,
    fmt: str = "{:.0f}",
) -> None:
    """
    Vertical bars in the given order with the value printed above each.

    Empty input draws the placeholder instead.
    """
    if not labels:
        placeholder(ax)
        return

    positions = np.arange(len(labels))
    bars = ax.bar(positions, values, color=colors or ACCENT_COLOR, zorder=3)
    ax.set_xticks(positions)
    ax.set_xticklabels(labels)
    ax.bar_label(bars, labels=[fmt.format(v) for v in values], padding=3, fontsize=9)


def write_figure(
    fig: Figure,
    stem: str,
    directory: Union[str, Path],
    formats: Sequence[str] = ("png",),
    dpi: int = 150,
) -> List[str]:
    """
    Write ``fig`` once per format as ``<directory>/<stem>.<format>``.

    The directory is created when missing and the figure is closed
    afterwards. Returns the written paths.
    """
    target = Path(directory)
    target.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()

    written = []
    try:
        for fmt in formats:
            path = target / f"{stem}.{fmt}"
            fig.savefig(path, format=fmt, dpi=dpi, bbox_inches="tight")
            written.append(str(path))
            logger.debug(f"Wrote chart {path}")
    finally:
        plt.close(fig)
    return written
