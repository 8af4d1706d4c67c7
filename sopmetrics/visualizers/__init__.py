"""
Visualization package for the SOP metrics system.

This package renders assembled metrics as static report charts.
"""

from .metrics_visualizer import MetricsVisualizer

__all__ = ["MetricsVisualizer"]
