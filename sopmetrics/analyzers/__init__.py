"""
Analyzers package for the SOP metrics system.

This package contains the progress, time-series, drop-off and activity
calculations and the assembler that combines them per view.
"""

from .metrics_assembler import MetricsAssembler

__all__ = ["MetricsAssembler"]
