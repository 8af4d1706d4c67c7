"""
SOP metrics: progress aggregation and analytics for a Standard Operating
Procedure dashboard.
"""

__version__ = "0.1.0"
