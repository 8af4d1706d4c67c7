"""
Data access package for the SOP metrics system.

Import the entity reader from ``sopmetrics.data.data_repository``.
"""
