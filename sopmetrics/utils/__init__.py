"""
Utility package for the SOP metrics system.
"""
