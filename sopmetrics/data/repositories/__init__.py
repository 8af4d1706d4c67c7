"""
Repositories package for the SOP metrics system.

This package contains the repository classes used for reading SOPs,
steps, completion events and profiles out of the store.
"""

from .base_repository import BaseRepository
from .completion_repository import CompletionRepository
from .profile_repository import ProfileRepository
from .sop_repository import SopRepository
from .step_repository import StepRepository

__all__ = [
    "BaseRepository",
    "SopRepository",
    "StepRepository",
    "CompletionRepository",
    "ProfileRepository",
]
