"""
Utilities package for offline-sync.

Exports shared helpers for logging and profiling.
Keep this package lightweight and free of domain-specific logic.
"""

from offline_sync.utils.logging import configure_logging, get_logger
from offline_sync.utils.profiler import ProfileStats, profile_block

__all__ = [
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
]
