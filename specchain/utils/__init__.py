"""
Shared utility classes.

Components:
- progress: ProgressTracker for per-stage timing
"""

from specchain.utils.progress import ProgressTracker

__all__ = [
    "ProgressTracker",
]
