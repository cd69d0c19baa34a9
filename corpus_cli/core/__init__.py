"""
Core engine: the bounded download pool and its per-task progress loggers.

The `Downloader` owns the concurrency gate and the progress slots; each task
body it runs reports through its own `TaskLogger`.
"""

from .pool import Downloader, TaskLogger

__all__ = ["Downloader", "TaskLogger"]
