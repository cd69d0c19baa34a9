"""
Data Models Layer.

This package contains the Pydantic configuration model and the statistics
snapshot produced by a download pool.
"""

from .config import CorpusConfig
from .stats import PoolStats

__all__ = ["CorpusConfig", "PoolStats"]
