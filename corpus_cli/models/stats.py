"""
Snapshot of a download pool's counters, used for summaries and tests.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PoolStats:
    """Point-in-time view of a `Downloader`'s progress."""

    total_resources: int
    completed_resources: int
    max_concurrency: int
    peak_concurrency: int = 0
    active_slots: tuple[int, ...] = field(default_factory=tuple)

    @property
    def active_count(self) -> int:
        return len(self.active_slots)

    @property
    def remaining(self) -> int:
        """Resources not yet finished; never negative even if over-submitted."""
        return max(0, self.total_resources - self.completed_resources)
