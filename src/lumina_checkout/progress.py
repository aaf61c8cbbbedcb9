"""Progress projection for a running checkout."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class ProgressSnapshot:
    """What the UI shows while shop groups are being settled."""
    completed: int
    total: int
    current_index: Optional[int] = None
    current_group_name: Optional[str] = None

    @property
    def percent(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.completed / self.total * 100

    @property
    def is_finished(self) -> bool:
        return self.total > 0 and self.completed >= self.total


ProgressCallback = Callable[[ProgressSnapshot], None]


class ProgressReporter:
    """Stateless projection of orchestrator progress.

    Only forwards snapshots; it never touches the session.
    """

    def __init__(self, on_progress: Optional[ProgressCallback] = None):
        self._on_progress = on_progress

    @staticmethod
    def project(
        completed: int,
        total: int,
        current_group_name: Optional[str] = None,
        current_index: Optional[int] = None,
    ) -> ProgressSnapshot:
        if completed < 0 or total < 0 or completed > total:
            raise ValueError(f"invalid progress {completed}/{total}")
        return ProgressSnapshot(
            completed=completed,
            total=total,
            current_index=current_index,
            current_group_name=current_group_name,
        )

    def report(
        self,
        completed: int,
        total: int,
        current_group_name: Optional[str] = None,
        current_index: Optional[int] = None,
    ) -> ProgressSnapshot:
        snapshot = self.project(completed, total, current_group_name, current_index)
        if self._on_progress is not None:
            self._on_progress(snapshot)
        return snapshot
