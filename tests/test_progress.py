"""Tests for lumina_checkout.progress."""
from __future__ import annotations

import pytest

from lumina_checkout.progress import ProgressReporter, ProgressSnapshot


class TestProgressSnapshot:
    """Tests for ProgressSnapshot."""

    def test_percent(self):
        snapshot = ProgressSnapshot(completed=1, total=3, current_group_name="ShopB")
        assert snapshot.percent == pytest.approx(33.333, rel=1e-3)
        assert not snapshot.is_finished

    def test_empty_total(self):
        """Zero groups should report zero percent rather than divide by zero."""
        assert ProgressSnapshot(completed=0, total=0).percent == 0.0

    def test_finished(self):
        assert ProgressSnapshot(completed=2, total=2).is_finished


class TestProgressReporter:
    """Tests for ProgressReporter."""

    def test_project_is_pure(self):
        """project() should build a snapshot without calling anyone."""
        snapshot = ProgressReporter.project(1, 4, "ShopA", 0)
        assert snapshot == ProgressSnapshot(
            completed=1, total=4, current_index=0, current_group_name="ShopA",
        )
        assert snapshot.percent == 25.0

    def test_report_forwards_snapshot(self):
        seen = []
        reporter = ProgressReporter(seen.append)
        snapshot = reporter.report(2, 4, "ShopC", 1)
        assert seen == [snapshot]

    def test_report_without_callback(self):
        assert ProgressReporter().report(0, 1).percent == 0.0

    @pytest.mark.parametrize("completed,total", [(-1, 2), (3, 2), (0, -1)])
    def test_invalid_counts(self, completed, total):
        with pytest.raises(ValueError):
            ProgressReporter.project(completed, total)
