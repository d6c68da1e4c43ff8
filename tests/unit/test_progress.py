from __future__ import annotations

from unittest.mock import patch

from task_importer.services.progress import ProgressTracker, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    """TTY detection follows sys.stdout.isatty()."""
    with patch("sys.stdout.isatty", return_value=True):
        assert is_tty_enabled() is True

    with patch("sys.stdout.isatty", return_value=False):
        assert is_tty_enabled() is False


class TestProgressTracker:
    def test_init_with_tty_enabled(self):
        """On a TTY a tqdm bar is created."""
        with patch("task_importer.services.progress.is_tty_enabled", return_value=True), \
             patch("task_importer.services.progress.tqdm") as mock_tqdm:
            tracker = ProgressTracker(5, description="Tasks")

            assert tracker.total == 5
            assert tracker.enabled is True
            mock_tqdm.assert_called_once_with(
                total=5,
                desc="Tasks",
                unit="row",
                leave=False,
                ncols=80,
                ascii=True,
            )

    def test_init_without_tty(self):
        """Without a TTY no bar is created."""
        with patch("task_importer.services.progress.is_tty_enabled", return_value=False), \
             patch("task_importer.services.progress.tqdm") as mock_tqdm:
            tracker = ProgressTracker(5)
            assert tracker.enabled is False
            assert tracker.pbar is None
            mock_tqdm.assert_not_called()

    def test_explicit_disable_wins_over_tty(self):
        """enabled=False overrides TTY detection."""
        with patch("task_importer.services.progress.is_tty_enabled", return_value=True), \
             patch("task_importer.services.progress.tqdm") as mock_tqdm:
            ProgressTracker(5, enabled=False)
            mock_tqdm.assert_not_called()

    def test_advance_and_close(self):
        """Advancing updates the bar; leaving the context closes it."""
        with patch("task_importer.services.progress.tqdm") as mock_tqdm:
            pbar = mock_tqdm.return_value
            with ProgressTracker(3, enabled=True) as tracker:
                tracker.advance()
                tracker.advance(2)
                tracker.set_postfix(errors=1)
            assert tracker.current == 3
            assert pbar.update.call_count == 2
            pbar.set_postfix.assert_called_once_with(errors=1)
            pbar.close.assert_called_once()
            assert tracker.pbar is None

    def test_disabled_tracker_is_noop(self):
        """A disabled tracker only counts."""
        tracker = ProgressTracker(2, enabled=False)
        tracker.advance()
        tracker.set_postfix(a=1)
        tracker.close()
        assert tracker.current == 1
