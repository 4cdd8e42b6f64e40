"""
CLI Tests
========

Command wiring of main.py using click's test runner.
"""

from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from hnmirror.config.settings import HNMirrorSettings
from hnmirror.models import CycleStats
from hnmirror.scheduler.cycle_scheduler import CycleResult
from main import cli


class TestCli:
    """Test command line entry points."""

    def test_normalize(self):
        result = CliRunner().invoke(cli, ["normalize", "http://WWW.Example.com/a/?x=1", "https://redd.it/abc"])

        assert result.exit_code == 0
        assert "https://example.com/a" in result.output
        assert "reddit.com/comments/abc" in result.output

    def test_check_config(self):
        result = CliRunner().invoke(cli, ["check-config"])

        assert result.exit_code == 0
        assert "All configuration checks passed" in result.output

    def test_run_once_success(self):
        outcome = CycleResult(success=True, trigger="manual", cycle_id="cycle_1", stats=CycleStats(processed=2))

        with patch("main.CycleScheduler") as scheduler_cls, patch("main.configure_application_logging"):
            scheduler_cls.return_value.run_cycle = AsyncMock(return_value=outcome)
            result = CliRunner().invoke(cli, ["run-once", "--dry-run"])

        assert result.exit_code == 0
        scheduler_cls.return_value.run_cycle.assert_awaited_once_with(trigger="manual", dry_run=True)
        assert "2 posted" in result.output

    def test_run_once_failure_exit_code(self):
        outcome = CycleResult(success=False, trigger="manual", cycle_id="cycle_1", error="[F005] down")

        with patch("main.CycleScheduler") as scheduler_cls, patch("main.configure_application_logging"):
            scheduler_cls.return_value.run_cycle = AsyncMock(return_value=outcome)
            result = CliRunner().invoke(cli, ["run-once"])

        assert result.exit_code == 1
        assert "Cycle failed" in result.output

    def test_run_once_dry_run_requires_credentials(self):
        settings = HNMirrorSettings(
            dry_run=True,
            reddit={'client_id': None, 'client_secret': None, 'username': None, 'password': None},
            logging={'file_path': None},
        )

        with patch("main.get_settings", return_value=settings), \
                patch("main.CycleScheduler") as scheduler_cls, \
                patch("main.configure_application_logging"):
            result = CliRunner().invoke(cli, ["run-once", "--dry-run"])

        assert result.exit_code == 1
        assert "Missing Reddit credentials" in result.output.replace("\n", " ")
        scheduler_cls.assert_not_called()
