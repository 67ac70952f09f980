"""Tests for DiagnosticsCollector."""

from unittest.mock import MagicMock

import pytest

from gke_deployer.config import DeployAction
from gke_deployer.deployment import DiagnosticsCollector
from gke_deployer.deployment.shell_commands import CommandResult


class TestDiagnosticsCollector:
    """Tests for best-effort diagnostics collection."""

    @pytest.fixture
    def mock_commands(self) -> MagicMock:
        commands = MagicMock()
        commands.kubectl.get_by_label.return_value = CommandResult(
            success=True, stdout="NAME   READY\nmyapp  0/1\n"
        )
        commands.kubectl.logs.return_value = CommandResult(success=True, stdout="panic!\n")
        commands.kubectl.get_events_matching.return_value = CommandResult(
            success=True, stdout="Warning BackOff pod/myapp-canary\n"
        )
        return commands

    @pytest.fixture
    def mock_console(self) -> MagicMock:
        return MagicMock()

    @pytest.fixture
    def collector(
        self, mock_commands: MagicMock, mock_console: MagicMock
    ) -> DiagnosticsCollector:
        return DiagnosticsCollector(commands=mock_commands, console=mock_console)

    def test_canary_collects_logs(
        self, collector: DiagnosticsCollector, mock_commands: MagicMock
    ) -> None:
        collector.collect("myapp", "mynamespace", DeployAction.DEPLOY_CANARY)

        mock_commands.kubectl.get_by_label.assert_called_once_with(
            "ing,svc,cm,secret,deploy,pdb,hpa,po,ep", "app=myapp", "mynamespace"
        )
        mock_commands.kubectl.logs.assert_called_once_with(
            "app=myapp,track=canary", "mynamespace", "myapp"
        )
        mock_commands.kubectl.get_events_matching.assert_called_once_with(
            "mynamespace", "myapp"
        )

    @pytest.mark.parametrize(
        "action", [DeployAction.DEPLOY_STABLE, DeployAction.DEPLOY_SIMPLE]
    )
    def test_other_actions_skip_logs(
        self,
        collector: DiagnosticsCollector,
        mock_commands: MagicMock,
        action: DeployAction,
    ) -> None:
        collector.collect("myapp", "mynamespace", action)

        mock_commands.kubectl.logs.assert_not_called()
        mock_commands.kubectl.get_events_matching.assert_called_once()

    def test_failing_steps_only_warn(
        self,
        collector: DiagnosticsCollector,
        mock_commands: MagicMock,
        mock_console: MagicMock,
    ) -> None:
        mock_commands.kubectl.get_by_label.side_effect = RuntimeError("cluster unreachable")
        mock_commands.kubectl.logs.return_value = CommandResult(
            success=False, stderr="container not found", returncode=1
        )

        collector.collect("myapp", "mynamespace", DeployAction.DEPLOY_CANARY)

        warnings = [call.args[0] for call in mock_console.warn.call_args_list]
        assert len(warnings) == 2
        assert "cluster unreachable" in warnings[0]
        assert "container not found" in warnings[1]
        mock_commands.kubectl.get_events_matching.assert_called_once()

    def test_no_matching_events_is_not_a_warning(
        self,
        collector: DiagnosticsCollector,
        mock_commands: MagicMock,
        mock_console: MagicMock,
    ) -> None:
        mock_commands.kubectl.get_events_matching.return_value = CommandResult(
            success=False, returncode=1
        )

        collector.collect("myapp", "mynamespace", DeployAction.DEPLOY_SIMPLE)

        mock_console.warn.assert_not_called()

    def test_failed_event_listing_is_a_warning(
        self,
        collector: DiagnosticsCollector,
        mock_commands: MagicMock,
        mock_console: MagicMock,
    ) -> None:
        mock_commands.kubectl.get_events_matching.return_value = CommandResult(
            success=False, stderr="kubectl exited with status 1\n", returncode=1
        )

        collector.collect("myapp", "mynamespace", DeployAction.DEPLOY_SIMPLE)

        mock_console.warn.assert_called_once()
        assert "kubectl exited with status 1" in mock_console.warn.call_args.args[0]
