"""Tests for kubectl and gcloud command construction."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from gke_deployer.deployment.shell_commands import (
    CommandResult,
    GcloudCommands,
    KubectlCommands,
    ShellCommands,
)


@pytest.fixture
def mock_runner() -> MagicMock:
    """Create a mock command runner."""
    runner = MagicMock()
    runner.run.return_value = CommandResult(success=True)
    runner.run_pipeline.return_value = CommandResult(success=True)
    return runner


class TestKubectlCommands:
    """Tests for KubectlCommands."""

    @pytest.fixture
    def kubectl(self, mock_runner: MagicMock) -> KubectlCommands:
        return KubectlCommands(mock_runner)

    def test_apply(self, kubectl: KubectlCommands, mock_runner: MagicMock) -> None:
        kubectl.apply(Path("/kubernetes.yaml"), "mynamespace")

        cmd = mock_runner.run.call_args[0][0]
        assert cmd == ["kubectl", "apply", "-f", "/kubernetes.yaml", "-n", "mynamespace"]

    def test_apply_dry_run(self, kubectl: KubectlCommands, mock_runner: MagicMock) -> None:
        kubectl.apply(Path("/kubernetes.yaml"), "mynamespace", dry_run=True)

        cmd = mock_runner.run.call_args[0][0]
        assert "--dry-run=client" in cmd

    def test_rollout_status(self, kubectl: KubectlCommands, mock_runner: MagicMock) -> None:
        kubectl.rollout_status("deployment", "myapp-canary", "mynamespace")

        cmd = mock_runner.run.call_args[0][0]
        assert cmd == [
            "kubectl",
            "rollout",
            "status",
            "deployment",
            "myapp-canary",
            "-n",
            "mynamespace",
        ]

    def test_scale(self, kubectl: KubectlCommands, mock_runner: MagicMock) -> None:
        kubectl.scale("deploy", "myapp-canary", "mynamespace", 0)

        cmd = mock_runner.run.call_args[0][0]
        assert cmd[:4] == ["kubectl", "scale", "deploy", "myapp-canary"]
        assert "--replicas=0" in cmd

    def test_delete_ignores_not_found_by_default(
        self, kubectl: KubectlCommands, mock_runner: MagicMock
    ) -> None:
        kubectl.delete("configmap", "myapp-configs", "mynamespace")

        cmd = mock_runner.run.call_args[0][0]
        assert cmd == [
            "kubectl",
            "delete",
            "configmap",
            "myapp-configs",
            "-n",
            "mynamespace",
            "--ignore-not-found=true",
        ]

    def test_delete_strict(self, kubectl: KubectlCommands, mock_runner: MagicMock) -> None:
        kubectl.delete("secret", "myapp-secrets", "mynamespace", ignore_not_found=False)

        cmd = mock_runner.run.call_args[0][0]
        assert "--ignore-not-found=true" not in cmd

    def test_get_service_type_captures_output(
        self, kubectl: KubectlCommands, mock_runner: MagicMock
    ) -> None:
        mock_runner.run.return_value = CommandResult(success=True, stdout="LoadBalancer")

        result = kubectl.get_service_type("myapp", "mynamespace")

        assert result.stdout == "LoadBalancer"
        cmd = mock_runner.run.call_args[0][0]
        assert "-o=jsonpath={.spec.type}" in cmd
        assert mock_runner.run.call_args[1]["capture_output"] is True

    def test_patch_json(self, kubectl: KubectlCommands, mock_runner: MagicMock) -> None:
        operations = [{"op": "replace", "path": "/spec/type", "value": "ClusterIP"}]

        kubectl.patch_json("service", "myapp", "mynamespace", operations)

        cmd = mock_runner.run.call_args[0][0]
        assert cmd[cmd.index("--type") + 1] == "json"
        assert json.loads(cmd[cmd.index("--patch") + 1]) == operations

    def test_remove_annotation(self, kubectl: KubectlCommands, mock_runner: MagicMock) -> None:
        kubectl.remove_annotation("svc", "myapp", "mynamespace", "estafette.io/cloudflare-dns")

        cmd = mock_runner.run.call_args[0][0]
        assert cmd == [
            "kubectl",
            "annotate",
            "svc",
            "myapp",
            "-n",
            "mynamespace",
            "estafette.io/cloudflare-dns-",
        ]

    def test_get_by_label(self, kubectl: KubectlCommands, mock_runner: MagicMock) -> None:
        kubectl.get_by_label("ing,svc,deploy", "app=myapp", "mynamespace")

        cmd = mock_runner.run.call_args[0][0]
        assert cmd == [
            "kubectl",
            "get",
            "ing,svc,deploy",
            "-l",
            "app=myapp",
            "-n",
            "mynamespace",
        ]

    def test_logs(self, kubectl: KubectlCommands, mock_runner: MagicMock) -> None:
        kubectl.logs("app=myapp,track=canary", "mynamespace", "myapp")

        cmd = mock_runner.run.call_args[0][0]
        assert cmd[cmd.index("-l") + 1] == "app=myapp,track=canary"
        assert cmd[cmd.index("-c") + 1] == "myapp"

    def test_get_events_matching_pipes_into_grep(
        self, kubectl: KubectlCommands, mock_runner: MagicMock
    ) -> None:
        kubectl.get_events_matching("mynamespace", "myapp")

        producer, consumer = mock_runner.run_pipeline.call_args[0]
        assert producer == [
            "kubectl",
            "get",
            "events",
            "--sort-by=.metadata.creationTimestamp",
            "-n",
            "mynamespace",
        ]
        assert consumer == ["grep", "myapp"]


class TestGcloudCommands:
    """Tests for GcloudCommands."""

    @pytest.fixture
    def gcloud(self, mock_runner: MagicMock) -> GcloudCommands:
        return GcloudCommands(mock_runner)

    def test_activate_service_account(
        self, gcloud: GcloudCommands, mock_runner: MagicMock
    ) -> None:
        gcloud.activate_service_account("sa@proj.iam.gserviceaccount.com", Path("/key-file.json"))

        cmd = mock_runner.run.call_args[0][0]
        assert cmd == [
            "gcloud",
            "auth",
            "activate-service-account",
            "sa@proj.iam.gserviceaccount.com",
            "--key-file",
            "/key-file.json",
        ]

    def test_set_config(self, gcloud: GcloudCommands, mock_runner: MagicMock) -> None:
        gcloud.set_config("project", "my-project")

        cmd = mock_runner.run.call_args[0][0]
        assert cmd == ["gcloud", "config", "set", "project", "my-project"]

    @pytest.mark.parametrize(
        "location_args", [["--zone", "europe-west1-c"], ["--region", "europe-west1"]]
    )
    def test_get_cluster_credentials(
        self, gcloud: GcloudCommands, mock_runner: MagicMock, location_args: list[str]
    ) -> None:
        gcloud.get_cluster_credentials("production", location_args)

        cmd = mock_runner.run.call_args[0][0]
        assert cmd == [
            "gcloud",
            "container",
            "clusters",
            "get-credentials",
            "production",
            *location_args,
        ]


class TestShellCommands:
    """Tests for the ShellCommands facade."""

    def test_shares_one_runner(self, tmp_path: Path) -> None:
        commands = ShellCommands(tmp_path)

        assert commands.work_dir == tmp_path
        assert commands.kubectl._runner is commands.gcloud._runner
