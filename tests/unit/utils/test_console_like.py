"""Tests for the fallback console."""

from unittest.mock import MagicMock

import pytest

from gke_deployer.utils.console_like import StdoutConsole, coalesce_console


def test_coalesce_keeps_given_console():
    console = MagicMock()

    assert coalesce_console(console) is console


def test_coalesce_falls_back_to_stdout_console():
    assert isinstance(coalesce_console(None), StdoutConsole)


def test_stdout_console_strips_markup(capsys: pytest.CaptureFixture[str]) -> None:
    console = StdoutConsole()

    console.print("  [dim]/templates/service.yaml[/dim]")
    console.warn("[bold]Failed getting pods[/bold]")
    console.error("Rollout failed")

    out = capsys.readouterr().out.splitlines()
    assert out[0] == "  /templates/service.yaml"
    assert out[1] == "WARNING: Failed getting pods"
    assert out[2] == "ERROR: Rollout failed"
