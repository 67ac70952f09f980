"""Troubleshooting output collected at the end of a deployment.

This module prints the state of an application's objects, canary logs and
recent namespace events so the outcome of a pipeline run, failed or not,
can be judged from its log alone.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.text import Text

from ..config.models import DeployAction
from ..utils.console_like import ConsoleLike, coalesce_console
from .constants import DeploymentConstants

if TYPE_CHECKING:
    from collections.abc import Callable

    from .shell_commands import CommandResult, ShellCommands


class DiagnosticsCollector:
    """Collects diagnostics for an application in a namespace.

    Collection is best-effort: every step that fails is reported as a
    warning and never raises, so a deployment error that triggered it stays
    the one reported to the user.
    """

    def __init__(
        self,
        commands: ShellCommands,
        console: ConsoleLike | None = None,
        constants: DeploymentConstants | None = None,
    ) -> None:
        """Initialize the diagnostics collector.

        Args:
            commands: Shell command executor
            console: Console for diagnostics output
            constants: Optional deployment constants
        """
        self.commands = commands
        self.console = coalesce_console(console)
        self.constants = constants or DeploymentConstants()

    def collect(self, app: str, namespace: str, action: DeployAction | None = None) -> None:
        """Print objects, canary logs (canary deployments only) and events.

        Args:
            app: Application name, used as label selector and container name
            namespace: Namespace the application is deployed to
            action: Action that was run
        """
        self.console.print("\n[bold cyan]Current state of the application[/bold cyan]")

        self._step(
            f"objects labeled app={app}",
            lambda: self.commands.kubectl.get_by_label(
                self.constants.DIAGNOSTIC_RESOURCE_TYPES, f"app={app}", namespace
            ),
        )

        if action == DeployAction.DEPLOY_CANARY:
            self._step(
                f"canary logs of container {app}",
                lambda: self.commands.kubectl.logs(
                    f"app={app},track=canary", namespace, app
                ),
            )

        self._step(
            f"events mentioning {app}",
            lambda: self.commands.kubectl.get_events_matching(namespace, app),
            allow_empty=True,
        )

    def _step(
        self,
        description: str,
        run: Callable[[], CommandResult],
        allow_empty: bool = False,
    ) -> None:
        """Run one diagnostics step and print its output.

        Args:
            description: What the step shows
            run: Executes the step's command
            allow_empty: Treat exit status 1 without any output as "nothing found"
                (grep reports no matching lines this way)
        """
        try:
            result = run()
        except Exception as e:
            self.console.warn(f"Could not collect {description}: {e}")
            return

        if result.stdout:
            self.console.print(f"[dim]{description}:[/dim]")
            self.console.print(Text(result.stdout.rstrip("\n")))

        if result.success:
            return
        if allow_empty and result.returncode == 1 and not (result.stdout or result.stderr):
            self.console.print(f"[dim]No {description}[/dim]")
            return
        self.console.warn(
            f"Could not collect {description}: "
            f"{result.stderr.strip() or f'exit status {result.returncode}'}"
        )
