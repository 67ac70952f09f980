"""Shell command abstractions for Kubernetes Engine deployment operations.

This package provides a small, typed interface over the command line tools
used during deployment. It is organized into specialized modules per tool:

- kubectl: Kubernetes resource management
- gcloud: Google Cloud authentication and cluster credentials

Usage:
    from gke_deployer.deployment.shell_commands import ShellCommands

    commands = ShellCommands(work_dir=Path("/estafette-work"))
    commands.kubectl.scale("deploy", "myapp-canary", "mynamespace", 1)
"""

from pathlib import Path

from .gcloud import GcloudCommands
from .kubectl import KubectlCommands
from .runner import CommandRunner
from .types import CommandResult


class ShellCommands:
    """Unified interface for all shell command operations.

    Attributes:
        kubectl: Kubernetes kubectl commands
        gcloud: Google Cloud gcloud commands
    """

    def __init__(self, work_dir: Path) -> None:
        """Initialize the shell commands executor.

        Args:
            work_dir: Directory commands are executed from by default
        """
        self._work_dir = Path(work_dir)
        self._runner = CommandRunner(self._work_dir)

        self.kubectl = KubectlCommands(self._runner)
        self.gcloud = GcloudCommands(self._runner)

    @property
    def work_dir(self) -> Path:
        """Get the working directory path."""
        return self._work_dir


__all__ = [
    "ShellCommands",
    "CommandResult",
    "KubectlCommands",
    "GcloudCommands",
    "CommandRunner",
]
