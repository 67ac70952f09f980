"""Error types surfaced to the CLI.

Every failure that should terminate an invocation is raised as a
DeploymentError so the CLI can render it consistently and exit non-zero.
"""

from __future__ import annotations

from collections.abc import Sequence


class DeploymentError(Exception):
    """Raised when a deployment operation fails."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ConfigurationError(DeploymentError):
    """Raised when parameters or credentials are missing or invalid.

    All violated rules are carried together so a single invocation reports
    every problem at once.
    """

    def __init__(self, message: str, errors: Sequence[str] | None = None):
        self.errors = list(errors or [])
        details = "\n".join(f"  • {error}" for error in self.errors) or None
        super().__init__(message, details=details)
