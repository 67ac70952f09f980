"""Command runner for executing shell commands.

This module provides the base command execution functionality used by
all specialized command modules.
"""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from .types import CommandResult

# Exit status reported when a command cannot be started at all
COMMAND_NOT_STARTED = 127


class CommandRunner:
    """Low-level command executor with consistent result handling.

    Output is either streamed straight to the process' stdout/stderr, so it
    shows up in the pipeline log, or captured when the caller needs to inspect
    it. Commands that cannot be started (missing binary, bad working
    directory) are reported as failed results rather than raised.
    """

    def __init__(self, work_dir: Path) -> None:
        """Initialize the command runner.

        Args:
            work_dir: Directory commands are executed from by default
        """
        self.work_dir = work_dir

    def _cwd(self, cwd: Path | None) -> Path | None:
        directory = cwd or self.work_dir
        return directory if directory.is_dir() else None

    def run(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        capture_output: bool = False,
    ) -> CommandResult:
        """Execute a shell command and return structured result.

        Args:
            cmd: Command and arguments as a sequence
            cwd: Working directory (defaults to work_dir)
            capture_output: Whether to capture stdout/stderr instead of streaming

        Returns:
            CommandResult with success status, output, and return code
        """
        logger.info(f"Running command '{' '.join(cmd)}'...")
        try:
            result = subprocess.run(
                list(cmd),
                cwd=self._cwd(cwd),
                capture_output=capture_output,
                text=True,
                check=False,
            )
        except OSError as e:
            logger.error(f"Failed starting command '{cmd[0]}': {e}")
            return CommandResult(
                success=False, stderr=str(e), returncode=COMMAND_NOT_STARTED
            )
        return CommandResult(
            success=result.returncode == 0,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            returncode=result.returncode,
        )

    def run_pipeline(
        self,
        producer: Sequence[str],
        consumer: Sequence[str],
        *,
        cwd: Path | None = None,
    ) -> CommandResult:
        """Pipe the output of one command into another.

        The two processes run concurrently, connected by an OS pipe, so the
        producer's output is never held in memory as a whole. The parent
        closes its copy of the pipe: if the consumer exits early the producer
        gets SIGPIPE, and the producer exiting ends the consumer's input.

        Args:
            producer: Command whose stdout feeds the consumer
            consumer: Command reading the producer's output on stdin

        Returns:
            CommandResult of the consumer, with its captured output. If the
            producer exits non-zero, the result carries its exit status and
            stderr names the failed producer.
        """
        logger.info(f"Running command '{' '.join(producer)} | {' '.join(consumer)}'...")
        directory = self._cwd(cwd)
        try:
            producer_process = subprocess.Popen(
                list(producer), cwd=directory, stdout=subprocess.PIPE
            )
        except OSError as e:
            return CommandResult(
                success=False, stderr=str(e), returncode=COMMAND_NOT_STARTED
            )

        try:
            consumer_process = subprocess.Popen(
                list(consumer),
                cwd=directory,
                stdin=producer_process.stdout,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            producer_process.kill()
            producer_process.wait()
            return CommandResult(
                success=False, stderr=str(e), returncode=COMMAND_NOT_STARTED
            )
        finally:
            if producer_process.stdout is not None:
                producer_process.stdout.close()

        stdout, stderr = consumer_process.communicate()
        producer_returncode = producer_process.wait()

        stderr = stderr or ""
        returncode = consumer_process.returncode
        if producer_returncode != 0:
            # The producer's own stderr is streamed, so report its failure here
            stderr += f"{producer[0]} exited with status {producer_returncode}\n"
            returncode = producer_returncode
        return CommandResult(
            success=returncode == 0,
            stdout=stdout or "",
            stderr=stderr,
            returncode=returncode,
        )
