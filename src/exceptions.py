# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Exceptions raised by jenkins-eks."""

import typing


class CommandError(Exception):
    """A kubectl or helm invocation failed.

    Attributes:
        command: The command that was executed.
        exit_code: Exit code of the process, None if it could not be started.
        stdout: Standard output of the process.
        stderr: Standard error output of the process.
    """

    def __init__(
        self,
        command: typing.Sequence[str],
        exit_code: int | None,
        stdout: str = "",
        stderr: str = "",
    ):
        """Initialize a new instance of the CommandError exception.

        Args:
            command: The command that was executed.
            exit_code: Exit code of the process, None if it could not be started.
            stdout: Standard output of the process.
            stderr: Standard error output of the process.
        """
        super().__init__(f"{' '.join(command)} exited with {exit_code}: {stderr.strip()}")
        self.command = list(command)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr


class DeploymentError(Exception):
    """An error occurred while rolling out Jenkins."""


class MaintenanceWindowError(DeploymentError):
    """An upgrade was requested outside of the maintenance window."""
