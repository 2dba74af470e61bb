# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Helper functions used to unit test jenkins-eks."""

import subprocess  # nosec B404
import typing
from pathlib import Path

import requests
import yaml


# There aren't enough public methods with this patch class.
class ConnectionExceptionPatch:  # pylint: disable=too-few-public-methods
    """Class to raise ConnectionError exception."""

    def __init__(self, *_args, **_kwargs) -> None:
        """Placeholder init function to match function signatures.

        Raises:
            ConnectionError: To mock connection error.
        """
        raise requests.ConnectionError


def completed_process(
    returncode: int = 0, stdout: str = "", stderr: str = ""
) -> subprocess.CompletedProcess:
    """Build the result of a finished command.

    Args:
        returncode: The exit code.
        stdout: The standard output.
        stderr: The standard error output.

    Returns:
        The completed process.
    """
    return subprocess.CompletedProcess(
        args=[], returncode=returncode, stdout=stdout, stderr=stderr
    )


def write_yaml(path: Path, *documents: typing.Any) -> Path:
    """Write documents into a multi-document YAML file.

    Args:
        path: The file to write.
        documents: The documents to serialize.

    Returns:
        The written path.
    """
    path.write_text(yaml.safe_dump_all(list(documents), sort_keys=False), encoding="utf-8")
    return path
