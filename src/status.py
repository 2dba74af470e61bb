# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Findings reported by the configuration checks."""

import dataclasses
import enum
import typing


class Severity(str, enum.Enum):
    """How much a finding blocks a deployment.

    Attributes:
        ERROR: The configuration is rejected or contradicts itself.
        WARNING: The configuration deploys but likely not as intended.
        INFO: Informational only.
    """

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


PRIORITY_MAP = {
    Severity.ERROR: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
}


@dataclasses.dataclass(frozen=True)
class Finding:
    """A single result of the configuration checks.

    Attributes:
        severity: How much the finding blocks a deployment.
        kind: Kind of the offending object.
        name: Name of the offending object.
        message: Explanation of the finding.
        source: File the object was loaded from, if any.
    """

    severity: Severity
    kind: str
    name: str
    message: str
    source: typing.Optional[str] = None

    def __str__(self) -> str:
        """Format the finding for display.

        Returns:
            A single line description.
        """
        location = f"{self.source}: " if self.source else ""
        return f"{location}{self.severity.value}: {self.kind}/{self.name}: {self.message}"


def get_priority_status(findings: typing.Iterable[Finding]) -> typing.Optional[Finding]:
    """Get the finding deciding the overall result out of all findings.

    Args:
        findings: Findings returned by the checks.

    Returns:
        The most severe finding, None if there are none.
    """
    ordered = sorted(findings, key=lambda item: PRIORITY_MAP[item.severity])
    return ordered[0] if ordered else None
