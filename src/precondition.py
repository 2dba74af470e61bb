# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""The deployment precondition checker."""

import logging
from dataclasses import dataclass

import storage
from cluster import Cluster

logger = logging.getLogger(__name__)


@dataclass
class _CheckResult:
    """Precondition check result.

    Attributes:
        success: Whether precondition requirements have been met.
        reason: Reasons for failure if any.
    """

    success: bool
    reason: str | None


def check(*, cluster: Cluster, require_csi_driver: bool = False) -> _CheckResult:
    """Check preconditions for deploying Jenkins.

    Args:
        cluster: The cluster to deploy to.
        require_csi_driver: Whether the EFS CSI driver must already be installed.

    Returns:
        The condition check result.
    """
    logger.info("Running precondition check")
    missing_binaries = cluster.missing_binaries()
    if missing_binaries:
        logger.info("Missing command line tools: %s", missing_binaries)
        return _CheckResult(success=False, reason=f"{', '.join(missing_binaries)} not found.")

    connectable = cluster.can_connect()
    logger.info("Cluster connectivity status: %s", connectable)
    if not connectable:
        return _CheckResult(success=False, reason="cluster not yet reachable.")

    if require_csi_driver:
        driver_installed = cluster.has_csi_driver(storage.EFS_CSI_DRIVER)
        logger.info("EFS CSI driver installed: %s", driver_installed)
        if not driver_installed:
            return _CheckResult(success=False, reason="efs-csi-driver not yet installed.")
    return _CheckResult(success=True, reason=None)
