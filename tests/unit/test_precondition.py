# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Deployment precondition unit tests."""

from unittest.mock import MagicMock

import precondition


def test_check_ready(mock_cluster: MagicMock):
    """
    arrange: given a reachable cluster with the tools installed.
    act: when the precondition is checked.
    assert: the check succeeds without looking for the CSI driver.
    """
    result = precondition.check(cluster=mock_cluster)

    assert result.success
    assert result.reason is None
    mock_cluster.has_csi_driver.assert_not_called()


def test_check_missing_binaries(mock_cluster: MagicMock):
    """
    arrange: given the command line tools missing.
    act: when the precondition is checked.
    assert: the missing tools are reported before connecting.
    """
    mock_cluster.missing_binaries.return_value = ["kubectl", "helm"]

    result = precondition.check(cluster=mock_cluster)

    assert not result.success
    assert result.reason == "kubectl, helm not found."
    mock_cluster.can_connect.assert_not_called()


def test_check_unreachable(mock_cluster: MagicMock):
    """
    arrange: given an unreachable cluster.
    act: when the precondition is checked.
    assert: the cluster is reported unreachable.
    """
    mock_cluster.can_connect.return_value = False

    result = precondition.check(cluster=mock_cluster)

    assert not result.success
    assert result.reason == "cluster not yet reachable."


def test_check_csi_driver(mock_cluster: MagicMock):
    """
    arrange: given a cluster without the EFS CSI driver.
    act: when the precondition is checked requiring the driver.
    assert: the missing driver is reported.
    """
    mock_cluster.has_csi_driver.return_value = False

    result = precondition.check(cluster=mock_cluster, require_csi_driver=True)

    assert not result.success
    assert result.reason == "efs-csi-driver not yet installed."
    mock_cluster.has_csi_driver.assert_called_once_with("efs.csi.aws.com")
