# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""EFS backed storage for the Jenkins home directory."""

import typing

from state import State
from types_ import Manifest

EFS_CSI_DRIVER = "efs.csi.aws.com"
EFS_CSI_DRIVER_KUSTOMIZE_URL = (
    "github.com/kubernetes-sigs/aws-efs-csi-driver/deploy/kubernetes/overlays/stable/"
    "?ref=release-2.0"
)


def storage_class(state: State) -> typing.Dict[str, typing.Any]:
    """Return the StorageClass served by the EFS CSI driver.

    Args:
        state: The desired Jenkins state.

    Returns:
        The storage.k8s.io/v1 StorageClass object.
    """
    return {
        "apiVersion": "storage.k8s.io/v1",
        "kind": "StorageClass",
        "metadata": {"name": state.persistence.storage_class, "labels": state.labels},
        "provisioner": EFS_CSI_DRIVER,
    }


def persistent_volume(state: State) -> Manifest:
    """Return the statically provisioned volume pointing at the EFS file system.

    The volume is retained on release so that Jenkins home survives a chart uninstall.

    Args:
        state: The desired Jenkins state.

    Returns:
        The core/v1 PersistentVolume object.
    """
    persistence = state.persistence
    return {
        "apiVersion": "v1",
        "kind": "PersistentVolume",
        "metadata": {"name": persistence.volume_name, "labels": state.labels},
        "spec": {
            "capacity": {"storage": persistence.size},
            "volumeMode": "Filesystem",
            "accessModes": [persistence.access_mode],
            "persistentVolumeReclaimPolicy": "Retain",
            "storageClassName": persistence.storage_class,
            "csi": {
                "driver": EFS_CSI_DRIVER,
                "volumeHandle": persistence.efs_filesystem_id,
            },
        },
    }


def persistent_volume_claim(state: State) -> Manifest:
    """Return the claim handed to the chart as its existing claim.

    Args:
        state: The desired Jenkins state.

    Returns:
        The core/v1 PersistentVolumeClaim object bound to the EFS volume.
    """
    persistence = state.persistence
    return {
        "apiVersion": "v1",
        "kind": "PersistentVolumeClaim",
        "metadata": {
            "name": persistence.existing_claim,
            "namespace": state.namespace,
            "labels": state.labels,
        },
        "spec": {
            "accessModes": [persistence.access_mode],
            "storageClassName": persistence.storage_class,
            "volumeName": persistence.volume_name,
            "resources": {"requests": {"storage": persistence.size}},
        },
    }
