# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Scheduled backup of the Jenkins home directory to S3."""

import typing

from path import JENKINS_HOME
from state import State
from types_ import Manifest

# Workspaces and build caches are reproducible and excluded from backups
BACKUP_EXCLUDES = ("workspace/*", "caches/*", "*.tmp")


def get_backup_command(state: State) -> typing.List[str]:
    """Return the command copying Jenkins home to the backup bucket.

    Args:
        state: The desired Jenkins state.

    Returns:
        The aws s3 sync command line.
    """
    command = ["aws", "s3", "sync", f"{JENKINS_HOME}/", str(state.backup.bucket)]
    for exclude in BACKUP_EXCLUDES:
        command.extend(["--exclude", exclude])
    command.extend(["--region", state.region, "--only-show-errors"])
    return command


def backup_cron_job(state: State) -> typing.Optional[Manifest]:
    """Return the CronJob running the backup on schedule.

    The EFS claim is mounted read only, next to the running controller.

    Args:
        state: The desired Jenkins state.

    Returns:
        The batch/v1 CronJob object, None when backups are disabled.
    """
    backup = state.backup
    if not backup.enabled:
        return None
    pod_spec: typing.Dict[str, typing.Any] = {
        "restartPolicy": "OnFailure",
        "containers": [
            {
                "name": "backup",
                "image": backup.image,
                "command": get_backup_command(state),
                "volumeMounts": [
                    {"name": "jenkins-home", "mountPath": str(JENKINS_HOME), "readOnly": True}
                ],
            }
        ],
        "volumes": [
            {
                "name": "jenkins-home",
                "persistentVolumeClaim": {
                    "claimName": state.persistence.existing_claim,
                    "readOnly": True,
                },
            }
        ],
    }
    if backup.service_account:
        pod_spec["serviceAccountName"] = backup.service_account
    return {
        "apiVersion": "batch/v1",
        "kind": "CronJob",
        "metadata": {
            "name": f"{state.release_name}-backup",
            "namespace": state.namespace,
            "labels": state.labels,
        },
        "spec": {
            "schedule": backup.schedule,
            "concurrencyPolicy": "Forbid",
            "successfulJobsHistoryLimit": 3,
            "failedJobsHistoryLimit": 3,
            "jobTemplate": {"spec": {"backoffLimit": 2, "template": {"spec": pod_spec}}},
        },
    }
