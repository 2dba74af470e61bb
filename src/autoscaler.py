# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Horizontal pod autoscaler policy for the Jenkins controller StatefulSet."""

import typing

from state import State
from types_ import Manifest


def _resource_metric(name: str, utilization: int) -> typing.Dict[str, typing.Any]:
    """Build an average utilization resource metric.

    Args:
        name: The resource name, cpu or memory.
        utilization: The target average utilization in percent.

    Returns:
        The autoscaling/v2 MetricSpec.
    """
    return {
        "type": "Resource",
        "resource": {
            "name": name,
            "target": {"type": "Utilization", "averageUtilization": utilization},
        },
    }


def horizontal_pod_autoscaler(state: State) -> typing.Optional[Manifest]:
    """Return the autoscaler scaling the controller StatefulSet.

    Args:
        state: The desired Jenkins state.

    Returns:
        The autoscaling/v2 HorizontalPodAutoscaler object, None when no policy is configured.
    """
    policy = state.autoscaler
    if not policy:
        return None
    metrics = []
    if policy.target_cpu_utilization is not None:
        metrics.append(_resource_metric("cpu", policy.target_cpu_utilization))
    if policy.target_memory_utilization is not None:
        metrics.append(_resource_metric("memory", policy.target_memory_utilization))
    return {
        "apiVersion": "autoscaling/v2",
        "kind": "HorizontalPodAutoscaler",
        "metadata": {
            "name": state.release_name,
            "namespace": state.namespace,
            "labels": state.labels,
        },
        "spec": {
            "scaleTargetRef": {
                "apiVersion": "apps/v1",
                "kind": "StatefulSet",
                "name": state.statefulset_name,
            },
            "minReplicas": policy.min_replicas,
            "maxReplicas": policy.max_replicas,
            "metrics": metrics,
        },
    }
