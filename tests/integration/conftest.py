# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Fixtures for jenkins-eks integration tests."""

import copy
import os
import typing

import kubernetes.client
import kubernetes.config
import pytest
from pytest import FixtureRequest

import state
from cluster import Cluster
from tests.unit import constants

# Namespace that exists in every cluster, so namespaced objects can be dry run applied.
NAMESPACE = "default"


@pytest.fixture(scope="module", name="kube_config")
def kube_config_fixture(request: FixtureRequest) -> str:
    """The kubernetes config file path."""
    kube_config = request.config.getoption("--kube-config")
    if not kube_config:
        pytest.skip("--kube-config argument is required to run against a cluster.")
    return os.path.expanduser(kube_config)


@pytest.fixture(scope="module", name="cluster")
def cluster_fixture(request: FixtureRequest, kube_config: str) -> Cluster:
    """The cluster under test, as seen through kubectl and helm."""
    return Cluster(
        kubeconfig=kube_config, context=request.config.getoption("--kube-context") or None
    )


@pytest.fixture(scope="module", name="kube_core_client")
def kube_core_client_fixture(
    request: FixtureRequest, kube_config: str
) -> kubernetes.client.CoreV1Api:
    """Create a kubernetes client for core v1 API."""
    kubernetes.config.load_kube_config(
        config_file=kube_config, context=request.config.getoption("--kube-context") or None
    )
    return kubernetes.client.CoreV1Api()


@pytest.fixture(scope="module", name="ha_state")
def ha_state_fixture() -> state.State:
    """A high availability state with every optional object enabled."""
    config: dict[str, typing.Any] = copy.deepcopy(constants.HA_CONFIG)
    config["namespace"] = NAMESPACE
    config["release_name"] = "jenkins-eks-dry-run"
    config["persistence"]["existing_claim"] = "jenkins-eks-dry-run"
    config["persistence"]["volume_name"] = "jenkins-eks-dry-run"
    config["persistence"]["storage_class"] = "jenkins-eks-dry-run"
    config["backup"] = {"enabled": True, "bucket": "s3://jenkins-eks-dry-run"}
    return state.State.from_config(config)
