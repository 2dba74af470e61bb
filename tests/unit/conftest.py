# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Fixtures for jenkins-eks unit tests."""

import copy
import typing
import unittest.mock

import pytest
import requests

import jenkins
import state
from cluster import Cluster
from tests.unit import constants

PROXY_ENV_VARS = ("HTTP_PROXY", "http_proxy", "HTTPS_PROXY", "https_proxy", "NO_PROXY", "no_proxy")


@pytest.fixture(autouse=True, name="clean_proxy_env")
def clean_proxy_env_fixture(monkeypatch: pytest.MonkeyPatch):
    """Remove proxy settings of the test runner from the environment."""
    for env_var in PROXY_ENV_VARS:
        monkeypatch.delenv(env_var, raising=False)


@pytest.fixture(scope="function", name="config")
def config_fixture() -> dict[str, typing.Any]:
    """A minimal single controller deployment descriptor served over TLS."""
    return copy.deepcopy(constants.SINGLE_CONTROLLER_CONFIG)


@pytest.fixture(scope="function", name="ha_config")
def ha_config_fixture() -> dict[str, typing.Any]:
    """A high availability deployment descriptor with an autoscaler."""
    return copy.deepcopy(constants.HA_CONFIG)


@pytest.fixture(scope="function", name="jenkins_state")
def jenkins_state_fixture(config: dict[str, typing.Any]) -> state.State:
    """The desired state of the single controller descriptor."""
    return state.State.from_config(config)


@pytest.fixture(scope="function", name="ha_state")
def ha_state_fixture(ha_config: dict[str, typing.Any]) -> state.State:
    """The desired state of the high availability descriptor."""
    return state.State.from_config(ha_config)


@pytest.fixture(scope="function", name="mock_cluster")
def mock_cluster_fixture() -> unittest.mock.MagicMock:
    """A cluster with kubectl and helm available and reachable."""
    cluster = unittest.mock.MagicMock(spec=Cluster)
    cluster.missing_binaries.return_value = []
    cluster.can_connect.return_value = True
    cluster.has_csi_driver.return_value = True
    cluster.get_replicas.return_value = None
    cluster.exec_read.return_value = f"{constants.ADMIN_PASSWORD}\n"
    return cluster


@pytest.fixture(scope="function", name="admin_credentials")
def admin_credentials_fixture() -> jenkins.Credentials:
    """Admin credentials as read from the controller pod."""
    return jenkins.Credentials(username="admin", password_or_token=constants.ADMIN_PASSWORD)


@pytest.fixture(scope="function", name="mocked_get_request")
def mocked_get_request_fixture():
    """Mock GET request returning a response from a Jenkins controller."""

    def mocked_get(*_args: typing.Any, **_kwargs: typing.Any) -> requests.Response:
        """Mock the requests.get function.

        Returns:
            A successful response carrying the Jenkins version header.
        """
        response = requests.Response()
        response.status_code = 200
        response.headers["X-Jenkins"] = constants.JENKINS_VERSION
        return response

    return mocked_get


@pytest.fixture(scope="function", name="mock_client")
def mock_client_fixture(monkeypatch: pytest.MonkeyPatch) -> unittest.mock.MagicMock:
    """Mock jenkinsapi client reporting the required plugins as installed."""
    client = unittest.mock.MagicMock()
    client.get_plugins.return_value = {
        plugin: unittest.mock.MagicMock() for plugin in jenkins.REQUIRED_PLUGINS
    }
    monkeypatch.setattr(
        jenkins.jenkinsapi.jenkins, "Jenkins", unittest.mock.MagicMock(return_value=client)
    )
    return client
