# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Functions to operate the deployed Jenkins controller."""

import dataclasses
import logging
import typing
from datetime import datetime, timedelta
from time import sleep

import jenkinsapi.custom_exceptions
import jenkinsapi.jenkins
import requests

import state
from cluster import Cluster
from exceptions import CommandError
from path import ADMIN_PASSWORD

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login?from=%2F"
CONTAINER_NAME = "jenkins"
# The plugins that are required for the chart to work
REQUIRED_PLUGINS = [
    "kubernetes",  # required to run builds on agent pods
    "workflow-aggregator",  # required for pipeline jobs
    "git",  # required to check out pipeline definitions
    "configuration-as-code",  # required to load the JCasC config scripts
]
# Java system property to run Jenkins in headless mode
SYSTEM_PROPERTY_HEADLESS = "-Djava.awt.headless=true"


class JenkinsError(Exception):
    """Base exception for Jenkins errors."""


class JenkinsPluginError(JenkinsError):
    """Expected plugins are missing from the Jenkins controller."""


@dataclasses.dataclass(frozen=True)
class Credentials:
    """Information needed to log into Jenkins.

    Attributes:
        username: The Jenkins account username used to log into Jenkins.
        password_or_token: The Jenkins API token or account password used to log into Jenkins.
    """

    username: str
    password_or_token: str


def get_admin_credentials(cluster: Cluster, jenkins_state: state.State) -> Credentials:
    """Retrieve the admin credentials generated by the chart.

    Args:
        cluster: The cluster Jenkins is deployed to.
        jenkins_state: The desired Jenkins state.

    Returns:
        The Jenkins admin account credentials.

    Raises:
        JenkinsError: if the password could not be read from the controller pod.
    """
    try:
        password = cluster.exec_read(
            namespace=jenkins_state.namespace,
            pod=jenkins_state.controller_pod,
            container=CONTAINER_NAME,
            path=str(ADMIN_PASSWORD),
        )
    except CommandError as exc:
        logger.error("Failed to read admin password, %s", exc)
        raise JenkinsError("Failed to read admin password.") from exc
    return Credentials(
        username=jenkins_state.controller.admin_user, password_or_token=password.strip()
    )


def get_plugin_name(plugin: str) -> str:
    """Strip the pinned version from a plugin entry.

    Args:
        plugin: Plugin entry in name[:version] format.

    Returns:
        The plugin short name.
    """
    return plugin.split(":", 1)[0]


def get_java_proxy_args(proxy_config: state.ProxyConfig) -> typing.Iterable[str]:
    """Get JVM system property arguments for proxy.

    Args:
        proxy_config: The proxy settings to apply.

    Yields:
        JVM System property proxy arguments.
    """
    if proxy_config.http_proxy:
        yield f"-Dhttp.proxyHost={proxy_config.http_proxy.host}"
        yield f"-Dhttp.proxyPort={proxy_config.http_proxy.port}"
        if proxy_config.http_proxy.username and proxy_config.http_proxy.password:
            yield f"-Dhttp.proxyUser={proxy_config.http_proxy.username}"
            yield f"-Dhttp.proxyPassword={proxy_config.http_proxy.password}"
    if proxy_config.https_proxy:
        yield f"-Dhttps.proxyHost={proxy_config.https_proxy.host}"
        yield f"-Dhttps.proxyPort={proxy_config.https_proxy.port}"
        if proxy_config.https_proxy.username and proxy_config.https_proxy.password:
            yield f"-Dhttps.proxyUser={proxy_config.https_proxy.username}"
            yield f"-Dhttps.proxyPassword={proxy_config.https_proxy.password}"
    if proxy_config.no_proxy:
        formatted_no_proxy_hosts = "|".join(proxy_config.no_proxy.split(","))
        yield f"-Dhttp.nonProxyHosts={formatted_no_proxy_hosts}"


class Jenkins:
    """Wrapper for the deployed Jenkins controller.

    Attrs:
        web_url: the Jenkins web URL.
        login_url: the Jenkins login URL.
        version: the Jenkins version.
    """

    def __init__(self, web_url: str):
        """Construct a Jenkins class.

        Args:
            web_url: The URL Jenkins is reachable at.
        """
        self.web_url = web_url.rstrip("/")

    @property
    def login_url(self) -> str:
        """Get the Jenkins login URL.

        Returns: the login URL.
        """
        return f"{self.web_url}{LOGIN_PATH}"

    @property
    def version(self) -> str:
        """Get the Jenkins server version.

        Raises:
            JenkinsError: if Jenkins is unreachable.

        Returns:
            The Jenkins server version.
        """
        try:
            return requests.get(self.login_url, timeout=10).headers["X-Jenkins"]
        except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as exc:
            logger.error("Failed to get Jenkins version, %s", exc)
            raise JenkinsError("Failed to get Jenkins version.") from exc
        except KeyError as exc:
            logger.error("Response from %s is not from Jenkins", self.login_url)
            raise JenkinsError("Jenkins version header missing.") from exc

    def _is_ready(self) -> bool:
        """Check if Jenkins webserver is ready.

        Returns:
            True if Jenkins server is online. False otherwise.
        """
        try:
            return requests.get(self.login_url, timeout=10).ok
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout):
            return False

    def wait_ready(self, timeout: int = 300, check_interval: int = 10) -> None:
        """Wait until Jenkins service is up.

        Args:
            timeout: Time in seconds to wait for jenkins to become ready.
            check_interval: Time in seconds to wait between ready checks.

        Raises:
            TimeoutError: if Jenkins status check did not pass within the timeout duration.
        """
        try:
            _wait_for(self._is_ready, timeout=timeout, check_interval=check_interval)
        except TimeoutError as exc:
            raise TimeoutError("Timed out waiting for Jenkins to become ready.") from exc

    def _get_client(self, client_credentials: Credentials) -> jenkinsapi.jenkins.Jenkins:
        """Get the Jenkins client.

        Args:
            client_credentials: The credentials of a Jenkins user with access to the Jenkins API.

        Returns:
            The Jenkins client.
        """
        return jenkinsapi.jenkins.Jenkins(
            baseurl=self.web_url,
            username=client_credentials.username,
            password=client_credentials.password_or_token,
            timeout=60,
        )

    def get_missing_plugins(
        self, credentials: Credentials, plugins: typing.Iterable[str]
    ) -> typing.Set[str]:
        """Return the expected plugins that are not installed on the controller.

        Args:
            credentials: The credentials to query the Jenkins API with.
            plugins: The plugins expected to be installed, optionally pinned.

        Raises:
            JenkinsError: if the installed plugins could not be listed.

        Returns:
            The short names of the missing plugins.
        """
        client = self._get_client(credentials)
        try:
            installed = set(client.get_plugins().keys())
        except (
            requests.exceptions.HTTPError,
            requests.exceptions.ConnectionError,
            jenkinsapi.custom_exceptions.JenkinsAPIException,
        ) as exc:
            logger.error("Failed to list plugins, %s", exc)
            raise JenkinsError("Failed to list installed plugins.") from exc
        return {get_plugin_name(plugin) for plugin in plugins} - installed


def _wait_for(
    func: typing.Callable[[], typing.Any], timeout: int = 300, check_interval: int = 10
) -> None:
    """Wait for function execution to become truthy.

    Args:
        func: A callback function to wait to return a truthy value.
        timeout: Time in seconds to wait for function result to become truthy.
        check_interval: Time in seconds to wait between ready checks.

    Raises:
        TimeoutError: if the callback function did not return a truthy value within timeout.
    """
    start_time = now = datetime.now()
    min_wait_seconds = timedelta(seconds=timeout)
    while now - start_time < min_wait_seconds:
        if func():
            return
        sleep(check_interval)
        now = datetime.now()
    if func():
        return
    raise TimeoutError()
