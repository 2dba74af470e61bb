# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Rolls the desired state out to the cluster in the documented order."""

import logging
import tempfile
import typing

import ingress
import jenkins
import manifests
import precondition
import storage
import timerange
import values
from cluster import Cluster
from exceptions import CommandError, DeploymentError, MaintenanceWindowError
from state import State

logger = logging.getLogger(__name__)

STATEFULSET = "statefulset"


class Deployer:
    """Deploys Jenkins on EKS through kubectl and helm.

    Attrs:
        state: The desired Jenkins state.
        cluster: The cluster to deploy to.
    """

    def __init__(self, state: State, cluster: Cluster):
        """Construct a Deployer class.

        Args:
            state: The desired Jenkins state.
            cluster: The cluster to deploy to.
        """
        self.state = state
        self.cluster = cluster

    def _install_csi_driver(self) -> None:
        """Install the EFS CSI driver unless it is already registered."""
        if self.cluster.has_csi_driver(storage.EFS_CSI_DRIVER):
            logger.info("EFS CSI driver already installed")
            return
        logger.info("Installing EFS CSI driver")
        self.cluster.apply_kustomize(storage.EFS_CSI_DRIVER_KUSTOMIZE_URL)

    def _install_chart(self) -> None:
        """Install or upgrade the Jenkins chart release with the rendered values."""
        logger.info("Adding chart repository %s", values.CHART_REPOSITORY_URL)
        self.cluster.helm_repo_add(values.CHART_REPOSITORY_NAME, values.CHART_REPOSITORY_URL)
        self.cluster.helm_repo_update()
        with tempfile.NamedTemporaryFile(
            mode="w", suffix=".yaml", prefix="jenkins-values-", encoding="utf-8"
        ) as values_file:
            values_file.write(values.dump(values.build_values(self.state)))
            values_file.flush()
            logger.info("Installing chart release %s", self.state.release_name)
            self.cluster.helm_upgrade_install(
                release=self.state.release_name,
                chart=values.CHART,
                namespace=self.state.namespace,
                values_file=values_file.name,
                version=self.state.chart_version,
            )

    def _target_replicas(self) -> int:
        """Return the controller replica count to restore once the chart is applied.

        The chart renders a single controller replica, so an upgrade keeps the count the
        autoscaler has reached, within its current bounds.

        Returns:
            The controller replica count.
        """
        if not self.state.high_availability:
            return 1
        replicas = self.state.controller.replicas
        current = self.cluster.get_replicas(
            self.state.namespace, STATEFULSET, self.state.statefulset_name
        )
        if current is not None and current > replicas:
            replicas = current
            if self.state.autoscaler:
                replicas = min(replicas, self.state.autoscaler.max_replicas)
        return replicas

    def _roll_out(self) -> None:
        """Apply the chart and the objects referencing it, then wait for the controller."""
        replicas = self._target_replicas()
        self._install_chart()
        if replicas > 1:
            logger.info("Scaling controller to %s replicas", replicas)
            self.cluster.scale(
                self.state.namespace, STATEFULSET, self.state.statefulset_name, replicas
            )
        addons = manifests.render_addons(self.state)
        if addons:
            logger.info("Applying %s", ", ".join(str(addon["kind"]) for addon in addons))
            self.cluster.apply(addons)
        logger.info("Waiting for controller rollout")
        self.cluster.rollout_status(
            self.state.namespace, STATEFULSET, self.state.statefulset_name
        )

    def install(self, install_csi_driver: bool = True) -> None:
        """Install Jenkins and everything it depends on.

        Args:
            install_csi_driver: Whether to install the EFS CSI driver when missing.

        Raises:
            DeploymentError: if a precondition is not met or a deployment step failed.
        """
        result = precondition.check(
            cluster=self.cluster, require_csi_driver=not install_csi_driver
        )
        if not result.success:
            raise DeploymentError(f"Precondition failed: {result.reason}")
        try:
            if install_csi_driver:
                self._install_csi_driver()
            logger.info("Applying namespace and storage")
            self.cluster.apply(manifests.render_storage(self.state))
            self._roll_out()
        except CommandError as exc:
            logger.error("Error installing Jenkins, %s", exc)
            raise DeploymentError("Failed to install Jenkins.") from exc
        logger.info("Jenkins installed")

    def upgrade(self, force: bool = False) -> None:
        """Upgrade the Jenkins release to the desired state.

        Args:
            force: Whether to ignore the maintenance window.

        Raises:
            MaintenanceWindowError: if called outside of the maintenance window.
            DeploymentError: if a deployment step failed.
        """
        window = self.state.maintenance_window
        if (
            window
            and not force
            and not timerange.check_now_within_bound_hours(window.start, window.end)
        ):
            raise MaintenanceWindowError(
                f"Outside of the maintenance window {window} (UTC), use force to upgrade now."
            )
        try:
            self.cluster.apply(manifests.render_storage(self.state))
            self._roll_out()
        except CommandError as exc:
            logger.error("Error upgrading Jenkins, %s", exc)
            raise DeploymentError("Failed to upgrade Jenkins.") from exc
        logger.info("Jenkins upgraded")

    def admin_password(self) -> str:
        """Return the admin password generated by the chart.

        Returns:
            The admin password.
        """
        return jenkins.get_admin_credentials(self.cluster, self.state).password_or_token

    def pods(self) -> list[dict[str, typing.Any]]:
        """Return the controller pods.

        Returns:
            The controller pod objects.
        """
        return self.cluster.get_pods(self.state.namespace, self.state.controller_selector)

    def verify(self, timeout: int = 300) -> str:
        """Wait for Jenkins on its external URL and check the plugins are installed.

        Args:
            timeout: Time in seconds to wait for Jenkins to become ready.

        Returns:
            The Jenkins version.

        Raises:
            DeploymentError: if Jenkins has no external URL.
            JenkinsPluginError: if expected plugins are missing.
        """
        url = ingress.external_url(self.state)
        if not url:
            raise DeploymentError("No ingress configured, Jenkins has no external URL.")
        instance = jenkins.Jenkins(url)
        instance.wait_ready(timeout=timeout)
        version = instance.version
        credentials = jenkins.get_admin_credentials(self.cluster, self.state)
        missing = instance.get_missing_plugins(credentials, values.get_plugins(self.state))
        if missing:
            logger.error("Missing plugins: %s", missing)
            raise jenkins.JenkinsPluginError(
                f"Plugins not installed: {', '.join(sorted(missing))}"
            )
        logger.info("Jenkins %s ready at %s", version, url)
        return version
