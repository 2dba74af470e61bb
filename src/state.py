# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Jenkins on EKS desired state."""
import dataclasses
import logging
import os
import re
import typing
from pathlib import Path

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    ValidationError,
    field_validator,
    model_validator,
)

from timerange import InvalidTimeRangeError, Range

logger = logging.getLogger(__name__)

JENKINS_SERVICE_NAME = "jenkins"
WEB_PORT = 8080
AGENT_PORT = 50000
READ_WRITE_MANY = "ReadWriteMany"
READ_WRITE_ONCE = "ReadWriteOnce"

DNS_LABEL = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$"
QUANTITY = r"^[0-9]+(\.[0-9]+)?(m|k|M|G|T|P|E|Ki|Mi|Gi|Ti|Pi|Ei)?$"
PLUGIN = r"^[a-zA-Z0-9-_]+(:[\w.\-]+)?$"
EFS_FILESYSTEM_ID = r"^fs-[0-9a-f]{8,17}$"
CRON_FIELD = r"^[\w*/,\-?]+$"


class StateBaseError(Exception):
    """Represents an error with the deployment descriptor."""


class ConfigInvalidError(StateBaseError):
    """Exception raised when the deployment descriptor is found to be invalid.

    Attributes:
        msg: Explanation of the error.
    """

    def __init__(self, msg: str):
        """Initialize a new instance of the ConfigInvalidError exception.

        Args:
            msg: Explanation of the error.
        """
        super().__init__(msg)
        self.msg = msg


class IllegalReplicaCountError(StateBaseError):
    """Represents a controller replica count that contradicts the chosen topology.

    Attributes:
        msg: Explanation of the error.
    """

    def __init__(self, msg: str):
        """Initialize a new instance of the IllegalReplicaCountError exception.

        Args:
            msg: Explanation of the error.
        """
        super().__init__(msg)
        self.msg = msg


class ResourceRequirements(BaseModel):
    """Compute resources of the Jenkins controller container.

    Attributes:
        cpu_request: Requested CPU quantity.
        memory_request: Requested memory quantity.
        cpu_limit: CPU limit quantity.
        memory_limit: Memory limit quantity.
    """

    model_config = ConfigDict(extra="forbid")

    cpu_request: str = Field("1", pattern=QUANTITY)
    memory_request: str = Field("2Gi", pattern=QUANTITY)
    cpu_limit: str = Field("2", pattern=QUANTITY)
    memory_limit: str = Field("4Gi", pattern=QUANTITY)


class ControllerConfig(BaseModel):
    """Deployment descriptor of the Jenkins controller.

    Attributes:
        replicas: Number of controller replicas.
        image: The controller image repository.
        image_tag: The controller image tag.
        resources: The controller compute resources.
        plugins: Plugins to install, optionally pinned as name:version.
        admin_user: Name of the admin account created by the chart.
        java_opts: Extra JVM options.
    """

    model_config = ConfigDict(extra="forbid")

    replicas: int = Field(1, ge=1)
    image: str = Field("jenkins/jenkins", min_length=1)
    image_tag: str = Field("lts-jdk17", min_length=1)
    resources: ResourceRequirements = Field(default_factory=ResourceRequirements)
    plugins: list[str] = Field(default_factory=list)
    admin_user: str = Field("admin", min_length=1)
    java_opts: str = ""

    @field_validator("plugins")
    @classmethod
    def validate_plugins(cls, value: list[str]) -> list[str]:
        """Validate plugin short names.

        Args:
            value: The configured plugins.

        Returns:
            The stripped plugin names.

        Raises:
            ValueError: if a plugin name is malformed.
        """
        plugins = [plugin.strip() for plugin in value]
        invalid = [plugin for plugin in plugins if not re.match(PLUGIN, plugin)]
        if invalid:
            raise ValueError(f"Invalid plugin names: {', '.join(invalid)}")
        return plugins


class PersistenceConfig(BaseModel):
    """Binding of Jenkins home to the EFS file system.

    Attributes:
        efs_filesystem_id: The ID of the pre-provisioned EFS file system.
        storage_class: Storage class shared by the volume and the claim.
        access_mode: Access mode of the volume and the claim.
        size: Requested capacity.
        existing_claim: Name of the claim handed to the chart.
        volume_name: Name of the statically provisioned volume.
    """

    model_config = ConfigDict(extra="forbid")

    efs_filesystem_id: str = Field(..., pattern=EFS_FILESYSTEM_ID)
    storage_class: str = Field("efs-sc", pattern=DNS_LABEL)
    access_mode: typing.Literal["ReadWriteOnce", "ReadOnlyMany", "ReadWriteMany"] = (
        READ_WRITE_MANY
    )
    size: str = Field("5Gi", pattern=QUANTITY)
    existing_claim: str = Field("jenkins-efs-claim", pattern=DNS_LABEL)
    volume_name: str = Field("jenkins-efs-pv", pattern=DNS_LABEL)


class IngressConfig(BaseModel):
    """External routing rule for the Jenkins web UI.

    Attributes:
        host: The external hostname.
        path: The path Jenkins is served under.
        class_name: The ingress class handling the rule.
        tls_secret_name: Secret holding the TLS certificate, if TLS terminates at the ingress.
        tls_hosts: Hostnames covered by the TLS certificate.
        cert_issuer: cert-manager ClusterIssuer issuing the certificate.
    """

    model_config = ConfigDict(extra="forbid")

    host: str = Field(..., min_length=1)
    path: str = Field("/", pattern=r"^/")
    class_name: str = "nginx"
    tls_secret_name: typing.Optional[str] = None
    tls_hosts: list[str] = Field(default_factory=list)
    cert_issuer: typing.Optional[str] = None

    @model_validator(mode="after")
    def validate_tls_hosts(self) -> "IngressConfig":
        """Default the TLS hosts to the rule host and check they agree.

        Returns:
            The validated ingress configuration.

        Raises:
            ValueError: if TLS hosts are set without a secret or do not cover the rule host.
        """
        if not self.tls_secret_name:
            if self.tls_hosts:
                raise ValueError("tls_hosts requires tls_secret_name.")
            return self
        if not self.tls_hosts:
            self.tls_hosts = [self.host]
        if self.host not in self.tls_hosts:
            raise ValueError(f"Host {self.host} is not listed in the TLS hosts.")
        return self


class AutoscalerConfig(BaseModel):
    """Thresholds at which the controller replica count changes.

    Attributes:
        min_replicas: Lower replica bound.
        max_replicas: Upper replica bound.
        target_cpu_utilization: Average CPU utilisation target in percent.
        target_memory_utilization: Average memory utilisation target in percent.
    """

    model_config = ConfigDict(extra="forbid")

    min_replicas: int = Field(..., ge=1)
    max_replicas: int = Field(..., ge=1)
    target_cpu_utilization: typing.Optional[int] = Field(None, ge=1, le=100)
    target_memory_utilization: typing.Optional[int] = Field(None, ge=1, le=100)

    @model_validator(mode="after")
    def validate_bounds(self) -> "AutoscalerConfig":
        """Validate the replica bounds and metric targets.

        Returns:
            The validated autoscaler configuration.

        Raises:
            ValueError: if the bounds are inverted or no metric target is given.
        """
        if self.min_replicas > self.max_replicas:
            raise ValueError(
                f"min_replicas ({self.min_replicas}) must not exceed "
                f"max_replicas ({self.max_replicas})."
            )
        if self.target_cpu_utilization is None and self.target_memory_utilization is None:
            raise ValueError("At least one utilization target is required.")
        return self


class MonitoringConfig(BaseModel):
    """Prometheus scraping of the controller.

    Attributes:
        enabled: Whether to expose metrics through a ServiceMonitor.
        scrape_interval: How often Prometheus scrapes Jenkins.
        service_monitor_labels: Labels the Prometheus operator selects ServiceMonitors by.
    """

    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    scrape_interval: str = Field("60s", pattern=r"^[0-9]+[smh]$")
    service_monitor_labels: dict[str, str] = Field(default_factory=dict)


class AuthProxyConfig(BaseModel):
    """Single sign-on through an oauth2-proxy in front of the ingress.

    Attributes:
        enabled: Whether requests are authenticated by the proxy.
        auth_url: The proxy endpoint the ingress checks requests against.
        signin_url: Where unauthenticated users are redirected to.
        user_header: Header carrying the authenticated user name.
    """

    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    auth_url: typing.Optional[HttpUrl] = None
    signin_url: typing.Optional[HttpUrl] = None
    user_header: str = "X-Auth-Request-User"

    @model_validator(mode="after")
    def validate_urls(self) -> "AuthProxyConfig":
        """Require the proxy endpoints when SSO is enabled.

        Returns:
            The validated auth proxy configuration.

        Raises:
            ValueError: if SSO is enabled without proxy endpoints.
        """
        if self.enabled and (not self.auth_url or not self.signin_url):
            raise ValueError("auth_url and signin_url are required when auth proxy is enabled.")
        return self


class BackupConfig(BaseModel):
    """Scheduled copy of Jenkins home to S3.

    Attributes:
        enabled: Whether the backup CronJob is deployed.
        schedule: Cron expression of the backup schedule.
        bucket: Destination, as s3://bucket[/prefix].
        image: Image providing the AWS CLI.
        service_account: Service account bound to an IAM role with bucket access.
    """

    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    schedule: str = "0 2 * * *"
    bucket: typing.Optional[str] = Field(None, pattern=r"^s3://[a-z0-9.\-]+(/.*)?$")
    image: str = "amazon/aws-cli:2.15.0"
    service_account: typing.Optional[str] = None

    @field_validator("schedule")
    @classmethod
    def validate_schedule(cls, value: str) -> str:
        """Validate the cron expression has five fields.

        Args:
            value: The schedule.

        Returns:
            The validated schedule.

        Raises:
            ValueError: if the schedule is not a five field cron expression.
        """
        fields = value.split()
        if len(fields) != 5 or not all(re.match(CRON_FIELD, field) for field in fields):
            raise ValueError(f"Invalid cron schedule {value!r}.")
        return value

    @model_validator(mode="after")
    def validate_bucket(self) -> "BackupConfig":
        """Require a bucket when backups are enabled.

        Returns:
            The validated backup configuration.

        Raises:
            ValueError: if backups are enabled without a bucket.
        """
        if self.enabled and not self.bucket:
            raise ValueError("bucket is required when backups are enabled.")
        return self


class ProxyConfig(BaseModel):
    """Configuration for accessing the Jenkins update center through proxy.

    Attributes:
        http_proxy: The http proxy URL.
        https_proxy: The https proxy URL.
        no_proxy: Comma separated list of hostnames to bypass proxy.
    """

    model_config = ConfigDict(extra="forbid")

    http_proxy: typing.Optional[HttpUrl] = None
    https_proxy: typing.Optional[HttpUrl] = None
    no_proxy: typing.Optional[str] = None

    @classmethod
    def from_env(cls) -> typing.Optional["ProxyConfig"]:
        """Instantiate ProxyConfig from the operator environment.

        Returns:
            ProxyConfig if proxy configuration is provided, None otherwise.
        """
        http_proxy = os.environ.get("HTTP_PROXY") or os.environ.get("http_proxy")
        https_proxy = os.environ.get("HTTPS_PROXY") or os.environ.get("https_proxy")
        no_proxy = os.environ.get("NO_PROXY") or os.environ.get("no_proxy")
        if not http_proxy and not https_proxy:
            return None
        # Mypy doesn't understand str is supposed to be converted to HttpUrl by Pydantic.
        return cls(
            http_proxy=http_proxy, https_proxy=https_proxy, no_proxy=no_proxy  # type: ignore
        )


class _Descriptor(BaseModel):
    """Raw schema of the deployment descriptor file."""

    model_config = ConfigDict(extra="forbid")

    cluster_name: str = Field(..., min_length=1)
    region: str = Field(..., pattern=r"^[a-z]{2}(-[a-z]+)+-[0-9]$")
    namespace: str = Field("jenkins", pattern=DNS_LABEL)
    release_name: str = Field("jenkins", pattern=DNS_LABEL)
    chart_version: typing.Optional[str] = None
    high_availability: bool = False
    maintenance_window: typing.Optional[str] = None
    controller: ControllerConfig = Field(default_factory=ControllerConfig)
    persistence: PersistenceConfig
    ingress: typing.Optional[IngressConfig] = None
    autoscaler: typing.Optional[AutoscalerConfig] = None
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    auth_proxy: AuthProxyConfig = Field(default_factory=AuthProxyConfig)
    backup: BackupConfig = Field(default_factory=BackupConfig)
    proxy: typing.Optional[ProxyConfig] = None


def _check_topology(descriptor: _Descriptor) -> None:
    """Check the replica settings agree with the chosen topology.

    Args:
        descriptor: The parsed deployment descriptor.

    Raises:
        IllegalReplicaCountError: if replica settings contradict the topology.
    """
    replicas = descriptor.controller.replicas
    autoscaler = descriptor.autoscaler
    if not descriptor.high_availability:
        if replicas > 1:
            raise IllegalReplicaCountError(
                "Single controller deployment supports only 1 controller replica, "
                f"got {replicas}. Set high_availability to run more."
            )
        if autoscaler:
            raise IllegalReplicaCountError(
                "An autoscaler cannot scale a single controller deployment. "
                "Set high_availability to use it."
            )
        return
    if descriptor.persistence.access_mode != READ_WRITE_MANY:
        raise IllegalReplicaCountError(
            f"Multiple controllers need {READ_WRITE_MANY} storage, "
            f"got {descriptor.persistence.access_mode}."
        )
    if autoscaler and not autoscaler.min_replicas <= replicas <= autoscaler.max_replicas:
        raise IllegalReplicaCountError(
            f"Controller replicas ({replicas}) must be within the autoscaler bounds "
            f"[{autoscaler.min_replicas}, {autoscaler.max_replicas}]."
        )


@dataclasses.dataclass(frozen=True)
class State:
    """The desired state of a Jenkins deployment on EKS.

    Attributes:
        cluster_name: Name of the EKS cluster.
        region: AWS region of the cluster.
        namespace: Kubernetes namespace Jenkins is deployed to.
        release_name: Helm release name, also the controller StatefulSet name.
        chart_version: Pinned Jenkins chart version, latest if None.
        high_availability: Whether more than one controller replica is allowed.
        maintenance_window: Time range to allow upgrades to roll the controller.
        controller: The controller deployment descriptor.
        persistence: The EFS volume binding.
        ingress: The external routing rule.
        autoscaler: The autoscaler policy.
        monitoring: The metrics scraping configuration.
        auth_proxy: The single sign-on configuration.
        backup: The backup schedule.
        proxy_config: Proxy configuration to reach the Jenkins update center through.
    """

    cluster_name: str
    region: str
    namespace: str
    release_name: str
    chart_version: typing.Optional[str]
    high_availability: bool
    maintenance_window: typing.Optional[Range]
    controller: ControllerConfig
    persistence: PersistenceConfig
    ingress: typing.Optional[IngressConfig]
    autoscaler: typing.Optional[AutoscalerConfig]
    monitoring: MonitoringConfig
    auth_proxy: AuthProxyConfig
    backup: BackupConfig
    proxy_config: typing.Optional[ProxyConfig]

    @property
    def statefulset_name(self) -> str:
        """The name the chart gives the controller StatefulSet."""
        return self.release_name

    @property
    def controller_pod(self) -> str:
        """The name of the first controller pod."""
        return f"{self.release_name}-0"

    @property
    def controller_selector(self) -> str:
        """Label selector matching the controller pods created by the chart."""
        return (
            "app.kubernetes.io/component=jenkins-controller,"
            f"app.kubernetes.io/instance={self.release_name}"
        )

    @property
    def labels(self) -> dict[str, str]:
        """Labels attached to every object rendered outside of the chart."""
        return {
            "app.kubernetes.io/name": JENKINS_SERVICE_NAME,
            "app.kubernetes.io/instance": self.release_name,
            "app.kubernetes.io/managed-by": "jenkins-eks",
        }

    @classmethod
    def from_config(cls, config: typing.Mapping[str, typing.Any]) -> "State":
        """Initialize the state from a deployment descriptor mapping.

        Args:
            config: The deployment descriptor.

        Returns:
            The desired state of Jenkins.

        Raises:
            ConfigInvalidError: if invalid configuration values were encountered.
        """
        try:
            descriptor = _Descriptor.model_validate(config)
        except ValidationError as exc:
            logger.error("Invalid deployment descriptor, %s", exc)
            raise ConfigInvalidError(f"Invalid deployment descriptor: {exc}") from exc

        try:
            maintenance_window = (
                Range.from_str(descriptor.maintenance_window)
                if descriptor.maintenance_window
                else None
            )
        except InvalidTimeRangeError as exc:
            logger.error("Invalid config value for maintenance_window, %s", exc)
            raise ConfigInvalidError("Invalid config value for maintenance_window.") from exc

        proxy_config = descriptor.proxy
        if proxy_config is None:
            try:
                proxy_config = ProxyConfig.from_env()
            except ValidationError as exc:
                logger.error("Invalid proxy environment, %s", exc)
                raise ConfigInvalidError("Invalid proxy environment.") from exc
        elif not proxy_config.http_proxy and not proxy_config.https_proxy:
            # an empty proxy section disables the environment proxy
            proxy_config = None

        _check_topology(descriptor)

        return cls(
            cluster_name=descriptor.cluster_name,
            region=descriptor.region,
            namespace=descriptor.namespace,
            release_name=descriptor.release_name,
            chart_version=descriptor.chart_version,
            high_availability=descriptor.high_availability,
            maintenance_window=maintenance_window,
            controller=descriptor.controller,
            persistence=descriptor.persistence,
            ingress=descriptor.ingress,
            autoscaler=descriptor.autoscaler,
            monitoring=descriptor.monitoring,
            auth_proxy=descriptor.auth_proxy,
            backup=descriptor.backup,
            proxy_config=proxy_config,
        )

    @classmethod
    def from_file(cls, path: Path) -> "State":
        """Initialize the state from a YAML deployment descriptor file.

        Args:
            path: Path to the deployment descriptor.

        Returns:
            The desired state of Jenkins.

        Raises:
            ConfigInvalidError: if the file cannot be read or parsed.
        """
        try:
            config = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as exc:
            logger.error("Failed to read %s, %s", path, exc)
            raise ConfigInvalidError(f"Cannot read deployment descriptor {path}.") from exc
        except yaml.YAMLError as exc:
            logger.error("Failed to parse %s, %s", path, exc)
            raise ConfigInvalidError(f"Deployment descriptor {path} is not valid YAML.") from exc
        if not isinstance(config, dict):
            raise ConfigInvalidError(f"Deployment descriptor {path} must be a mapping.")
        return cls.from_config(config)
