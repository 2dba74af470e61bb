# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Values for the upstream Jenkins Helm chart."""

import itertools
import logging
import textwrap
import typing

import yaml

import auth_proxy
import ingress
import jenkins
import monitoring
from state import AGENT_PORT, WEB_PORT, State

logger = logging.getLogger(__name__)

CHART_REPOSITORY_NAME = "jenkins"
CHART_REPOSITORY_URL = "https://charts.jenkins.io"
CHART = f"{CHART_REPOSITORY_NAME}/jenkins"
SYSTEM_MESSAGE = (
    "Jenkins on {cluster_name} ({region}) is configured as code. Manual changes "
    "to the system configuration are overwritten on the next deployment."
)


def get_plugins(state: State) -> typing.List[str]:
    """Return the plugins to install, required ones first.

    Args:
        state: The desired Jenkins state.

    Returns:
        The de-duplicated plugin list, a configured pin takes precedence over a bare name.
    """
    configured = {jenkins.get_plugin_name(plugin): plugin for plugin in state.controller.plugins}
    plugins: typing.Dict[str, str] = {}
    for plugin in itertools.chain(
        jenkins.REQUIRED_PLUGINS,
        monitoring.get_plugins(state),
        auth_proxy.get_plugins(state),
        state.controller.plugins,
    ):
        name = jenkins.get_plugin_name(plugin)
        if name not in plugins:
            plugins[name] = configured.get(name, plugin)
    return list(plugins.values())


def get_java_opts(state: State) -> str:
    """Return the JVM options of the controller.

    Args:
        state: The desired Jenkins state.

    Returns:
        The space separated JVM options.
    """
    opts = [jenkins.SYSTEM_PROPERTY_HEADLESS]
    if state.controller.java_opts:
        opts.append(state.controller.java_opts)
    if state.proxy_config:
        opts.extend(jenkins.get_java_proxy_args(state.proxy_config))
    return " ".join(opts)


def _to_yaml(document: typing.Any) -> str:
    """Serialize a JCasC fragment the way the chart expects it, as a YAML string.

    Args:
        document: The JCasC fragment.

    Returns:
        The YAML text.
    """
    return yaml.safe_dump(document, sort_keys=False)


def get_jcasc_config_scripts(state: State) -> typing.Dict[str, str]:
    """Return the JCasC config scripts rendered by the chart.

    Args:
        state: The desired Jenkins state.

    Returns:
        A mapping of config script name to its YAML contents.
    """
    message = SYSTEM_MESSAGE.format(cluster_name=state.cluster_name, region=state.region)
    # The chart default config already sets unclassified.location.url from jenkinsUrl.
    return {"system-message": _to_yaml({"jenkins": {"systemMessage": message}})}


def build_values(state: State) -> typing.Dict[str, typing.Any]:
    """Render the values.yaml handed to helm upgrade --install.

    Args:
        state: The desired Jenkins state.

    Returns:
        The chart values.
    """
    controller = state.controller
    persistence = state.persistence
    resources = controller.resources
    security = auth_proxy.get_security_config(state)
    values: typing.Dict[str, typing.Any] = {
        "fullnameOverride": state.release_name,
        "controller": {
            "image": {"repository": controller.image, "tag": controller.image_tag},
            "admin": {"username": controller.admin_user},
            "resources": {
                "requests": {"cpu": resources.cpu_request, "memory": resources.memory_request},
                "limits": {"cpu": resources.cpu_limit, "memory": resources.memory_limit},
            },
            "javaOpts": get_java_opts(state),
            "targetPort": WEB_PORT,
            "agentListenerPort": AGENT_PORT,
            "installPlugins": get_plugins(state),
            "ingress": {"enabled": False},
            "prometheus": dict(monitoring.get_prometheus_values(state)),
            "JCasC": {
                "defaultConfig": True,
                "securityRealm": _to_yaml(security["securityRealm"]),
                "authorizationStrategy": _to_yaml(security["authorizationStrategy"]),
                "configScripts": get_jcasc_config_scripts(state),
            },
        },
        "persistence": {
            "enabled": True,
            "existingClaim": persistence.existing_claim,
            "storageClass": persistence.storage_class,
            "accessMode": persistence.access_mode,
            "size": persistence.size,
        },
    }
    if url := ingress.external_url(state):
        values["controller"]["jenkinsUrl"] = url
    if prefix := ingress.get_path(state):
        values["controller"]["jenkinsUriPrefix"] = prefix
    logger.debug("Rendered values for release %s", state.release_name)
    return values


def dump(values: typing.Mapping[str, typing.Any]) -> str:
    """Serialize chart values.

    Args:
        values: The chart values.

    Returns:
        The values.yaml contents.
    """
    header = textwrap.dedent(
        """\
        # Generated by jenkins-eks from the deployment descriptor.
        # Edit the descriptor and render again instead of editing this file.
        """
    )
    return header + yaml.safe_dump(dict(values), sort_keys=False)
