# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Prometheus scraping of the Jenkins controller."""

import typing

import ingress
from state import State

PROMETHEUS_PLUGIN = "prometheus"
METRICS_PATH = "/prometheus"


class PrometheusValues(typing.TypedDict, total=False):
    """The controller.prometheus section of the Jenkins chart values.

    For more information, see:
    https://github.com/jenkinsci/helm-charts/blob/main/charts/jenkins/VALUES.md

    Attrs:
        enabled: Whether the chart renders a ServiceMonitor for the controller.
        scrapeInterval: How often Prometheus scrapes the metrics endpoint.
        scrapeEndpoint: The HTTP resource path on which metrics are exposed.
        serviceMonitorAdditionalLabels: Labels the Prometheus operator selects monitors by.
    """

    enabled: bool
    scrapeInterval: str
    scrapeEndpoint: str
    serviceMonitorAdditionalLabels: typing.Dict[str, str]


def get_prometheus_values(state: State) -> PrometheusValues:
    """Return the chart values exposing controller metrics.

    Args:
        state: The desired Jenkins state.

    Returns:
        The controller.prometheus values.
    """
    monitoring = state.monitoring
    if not monitoring.enabled:
        return PrometheusValues(enabled=False)
    return PrometheusValues(
        enabled=True,
        scrapeInterval=monitoring.scrape_interval,
        scrapeEndpoint=f"{ingress.get_path(state)}{METRICS_PATH}",
        serviceMonitorAdditionalLabels=dict(monitoring.service_monitor_labels),
    )


def get_plugins(state: State) -> typing.List[str]:
    """Return the plugins required to expose metrics.

    Args:
        state: The desired Jenkins state.

    Returns:
        The required plugins.
    """
    return [PROMETHEUS_PLUGIN] if state.monitoring.enabled else []
