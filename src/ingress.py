# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""NGINX ingress routing external traffic to the Jenkins controller."""

import typing

import auth_proxy
from state import WEB_PORT, State
from types_ import Manifest

CERT_MANAGER_ISSUER_ANNOTATION = "cert-manager.io/cluster-issuer"
# Jenkins plugin uploads and long polling log requests exceed the NGINX defaults
NGINX_ANNOTATIONS = {
    "nginx.ingress.kubernetes.io/proxy-body-size": "50m",
    "nginx.ingress.kubernetes.io/proxy-read-timeout": "300",
}


def get_path(state: State) -> str:
    """Return the path in which Jenkins is expected to be listening.

    Args:
        state: The desired Jenkins state.

    Returns:
        The Jenkins URL prefix, empty when served from the root path.
    """
    if not state.ingress:
        return ""
    return state.ingress.path.rstrip("/")


def external_url(state: State) -> typing.Optional[str]:
    """Return the URL Jenkins is reachable at from outside the cluster.

    Args:
        state: The desired Jenkins state.

    Returns:
        The external URL, None when no ingress is configured.
    """
    if not state.ingress:
        return None
    scheme = "https" if state.ingress.tls_secret_name else "http"
    return f"{scheme}://{state.ingress.host}{get_path(state)}"


def ingress(state: State) -> typing.Optional[Manifest]:
    """Return the Ingress routing the external hostname to the Jenkins service.

    Args:
        state: The desired Jenkins state.

    Returns:
        The networking.k8s.io/v1 Ingress object, None when no ingress is configured.
    """
    config = state.ingress
    if not config:
        return None
    annotations = dict(NGINX_ANNOTATIONS)
    if config.cert_issuer:
        annotations[CERT_MANAGER_ISSUER_ANNOTATION] = config.cert_issuer
    annotations.update(auth_proxy.get_ingress_annotations(state))
    spec: typing.Dict[str, typing.Any] = {
        "ingressClassName": config.class_name,
        "rules": [
            {
                "host": config.host,
                "http": {
                    "paths": [
                        {
                            "path": config.path,
                            "pathType": "Prefix",
                            "backend": {
                                "service": {
                                    "name": state.release_name,
                                    "port": {"number": WEB_PORT},
                                }
                            },
                        }
                    ]
                },
            }
        ],
    }
    if config.tls_secret_name:
        spec["tls"] = [{"hosts": list(config.tls_hosts), "secretName": config.tls_secret_name}]
    return {
        "apiVersion": "networking.k8s.io/v1",
        "kind": "Ingress",
        "metadata": {
            "name": state.release_name,
            "namespace": state.namespace,
            "labels": state.labels,
            "annotations": annotations,
        },
        "spec": spec,
    }
