# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""NGINX ingress unit tests."""

import typing

import pytest

import ingress
import state
from tests.unit import constants


@pytest.mark.parametrize(
    "path, expected_path",
    [
        pytest.param("/", "", id="root"),
        pytest.param("/jenkins", "/jenkins", id="prefix"),
        pytest.param("/jenkins/", "/jenkins", id="prefix with trailing slash"),
    ],
)
def test_get_path(config: dict[str, typing.Any], path: str, expected_path: str):
    """
    arrange: given an ingress with a path.
    act: when get_path is called.
    assert: the path is returned without a trailing slash.
    """
    config["ingress"]["path"] = path
    jenkins_state = state.State.from_config(config)

    assert ingress.get_path(jenkins_state) == expected_path


def test_no_ingress(config: dict[str, typing.Any]):
    """
    arrange: given a desired state without ingress.
    act: when the ingress functions are called.
    assert: no path, external URL or Ingress object is returned.
    """
    del config["ingress"]
    jenkins_state = state.State.from_config(config)

    assert ingress.get_path(jenkins_state) == ""
    assert ingress.external_url(jenkins_state) is None
    assert ingress.ingress(jenkins_state) is None


def test_external_url(config: dict[str, typing.Any]):
    """
    arrange: given ingress configurations with and without TLS.
    act: when external_url is called.
    assert: the scheme follows the TLS setting and the path is appended.
    """
    config["ingress"]["path"] = "/ci/"
    with_tls = state.State.from_config(config)
    del config["ingress"]["tls_secret_name"]
    without_tls = state.State.from_config(config)

    assert ingress.external_url(with_tls) == f"https://{constants.HOST}/ci"
    assert ingress.external_url(without_tls) == f"http://{constants.HOST}/ci"


def test_ingress(jenkins_state: state.State):
    """
    arrange: given a desired state with a TLS ingress and a certificate issuer.
    act: when the Ingress is rendered.
    assert: the host routes to the chart's service and TLS covers the host.
    """
    rendered = ingress.ingress(jenkins_state)

    assert rendered
    assert rendered["metadata"]["namespace"] == "jenkins"
    annotations = rendered["metadata"]["annotations"]
    assert annotations[ingress.CERT_MANAGER_ISSUER_ANNOTATION] == "letsencrypt-prod"
    assert annotations["nginx.ingress.kubernetes.io/proxy-body-size"] == "50m"
    spec = rendered["spec"]
    assert spec["ingressClassName"] == "nginx"
    assert spec["tls"] == [{"hosts": [constants.HOST], "secretName": constants.TLS_SECRET_NAME}]
    (rule,) = spec["rules"]
    assert rule["host"] == constants.HOST
    (path,) = rule["http"]["paths"]
    assert path["path"] == "/"
    assert path["pathType"] == "Prefix"
    assert path["backend"] == {"service": {"name": "jenkins", "port": {"number": 8080}}}


def test_ingress_without_tls(config: dict[str, typing.Any]):
    """
    arrange: given an ingress without TLS or certificate issuer.
    act: when the Ingress is rendered.
    assert: no TLS section or issuer annotation is rendered.
    """
    config["ingress"] = {"host": constants.HOST, "class_name": "alb"}
    jenkins_state = state.State.from_config(config)

    rendered = ingress.ingress(jenkins_state)

    assert rendered
    assert "tls" not in rendered["spec"]
    assert rendered["spec"]["ingressClassName"] == "alb"
    assert ingress.CERT_MANAGER_ISSUER_ANNOTATION not in rendered["metadata"]["annotations"]


def test_ingress_auth_proxy(config: dict[str, typing.Any]):
    """
    arrange: given a desired state with single sign-on enabled.
    act: when the Ingress is rendered.
    assert: the auth proxy annotations are merged in.
    """
    config["auth_proxy"] = {
        "enabled": True,
        "auth_url": "https://sso.example.com/oauth2/auth",
        "signin_url": "https://sso.example.com/oauth2/start",
    }
    jenkins_state = state.State.from_config(config)

    rendered = ingress.ingress(jenkins_state)

    assert rendered
    annotations = rendered["metadata"]["annotations"]
    assert annotations["nginx.ingress.kubernetes.io/auth-url"] == (
        "https://sso.example.com/oauth2/auth"
    )
    assert annotations[ingress.CERT_MANAGER_ISSUER_ANNOTATION] == "letsencrypt-prod"
