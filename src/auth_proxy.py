# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Single sign-on through an oauth2-proxy sitting in front of the NGINX ingress."""

import logging
import typing

from state import State

REVERSE_PROXY_AUTH_PLUGIN = "reverse-proxy-auth-plugin"

logger = logging.getLogger(__name__)


def get_ingress_annotations(state: State) -> typing.Dict[str, str]:
    """Return the NGINX annotations delegating authentication to the proxy.

    Args:
        state: The desired Jenkins state.

    Returns:
        The auth annotations, empty if SSO is disabled.
    """
    auth_proxy = state.auth_proxy
    if not auth_proxy.enabled:
        return {}
    logger.debug("Delegating ingress authentication to %s", auth_proxy.auth_url)
    return {
        "nginx.ingress.kubernetes.io/auth-url": str(auth_proxy.auth_url),
        "nginx.ingress.kubernetes.io/auth-signin": (
            f"{auth_proxy.signin_url}?rd=$escaped_request_uri"
        ),
        "nginx.ingress.kubernetes.io/auth-response-headers": auth_proxy.user_header,
    }


def get_security_config(state: State) -> typing.Dict[str, typing.Any]:
    """Return the JCasC security section.

    With SSO the proxy is trusted to forward the authenticated user in a header, otherwise the
    chart's built in admin account is used.

    Args:
        state: The desired Jenkins state.

    Returns:
        The JCasC jenkins security realm and authorization strategy.
    """
    if not state.auth_proxy.enabled:
        return {
            "securityRealm": {
                "local": {
                    "allowsSignup": False,
                    "users": [
                        {
                            "id": "${chart-admin-username}",
                            "password": "${chart-admin-password}",
                        }
                    ],
                }
            },
            "authorizationStrategy": {"loggedInUsersCanDoAnything": {"allowAnonymousRead": False}},
        }
    return {
        "securityRealm": {
            "reverseProxy": {
                "forwardedUser": state.auth_proxy.user_header,
                "headerGroups": "X-Forwarded-Groups",
                "headerGroupsDelimiter": ",",
            }
        },
        "authorizationStrategy": {"loggedInUsersCanDoAnything": {"allowAnonymousRead": False}},
    }


def get_plugins(state: State) -> typing.List[str]:
    """Return the plugins required by the configured security realm.

    Args:
        state: The desired Jenkins state.

    Returns:
        The required plugins.
    """
    return [REVERSE_PROXY_AUTH_PLUGIN] if state.auth_proxy.enabled else []
