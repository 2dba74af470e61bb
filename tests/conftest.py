# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Fixtures for jenkins-eks tests."""

import pytest


def pytest_addoption(parser: pytest.Parser):
    """Parse additional pytest options.

    Args:
        parser: pytest command line parser.
    """
    # The path to kubernetes config of the cluster to run integration tests against.
    parser.addoption("--kube-config", action="store", default="")
    # The kubeconfig context to use.
    parser.addoption("--kube-context", action="store", default="")
