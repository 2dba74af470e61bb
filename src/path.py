# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Paths used by the Jenkins chart."""

from pathlib import Path

JENKINS_HOME = Path("/var/jenkins_home")
# Admin password file mounted from the chart generated secret
ADMIN_PASSWORD = Path("/run/secrets/chart-admin-password")
# Default deployment descriptor looked up in the working directory
DEFAULT_CONFIG = Path("jenkins-eks.yaml")
