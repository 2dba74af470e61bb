# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Command-line interface for jenkins-eks."""

import dataclasses
import functools
import logging
import typing
from pathlib import Path

import click

import jenkins
import manifests
import precondition
import validation
import values
from cluster import Cluster
from deployer import Deployer
from exceptions import CommandError, DeploymentError
from path import DEFAULT_CONFIG
from state import State, StateBaseError
from status import Severity, get_priority_status

CONFIG_ENV_VAR = "JENKINS_EKS_CONFIG"
MANIFESTS_FILE = "manifests.yaml"
VALUES_FILE = "values.yaml"

_P = typing.ParamSpec("_P")
_R = typing.TypeVar("_R")


@dataclasses.dataclass
class _Context:
    """Options shared by all commands.

    Attributes:
        config_file: Path to the deployment descriptor.
        cluster: The cluster to operate on.
    """

    config_file: Path
    cluster: Cluster

    def load_state(self) -> State:
        """Load the deployment descriptor.

        Returns:
            The desired Jenkins state.
        """
        return State.from_file(self.config_file)

    def deployer(self) -> Deployer:
        """Build a deployer for the descriptor and cluster.

        Returns:
            The deployer.
        """
        return Deployer(self.load_state(), self.cluster)


def _report_errors(func: typing.Callable[_P, _R]) -> typing.Callable[_P, _R]:
    """Turn domain errors into command-line errors.

    Args:
        func: The command callback.

    Returns:
        The wrapped callback.
    """

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        try:
            return func(*args, **kwargs)
        except (
            StateBaseError,
            manifests.ManifestError,
            CommandError,
            DeploymentError,
            jenkins.JenkinsError,
            TimeoutError,
        ) as exc:
            raise click.ClickException(str(exc)) from exc

    return wrapper


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_CONFIG,
    show_default=True,
    envvar=CONFIG_ENV_VAR,
    help="Deployment descriptor.",
)
@click.option(
    "--kubeconfig", default=None, help="Path to kubeconfig, KUBECONFIG is read by the tools."
)
@click.option("--context", "kube_context", default=None, help="Kubeconfig context to use.")
@click.option("--debug", "-d", is_flag=True, envvar="DEBUG", help="Enable debug logging.")
@click.pass_context
def main(
    ctx: click.Context,
    config_file: Path,
    kubeconfig: str | None,
    kube_context: str | None,
    debug: bool,
) -> None:
    """Deploy Jenkins on Amazon EKS with the Jenkins Helm chart and EFS storage."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = _Context(config_file=config_file, cluster=Cluster(kubeconfig, kube_context))


@main.command()
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Write manifests.yaml and values.yaml here instead of printing them.",
)
@click.pass_obj
@_report_errors
def render(obj: _Context, output_dir: Path | None) -> None:
    """Render the Kubernetes manifests and chart values."""
    state = obj.load_state()
    rendered_manifests = manifests.dump(manifests.render_manifests(state))
    rendered_values = values.dump(values.build_values(state))
    if output_dir is None:
        click.echo(f"{rendered_manifests}---\n{rendered_values}", nl=False)
        return
    output_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / MANIFESTS_FILE).write_text(rendered_manifests, encoding="utf-8")
    (output_dir / VALUES_FILE).write_text(rendered_values, encoding="utf-8")
    click.echo(f"Wrote {MANIFESTS_FILE} and {VALUES_FILE} to {output_dir}")


@main.command()
@click.argument("files", nargs=-1, type=click.Path(exists=True, path_type=Path))
@click.pass_context
@_report_errors
def validate(ctx: click.Context, files: tuple[Path, ...]) -> None:
    """Check manifests and chart values for consistency.

    Without FILES, the manifests rendered from the deployment descriptor are checked.
    """
    if files:
        findings = validation.check_files(files)
    else:
        state = ctx.obj.load_state()
        findings = validation.check(
            [*manifests.render_manifests(state), values.build_values(state)]
        )
    for finding in findings:
        click.echo(str(finding))
    worst = get_priority_status(findings)
    if worst and worst.severity == Severity.ERROR:
        ctx.exit(1)
    click.echo("No errors found.")


@main.command()
@click.option(
    "--require-csi-driver", is_flag=True, help="Fail when the EFS CSI driver is not installed."
)
@click.pass_context
@_report_errors
def check(ctx: click.Context, require_csi_driver: bool) -> None:
    """Check the cluster is ready for deployment."""
    result = precondition.check(cluster=ctx.obj.cluster, require_csi_driver=require_csi_driver)
    if not result.success:
        click.echo(f"Not ready: {result.reason}", err=True)
        ctx.exit(1)
    click.echo("Ready.")


@main.command()
@click.option("--skip-csi-driver", is_flag=True, help="Do not install the EFS CSI driver.")
@click.pass_obj
@_report_errors
def install(obj: _Context, skip_csi_driver: bool) -> None:
    """Install Jenkins and its storage, ingress and autoscaler."""
    obj.deployer().install(install_csi_driver=not skip_csi_driver)
    click.echo("Jenkins installed.")


@main.command()
@click.option("--force", is_flag=True, help="Upgrade outside of the maintenance window.")
@click.pass_obj
@_report_errors
def upgrade(obj: _Context, force: bool) -> None:
    """Upgrade the Jenkins release to the deployment descriptor."""
    obj.deployer().upgrade(force=force)
    click.echo("Jenkins upgraded.")


@main.command()
@click.pass_obj
@_report_errors
def status(obj: _Context) -> None:
    """Show the Jenkins controller pods."""
    pods = obj.deployer().pods()
    if not pods:
        click.echo("No controller pods found.")
        return
    for pod in pods:
        pod_status = pod.get("status") or {}
        containers = pod_status.get("containerStatuses") or []
        ready = bool(containers) and all(container.get("ready") for container in containers)
        click.echo(
            f"{pod['metadata']['name']}\t{pod_status.get('phase', 'Unknown')}\t"
            f"{'ready' if ready else 'not ready'}"
        )


@main.command("admin-password")
@click.pass_obj
@_report_errors
def admin_password(obj: _Context) -> None:
    """Print the admin password generated by the chart."""
    click.echo(obj.deployer().admin_password())


@main.command()
@click.option("--timeout", default=300, show_default=True, help="Seconds to wait for Jenkins.")
@click.pass_obj
@_report_errors
def verify(obj: _Context, timeout: int) -> None:
    """Wait for Jenkins on its external URL and check its plugins."""
    version = obj.deployer().verify(timeout=timeout)
    click.echo(f"Jenkins {version} is ready.")


if __name__ == "__main__":  # pragma: nocover
    main()  # pylint: disable=no-value-for-parameter
