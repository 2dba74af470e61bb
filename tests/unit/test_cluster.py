# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""kubectl and helm runner unit tests."""

import subprocess  # nosec B404
import typing
from unittest.mock import MagicMock

import pytest
import yaml

import cluster
from exceptions import CommandError
from tests.unit.helpers import completed_process


@pytest.fixture(scope="function", name="mock_run")
def mock_run_fixture(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Mock subprocess.run returning a successful process."""
    mock_run = MagicMock(return_value=completed_process(stdout="ok"))
    monkeypatch.setattr(cluster.subprocess, "run", mock_run)
    return mock_run


def _command(mock_run: MagicMock) -> list[str]:
    """Return the command of the last subprocess.run call.

    Args:
        mock_run: The mocked subprocess.run.

    Returns:
        The executed command.
    """
    return mock_run.call_args.args[0]


def test_kubectl_connection_args(mock_run: MagicMock):
    """
    arrange: given a cluster with a kubeconfig and context.
    act: when kubectl and helm are run.
    assert: the connection arguments are passed in each tool's own spelling.
    """
    eks = cluster.Cluster(kubeconfig="/tmp/kubeconfig", context="prod")

    assert eks.kubectl("get", "pods") == "ok"
    assert _command(mock_run) == [
        "kubectl",
        "--kubeconfig",
        "/tmp/kubeconfig",
        "--context",
        "prod",
        "get",
        "pods",
    ]
    eks.helm("list")
    assert _command(mock_run) == [
        "helm",
        "--kubeconfig",
        "/tmp/kubeconfig",
        "--kube-context",
        "prod",
        "list",
    ]


def test_run_failure(mock_run: MagicMock):
    """
    arrange: given a command exiting with a non zero code.
    act: when the command is run.
    assert: CommandError carrying the process output is raised.
    """
    mock_run.return_value = completed_process(returncode=1, stdout="out", stderr="forbidden\n")

    with pytest.raises(CommandError) as exc:
        cluster.Cluster().kubectl("get", "nodes")

    assert exc.value.exit_code == 1
    assert exc.value.stdout == "out"
    assert exc.value.command == ["kubectl", "get", "nodes"]
    assert str(exc.value) == "kubectl get nodes exited with 1: forbidden"


@pytest.mark.parametrize(
    "side_effect, expected_stderr",
    [
        pytest.param(FileNotFoundError(), "kubectl not found", id="missing binary"),
        pytest.param(
            subprocess.TimeoutExpired(cmd="kubectl", timeout=30),
            "timed out after 600s",
            id="timeout",
        ),
    ],
)
def test_run_not_completed(mock_run: MagicMock, side_effect: Exception, expected_stderr: str):
    """
    arrange: given a command that cannot be started or does not finish.
    act: when the command is run.
    assert: CommandError without exit code is raised.
    """
    mock_run.side_effect = side_effect

    with pytest.raises(CommandError) as exc:
        cluster.Cluster().kubectl("get", "nodes")

    assert exc.value.exit_code is None
    assert exc.value.stderr == expected_stderr


@pytest.mark.parametrize(
    "found, expected",
    [
        pytest.param({"kubectl", "helm"}, [], id="all found"),
        pytest.param({"kubectl"}, ["helm"], id="helm missing"),
        pytest.param(set(), ["kubectl", "helm"], id="none found"),
    ],
)
def test_missing_binaries(monkeypatch: pytest.MonkeyPatch, found: set[str], expected: list[str]):
    """
    arrange: given some command line tools on PATH.
    act: when missing_binaries is called.
    assert: the tools not on PATH are returned.
    """
    monkeypatch.setattr(
        cluster.shutil,
        "which",
        lambda binary: f"/usr/local/bin/{binary}" if binary in found else None,
    )

    assert cluster.Cluster.missing_binaries() == expected


@pytest.mark.parametrize(
    "returncode, expected",
    [
        pytest.param(0, True, id="reachable"),
        pytest.param(1, False, id="unreachable"),
    ],
)
def test_can_connect(mock_run: MagicMock, returncode: int, expected: bool):
    """
    arrange: given an API server answering or not.
    act: when can_connect is called.
    assert: the reachability is returned.
    """
    mock_run.return_value = completed_process(returncode=returncode)

    assert cluster.Cluster().can_connect() == expected


@pytest.mark.parametrize(
    "returncode, expected",
    [
        pytest.param(0, True, id="registered"),
        pytest.param(1, False, id="not registered"),
    ],
)
def test_has_csi_driver(mock_run: MagicMock, returncode: int, expected: bool):
    """
    arrange: given a CSI driver registered or not.
    act: when has_csi_driver is called.
    assert: the registration is returned.
    """
    mock_run.return_value = completed_process(returncode=returncode)

    assert cluster.Cluster().has_csi_driver("efs.csi.aws.com") == expected
    assert _command(mock_run)[1:4] == ["get", "csidriver", "efs.csi.aws.com"]


def test_has_csi_driver_no_kubectl(mock_run: MagicMock):
    """
    arrange: given kubectl missing.
    act: when has_csi_driver is called.
    assert: the error is raised instead of reporting a missing driver.
    """
    mock_run.side_effect = FileNotFoundError()

    with pytest.raises(CommandError):
        cluster.Cluster().has_csi_driver("efs.csi.aws.com")


@pytest.mark.parametrize(
    "dry_run, expected_args",
    [
        pytest.param("", ["kubectl", "apply", "-f", "-"], id="apply"),
        pytest.param(
            "server", ["kubectl", "apply", "-f", "-", "--dry-run=server"], id="dry run"
        ),
    ],
)
def test_apply(mock_run: MagicMock, dry_run: str, expected_args: list[str]):
    """
    arrange: given Kubernetes objects.
    act: when they are applied.
    assert: the objects are passed to kubectl as a YAML stream.
    """
    documents = [{"kind": "Namespace"}, {"kind": "StorageClass"}]

    cluster.Cluster().apply(documents, dry_run=dry_run)

    assert _command(mock_run) == expected_args
    assert list(yaml.safe_load_all(mock_run.call_args.kwargs["input"])) == documents


def test_get_pods(mock_run: MagicMock):
    """
    arrange: given kubectl listing pods.
    act: when get_pods is called.
    assert: the pod objects are returned.
    """
    pods = [{"metadata": {"name": "jenkins-0"}}]
    mock_run.return_value = completed_process(stdout=yaml.safe_dump({"items": pods}))

    assert cluster.Cluster().get_pods("jenkins", "app=jenkins") == pods
    assert "--selector" in _command(mock_run)


def test_exec_read(mock_run: MagicMock):
    """
    arrange: given a running container.
    act: when a file is read from it.
    assert: the file is printed through kubectl exec.
    """
    cluster.Cluster().exec_read("jenkins", "jenkins-0", "jenkins", "/run/secret")

    assert _command(mock_run) == [
        "kubectl",
        "exec",
        "--namespace",
        "jenkins",
        "jenkins-0",
        "--container",
        "jenkins",
        "--",
        "cat",
        "/run/secret",
    ]

@pytest.mark.parametrize(
    "stdout, expected",
    [
        pytest.param("6", 6, id="existing"),
        pytest.param("", None, id="not found"),
    ],
)
def test_get_replicas(mock_run: MagicMock, stdout: str, expected: typing.Optional[int]):
    """
    arrange: given a StatefulSet that exists or not.
    act: when its replica count is read.
    assert: the desired replicas are returned, None when it does not exist.
    """
    mock_run.return_value = completed_process(stdout=stdout)

    assert cluster.Cluster().get_replicas("jenkins", "statefulset", "jenkins") == expected
    assert _command(mock_run) == [
        "kubectl",
        "get",
        "statefulset/jenkins",
        "--namespace",
        "jenkins",
        "--ignore-not-found",
        "--output=jsonpath={.spec.replicas}",
    ]



def test_scale_and_rollout_status(mock_run: MagicMock):
    """
    arrange: given a StatefulSet.
    act: when it is scaled and its rollout is awaited.
    assert: kubectl is called with the workload reference.
    """
    eks = cluster.Cluster()

    eks.scale("jenkins", "statefulset", "jenkins", 4)
    assert _command(mock_run) == [
        "kubectl",
        "scale",
        "statefulset/jenkins",
        "--namespace",
        "jenkins",
        "--replicas=4",
    ]
    eks.rollout_status("jenkins", "statefulset", "jenkins", timeout=120)
    assert "--timeout=120s" in _command(mock_run)
    assert mock_run.call_args.kwargs["timeout"] == 150


@pytest.mark.parametrize(
    "version, expected_tail",
    [
        pytest.param(None, ["--timeout", "10m"], id="latest"),
        pytest.param("5.1.0", ["--version", "5.1.0"], id="pinned"),
    ],
)
def test_helm_upgrade_install(
    mock_run: MagicMock, version: typing.Optional[str], expected_tail: list[str]
):
    """
    arrange: given a chart release.
    act: when it is installed.
    assert: helm installs or upgrades the release and waits for it.
    """
    cluster.Cluster().helm_upgrade_install(
        release="jenkins",
        chart="jenkins/jenkins",
        namespace="jenkins",
        values_file="/tmp/values.yaml",
        version=version,
    )

    command = _command(mock_run)
    assert command[:5] == ["helm", "upgrade", "--install", "jenkins", "jenkins/jenkins"]
    assert "--wait" in command
    assert command[-2:] == expected_tail


def test_helm_repo(mock_run: MagicMock):
    """
    arrange: given a chart repository.
    act: when it is added and updated.
    assert: helm is called with the repository.
    """
    eks = cluster.Cluster()

    eks.helm_repo_add("jenkins", "https://charts.jenkins.io")
    assert _command(mock_run) == [
        "helm",
        "repo",
        "add",
        "jenkins",
        "https://charts.jenkins.io",
        "--force-update",
    ]
    eks.helm_repo_update()
    assert _command(mock_run) == ["helm", "repo", "update"]
