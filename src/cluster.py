# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Runner for the kubectl and helm command line tools."""

import logging
import shutil
import subprocess  # nosec B404
import typing

import yaml

from exceptions import CommandError

logger = logging.getLogger(__name__)

KUBECTL = "kubectl"
HELM = "helm"


class Cluster:
    """The EKS cluster as seen through kubectl and helm.

    Attrs:
        kubeconfig: Path to the kubeconfig file, the tools' default if None.
        context: The kubeconfig context to use, the current context if None.
    """

    def __init__(self, kubeconfig: str | None = None, context: str | None = None):
        """Construct a Cluster class.

        Args:
            kubeconfig: Path to the kubeconfig file.
            context: The kubeconfig context to use.
        """
        self.kubeconfig = kubeconfig
        self.context = context

    def _kubectl_args(self) -> list[str]:
        """Global kubectl arguments selecting the cluster.

        Returns:
            The kubectl connection arguments.
        """
        args = []
        if self.kubeconfig:
            args.extend(["--kubeconfig", self.kubeconfig])
        if self.context:
            args.extend(["--context", self.context])
        return args

    def _helm_args(self) -> list[str]:
        """Global helm arguments selecting the cluster.

        Returns:
            The helm connection arguments.
        """
        args = []
        if self.kubeconfig:
            args.extend(["--kubeconfig", self.kubeconfig])
        if self.context:
            args.extend(["--kube-context", self.context])
        return args

    def run(self, command: list[str], stdin: str | None = None, timeout: int = 600) -> str:
        """Run a command and return its standard output.

        Args:
            command: The command to execute.
            stdin: Text to pass on the standard input.
            timeout: Time in seconds to wait for the command to finish.

        Returns:
            The standard output of the command.

        Raises:
            CommandError: if the command could not be started or exited with non zero code.
        """
        logger.debug("Running %s", " ".join(command))
        try:
            proc = subprocess.run(  # nosec B603
                command,
                input=stdin,
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            raise CommandError(command, None, stderr=f"{command[0]} not found") from exc
        except subprocess.TimeoutExpired as exc:
            raise CommandError(command, None, stderr=f"timed out after {timeout}s") from exc
        if proc.returncode != 0:
            logger.error("%s exited with %s: %s", command[0], proc.returncode, proc.stderr)
            raise CommandError(command, proc.returncode, proc.stdout, proc.stderr)
        return proc.stdout

    def kubectl(self, *args: str, stdin: str | None = None, timeout: int = 600) -> str:
        """Run a kubectl subcommand against the cluster.

        Args:
            args: The kubectl subcommand and its arguments.
            stdin: Text to pass on the standard input.
            timeout: Time in seconds to wait for the command to finish.

        Returns:
            The standard output of kubectl.
        """
        return self.run([KUBECTL, *self._kubectl_args(), *args], stdin=stdin, timeout=timeout)

    def helm(self, *args: str, timeout: int = 900) -> str:
        """Run a helm subcommand against the cluster.

        Args:
            args: The helm subcommand and its arguments.
            timeout: Time in seconds to wait for the command to finish.

        Returns:
            The standard output of helm.
        """
        return self.run([HELM, *self._helm_args(), *args], timeout=timeout)

    @staticmethod
    def missing_binaries() -> list[str]:
        """Return the required command line tools missing from PATH.

        Returns:
            The names of the missing tools.
        """
        return [binary for binary in (KUBECTL, HELM) if shutil.which(binary) is None]

    def can_connect(self) -> bool:
        """Check whether the cluster API server answers.

        Returns:
            True if the API server is reachable, False otherwise.
        """
        try:
            self.kubectl("version", "--output=json", timeout=30)
        except CommandError as exc:
            logger.warning("Cluster not reachable, %s", exc)
            return False
        return True

    def has_csi_driver(self, name: str) -> bool:
        """Check whether a CSI driver is registered in the cluster.

        Args:
            name: The CSI driver name.

        Returns:
            True if the driver is registered, False otherwise.
        """
        try:
            self.kubectl("get", "csidriver", name, "--output=name", timeout=30)
        except CommandError as exc:
            if exc.exit_code is None:
                raise
            return False
        return True

    def apply(
        self, documents: typing.Iterable[typing.Mapping[str, typing.Any]], dry_run: str = ""
    ) -> str:
        """Apply Kubernetes objects.

        Args:
            documents: The objects to apply.
            dry_run: The kubectl dry run strategy, none if empty.

        Returns:
            The kubectl apply output.
        """
        manifest = yaml.safe_dump_all(list(documents), sort_keys=False)
        args = ["apply", "-f", "-"]
        if dry_run:
            args.append(f"--dry-run={dry_run}")
        return self.kubectl(*args, stdin=manifest)

    def apply_kustomize(self, url: str) -> str:
        """Apply a kustomization.

        Args:
            url: The kustomization directory or remote URL.

        Returns:
            The kubectl apply output.
        """
        return self.kubectl("apply", "-k", url)

    def get_pods(self, namespace: str, selector: str) -> list[dict[str, typing.Any]]:
        """List the pods matching a label selector.

        Args:
            namespace: The namespace to list pods in.
            selector: The label selector.

        Returns:
            The pod objects.
        """
        output = self.kubectl(
            "get", "pods", "--namespace", namespace, "--selector", selector, "--output=yaml"
        )
        return (yaml.safe_load(output) or {}).get("items", [])

    def get_replicas(self, namespace: str, kind: str, name: str) -> int | None:
        """Return the replica count a workload is set to.

        Args:
            namespace: The workload namespace.
            kind: The workload kind, e.g. statefulset.
            name: The workload name.

        Returns:
            The desired replica count, None if the workload does not exist.
        """
        output = self.kubectl(
            "get",
            f"{kind}/{name}",
            "--namespace",
            namespace,
            "--ignore-not-found",
            "--output=jsonpath={.spec.replicas}",
        )
        return int(output) if output.strip() else None

    def scale(self, namespace: str, kind: str, name: str, replicas: int) -> str:
        """Set the replica count of a workload.

        Args:
            namespace: The workload namespace.
            kind: The workload kind, e.g. statefulset.
            name: The workload name.
            replicas: The desired replica count.

        Returns:
            The kubectl scale output.
        """
        return self.kubectl(
            "scale", f"{kind}/{name}", "--namespace", namespace, f"--replicas={replicas}"
        )

    def rollout_status(self, namespace: str, kind: str, name: str, timeout: int = 600) -> str:
        """Wait for a workload rollout to complete.

        Args:
            namespace: The workload namespace.
            kind: The workload kind, e.g. statefulset.
            name: The workload name.
            timeout: Time in seconds to wait for the rollout.

        Returns:
            The kubectl rollout status output.
        """
        return self.kubectl(
            "rollout",
            "status",
            f"{kind}/{name}",
            "--namespace",
            namespace,
            f"--timeout={timeout}s",
            timeout=timeout + 30,
        )

    def exec_read(self, namespace: str, pod: str, container: str, path: str) -> str:
        """Read a file from a running container.

        Args:
            namespace: The pod namespace.
            pod: The pod name.
            container: The container name.
            path: The file path inside the container.

        Returns:
            The file contents.
        """
        return self.kubectl(
            "exec", "--namespace", namespace, pod, "--container", container, "--", "cat", path
        )

    def helm_repo_add(self, name: str, url: str) -> str:
        """Add a chart repository.

        Args:
            name: The local repository name.
            url: The repository URL.

        Returns:
            The helm output.
        """
        return self.helm("repo", "add", name, url, "--force-update")

    def helm_repo_update(self) -> str:
        """Refresh the chart repository indexes.

        Returns:
            The helm output.
        """
        return self.helm("repo", "update")

    def helm_upgrade_install(
        self,
        release: str,
        chart: str,
        namespace: str,
        values_file: str,
        version: str | None = None,
    ) -> str:
        """Install or upgrade a chart release.

        Args:
            release: The release name.
            chart: The chart reference.
            namespace: The release namespace.
            values_file: Path to the values file.
            version: The chart version, latest if None.

        Returns:
            The helm output.
        """
        args = [
            "upgrade",
            "--install",
            release,
            chart,
            "--namespace",
            namespace,
            "--create-namespace",
            "--values",
            values_file,
            "--wait",
            "--timeout",
            "10m",
        ]
        if version:
            args.extend(["--version", version])
        return self.helm(*args)
