# langlab/infrastructure/kubernetes/client.py
"""Cluster client backed by the helm and kubectl command line tools."""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from langlab.core.cluster import ClusterClient
from langlab.core.errors import ApplyFailure, ClusterCommandError, ResourceNotFoundError

logger = logging.getLogger(__name__)


NOT_FOUND_MARKERS = ("not found", "notfound")

INGRESS_HOSTNAME_PATH = "{.items[0].status.loadBalancer.ingress[0].hostname}"
INGRESS_IP_PATH = "{.items[0].status.loadBalancer.ingress[0].ip}"


@dataclass
class CommandResult:
    args: list[str]
    returncode: int
    stdout: str
    stderr: str


class CommandRunner:
    """Thin wrapper over subprocess.run, replaced in tests."""

    def run(self, args: Sequence[str], input: str | None = None) -> CommandResult:
        logger.debug(f"Executing: {' '.join(args)}")
        completed = subprocess.run(
            list(args),
            input=input,
            capture_output=True,
            text=True,
            check=False,
        )
        return CommandResult(
            args=list(args),
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )


class HelmKubectlClusterClient(ClusterClient):
    def __init__(
        self,
        runner: CommandRunner | None = None,
        helm: str = "helm",
        kubectl: str = "kubectl",
    ):
        self._runner = runner or CommandRunner()
        self._helm = helm
        self._kubectl = kubectl

    # -------------------------
    # NAMESPACES
    # -------------------------

    def create_namespace_if_absent(self, namespace: str) -> None:
        # Render the manifest client-side and apply it so an existing
        # namespace is left alone instead of failing the create
        manifest = self._check(
            [self._kubectl, "create", "namespace", namespace, "--dry-run=client", "-o", "yaml"]
        )
        self._check([self._kubectl, "apply", "-f", "-"], input=manifest.stdout)

    def namespace_exists(self, namespace: str) -> bool:
        result = self._runner.run([self._kubectl, "get", "namespace", namespace, "-o", "name"])
        return result.returncode == 0

    def delete_namespace(self, namespace: str) -> None:
        self._check([self._kubectl, "delete", "namespace", namespace, "--ignore-not-found"])

    # -------------------------
    # RELEASES
    # -------------------------

    def ensure_chart_repository(self, name: str, url: str) -> None:
        added = self._runner.run([self._helm, "repo", "add", name, url])
        if added.returncode != 0:
            # Usually "already exists"; the update below surfaces real problems
            logger.debug(f"helm repo add {name}: {added.stderr.strip()}")
        self._check([self._helm, "repo", "update"])

    def list_releases(self, namespace: str) -> list[str]:
        result = self._check([self._helm, "list", "-n", namespace, "-q"])
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def apply_release(
        self,
        name: str,
        chart: str,
        namespace: str,
        values_path: Path,
        version: str | None = None,
        wait_timeout: str = "30m",
        debug: bool = False,
        hide_notes: bool = False,
    ) -> None:
        args = [
            self._helm, "upgrade", "--install", name, chart,
            "--namespace", namespace,
            "--values", str(values_path),
            "--wait", "--timeout", wait_timeout,
        ]
        if hide_notes:
            args.append("--hide-notes")
        if version:
            args.extend(["--version", version])
        if debug:
            args.append("--debug")

        logger.info(f"Executing: {' '.join(args)}")
        result = self._runner.run(args)

        if result.stdout.strip():
            logger.info(result.stdout.rstrip())

        if result.returncode != 0:
            raise ApplyFailure(name, result.stderr.strip() or result.stdout.strip())

    def uninstall_release(self, name: str, namespace: str) -> None:
        self._check([self._helm, "uninstall", name, "-n", namespace])

    # -------------------------
    # STORAGE
    # -------------------------

    def list_persistent_claims(self, namespace: str) -> list[str]:
        result = self._check(
            [self._kubectl, "get", "pvc", "-n", namespace, "-o", "jsonpath={.items[*].metadata.name}"]
        )
        return result.stdout.split()

    def delete_persistent_claims(self, names: Iterable[str], namespace: str) -> None:
        names = list(names)
        if not names:
            return
        self._check(
            [self._kubectl, "delete", "pvc", *names, "-n", namespace, "--ignore-not-found"]
        )

    # -------------------------
    # INGRESS
    # -------------------------

    def get_ingress_endpoint(self, namespace: str) -> str | None:
        # Hostname on AWS ELB, IP on GKE / AKS / on-prem
        for jsonpath in (INGRESS_HOSTNAME_PATH, INGRESS_IP_PATH):
            result = self._runner.run(
                [self._kubectl, "get", "ingress", "-n", namespace, "-o", f"jsonpath={jsonpath}"]
            )
            if result.returncode == 0 and result.stdout.strip():
                return result.stdout.strip()
        return None

    # -------------------------
    # HELPERS
    # -------------------------

    def _check(self, args: list[str], input: str | None = None) -> CommandResult:
        result = self._runner.run(args, input=input)

        if result.returncode != 0:
            stderr = result.stderr or ""
            if any(marker in stderr.lower() for marker in NOT_FOUND_MARKERS):
                raise ResourceNotFoundError(args, result.returncode, stderr)
            raise ClusterCommandError(args, result.returncode, stderr)

        return result
