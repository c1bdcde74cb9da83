# langlab/teardown/reconciler.py
"""Uninstall reconciler - removes everything an installation created."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from langlab.config.settings import InstallerSettings
from langlab.core.cluster import ClusterClient
from langlab.core.errors import ClusterCommandError, ResourceNotFoundError, TeardownPartial
from langlab.domain.components import COMPONENTS, get_definition, teardown_order

logger = logging.getLogger(__name__)


@dataclass
class TeardownReport:
    namespace: str
    namespace_found: bool = True
    removed_releases: list[str] = field(default_factory=list)
    existing_claims: list[str] = field(default_factory=list)
    removed_files: list[Path] = field(default_factory=list)
    warnings: list[TeardownPartial] = field(default_factory=list)


class UninstallReconciler:
    """
    Reverses an installation.

    Order:
    1. Short-circuit if the namespace is gone
    2. Uninstall releases, dependents first
    3. Report existing persistent volume claims
    4. Delete the known claims by name
    5. Delete the namespace
    6. Delete the generated overlay files

    A step that finds nothing to remove is recorded as a warning and the
    sequence continues.
    """

    def __init__(self, cluster: ClusterClient, settings: InstallerSettings):
        self._cluster = cluster
        self._settings = settings

    def reconcile(self, namespace: str) -> TeardownReport:
        logger.info("Starting uninstallation of LangSmith and LangGraph Platform...")
        report = TeardownReport(namespace=namespace)

        if not self._cluster.namespace_exists(namespace):
            logger.warning(f"Namespace {namespace} does not exist. Nothing to uninstall.")
            report.namespace_found = False
            return report

        for component in teardown_order():
            self._uninstall(component, namespace, report)

        self._report_claims(namespace, report)
        self._delete_claims(namespace, report)
        self._delete_namespace(namespace, report)
        self._remove_overlays(report)

        logger.info("✅ Uninstallation completed successfully")
        return report

    # -------------------------
    # STEPS
    # -------------------------

    def _uninstall(self, component, namespace: str, report: TeardownReport) -> None:
        definition = get_definition(component)
        logger.info(f"Uninstalling {definition.display_name}...")

        try:
            self._cluster.uninstall_release(definition.release_name, namespace)
            report.removed_releases.append(definition.release_name)
        except ClusterCommandError as e:
            self._partial(
                report,
                f"uninstall {definition.release_name}",
                f"{definition.display_name} not found or already uninstalled ({e.stderr.strip() or e})",
            )

    def _report_claims(self, namespace: str, report: TeardownReport) -> None:
        logger.info("Listing Persistent Volume Claims...")

        try:
            report.existing_claims = self._cluster.list_persistent_claims(namespace)
        except ClusterCommandError as e:
            logger.info(f"No PVCs found ({e})")
            return

        if report.existing_claims:
            for claim in report.existing_claims:
                logger.info(f"  pvc/{claim}")
        else:
            logger.info("No PVCs found")

    def _delete_claims(self, namespace: str, report: TeardownReport) -> None:
        logger.info("Deleting Persistent Volume Claims...")
        claims = [
            claim
            for definition in COMPONENTS.values()
            for claim in definition.persistent_claims
        ]

        try:
            self._cluster.delete_persistent_claims(claims, namespace)
        except ClusterCommandError as e:
            self._partial(report, "delete persistent volume claims", str(e))

    def _delete_namespace(self, namespace: str, report: TeardownReport) -> None:
        logger.info(f"Deleting namespace: {namespace}")

        try:
            self._cluster.delete_namespace(namespace)
        except ResourceNotFoundError as e:
            self._partial(report, "delete namespace", str(e))

    def _remove_overlays(self, report: TeardownReport) -> None:
        logger.info("Removing configuration files...")

        for component in COMPONENTS:
            path = self._settings.overlay_path(component)
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                self._partial(report, f"remove {path.name}", str(e))
                continue
            report.removed_files.append(path)
            logger.info(f"Removed {path}")

    def _partial(self, report: TeardownReport, step: str, detail: str) -> None:
        warning = TeardownPartial(step, detail)
        logger.warning(str(warning))
        report.warnings.append(warning)
