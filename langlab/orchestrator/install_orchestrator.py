# langlab/orchestrator/install_orchestrator.py
"""Install orchestrator - applies components in dependency order."""

import logging
from pathlib import Path
from typing import Callable

from langlab.config.settings import InstallerSettings
from langlab.core.cluster import ClusterClient
from langlab.core.errors import ApplyFailure, InstallerError
from langlab.core.models import Action, Component, InstallState, RunContext
from langlab.core.state_machine import InstallStateMachine
from langlab.credentials.generator import SecretMaterialGenerator
from langlab.domain.components import ComponentDefinition, get_definition, resolve_install_order
from langlab.overlay.builder import OverlayBuilder
from langlab.readiness.poller import ReadinessPoller
from langlab.teardown.reconciler import TeardownReport, UninstallReconciler

logger = logging.getLogger(__name__)


class InstallOrchestrator:
    """
    Drives one installer run.

    Flow for ``up``:
    1. Compute the dependency closure of the requested components
    2. For each component in order:
       a. Requested explicitly: always apply
       b. Only required by another component: apply when no release is
          present in the cluster, otherwise skip
    3. After the core service converges, poll for its endpoint and report

    ``down`` is delegated to the uninstall reconciler.
    """

    def __init__(
        self,
        cluster: ClusterClient,
        settings: InstallerSettings,
        builder: OverlayBuilder,
        generator: SecretMaterialGenerator,
        poller: ReadinessPoller,
        reconciler: UninstallReconciler,
        reporter: Callable[[RunContext], None] | None = None,
    ):
        self._cluster = cluster
        self._settings = settings
        self._builder = builder
        self._generator = generator
        self._poller = poller
        self._reconciler = reconciler
        self._reporter = reporter

    def run(self, ctx: RunContext) -> RunContext:
        if ctx.request.action == Action.DOWN:
            self.teardown(ctx)
            return ctx

        order = resolve_install_order(ctx.request.components)
        logger.info(f"Install order: {', '.join(get_definition(c).display_name for c in order)}")

        try:
            for component in order:
                if component == Component.CORE_SERVICE:
                    self._ensure_core(ctx)
                else:
                    self._install_platform(ctx)

            InstallStateMachine.transition(ctx, InstallState.CONVERGED)

        except InstallerError:
            InstallStateMachine.transition(ctx, InstallState.FAILED)
            raise

        return ctx

    def teardown(self, ctx: RunContext) -> TeardownReport:
        report = self._reconciler.reconcile(ctx.namespace)
        ctx.warnings.extend(report.warnings)
        return report

    # -------------------------
    # CORE SERVICE
    # -------------------------

    def _ensure_core(self, ctx: RunContext) -> None:
        definition = get_definition(Component.CORE_SERVICE)

        if not ctx.request.wants(Component.CORE_SERVICE):
            if self._is_installed(definition, ctx.namespace):
                logger.info(f"{definition.display_name} is already installed")
                InstallStateMachine.transition(ctx, InstallState.CORE_READY)
                return
            logger.warning(
                f"{definition.display_name} is not installed. "
                f"Installing {definition.display_name} first..."
            )

        self._install_core(ctx)

    def _install_core(self, ctx: RunContext) -> None:
        definition = get_definition(Component.CORE_SERVICE)
        InstallStateMachine.transition(ctx, InstallState.CORE_INSTALLING)

        values_path = self._builder.materialize_core_overlay(
            ctx,
            self._generator,
            include_platform_license=ctx.request.wants(Component.PLATFORM_RUNTIME),
        )
        self._apply(ctx, definition, values_path)
        InstallStateMachine.transition(ctx, InstallState.CORE_READY)

        endpoint = self._poller.poll(ctx.namespace, ctx)
        ctx.endpoint = self._poller.probe(endpoint)

        if self._reporter is not None:
            self._reporter(ctx)

    # -------------------------
    # PLATFORM RUNTIME
    # -------------------------

    def _install_platform(self, ctx: RunContext) -> None:
        definition = get_definition(Component.PLATFORM_RUNTIME)
        InstallStateMachine.transition(ctx, InstallState.PLATFORM_INSTALLING)

        values_path = self._builder.materialize_platform_overlay(ctx)
        self._apply(ctx, definition, values_path)

    # -------------------------
    # HELPERS
    # -------------------------

    def _is_installed(self, definition: ComponentDefinition, namespace: str) -> bool:
        return definition.release_name in self._cluster.list_releases(namespace)

    def _apply(self, ctx: RunContext, definition: ComponentDefinition, values_path: Path) -> None:
        logger.info(f"Installing {definition.display_name}...")

        if ctx.request.version:
            logger.info(f"Installing {definition.display_name} version: {ctx.request.version}")
        if ctx.request.debug:
            logger.info("Debug mode enabled")

        try:
            self._cluster.apply_release(
                name=definition.release_name,
                chart=definition.chart,
                namespace=ctx.namespace,
                values_path=values_path,
                version=ctx.request.version,
                wait_timeout=self._settings.apply_timeout,
                debug=ctx.request.debug,
                hide_notes=definition.hide_notes,
            )
        except ApplyFailure as e:
            logger.error(f"{definition.display_name} installation failed:\n{e.output}")
            raise

        ctx.applied.append(definition.component)
        logger.info(f"✅ {definition.display_name} installed successfully")
