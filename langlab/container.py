#langlab/container.py

"""Dependency injection container - wires all services together."""

import time
from dataclasses import dataclass
from typing import Callable

from langlab.config.settings import InstallerSettings
from langlab.core.cluster import ClusterClient
from langlab.credentials.generator import SecretMaterialGenerator
from langlab.environment.resolver import EnvironmentResolver
from langlab.infrastructure.kubernetes.client import HelmKubectlClusterClient
from langlab.orchestrator.install_orchestrator import InstallOrchestrator
from langlab.overlay.builder import OverlayBuilder
from langlab.readiness.poller import ReadinessPoller
from langlab.report import print_connection_info
from langlab.teardown.reconciler import UninstallReconciler


@dataclass
class Container:
    settings: InstallerSettings
    cluster: ClusterClient
    resolver: EnvironmentResolver
    orchestrator: InstallOrchestrator


def build_container(
    settings: InstallerSettings | None = None,
    cluster: ClusterClient | None = None,
    hostname_provider: Callable[[], str] | None = None,
    generator: SecretMaterialGenerator | None = None,
    sleep: Callable[[float], None] = time.sleep,
    reporter=print_connection_info,
) -> Container:
    settings = settings or InstallerSettings()

    # ============================================
    # CLUSTER
    # ============================================

    cluster = cluster or HelmKubectlClusterClient()

    # ============================================
    # SERVICES
    # ============================================

    resolver = EnvironmentResolver(cluster, hostname_provider=hostname_provider)

    poller = ReadinessPoller(
        cluster,
        initial_delay=settings.readiness_initial_delay,
        interval=settings.readiness_interval,
        max_attempts=settings.readiness_max_attempts,
        probe_timeout=settings.probe_timeout,
        sleep=sleep,
    )

    orchestrator = InstallOrchestrator(
        cluster=cluster,
        settings=settings,
        builder=OverlayBuilder(settings),
        generator=generator or SecretMaterialGenerator(),
        poller=poller,
        reconciler=UninstallReconciler(cluster, settings),
        reporter=reporter,
    )

    return Container(
        settings=settings,
        cluster=cluster,
        resolver=resolver,
        orchestrator=orchestrator,
    )
