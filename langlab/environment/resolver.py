# langlab/environment/resolver.py
"""Namespace derivation and environment assembly."""

import logging
import socket
from typing import Callable

from langlab.config.settings import OperatorConfig
from langlab.core.cluster import ClusterClient
from langlab.core.models import Environment

logger = logging.getLogger(__name__)


def namespace_from_host(host: str) -> str:
    """Lower-case the host name and turn every '.' into '-'."""
    return host.strip().lower().replace(".", "-")


class EnvironmentResolver:
    """Resolves the target namespace from the local host identity."""

    def __init__(
        self,
        cluster: ClusterClient,
        hostname_provider: Callable[[], str] | None = None,
    ):
        self._cluster = cluster
        self._hostname = hostname_provider or socket.gethostname

    def derive_namespace(self) -> str:
        namespace = namespace_from_host(self._hostname())
        logger.info(f"Using namespace: {namespace}")
        return namespace

    def resolve(self) -> str:
        """
        Derive the namespace and make sure it exists.

        Safe to call repeatedly: creation is declarative.
        """
        logger.info("Setting up namespace...")
        namespace = self.derive_namespace()

        if self._cluster.namespace_exists(namespace):
            logger.info(f"Namespace already exists: {namespace}")
            return namespace

        logger.info(f"Creating namespace: {namespace}")
        self._cluster.create_namespace_if_absent(namespace)
        logger.info(f"✅ Namespace created: {namespace}")
        return namespace

    def environment(self, namespace: str, operator: OperatorConfig) -> Environment:
        return Environment(
            namespace=namespace,
            admin_email=operator.admin_email,
            license_key=operator.license_key,
        )
