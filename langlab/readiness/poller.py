# langlab/readiness/poller.py
"""
Readiness Poller - waits for the core service ingress to get an address.

Best effort: an exhausted budget degrades to a pending endpoint instead
of failing the installation.
"""

import logging
import time
from typing import Callable

import requests

from langlab.core.cluster import ClusterClient
from langlab.core.errors import ClusterError, ReadinessTimeout
from langlab.core.models import Endpoint, RunContext

logger = logging.getLogger(__name__)


class ReadinessPoller:
    """
    Polls the cluster for the externally assigned ingress address.

    Schedule:
    - Waits ``initial_delay`` seconds once
    - Then up to ``max_attempts`` queries, ``interval`` seconds apart
    """

    def __init__(
        self,
        cluster: ClusterClient,
        initial_delay: float = 10.0,
        interval: float = 10.0,
        max_attempts: int = 30,
        probe_timeout: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize poller.

        Args:
            cluster: Cluster client used for ingress lookups
            initial_delay: Delay before the first query (seconds)
            interval: Delay between queries (seconds)
            max_attempts: Query budget
            probe_timeout: HTTP timeout for the reachability probe (seconds)
            sleep: Sleep function, replaced in tests
        """
        self._cluster = cluster
        self.initial_delay = initial_delay
        self.interval = interval
        self.max_attempts = max_attempts
        self.probe_timeout = probe_timeout
        self._sleep = sleep

    def poll(self, namespace: str, ctx: RunContext | None = None) -> Endpoint:
        """
        Wait for the ingress endpoint.

        Returns:
            First non-empty endpoint, or the pending sentinel once the
            budget is exhausted (recorded on ``ctx`` as a warning)
        """
        logger.info("Waiting for ingress to be ready...")
        self._sleep(self.initial_delay)

        for attempt in range(1, self.max_attempts + 1):
            address = self._query(namespace)

            if address:
                logger.info(f"✅ Ingress endpoint: {address}")
                return Endpoint(address=address)

            logger.info(
                f"Waiting for ingress endpoint... (attempt {attempt}/{self.max_attempts})"
            )
            if attempt < self.max_attempts:
                self._sleep(self.interval)

        timeout = ReadinessTimeout(namespace, self.max_attempts)
        logger.warning(str(timeout))
        if ctx is not None:
            ctx.warn(timeout)

        return Endpoint.pending_for(namespace)

    def _query(self, namespace: str) -> str | None:
        try:
            return self._cluster.get_ingress_endpoint(namespace)
        except ClusterError as e:
            logger.debug(f"Ingress lookup failed: {e}")
            return None

    def probe(self, endpoint: Endpoint) -> Endpoint:
        """
        Best-effort HTTP reachability check of a resolved endpoint.

        Returns:
            The endpoint with ``reachable`` filled in (None when pending)
        """
        if endpoint.pending:
            return endpoint

        try:
            response = requests.get(endpoint.url, timeout=self.probe_timeout)
            reachable = response.status_code < 500
        except requests.exceptions.RequestException as e:
            logger.debug(f"Endpoint probe failed: {e}")
            reachable = False

        return Endpoint(address=endpoint.address, pending=False, reachable=reachable)
