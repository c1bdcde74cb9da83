"""Cluster client capability used by the installer."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable


class ClusterClient(ABC):
    """
    Everything the installer needs from the cluster and the package manager.

    Implementations raise ``ResourceNotFoundError`` when the target of a
    removal does not exist, ``ClusterCommandError`` for other failures and
    ``ApplyFailure`` when a release apply does not converge.
    """

    # -------------------------
    # NAMESPACES
    # -------------------------

    @abstractmethod
    def create_namespace_if_absent(self, namespace: str) -> None:
        """Declaratively ensure the namespace exists."""
        pass

    @abstractmethod
    def namespace_exists(self, namespace: str) -> bool:
        pass

    @abstractmethod
    def delete_namespace(self, namespace: str) -> None:
        pass

    # -------------------------
    # RELEASES
    # -------------------------

    @abstractmethod
    def ensure_chart_repository(self, name: str, url: str) -> None:
        """Register the chart repository and refresh its index."""
        pass

    @abstractmethod
    def list_releases(self, namespace: str) -> list[str]:
        pass

    @abstractmethod
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
        """Install or upgrade a release and block until it converges."""
        pass

    @abstractmethod
    def uninstall_release(self, name: str, namespace: str) -> None:
        pass

    # -------------------------
    # STORAGE
    # -------------------------

    @abstractmethod
    def list_persistent_claims(self, namespace: str) -> list[str]:
        pass

    @abstractmethod
    def delete_persistent_claims(self, names: Iterable[str], namespace: str) -> None:
        pass

    # -------------------------
    # INGRESS
    # -------------------------

    @abstractmethod
    def get_ingress_endpoint(self, namespace: str) -> str | None:
        """Hostname of the first ingress load balancer, else its IP, else None."""
        pass
