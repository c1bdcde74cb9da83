# langlab/infrastructure/memory/cluster.py

from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Iterable

from langlab.core.cluster import ClusterClient
from langlab.core.errors import ApplyFailure, ResourceNotFoundError


@dataclass
class ReleaseRecord:
    name: str
    chart: str
    namespace: str
    values: str
    version: str | None
    debug: bool


class InMemoryClusterClient(ClusterClient):
    """Dict-backed cluster that records every call in order."""

    def __init__(self):
        self.namespaces: set[str] = set()
        self.releases: dict[str, dict[str, ReleaseRecord]] = {}
        self.claims: dict[str, set[str]] = {}
        self.ingress: dict[str, list[str | None]] = {}
        self.repositories: dict[str, str] = {}
        self.fail_apply: dict[str, str] = {}
        self.calls: list[tuple] = []
        self._lock = Lock()

    # -------------------------
    # NAMESPACES
    # -------------------------

    def create_namespace_if_absent(self, namespace: str) -> None:
        self.calls.append(("create_namespace_if_absent", namespace))
        with self._lock:
            self.namespaces.add(namespace)
            self.releases.setdefault(namespace, {})
            self.claims.setdefault(namespace, set())

    def namespace_exists(self, namespace: str) -> bool:
        self.calls.append(("namespace_exists", namespace))
        return namespace in self.namespaces

    def delete_namespace(self, namespace: str) -> None:
        self.calls.append(("delete_namespace", namespace))
        with self._lock:
            if namespace not in self.namespaces:
                raise ResourceNotFoundError(
                    ["delete", "namespace", namespace], 1, f'namespaces "{namespace}" not found'
                )
            self.namespaces.discard(namespace)
            self.releases.pop(namespace, None)
            self.claims.pop(namespace, None)

    # -------------------------
    # RELEASES
    # -------------------------

    def ensure_chart_repository(self, name: str, url: str) -> None:
        self.calls.append(("ensure_chart_repository", name, url))
        self.repositories[name] = url

    def list_releases(self, namespace: str) -> list[str]:
        self.calls.append(("list_releases", namespace))
        return list(self.releases.get(namespace, {}))

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
        self.calls.append(("apply_release", name, namespace))

        if name in self.fail_apply:
            raise ApplyFailure(name, self.fail_apply[name])

        # Snapshot the values file as it was at apply time
        values = Path(values_path).read_text(encoding="utf-8")

        with self._lock:
            self.releases.setdefault(namespace, {})[name] = ReleaseRecord(
                name=name,
                chart=chart,
                namespace=namespace,
                values=values,
                version=version,
                debug=debug,
            )

    def uninstall_release(self, name: str, namespace: str) -> None:
        self.calls.append(("uninstall_release", name, namespace))
        with self._lock:
            releases = self.releases.get(namespace, {})
            if name not in releases:
                raise ResourceNotFoundError(
                    ["uninstall", name], 1, f"Error: uninstall: Release not loaded: {name}: release: not found"
                )
            del releases[name]

    # -------------------------
    # STORAGE
    # -------------------------

    def list_persistent_claims(self, namespace: str) -> list[str]:
        self.calls.append(("list_persistent_claims", namespace))
        return sorted(self.claims.get(namespace, set()))

    def delete_persistent_claims(self, names: Iterable[str], namespace: str) -> None:
        names = list(names)
        self.calls.append(("delete_persistent_claims", tuple(names), namespace))
        with self._lock:
            existing = self.claims.get(namespace, set())
            for name in names:
                existing.discard(name)

    # -------------------------
    # INGRESS
    # -------------------------

    def get_ingress_endpoint(self, namespace: str) -> str | None:
        """Pops the next scripted answer; the last one repeats."""
        self.calls.append(("get_ingress_endpoint", namespace))
        answers = self.ingress.get(namespace)
        if not answers:
            return None
        if len(answers) > 1:
            return answers.pop(0)
        return answers[0]

    # -------------------------
    # INSPECTION
    # -------------------------

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def applied_releases(self) -> list[str]:
        return [call[1] for call in self.calls if call[0] == "apply_release"]
