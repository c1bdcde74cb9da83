# langlab/domain/components.py
"""Component definitions and dependency ordering."""

from dataclasses import dataclass, field
from typing import Iterable

from langlab.core.errors import InstallerError
from langlab.core.models import Component


@dataclass(frozen=True)
class ComponentDefinition:
    """How a component is packaged and what it depends on."""
    component: Component
    display_name: str
    release_name: str
    chart: str
    overlay_filename: str
    requires: frozenset[Component] = frozenset()
    persistent_claims: tuple[str, ...] = field(default_factory=tuple)
    hide_notes: bool = False


CORE_SERVICE = ComponentDefinition(
    component=Component.CORE_SERVICE,
    display_name="LangSmith",
    release_name="langsmith",
    chart="langchain/langsmith",
    overlay_filename="ls_config.yaml",
    persistent_claims=(
        "data-langsmith-clickhouse-0",
        "data-langsmith-postgres-0",
        "data-langsmith-redis-0",
    ),
    hide_notes=True,
)

PLATFORM_RUNTIME = ComponentDefinition(
    component=Component.PLATFORM_RUNTIME,
    display_name="LangGraph Platform",
    release_name="langgraph-cloud",
    chart="langchain/langgraph-cloud",
    overlay_filename="lgp_config.yaml",
    requires=frozenset({Component.CORE_SERVICE}),
    persistent_claims=("data-langgraph-cloud-postgres-0",),
)

COMPONENTS: dict[Component, ComponentDefinition] = {
    CORE_SERVICE.component: CORE_SERVICE,
    PLATFORM_RUNTIME.component: PLATFORM_RUNTIME,
}


def get_definition(component: Component) -> ComponentDefinition:
    return COMPONENTS[component]


def resolve_install_order(requested: Iterable[Component]) -> list[Component]:
    """
    Dependency closure of ``requested`` in install order.

    Dependencies always come before their dependents. Ties keep the
    declaration order of ``COMPONENTS``.

    Raises:
        InstallerError: If the requirements contain a cycle
    """
    order: list[Component] = []
    visiting = set()

    def visit(component: Component) -> None:
        if component in order:
            return
        if component in visiting:
            raise InstallerError(f"Dependency cycle at {component.value}")

        visiting.add(component)
        for dependency in sorted(COMPONENTS[component].requires, key=_declared_index):
            visit(dependency)
        visiting.discard(component)
        order.append(component)

    for component in sorted(set(requested), key=_declared_index):
        visit(component)

    return order


def teardown_order() -> list[Component]:
    """Dependents first, so nothing is left pointing at a removed release."""
    return list(reversed(resolve_install_order(COMPONENTS)))


def _declared_index(component: Component) -> int:
    return list(COMPONENTS).index(component)
