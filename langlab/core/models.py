"""Core installer models."""

from dataclasses import dataclass, field
from enum import Enum


class Action(Enum):
    UP = "up"
    DOWN = "down"


class Component(Enum):
    """Installable components."""

    CORE_SERVICE = "CORE_SERVICE"
    PLATFORM_RUNTIME = "PLATFORM_RUNTIME"


ALL_COMPONENTS = frozenset(Component)


class InstallState(Enum):
    """Orchestrator state machine."""

    NOT_STARTED = "NOT_STARTED"
    CORE_INSTALLING = "CORE_INSTALLING"
    CORE_READY = "CORE_READY"
    PLATFORM_INSTALLING = "PLATFORM_INSTALLING"
    CONVERGED = "CONVERGED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class InstallationRequest:
    """Parsed command line request."""

    action: Action
    components: frozenset[Component]
    version: str | None = None
    debug: bool = False

    def __post_init__(self):
        # Teardown always targets every component
        if self.action == Action.DOWN and self.components != ALL_COMPONENTS:
            object.__setattr__(self, "components", ALL_COMPONENTS)

    def wants(self, component: Component) -> bool:
        return component in self.components


@dataclass(frozen=True)
class Environment:
    namespace: str
    admin_email: str
    license_key: str


@dataclass(frozen=True)
class SecretBundle:
    api_key_salt: str
    jwt_secret: str
    admin_password: str


@dataclass(frozen=True)
class Endpoint:
    """Externally reachable address of the core service ingress."""

    address: str
    pending: bool = False
    reachable: bool | None = None

    @classmethod
    def pending_for(cls, namespace: str) -> "Endpoint":
        return cls(
            address=f"<pending - run: kubectl get ingress -n {namespace}>",
            pending=True,
        )

    @property
    def url(self) -> str:
        return f"http://{self.address}"


@dataclass
class RunContext:
    """Per-invocation working state.

    Threaded through the orchestrator, builder and poller: the resolved
    environment, the secret bundle once generated, the current state and
    the warnings accumulated on the way.
    """

    request: InstallationRequest
    environment: Environment
    secrets: SecretBundle | None = None
    state: InstallState = InstallState.NOT_STARTED
    applied: list[Component] = field(default_factory=list)
    warnings: list[Exception] = field(default_factory=list)
    endpoint: Endpoint | None = None

    @property
    def namespace(self) -> str:
        return self.environment.namespace

    def warn(self, error: Exception) -> None:
        self.warnings.append(error)
