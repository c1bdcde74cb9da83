#langlab/core/state_machine.py

from langlab.core.errors import InvalidStateTransition
from langlab.core.models import InstallState, RunContext


ALLOWED_TRANSITIONS = {
    InstallState.NOT_STARTED: {
        InstallState.CORE_INSTALLING,
        InstallState.CORE_READY,  # core release already present
        InstallState.FAILED,
    },
    InstallState.CORE_INSTALLING: {
        InstallState.CORE_READY,
        InstallState.FAILED,
    },
    InstallState.CORE_READY: {
        InstallState.PLATFORM_INSTALLING,
        InstallState.CONVERGED,
        InstallState.FAILED,
    },
    InstallState.PLATFORM_INSTALLING: {
        InstallState.CONVERGED,
        InstallState.FAILED,
    },
}


class InstallStateMachine:
    @staticmethod
    def can_transition(current: InstallState, new_state: InstallState) -> bool:
        return new_state in ALLOWED_TRANSITIONS.get(current, set())

    @staticmethod
    def transition(ctx: RunContext, new_state: InstallState) -> RunContext:
        current = ctx.state

        if current == new_state:
            return ctx

        if not InstallStateMachine.can_transition(current, new_state):
            raise InvalidStateTransition(
                f"Cannot transition from {current.value} to {new_state.value}"
            )

        ctx.state = new_state
        return ctx
