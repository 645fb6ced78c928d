"""light-fsm - Synchronous finite state machines with ordered actions."""
from __future__ import annotations

from light_fsm.guards import Guards
from light_fsm.machine import Machine, create_machine
from light_fsm.store import Store
from light_fsm.types import (
    ActionArgs,
    ConfigurationError,
    Event,
    FinalStateError,
    FSMError,
    GuardNotFoundError,
    InvalidTransitionError,
    MachineConfig,
    SendResult,
    Snapshot,
    StateDef,
    Transition,
    TransitionCascadeError,
    UnreachableStatesError,
)

__all__ = [
    "create_machine",
    "Machine",
    "MachineConfig",
    "StateDef",
    "Transition",
    "Event",
    "ActionArgs",
    "Snapshot",
    "SendResult",
    "Guards",
    "Store",
    "FSMError",
    "ConfigurationError",
    "UnreachableStatesError",
    "GuardNotFoundError",
    "TransitionCascadeError",
    "InvalidTransitionError",
    "FinalStateError",
]
