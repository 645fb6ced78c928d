"""Core data types and errors for the state machine engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Mapping, Union

StateId = str

if TYPE_CHECKING:
    from light_fsm.guards import Guards


@dataclass(frozen=True, slots=True)
class Event:
    """Trigger for a transition. ``payload`` is opaque to the engine."""

    type: str
    payload: Any = None

    @classmethod
    def of(cls, value: EventLike) -> Event:
        """Normalize a bare tag, an Event or a ``{"type": ...}`` mapping."""
        if isinstance(value, Event):
            return value
        if isinstance(value, str):
            return cls(value)
        if isinstance(value, Mapping):
            if "type" not in value:
                raise TypeError(f"Event mapping has no 'type' key: {value!r}")
            return cls(value["type"], value.get("payload"))
        raise TypeError(f"Cannot build an event from {type(value).__name__}")


EventLike = Union[Event, str, Mapping[str, Any]]


@dataclass(frozen=True, slots=True)
class ActionArgs:
    """Argument passed to entry, exit and transition actions."""

    prev: StateId | None
    next: StateId
    event: Event | None
    send: Callable[[EventLike], SendResult]


Action = Callable[[ActionArgs], None]
# Inline predicate: (current, prev, event) -> bool.
GuardFn = Callable[[StateId, Union[StateId, None], Event], bool]
GuardRef = Union[str, GuardFn]


@dataclass(frozen=True, slots=True)
class Transition:
    """One candidate edge. ``guard`` is a guard name or an inline predicate."""

    target: StateId
    guard: GuardRef | None = None
    action: Action | None = None


@dataclass(frozen=True)
class StateDef:
    """State definition. ``on`` values are normalized to tuples of Transition."""

    on: Mapping[str, Any] = field(default_factory=dict)
    final: bool = False
    entry: Action | None = None
    exit: Action | None = None


@dataclass(frozen=True)
class MachineConfig:
    """Declarative machine description. Never mutated after construction."""

    initial: StateId
    states: Mapping[StateId, Any]
    on: Mapping[str, Any] = field(default_factory=dict)
    guards: Mapping[str, bool | Callable[[], bool]] | Guards = field(default_factory=dict)
    handle_invalid_transition: Callable[[InvalidTransitionError, StateId, Event], None] | None = None
    debug: str | None = None
    strict: bool = True
    max_depth: int = 100

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> MachineConfig:
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigurationError(
                f"Unknown config keys: {', '.join(sorted(unknown))}"
            )
        if "initial" not in data or "states" not in data:
            raise ConfigurationError("Config requires 'initial' and 'states'")
        return cls(**data)


@dataclass(frozen=True, slots=True)
class Snapshot:
    value: StateId
    prev: StateId | None = None
    done: bool = False
    last_event: Event | None = None


@dataclass(frozen=True, slots=True)
class SendResult:
    changed: bool
    snapshot: Snapshot


# --- Errors ---


class FSMError(Exception):
    """Base class for all state machine errors."""


class ConfigurationError(FSMError):
    """Raised for config defects. The machine is unusable afterwards."""


class UnreachableStatesError(ConfigurationError):
    def __init__(self, states: tuple[StateId, ...]) -> None:
        self.states = states
        super().__init__(f"Unreachable states detected: {', '.join(states)}")


class GuardNotFoundError(ConfigurationError, KeyError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Guard not found: {name}")

    def __str__(self) -> str:
        return str(self.args[0])


class TransitionCascadeError(ConfigurationError):
    """Raised when reentrant sends nest deeper than ``max_depth``."""

    def __init__(self, depth: int) -> None:
        self.depth = depth
        super().__init__(f"Transition cascade too deep (depth {depth})")


class InvalidTransitionError(FSMError):
    """Reported (not raised) when an event has no transition in a state."""

    def __init__(self, state: StateId, event: Event, message: str | None = None) -> None:
        self.state = state
        self.event = event
        super().__init__(
            message or f"Event '{event.type}' not allowed in state '{state}'"
        )


class FinalStateError(InvalidTransitionError):
    """Reported (not raised) for any event sent while in a final state."""

    def __init__(self, state: StateId, event: Event) -> None:
        super().__init__(
            state, event, f"Cannot transition from final state '{state}'"
        )
