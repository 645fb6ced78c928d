"""Machine - transition façade and ordered action execution."""
from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, TypeVar

from light_fsm.guards import Guards
from light_fsm.reachability import check_unreachable_states
from light_fsm.registry import StateRegistry
from light_fsm.resolver import Matched, RejectReason, resolve
from light_fsm.store import Listener, Store
from light_fsm.types import (
    ActionArgs,
    ConfigurationError,
    Event,
    EventLike,
    FinalStateError,
    InvalidTransitionError,
    MachineConfig,
    SendResult,
    Snapshot,
    StateId,
    TransitionCascadeError,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")


class Machine:
    """A finite state machine instance owning one live Snapshot.

    The config is validated once here: unknown initial or target ids,
    unregistered named guards and (when ``strict``) unreachable states
    raise ConfigurationError. The initial state's entry action runs
    before the constructor returns.
    """

    def __init__(self, config: MachineConfig) -> None:
        if config.max_depth < 1:
            raise ConfigurationError(f"max_depth must be >= 1, got {config.max_depth}")
        if isinstance(config.guards, Guards):
            guards = config.guards.copy()
        else:
            guards = Guards(config.guards)
        self._config = config
        self._registry = StateRegistry(config, guards)
        if config.strict:
            check_unreachable_states(self._registry)

        self._label = f"FSM:{config.debug}" if config.debug else "FSM"
        self._depth = 0
        self._broken: ConfigurationError | None = None
        initial = self._registry.initial
        initial_def = self._registry.definition_of(initial)
        self._store: Store[Snapshot] = Store(
            Snapshot(value=initial, done=initial_def.final)
        )

        entry = initial_def.entry
        if entry is not None:
            args = ActionArgs(prev=None, next=initial, event=None, send=self.send)
            self._store.batch(lambda: self._nested(entry, args))

    # --- Read access ---

    @property
    def state(self) -> StateId:
        """Current state id."""
        return self._store.state.value

    @property
    def snapshot(self) -> Snapshot:
        """Current snapshot, reflecting the end of any cascade."""
        return self._store.state

    @property
    def done(self) -> bool:
        """True once the machine sits in a final state."""
        return self._store.state.done

    @property
    def config(self) -> MachineConfig:
        """The config this machine was built from."""
        return self._config

    @property
    def store(self) -> Store[Snapshot]:
        """Underlying snapshot store."""
        return self._store

    # --- Store passthrough ---

    def subscribe(self, listener: Listener[Snapshot]) -> Callable[[], None]:
        """Add a store listener. Returns a callable that removes it."""
        return self._store.subscribe(listener)

    def unsubscribe(self, listener: Listener[Snapshot]) -> None:
        """Remove a store listener."""
        self._store.unsubscribe(listener)

    def batch(self, fn: Callable[[], R]) -> R:
        """Run ``fn`` as one store batch: at most one notification."""
        return self._store.batch(fn)

    # --- Events ---

    def can(self, event: EventLike) -> bool:
        """Whether ``send(event)`` would change state right now. Runs no actions."""
        self._check_usable()
        event = Event.of(event)
        snapshot = self._store.state
        resolution = resolve(self._registry, snapshot.value, snapshot.prev, event)
        return isinstance(resolution, Matched) and resolution.target != snapshot.value

    def send(self, event: EventLike) -> SendResult:
        """Resolve an event and, on a state change, run exit, action and entry.

        Sends issued from inside those actions complete before this call
        returns; the whole cascade yields one store notification.
        """
        self._check_usable()
        event = Event.of(event)
        snapshot = self._store.state
        current = snapshot.value
        resolution = resolve(self._registry, current, snapshot.prev, event)

        if not isinstance(resolution, Matched):
            if resolution.reason is RejectReason.GUARDS_EXHAUSTED:
                logger.debug(
                    "%s guards rejected event %s in state %s",
                    self._label, event.type, current,
                )
            elif resolution.reason is RejectReason.FINAL_STATE:
                self._report(FinalStateError(current, event))
            else:
                self._report(InvalidTransitionError(current, event))
            return SendResult(changed=False, snapshot=snapshot)

        if resolution.target == current:
            logger.debug("%s self-transition on %s ignored in state %s",
                         self._label, event.type, current)
            return SendResult(changed=False, snapshot=snapshot)

        return self._store.batch(lambda: self._transition(current, resolution, event))

    def _transition(self, current: StateId, matched: Matched, event: Event) -> SendResult:
        target = matched.target
        current_def = self._registry.definition_of(current)
        target_def = self._registry.definition_of(target)

        self._store.set_state(
            value=target, prev=current, done=target_def.final, last_event=event
        )
        result = SendResult(changed=True, snapshot=self._store.state)
        logger.debug("%s %s -> %s (event: %s)", self._label, current, target, event.type)

        args = ActionArgs(prev=current, next=target, event=event, send=self.send)
        for action in (current_def.exit, matched.action, target_def.entry):
            if action is not None:
                self._nested(action, args)
        return result

    def _nested(self, action: Callable[[ActionArgs], Any], args: ActionArgs) -> None:
        if self._depth >= self._config.max_depth:
            self._broken = TransitionCascadeError(self._depth + 1)
            raise self._broken
        self._depth += 1
        try:
            action(args)
        finally:
            self._depth -= 1

    def _check_usable(self) -> None:
        if self._broken is not None:
            raise ConfigurationError(
                f"Machine is unusable after an earlier error: {self._broken}"
            ) from self._broken

    def _report(self, error: InvalidTransitionError) -> None:
        handler = self._config.handle_invalid_transition
        if handler is None:
            logger.debug("%s %s", self._label, error)
            return
        handler(error, error.state, error.event)


def create_machine(
    config: MachineConfig | Mapping[str, Any] | None = None, **kwargs: Any
) -> Machine:
    """Build a Machine from a MachineConfig, a mapping or keyword arguments."""
    if config is None:
        config = MachineConfig.from_mapping(kwargs)
    elif kwargs:
        raise TypeError("Pass either a config or keyword arguments, not both")
    elif not isinstance(config, MachineConfig):
        config = MachineConfig.from_mapping(config)
    return Machine(config)
