"""StateRegistry - validated, read-only transition table."""
from __future__ import annotations

from types import MappingProxyType
from typing import Any, Iterator, Mapping

from light_fsm.guards import Guards
from light_fsm.types import (
    ConfigurationError,
    GuardNotFoundError,
    MachineConfig,
    StateDef,
    StateId,
    Transition,
)

_STATE_KEYS = frozenset({"on", "final", "entry", "exit"})
_TRANSITION_KEYS = frozenset({"target", "guard", "action"})

TransitionTable = Mapping[str, tuple[Transition, ...]]


class StateRegistry:
    """Normalized states, global transitions and guards of one machine.

    Construction fails with ConfigurationError if ``initial`` or any
    transition target is not a declared state, or if a named guard is
    not registered.
    """

    def __init__(self, config: MachineConfig, guards: Guards) -> None:
        if not isinstance(config.states, Mapping) or not config.states:
            raise ConfigurationError("Config 'states' must be a non-empty mapping")
        self._guards = guards
        self._states: dict[StateId, StateDef] = {}
        for state_id, definition in config.states.items():
            self._states[state_id] = self._normalize_state(state_id, definition)
        self._global = self._normalize_table(config.on or {}, "global 'on'")

        if config.initial not in self._states:
            raise ConfigurationError(f"Unknown initial state '{config.initial}'")
        self._initial = config.initial

        for where, table in self._tables():
            for event_type, candidates in table.items():
                for transition in candidates:
                    if transition.target not in self._states:
                        raise ConfigurationError(
                            f"Unknown target state '{transition.target}' "
                            f"for event '{event_type}' in {where}"
                        )

    @property
    def initial(self) -> StateId:
        return self._initial

    @property
    def guards(self) -> Guards:
        return self._guards

    @property
    def global_transitions(self) -> TransitionTable:
        return self._global

    def state_ids(self) -> list[StateId]:
        """All declared state ids in declaration order."""
        return list(self._states)

    def definition_of(self, state_id: StateId) -> StateDef:
        try:
            return self._states[state_id]
        except KeyError:
            raise ConfigurationError(f"Unknown state '{state_id}'") from None

    def transitions_for(
        self, state_id: StateId, event_type: str
    ) -> tuple[Transition, ...] | None:
        """Per-state candidates for an event, falling back to global ones."""
        candidates = self.definition_of(state_id).on.get(event_type)
        if candidates is None:
            candidates = self._global.get(event_type)
        return candidates

    # --- Normalization ---

    def _tables(self) -> Iterator[tuple[str, TransitionTable]]:
        for state_id, definition in self._states.items():
            yield f"state '{state_id}'", definition.on
        yield "global 'on'", self._global

    def _normalize_state(self, state_id: StateId, definition: Any) -> StateDef:
        if definition is None:
            definition = StateDef()
        elif isinstance(definition, Mapping):
            unknown = set(definition) - _STATE_KEYS
            if unknown:
                raise ConfigurationError(
                    f"Unknown keys in state '{state_id}': "
                    f"{', '.join(sorted(unknown))}"
                )
            definition = StateDef(**definition)
        elif not isinstance(definition, StateDef):
            raise ConfigurationError(
                f"State '{state_id}' must be a StateDef or a mapping, "
                f"got {type(definition).__name__}"
            )
        for name in ("entry", "exit"):
            fn = getattr(definition, name)
            if fn is not None and not callable(fn):
                raise ConfigurationError(
                    f"'{name}' of state '{state_id}' must be callable"
                )
        return StateDef(
            on=self._normalize_table(definition.on or {}, f"state '{state_id}'"),
            final=bool(definition.final),
            entry=definition.entry,
            exit=definition.exit,
        )

    def _normalize_table(self, table: Mapping[str, Any], where: str) -> TransitionTable:
        normalized: dict[str, tuple[Transition, ...]] = {}
        for event_type, spec in table.items():
            if spec is None:
                continue
            normalized[event_type] = self._normalize_spec(spec, f"{where}, event '{event_type}'")
        return MappingProxyType(normalized)

    def _normalize_spec(self, spec: Any, where: str) -> tuple[Transition, ...]:
        if isinstance(spec, (list, tuple)):
            if not spec:
                raise ConfigurationError(f"Empty transition list in {where}")
            return tuple(self._normalize_transition(entry, where) for entry in spec)
        return (self._normalize_transition(spec, where),)

    def _normalize_transition(self, entry: Any, where: str) -> Transition:
        if isinstance(entry, str):
            return Transition(entry)
        if isinstance(entry, Mapping):
            unknown = set(entry) - _TRANSITION_KEYS
            if unknown:
                raise ConfigurationError(
                    f"Unknown transition keys in {where}: {', '.join(sorted(unknown))}"
                )
            if "target" not in entry:
                raise ConfigurationError(f"Transition without 'target' in {where}")
            entry = Transition(**entry)
        elif not isinstance(entry, Transition):
            raise ConfigurationError(
                f"Invalid transition in {where}: {entry!r}"
            )

        guard = entry.guard
        if isinstance(guard, str):
            if not self._guards.has(guard):
                raise GuardNotFoundError(guard)
        elif guard is not None and not callable(guard):
            raise ConfigurationError(f"Guard in {where} must be a name or a callable")
        if entry.action is not None and not callable(entry.action):
            raise ConfigurationError(f"Action in {where} must be callable")
        return entry
