"""Static reachability check over the transition graph."""
from __future__ import annotations

from collections import deque

from light_fsm.registry import StateRegistry
from light_fsm.types import StateId, UnreachableStatesError


def reachable_states(registry: StateRegistry) -> set[StateId]:
    """Breadth-first walk from the initial state.

    Guards are ignored: every listed target counts as an edge. Global
    transitions are edges out of every reached non-final state. Final
    states have no outgoing edges since they accept no events.
    """
    global_targets = [
        t.target
        for candidates in registry.global_transitions.values()
        for t in candidates
    ]
    seen = {registry.initial}
    pending = deque([registry.initial])
    while pending:
        state_id = pending.popleft()
        definition = registry.definition_of(state_id)
        if definition.final:
            continue
        local_targets = [
            t.target for candidates in definition.on.values() for t in candidates
        ]
        for target in (*local_targets, *global_targets):
            if target not in seen:
                seen.add(target)
                pending.append(target)
    return seen


def check_unreachable_states(registry: StateRegistry) -> None:
    """Raise UnreachableStatesError listing every unreachable state.

    States are listed in declaration order.
    """
    seen = reachable_states(registry)
    unreachable = tuple(s for s in registry.state_ids() if s not in seen)
    if unreachable:
        raise UnreachableStatesError(unreachable)
