"""Transition resolution: (state, event) -> outcome, with no side effects."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union

from light_fsm.registry import StateRegistry
from light_fsm.types import Action, Event, StateId, Transition


class RejectReason(enum.Enum):
    NO_TRANSITION = "no_transition"
    FINAL_STATE = "final_state"
    GUARDS_EXHAUSTED = "guards_exhausted"


@dataclass(frozen=True, slots=True)
class Matched:
    target: StateId
    action: Action | None = None


@dataclass(frozen=True, slots=True)
class Rejected:
    reason: RejectReason


Resolution = Union[Matched, Rejected]


def resolve(
    registry: StateRegistry,
    current: StateId,
    prev: StateId | None,
    event: Event,
) -> Resolution:
    """Pick the transition an event triggers from ``current``.

    Candidates are tried in declared order; the first whose guard passes
    (or that has no guard) wins. A match whose target equals ``current``
    is still returned as Matched; the caller treats it as a no-op.

    Raises GuardNotFoundError if a named guard is not registered.
    """
    if registry.definition_of(current).final:
        return Rejected(RejectReason.FINAL_STATE)

    candidates = registry.transitions_for(current, event.type)
    if candidates is None:
        return Rejected(RejectReason.NO_TRANSITION)

    for transition in candidates:
        if _passes(registry, transition, current, prev, event):
            return Matched(transition.target, transition.action)
    return Rejected(RejectReason.GUARDS_EXHAUSTED)


def _passes(
    registry: StateRegistry,
    transition: Transition,
    current: StateId,
    prev: StateId | None,
    event: Event,
) -> bool:
    guard = transition.guard
    if guard is None:
        return True
    if isinstance(guard, str):
        return registry.guards.check(guard)
    return bool(guard(current, prev, event))
