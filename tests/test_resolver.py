"""Tests for transition resolution."""
import pytest
from light_fsm import Event, GuardNotFoundError, Guards, MachineConfig
from light_fsm.registry import StateRegistry
from light_fsm.resolver import Matched, Rejected, RejectReason, resolve


def _registry(guards=None, **kwargs):
    return StateRegistry(MachineConfig(**kwargs), Guards(guards or {}))


class TestResolve:
    """Test cases for resolve()."""

    def test_bare_target(self):
        """A bare target matches with no action."""
        registry = _registry(initial="a", states={"a": {"on": {"GO": "b"}}, "b": {}})

        assert resolve(registry, "a", None, Event("GO")) == Matched("b")

    def test_single_target_with_action(self):
        """The transition action is carried in the result."""
        # Arrange
        action = lambda args: None  # noqa: E731
        registry = _registry(
            initial="a",
            states={"a": {"on": {"GO": {"target": "b", "action": action}}}, "b": {}},
        )

        # Act
        result = resolve(registry, "a", None, Event("GO"))

        # Assert
        assert result == Matched("b", action)

    def test_no_transition(self):
        registry = _registry(initial="a", states={"a": {}})

        assert resolve(registry, "a", None, Event("GO")) == Rejected(RejectReason.NO_TRANSITION)

    def test_final_state_rejects_everything(self):
        """A final state rejects events even if its table declares them."""
        registry = _registry(
            initial="a",
            strict=False,
            states={"a": {"final": True, "on": {"GO": "b"}}, "b": {}},
            on={"GO": "b"},
        )

        assert resolve(registry, "a", None, Event("GO")) == Rejected(RejectReason.FINAL_STATE)

    def test_first_match_wins(self):
        """With several passing guards, the first declared one decides."""
        # Arrange
        registry = _registry(
            initial="a",
            guards={"g1": False, "g2": True, "g3": True},
            states={
                "a": {"on": {"GO": [
                    {"guard": "g1", "target": "t1"},
                    {"guard": "g2", "target": "t2"},
                    {"guard": "g3", "target": "t3"},
                ]}},
                "t1": {}, "t2": {}, "t3": {},
            },
        )

        # Act & Assert
        assert resolve(registry, "a", None, Event("GO")) == Matched("t2")

    def test_unguarded_fallback(self):
        """An entry without guard always passes."""
        registry = _registry(
            initial="a",
            guards={"g1": False},
            states={
                "a": {"on": {"GO": [{"guard": "g1", "target": "t1"}, "t3"]}},
                "t1": {}, "t3": {},
            },
        )

        assert resolve(registry, "a", None, Event("GO")) == Matched("t3")

    def test_guards_exhausted(self):
        """All guards failing and no fallback is GUARDS_EXHAUSTED."""
        registry = _registry(
            initial="a",
            guards={"g1": False, "g2": lambda: False},
            states={
                "a": {"on": {"GO": [
                    {"guard": "g1", "target": "t1"},
                    {"guard": "g2", "target": "t2"},
                ]}},
                "t1": {}, "t2": {},
            },
        )

        assert resolve(registry, "a", None, Event("GO")) == Rejected(RejectReason.GUARDS_EXHAUSTED)

    def test_single_guarded_target_rejected(self):
        registry = _registry(
            initial="a",
            states={"a": {"on": {"GO": {"target": "b", "guard": lambda c, p, e: False}}}, "b": {}},
        )

        assert resolve(registry, "a", None, Event("GO")) == Rejected(RejectReason.GUARDS_EXHAUSTED)

    def test_inline_guard_receives_current_prev_event(self):
        """Inline predicates are called with (current, prev, event)."""
        # Arrange
        calls = []

        def guard(current, prev, event):
            calls.append((current, prev, event))
            return True

        registry = _registry(
            initial="a",
            states={"a": {"on": {"GO": {"target": "b", "guard": guard}}}, "b": {}},
        )
        event = Event("GO", payload={"n": 1})

        # Act
        resolve(registry, "a", "z", event)

        # Assert
        assert calls == [("a", "z", event)]

    def test_predicate_guard_called_each_time(self):
        """Named predicate guards are evaluated on every resolution."""
        # Arrange
        flag = {"value": False}
        registry = _registry(
            initial="a",
            guards={"flag": lambda: flag["value"]},
            states={"a": {"on": {"GO": {"target": "b", "guard": "flag"}}}, "b": {}},
        )

        # Act & Assert
        assert isinstance(resolve(registry, "a", None, Event("GO")), Rejected)
        flag["value"] = True
        assert resolve(registry, "a", None, Event("GO")) == Matched("b")

    def test_later_guards_not_evaluated(self):
        """Evaluation stops at the first passing candidate."""
        # Arrange
        called = []
        registry = _registry(
            initial="a",
            states={
                "a": {"on": {"GO": [
                    {"target": "b", "guard": lambda c, p, e: called.append("first") or True},
                    {"target": "c", "guard": lambda c, p, e: called.append("second") or True},
                ]}},
                "b": {}, "c": {},
            },
        )

        # Act
        resolve(registry, "a", None, Event("GO"))

        # Assert
        assert called == ["first"]

    def test_self_target_still_matched(self):
        """A self-loop resolves as Matched; the caller decides it is inert."""
        registry = _registry(initial="a", states={"a": {"on": {"GO": "a"}}})

        assert resolve(registry, "a", None, Event("GO")) == Matched("a")

    def test_guard_removed_after_validation_raises(self):
        """Resolving a name the registry cannot find raises GuardNotFoundError."""
        # Arrange
        guards = Guards({"g": True})
        registry = StateRegistry(
            MachineConfig(
                initial="a",
                states={"a": {"on": {"GO": {"target": "b", "guard": "g"}}}, "b": {}},
            ),
            guards,
        )
        guards._guards.clear()

        # Act & Assert
        with pytest.raises(GuardNotFoundError):
            resolve(registry, "a", None, Event("GO"))
