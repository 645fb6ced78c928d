"""Guards registry."""
from __future__ import annotations

from typing import Callable, Mapping, Union

from light_fsm.types import ConfigurationError, GuardNotFoundError

GuardValue = Union[bool, Callable[[], bool]]


class Guards:
    """Maps guard name strings to fixed booleans or zero-argument predicates.

    Booleans are stored as given and never re-evaluated. Predicates are
    called on every check.
    """

    def __init__(self, guards: Mapping[str, GuardValue] | None = None) -> None:
        self._guards: dict[str, GuardValue] = {}
        if guards:
            for name, value in guards.items():
                self.register(name, value)

    def register(self, name: str, value: GuardValue) -> None:
        """Register a named guard. Overwrites if already registered."""
        if not isinstance(value, bool) and not callable(value):
            raise ConfigurationError(
                f"Guard '{name}' must be a bool or a callable, "
                f"got {type(value).__name__}"
            )
        self._guards[name] = value

    def check(self, name: str) -> bool:
        """Evaluate a guard. Raises GuardNotFoundError if not registered."""
        try:
            value = self._guards[name]
        except KeyError:
            raise GuardNotFoundError(name) from None
        if isinstance(value, bool):
            return value
        return bool(value())

    def has(self, name: str) -> bool:
        """Check if guard name is registered."""
        return name in self._guards

    def names(self) -> list[str]:
        """List all registered guard names."""
        return list(self._guards)

    def copy(self) -> Guards:
        """Independent registry with the same guards."""
        return Guards(self._guards)
