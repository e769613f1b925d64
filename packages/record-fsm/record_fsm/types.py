"""Shared type aliases and errors for record state machines."""
from __future__ import annotations

from typing import Any, Callable, Iterable, Union

StateId = str
EventId = str

# A method name looked up on the record, or a callable taking the record.
Action = Union[str, Callable[[Any], Any]]
Guard = Action

# Activation predicate for validation rules: (record, in-flight event).
Condition = Callable[[Any, Union[EventId, None]], bool]


class DefinitionError(Exception):
    """Raised when a machine definition is malformed."""


class NoInitialState(DefinitionError):
    """Raised when a machine has no initial state, or it was never declared."""


class UndefinedState(DefinitionError):
    """Raised when a transition references a state that was never declared."""

    def __init__(self, event: EventId, state: StateId) -> None:
        self.event = event
        self.state = state
        super().__init__(f"Event {event!r} references undeclared state {state!r}")


class InvalidState(KeyError):
    """Raised when a query or a record names a state the machine does not know."""

    def __init__(self, states: Iterable[StateId]) -> None:
        self.states = tuple(states)
        super().__init__(f"Unknown state(s): {', '.join(map(repr, self.states))}")
