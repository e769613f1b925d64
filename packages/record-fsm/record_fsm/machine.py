"""Machine definition and the builder that declares it.

A ``MachineBuilder`` collects states and events; ``build()`` checks every
reference once and returns a read-only ``Machine`` that is shared by all
records of a type. Records are reached only through a ``RecordAdapter``.
"""
from __future__ import annotations

import sys
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping

from record_fsm.config import MachineConfig
from record_fsm.events import Event, EventBuilder
from record_fsm.states import State
from record_fsm.types import (
    Action,
    DefinitionError,
    EventId,
    InvalidState,
    NoInitialState,
    StateId,
    UndefinedState,
)
from record_fsm.validation import Validations, ValidationScope

if TYPE_CHECKING:
    from record_fsm.adapter import RecordAdapter
    from record_fsm.transitions import Transition

# Observer signature: (record, event, old_state, new_state).
TransitionCallback = Callable[[Any, EventId, StateId, StateId], None]


class Machine:
    """A built state machine. Read-only; safe to share between threads."""

    def __init__(
        self,
        config: MachineConfig,
        states: Mapping[StateId, State],
        events: Mapping[EventId, Event],
        validations: Validations,
        observers: Iterable[TransitionCallback] = (),
    ) -> None:
        self._config = config
        self._states = MappingProxyType(dict(states))
        self._events = MappingProxyType(dict(events))
        self._validations = validations
        self._observers = tuple(observers)

    # --- Definition ---

    @property
    def config(self) -> MachineConfig:
        return self._config

    @property
    def initial_state(self) -> StateId:
        return self._config.initial

    @property
    def column(self) -> str:
        return self._config.column

    @property
    def record_state_timestamps(self) -> bool:
        return self._config.record_state_timestamps

    @property
    def utc(self) -> bool:
        return self._config.utc

    @property
    def states(self) -> Mapping[StateId, State]:
        return self._states

    @property
    def events(self) -> Mapping[EventId, Event]:
        return self._events

    @property
    def transition_table(self) -> dict[EventId, tuple[Transition, ...]]:
        """Event name to its transitions, in declaration order."""
        return {name: event.transitions for name, event in self._events.items()}

    @property
    def validations(self) -> Validations:
        return self._validations

    def state_names(self) -> list[StateId]:
        """List all declared state names."""
        return list(self._states)

    def event(self, name: EventId) -> Event:
        """Look up an event. Raises KeyError if not defined."""
        return self._events[str(name)]

    # --- Record queries ---

    def current_state(self, adapter: RecordAdapter) -> StateId | None:
        """The record's state, or None before initialization.

        Raises InvalidState if the record holds a state this machine lacks.
        """
        state = adapter.current_state()
        if state is not None and state not in self._states:
            raise InvalidState([state])
        return state

    def is_in_state(self, adapter: RecordAdapter, name: StateId) -> bool:
        self._check_states([name])
        return self.current_state(adapter) == str(name)

    def next_states_for_event(
        self, name: EventId, adapter: RecordAdapter,
    ) -> list[Transition]:
        """Transitions the event could take from the record's current state."""
        return self.event(name).next_transitions(adapter)

    def next_state_for_event(
        self, name: EventId, adapter: RecordAdapter,
    ) -> StateId | None:
        """Target of the first candidate transition, ignoring guards."""
        candidates = self.next_states_for_event(name, adapter)
        return candidates[0].target if candidates else None

    def in_state(self, records: Iterable[Any], *names: StateId) -> list[Any]:
        """Records whose state column holds one of ``names``."""
        wanted = self._check_states(names)
        return [r for r in records if self._column_value(r) in wanted]

    def not_in_state(self, records: Iterable[Any], *names: StateId) -> list[Any]:
        """Records whose state column holds none of ``names``."""
        unwanted = self._check_states(names)
        return [r for r in records if self._column_value(r) not in unwanted]

    # --- Firing ---

    def initialize(self, adapter: RecordAdapter) -> bool:
        """Give an unset record the initial state and run its actions.

        Returns False (and does nothing) if the record already has a state.
        """
        if self.current_state(adapter) is not None:
            return False
        initial = self._states[self.initial_state]
        adapter.commit_state(initial.name)
        initial.entering(adapter)
        initial.entered(adapter)
        return True

    def fire(self, name: EventId, adapter: RecordAdapter) -> bool:
        """Fire an event against a record. Returns True if a transition ran.

        When nothing fires, any tentative change to the state field is
        rolled back so the record's state stays as last committed. An
        unknown tentative value matches no transition and is rolled back too.
        Exceptions from guards and actions propagate unchanged.
        """
        event = self.event(name)
        old = adapter.current_state()
        if not event.fire(adapter, self):
            adapter.rollback_state()
            return False
        self._notify(adapter.record, event.name, old, adapter.current_state())
        return True

    # --- Internal helpers ---

    def _check_states(self, names: Iterable[StateId]) -> set[StateId]:
        wanted = [str(n) for n in names]
        unknown = [n for n in wanted if n not in self._states]
        if unknown:
            raise InvalidState(unknown)
        return set(wanted)

    def _column_value(self, record: Any) -> StateId | None:
        value = getattr(record, self.column, None)
        return None if value is None else str(value)

    def _notify(
        self, record: Any, event: EventId, old: StateId | None, new: StateId | None,
    ) -> None:
        """Fire transition observers with error isolation."""
        for cb in self._observers:
            try:
                cb(record, event, old, new)
            except Exception:
                print(
                    f"record-fsm: on_transition callback error: {sys.exc_info()[1]}",
                    file=sys.stderr,
                )


class MachineBuilder:
    """Declares the states and events of a machine.

    Example::

        orders = MachineBuilder(initial="open")
        orders.state("open")
        orders.state("closed", enter="notify_customer")
        with orders.event("close") as event:
            event.transitions(to="closed", from_="open")
        machine = orders.build()
    """

    def __init__(self, config: MachineConfig | None = None, **options: Any) -> None:
        if config is None:
            config = MachineConfig(**options)
        elif options:
            raise TypeError("Pass either a MachineConfig or keyword options, not both")
        self._config = config
        self._states: dict[StateId, State] = {}
        self._events: dict[EventId, Event] = {}
        self._observers: list[TransitionCallback] = []
        self._validations = Validations()
        self._machine: Machine | None = None

    @property
    def config(self) -> MachineConfig:
        return self._config

    @property
    def validations(self) -> Validations:
        return self._validations

    def state(
        self,
        name: StateId,
        enter: Action | None = None,
        after: Action | Iterable[Action] | None = None,
        exit: Action | None = None,
        validate: Callable[[ValidationScope], None] | None = None,
    ) -> State:
        """Declare a state. ``validate`` receives a scope bound to it."""
        self._check_open()
        name = str(name)
        if name in self._states:
            raise DefinitionError(f"State {name!r} is already declared")
        state = State(name=name, enter=enter, after=_as_actions(after), exit=exit)
        self._states[name] = state
        if validate is not None:
            validate(ValidationScope(self._validations, name, None, self._config.column))
        return state

    def event(self, name: EventId, **options: Any) -> EventBuilder:
        """Start declaring an event; use the result as a ``with`` block."""
        self._check_open()
        name = str(name)
        if name in self._events:
            raise DefinitionError(f"Event {name!r} is already declared")
        return EventBuilder(
            name, options, self._validations, self._register_event, self._config.column,
        )

    def on_transition(self, callback: TransitionCallback) -> None:
        """Call ``callback(record, event, old, new)`` after each fired event."""
        self._check_open()
        self._observers.append(callback)

    def build(self) -> Machine:
        """Check the definition and return the machine. Idempotent."""
        if self._machine is not None:
            return self._machine
        if self._config.initial not in self._states:
            raise NoInitialState(
                f"Initial state {self._config.initial!r} is not a declared state"
            )
        for event in self._events.values():
            for transition in event.transitions:
                for ref in (transition.source, transition.target):
                    if ref not in self._states:
                        raise UndefinedState(event.name, ref)
        self._machine = Machine(
            self._config, self._states, self._events, self._validations, self._observers,
        )
        return self._machine

    def _register_event(self, event: Event) -> None:
        self._check_open()
        if event.name in self._events:
            raise DefinitionError(f"Event {event.name!r} is already declared")
        self._events[event.name] = event

    def _check_open(self) -> None:
        if self._machine is not None:
            raise RuntimeError("Machine is already built")


def _as_actions(actions: Action | Iterable[Action] | None) -> tuple[Action, ...]:
    if actions is None:
        return ()
    if isinstance(actions, str) or callable(actions):
        return (actions,)
    return tuple(actions)
