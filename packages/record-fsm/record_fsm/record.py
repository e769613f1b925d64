"""Class decorator that attaches a state machine to a record type."""
from __future__ import annotations

import functools
from datetime import datetime
from typing import Any, Callable, Iterable, TypeVar

from record_fsm.adapter import AttributeAdapter
from record_fsm.machine import Machine, MachineBuilder
from record_fsm.transitions import Transition
from record_fsm.types import EventId, StateId

T = TypeVar("T", bound=type)

# Class attribute naming the machine the class itself was decorated with.
MACHINE_ATTR = "_record_fsm_machine"


def acts_as_state_machine(
    definition: Machine | MachineBuilder,
    clock: Callable[[], datetime] | None = None,
) -> Callable[[T], T]:
    """Attach ``definition`` to a class.

    The class gains ``state_machine``, a ``current_state`` property, one
    ``is_<state>()`` predicate per state, one ``<event>()`` method per event
    (returning whether a transition was performed), validation helpers and
    ``in_state`` / ``not_in_state`` filters. Names defined in the class body
    are left alone; inherited ones are replaced, so a subclass can carry its
    own machine. After the class's own ``__init__``, a record without a state
    gets the initial one and runs its actions.

    A class-defined ``is_valid`` may take the in-flight event name
    (``is_valid(self, event=None)``) or no argument at all.
    """
    machine = definition.build() if isinstance(definition, MachineBuilder) else definition

    def adapter_for(record: Any) -> AttributeAdapter:
        return AttributeAdapter(record, machine, clock)

    def decorate(cls: T) -> T:
        def install(name: str, value: Any) -> None:
            if name not in vars(cls):
                setattr(cls, name, value)

        setattr(cls, MACHINE_ATTR, machine)
        install("state_machine", machine)
        install("current_state", property(lambda self: machine.current_state(adapter_for(self))))

        for state in machine.states:
            install(f"is_{state}", _predicate(machine, state, adapter_for))
        for event in machine.events:
            install(event, _firing_method(machine, event, adapter_for))

        def next_states_for_event(self: Any, event: EventId) -> list[Transition]:
            return machine.next_states_for_event(event, adapter_for(self))

        def next_state_for_event(self: Any, event: EventId) -> StateId | None:
            return machine.next_state_for_event(event, adapter_for(self))

        def validation_errors(self: Any, event: EventId | None = None) -> list[str]:
            return machine.validations.errors(self, event)

        def is_valid(self: Any, event: EventId | None = None) -> bool:
            return not self.validation_errors(event)

        def in_state(klass: type, records: Iterable[Any], *names: StateId) -> list[Any]:
            return machine.in_state(records, *names)

        def not_in_state(klass: type, records: Iterable[Any], *names: StateId) -> list[Any]:
            return machine.not_in_state(records, *names)

        install("next_states_for_event", next_states_for_event)
        install("next_state_for_event", next_state_for_event)
        install("validation_errors", validation_errors)
        install("is_valid", is_valid)
        install("in_state", classmethod(in_state))
        install("not_in_state", classmethod(not_in_state))

        original_init = cls.__init__

        @functools.wraps(original_init)
        def __init__(self: Any, *args: Any, **kwargs: Any) -> None:
            original_init(self, *args, **kwargs)
            if getattr(type(self), MACHINE_ATTR, None) is not machine:
                # A subclass with its own machine initializes the record.
                return
            adapter = adapter_for(self)
            if not machine.initialize(adapter):
                # Loaded with a state already set: that value is committed.
                adapter.commit_state(machine.current_state(adapter))

        cls.__init__ = __init__
        return cls

    return decorate


def _predicate(
    machine: Machine, state: StateId, adapter_for: Callable[[Any], AttributeAdapter],
) -> Callable[[Any], bool]:
    def predicate(self: Any) -> bool:
        return machine.is_in_state(adapter_for(self), state)

    predicate.__name__ = f"is_{state}"
    predicate.__doc__ = f"True if the record is in state {state!r}."
    return predicate


def _firing_method(
    machine: Machine, event: EventId, adapter_for: Callable[[Any], AttributeAdapter],
) -> Callable[[Any], bool]:
    def fire(self: Any) -> bool:
        return machine.fire(event, adapter_for(self))

    fire.__name__ = event
    fire.__doc__ = f"Fire {event!r}. Returns True if a transition was performed."
    return fire
