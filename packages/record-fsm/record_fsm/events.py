"""Event definition and its defining block."""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping

from record_fsm.transitions import Transition
from record_fsm.types import EventId, Guard, StateId
from record_fsm.validation import ValidationScope

if TYPE_CHECKING:
    from record_fsm.adapter import RecordAdapter
    from record_fsm.machine import Machine
    from record_fsm.validation import Validations


@dataclass(frozen=True)
class Event:
    """A named, ordered group of transitions. First eligible one wins."""

    name: EventId
    transitions: tuple[Transition, ...]
    options: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def next_transitions(self, adapter: RecordAdapter) -> list[Transition]:
        """Transitions leaving the record's current state, in declaration order."""
        current = adapter.current_state()
        return [t for t in self.transitions if t.source == current]

    def fire(self, adapter: RecordAdapter, machine: Machine) -> bool:
        """Perform the first transition whose guard passes. False if none did."""
        for transition in self.next_transitions(adapter):
            if transition.perform(adapter, machine, self.name):
                return True
        return False


class EventBuilder:
    """Collects transitions for one event inside a ``with`` block.

    Leaving the block freezes the event and hands it to ``register``.
    If the block raises, nothing is registered.
    """

    def __init__(
        self,
        name: EventId,
        options: Mapping[str, Any],
        validations: Validations,
        register: Callable[[Event], None],
        column: str = "state",
    ) -> None:
        self._name = str(name)
        self._options = dict(options)
        self._validations = validations
        self._register = register
        self._column = column
        self._transitions: list[Transition] = []
        self._event: Event | None = None

    @property
    def name(self) -> EventId:
        return self._name

    @property
    def event(self) -> Event | None:
        """The frozen event, once the block has closed."""
        return self._event

    def transitions(
        self,
        to: StateId,
        from_: StateId | Iterable[StateId],
        guard: Guard | None = None,
        validate: Callable[[ValidationScope], None] | None = None,
    ) -> None:
        """Append one transition per source state.

        ``validate`` is called once per source with a ``ValidationScope``
        bound to ``(this event, source)``.
        """
        if self._event is not None:
            raise RuntimeError(f"Event {self._name!r} is frozen")
        sources = [from_] if isinstance(from_, str) else list(from_)
        for source in sources:
            self._transitions.append(
                Transition(source=str(source), target=str(to), guard=guard)
            )
            if validate is not None:
                validate(
                    ValidationScope(
                        self._validations, str(source), self._name, self._column,
                    )
                )

    def __enter__(self) -> EventBuilder:
        if self._event is not None:
            raise RuntimeError(f"Event {self._name!r} is frozen")
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if exc_type is not None:
            return
        self._event = Event(
            name=self._name,
            transitions=tuple(self._transitions),
            options=MappingProxyType(self._options),
        )
        self._register(self._event)
