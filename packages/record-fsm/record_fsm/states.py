"""State definition."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from record_fsm.types import Action, EventId, StateId

if TYPE_CHECKING:
    from record_fsm.adapter import RecordAdapter


@dataclass(frozen=True)
class State:
    """A named state with optional lifecycle actions.

    ``enter`` runs before the state becomes current, every ``after`` action
    runs (in order) once it is current, and ``exit`` runs when a record
    leaves it. The state never touches the record's state field itself.
    """

    name: StateId
    enter: Action | None = None
    after: tuple[Action, ...] = ()
    exit: Action | None = None

    def entering(self, adapter: RecordAdapter, event: EventId | None = None) -> None:
        if self.enter is not None:
            adapter.run_action(self.enter, event)

    def entered(self, adapter: RecordAdapter, event: EventId | None = None) -> None:
        for action in self.after:
            adapter.run_action(action, event)

    def exited(self, adapter: RecordAdapter, event: EventId | None = None) -> None:
        if self.exit is not None:
            adapter.run_action(self.exit, event)
