"""Transition definition and the firing protocol for a single edge."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from record_fsm.types import EventId, Guard, StateId

if TYPE_CHECKING:
    from record_fsm.adapter import RecordAdapter
    from record_fsm.machine import Machine
    from record_fsm.states import State


@dataclass(frozen=True, eq=False)
class Transition:
    """One directed edge ``source -> target``, optionally guarded.

    Identity is ``(source, target)``; the guard is not part of it.
    """

    source: StateId
    target: StateId
    guard: Guard | None = None

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Transition):
            return NotImplemented
        return self.source == other.source and self.target == other.target

    def __hash__(self) -> int:
        return hash((self.source, self.target))

    @property
    def loopback(self) -> bool:
        return self.source == self.target

    def allows(self, adapter: RecordAdapter, event: EventId | None = None) -> bool:
        """True if the record is valid and the guard (if any) passes."""
        if not adapter.is_valid(event):
            return False
        if self.guard is None:
            return True
        return bool(adapter.run_action(self.guard, event))

    def perform(
        self,
        adapter: RecordAdapter,
        machine: Machine,
        event: EventId | None = None,
    ) -> bool:
        """Move the record along this edge. Returns True if performed.

        Order: timestamps, enter(next), commit, entered(next), exit(old).
        Exit runs after the commit, so exit actions see the new state.
        A loopback commits and updates timestamps but runs no callbacks.
        """
        if not self.allows(adapter, event):
            return False

        current = adapter.current_state()
        loopback = current == self.target
        next_state = machine.states[self.target]
        old_state = machine.states[current]

        if machine.record_state_timestamps:
            update_timestamps(adapter, old_state)

        if not loopback:
            next_state.entering(adapter, event)

        adapter.commit_state(self.target)

        if not loopback:
            next_state.entered(adapter, event)
            old_state.exited(adapter, event)
        return True


def update_timestamps(adapter: RecordAdapter, exiting: State) -> None:
    """Stamp the lifecycle columns of the state being left.

    ``_created_*`` columns are written once; ``_updated_*`` every time.
    """
    adapter.write_timestamp_if_absent(f"{exiting.name}_created_at")
    adapter.write_timestamp_if_absent(f"{exiting.name}_created_on")
    adapter.write_timestamp_always(f"{exiting.name}_updated_at")
    adapter.write_timestamp_always(f"{exiting.name}_updated_on")
