"""Record adapter protocol and an attribute-backed implementation."""
from __future__ import annotations

import inspect
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Protocol

from record_fsm.types import Action, EventId, StateId

if TYPE_CHECKING:
    from record_fsm.machine import Machine

# Per-record attribute remembering the last committed state.
COMMITTED_ATTR = "_record_fsm_committed"


class RecordAdapter(Protocol):
    """Everything the engine needs from a record. It never touches storage."""

    @property
    def record(self) -> Any: ...

    def current_state(self) -> StateId | None: ...

    def commit_state(self, state: StateId) -> None: ...

    def rollback_state(self) -> None: ...

    def is_valid(self, event: EventId | None) -> bool: ...

    def run_action(self, action: Action, event: EventId | None) -> Any: ...

    def write_timestamp_if_absent(self, field: str) -> None: ...

    def write_timestamp_always(self, field: str) -> None: ...


class AttributeAdapter:
    """Adapter over a plain object whose state lives in an attribute.

    ``commit_state`` is the only place the state attribute is written by the
    engine. Assignments made by anything else are tentative: the committed
    value is kept alongside and ``rollback_state`` restores it.
    """

    def __init__(
        self,
        record: Any,
        machine: Machine,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._record = record
        self._machine = machine
        self._column = machine.column
        if clock is None:
            clock = _utc_now if machine.utc else datetime.now
        self._clock = clock

    @property
    def record(self) -> Any:
        return self._record

    def current_state(self) -> StateId | None:
        value = getattr(self._record, self._column, None)
        return None if value is None else str(value)

    def committed_state(self) -> StateId | None:
        return getattr(self._record, COMMITTED_ATTR, None)

    def commit_state(self, state: StateId) -> None:
        setattr(self._record, self._column, state)
        setattr(self._record, COMMITTED_ATTR, state)

    def rollback_state(self) -> None:
        """Restore the last committed state if a tentative value replaced it."""
        if not hasattr(self._record, COMMITTED_ATTR):
            return
        committed = self.committed_state()
        if self.current_state() != committed:
            setattr(self._record, self._column, committed)

    def is_valid(self, event: EventId | None) -> bool:
        check = getattr(self._record, "is_valid", None)
        if check is None:
            return self._machine.validations.valid(self._record, event)
        if _takes_event(check):
            return bool(check(event))
        return bool(check())

    def run_action(self, action: Action, event: EventId | None) -> Any:
        if isinstance(action, str):
            return getattr(self._record, action)()
        return action(self._record)

    def write_timestamp_if_absent(self, field: str) -> None:
        if hasattr(self._record, field) and getattr(self._record, field) is None:
            setattr(self._record, field, self._stamp(field))

    def write_timestamp_always(self, field: str) -> None:
        if hasattr(self._record, field):
            setattr(self._record, field, self._stamp(field))

    def _stamp(self, field: str) -> datetime | date:
        now = self._clock()
        return now.date() if field.endswith("_on") else now


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _takes_event(check: Callable[..., Any]) -> bool:
    """False for a record's zero-argument ``is_valid()``."""
    try:
        return bool(inspect.signature(check).parameters)
    except (TypeError, ValueError):
        return True
