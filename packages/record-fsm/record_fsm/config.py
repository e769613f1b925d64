"""Machine configuration dataclass."""
from __future__ import annotations

from dataclasses import dataclass

from record_fsm.types import NoInitialState, StateId


@dataclass(frozen=True)
class MachineConfig:
    """Immutable options given when a machine is declared.

    Attributes:
        initial: State assigned to records that have none. Required.
        column: Record attribute holding the current state.
        record_state_timestamps: Write ``{state}_created_at`` and friends
            when a record leaves a state.
        utc: Timestamp columns receive UTC times; local wall-clock otherwise.
    """

    initial: StateId | None = None
    column: str = "state"
    record_state_timestamps: bool = True
    utc: bool = True

    def __post_init__(self) -> None:
        if not self.initial:
            raise NoInitialState("A state machine requires an 'initial' state")
        if not self.column:
            raise ValueError("column must be non-empty")
        object.__setattr__(self, "initial", str(self.initial))
