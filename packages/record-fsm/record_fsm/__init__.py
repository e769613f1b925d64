"""record-fsm - Declarative finite state machines attached to records."""
from __future__ import annotations

from record_fsm.adapter import AttributeAdapter, RecordAdapter
from record_fsm.config import MachineConfig
from record_fsm.events import Event, EventBuilder
from record_fsm.machine import Machine, MachineBuilder
from record_fsm.record import acts_as_state_machine
from record_fsm.states import State
from record_fsm.transitions import Transition
from record_fsm.types import (
    DefinitionError,
    InvalidState,
    NoInitialState,
    UndefinedState,
)
from record_fsm.validation import ValidationRule, Validations, ValidationScope

__all__ = [
    "AttributeAdapter",
    "RecordAdapter",
    "MachineConfig",
    "Event",
    "EventBuilder",
    "Machine",
    "MachineBuilder",
    "acts_as_state_machine",
    "State",
    "Transition",
    "DefinitionError",
    "InvalidState",
    "NoInitialState",
    "UndefinedState",
    "ValidationRule",
    "Validations",
    "ValidationScope",
]
