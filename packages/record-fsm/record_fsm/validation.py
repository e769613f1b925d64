"""Validation rules whose activation can be scoped to a state or event.

The state machine never evaluates these rules on its own. A record's
``is_valid(event)`` consults them, and every transition guard consults
``is_valid``. A ``ValidationScope`` rewrites a rule's ``condition`` so the
rule only applies while the record is in one state (and, when bound to an
event, only while that event is being fired).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from record_fsm.types import Condition, EventId, StateId

# Validator signature: returns an error message, or None when satisfied.
Validator = Callable[..., "str | None"]


def _blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return len(value) == 0
    except TypeError:
        return False


def validate_presence(record: Any, *attributes: str) -> str | None:
    missing = [a for a in attributes if _blank(getattr(record, a, None))]
    if missing:
        return f"{', '.join(missing)} can't be blank"
    return None


def validate_absence(record: Any, *attributes: str) -> str | None:
    present = [a for a in attributes if not _blank(getattr(record, a, None))]
    if present:
        return f"{', '.join(present)} must be blank"
    return None


@dataclass(frozen=True)
class ValidationRule:
    """A registered call to a named validator."""

    validator: str
    args: tuple[Any, ...] = ()
    condition: Condition | None = None
    message: str | None = None

    def applies(self, record: Any, event: EventId | None) -> bool:
        return self.condition is None or bool(self.condition(record, event))


class Validations:
    """Maps validator names to callables and holds the rules added with them."""

    def __init__(self) -> None:
        self._validators: dict[str, Validator] = {
            "presence": validate_presence,
            "absence": validate_absence,
        }
        self._rules: list[ValidationRule] = []

    def define(self, name: str, fn: Validator) -> None:
        """Register a named validator. Overwrites if already registered."""
        self._validators[name] = fn

    def has(self, name: str) -> bool:
        """Check if validator name is registered."""
        return name in self._validators

    def add(
        self,
        validator: str,
        *args: Any,
        condition: Condition | None = None,
        message: str | None = None,
    ) -> ValidationRule:
        """Add a rule. Raises KeyError if the validator is not registered."""
        if validator not in self._validators:
            raise KeyError(validator)
        rule = ValidationRule(validator, tuple(args), condition, message)
        self._rules.append(rule)
        return rule

    def rules(self) -> list[ValidationRule]:
        """List all rules in the order they were added."""
        return list(self._rules)

    def errors(self, record: Any, event: EventId | None = None) -> list[str]:
        """Error messages of every active rule that fails."""
        errors: list[str] = []
        for rule in self._rules:
            if not rule.applies(record, event):
                continue
            error = self._validators[rule.validator](record, *rule.args)
            if error is not None:
                errors.append(rule.message or error)
        return errors

    def valid(self, record: Any, event: EventId | None = None) -> bool:
        return not self.errors(record, event)


@dataclass(frozen=True)
class ValidationScope:
    """Adds rules that only apply in ``state`` (and during ``event``, if set).

    ``column`` is the record attribute holding the current state.
    """

    validations: Validations = field(repr=False)
    state: StateId
    event: EventId | None = None
    column: str = "state"

    def active(self, record: Any, event: EventId | None) -> bool:
        current = getattr(record, self.column, None)
        if current is None or str(current) != self.state:
            return False
        if self.event is not None and event != self.event:
            return False
        return True

    def decorate(self, rule_name: str, options: Mapping[str, Any]) -> dict[str, Any]:
        """Return ``options`` with its condition conjoined with this scope."""
        decorated = dict(options)
        original: Condition | None = decorated.get("condition")

        def condition(record: Any, event: EventId | None) -> bool:
            if not self.active(record, event):
                return False
            return original is None or bool(original(record, event))

        decorated["condition"] = condition
        return decorated

    def add(self, rule_name: str, *args: Any, **options: Any) -> ValidationRule:
        """Register ``rule_name`` with a scoped condition."""
        return self.validations.add(rule_name, *args, **self.decorate(rule_name, options))
