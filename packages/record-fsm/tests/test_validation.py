"""Tests for Validations and ValidationScope."""
from __future__ import annotations

from types import SimpleNamespace

import pytest

from record_fsm import Validations, ValidationScope
from record_fsm.validation import validate_absence, validate_presence


class TestValidators:
    def test_presence(self) -> None:
        assert validate_presence(SimpleNamespace(subject="hi"), "subject") is None
        assert validate_presence(SimpleNamespace(subject="  "), "subject") == "subject can't be blank"
        assert validate_presence(SimpleNamespace(), "subject") == "subject can't be blank"
        assert validate_presence(SimpleNamespace(tags=[]), "tags") == "tags can't be blank"

    def test_presence_reports_all_missing(self) -> None:
        record = SimpleNamespace(a=None, b="x", c="")
        assert validate_presence(record, "a", "b", "c") == "a, c can't be blank"

    def test_absence(self) -> None:
        assert validate_absence(SimpleNamespace(reason=None), "reason") is None
        assert validate_absence(SimpleNamespace(reason="spam"), "reason") == "reason must be blank"

    def test_zero_is_present(self) -> None:
        assert validate_presence(SimpleNamespace(count=0), "count") is None


class TestValidations:
    def test_unconditional_rule(self) -> None:
        validations = Validations()
        validations.add("presence", "subject")

        assert validations.errors(SimpleNamespace(subject=None)) == ["subject can't be blank"]
        assert validations.valid(SimpleNamespace(subject="hello"))

    def test_custom_message(self) -> None:
        validations = Validations()
        validations.add("presence", "subject", message="needs a subject")
        assert validations.errors(SimpleNamespace(subject=None)) == ["needs a subject"]

    def test_condition_receives_record_and_event(self) -> None:
        seen = []
        validations = Validations()
        validations.add(
            "presence", "subject",
            condition=lambda record, event: seen.append(event) or event == "send",
        )
        record = SimpleNamespace(subject=None)

        assert validations.valid(record, "save")
        assert not validations.valid(record, "send")
        assert seen == ["save", "send"]

    def test_define_custom_validator(self) -> None:
        validations = Validations()
        validations.define(
            "positive",
            lambda record, attr: None if getattr(record, attr) > 0 else f"{attr} must be positive",
        )
        validations.add("positive", "quantity")

        assert validations.has("positive")
        assert validations.errors(SimpleNamespace(quantity=0)) == ["quantity must be positive"]

    def test_unknown_validator_raises(self) -> None:
        with pytest.raises(KeyError):
            Validations().add("uniqueness", "email")

    def test_rules_in_insertion_order(self) -> None:
        validations = Validations()
        validations.add("presence", "a")
        validations.add("absence", "b")
        assert [r.validator for r in validations.rules()] == ["presence", "absence"]


class TestValidationScope:
    def test_state_scope_only_applies_in_state(self) -> None:
        validations = Validations()
        ValidationScope(validations, "closed").add("presence", "reason")

        assert validations.valid(SimpleNamespace(state="open", reason=None))
        assert not validations.valid(SimpleNamespace(state="closed", reason=None))
        assert validations.valid(SimpleNamespace(state="closed", reason="done"))

    def test_state_scope_ignores_unset_state(self) -> None:
        validations = Validations()
        ValidationScope(validations, "closed").add("presence", "reason")
        assert validations.valid(SimpleNamespace(state=None, reason=None))

    def test_event_scope_requires_state_and_event(self) -> None:
        validations = Validations()
        ValidationScope(validations, "open", "close").add("presence", "reason")
        record = SimpleNamespace(state="open", reason=None)

        assert validations.valid(record)
        assert validations.valid(record, "archive")
        assert not validations.valid(record, "close")
        assert validations.valid(SimpleNamespace(state="closed", reason=None), "close")

    def test_caller_condition_is_conjoined(self) -> None:
        validations = Validations()
        scope = ValidationScope(validations, "open")
        scope.add("presence", "reason", condition=lambda record, event: record.strict)

        assert validations.valid(SimpleNamespace(state="open", reason=None, strict=False))
        assert not validations.valid(SimpleNamespace(state="open", reason=None, strict=True))
        assert validations.valid(SimpleNamespace(state="closed", reason=None, strict=True))

    def test_decorate_returns_new_options(self) -> None:
        scope = ValidationScope(Validations(), "open", "close")
        original = {"message": "why?"}

        decorated = scope.decorate("presence", original)

        assert original == {"message": "why?"}
        assert decorated["message"] == "why?"
        assert decorated["condition"](SimpleNamespace(state="open"), "close") is True
        assert decorated["condition"](SimpleNamespace(state="open"), None) is False

    def test_custom_column(self) -> None:
        validations = Validations()
        ValidationScope(validations, "closed", column="status").add("presence", "reason")

        assert not validations.valid(SimpleNamespace(status="closed", reason=None))
        assert validations.valid(SimpleNamespace(state="closed", reason=None))
