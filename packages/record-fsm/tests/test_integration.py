"""Integration tests: a conversation inbox driven end to end."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from record_fsm import MachineBuilder, acts_as_state_machine


def build_conversation_class(notifications: list[tuple[str, str]]) -> type:
    inbox = MachineBuilder(initial="needs_attention", column="state_machine")
    inbox.state("needs_attention")
    inbox.state("read", enter=lambda c: notifications.append(("read", c.subject)))
    inbox.state("closed", after="mark_closed", exit="mark_open")
    inbox.state("awaiting_response")
    inbox.state("junk")

    with inbox.event("new_message") as event:
        event.transitions(to="needs_attention", from_=["read", "closed", "awaiting_response"])
    with inbox.event("view") as event:
        event.transitions(to="read", from_=["needs_attention", "read"])
    with inbox.event("reply") as event:
        event.transitions(to="awaiting_response", from_=["read", "closed"])
    with inbox.event("close") as event:
        event.transitions(
            to="closed", from_=["read", "awaiting_response"],
            validate=lambda v: v.add("presence", "subject"),
        )
    with inbox.event("junk") as event:
        event.transitions(to="junk", from_=["read", "closed", "awaiting_response"])
    with inbox.event("unjunk") as event:
        event.transitions(to="closed", from_="junk")

    inbox.on_transition(
        lambda c, event, old, new: notifications.append((event, f"{old}->{new}"))
    )

    @acts_as_state_machine(inbox, clock=lambda: datetime(2015, 2, 20, tzinfo=timezone.utc))
    class Conversation:
        def __init__(self, subject: str = "") -> None:
            self.subject = subject
            self.closed = False
            self.state_machine = None
            self.read_created_at = None
            self.read_updated_at = None

        def mark_closed(self) -> None:
            self.closed = True

        def mark_open(self) -> None:
            self.closed = False

    return Conversation


@pytest.fixture
def notifications() -> list[tuple[str, str]]:
    return []


@pytest.fixture
def Conversation(notifications: list[tuple[str, str]]) -> type:
    return build_conversation_class(notifications)


def test_full_lifecycle(Conversation: type, notifications: list[tuple[str, str]]) -> None:
    convo = Conversation(subject="Invoice #12")
    assert convo.is_needs_attention()

    assert convo.view()
    assert convo.is_read()
    assert notifications[0] == ("read", "Invoice #12")

    assert convo.reply()
    assert convo.close()
    assert convo.closed is True

    assert convo.new_message()
    assert convo.closed is False
    assert convo.state_machine == "needs_attention"

    assert [n for n in notifications if n[0] != "read"] == [
        ("view", "needs_attention->read"),
        ("reply", "read->awaiting_response"),
        ("close", "awaiting_response->closed"),
        ("new_message", "closed->needs_attention"),
    ]


def test_view_on_read_conversation_is_loopback(
    Conversation: type, notifications: list[tuple[str, str]],
) -> None:
    convo = Conversation(subject="Hello")
    convo.view()
    notifications.clear()

    assert convo.view() is True
    assert convo.is_read()
    # enter action skipped, observer still notified
    assert notifications == [("view", "read->read")]
    assert convo.read_created_at == datetime(2015, 2, 20, tzinfo=timezone.utc)


def test_close_requires_subject(Conversation: type) -> None:
    convo = Conversation()
    convo.view()

    assert convo.close() is False
    assert convo.is_read()
    assert convo.validation_errors("close") == ["subject can't be blank"]

    convo.subject = "Follow-up"
    assert convo.close() is True


def test_junk_and_unjunk(Conversation: type) -> None:
    convo = Conversation(subject="Buy now")
    convo.view()

    assert convo.junk()
    assert convo.new_message() is False
    assert convo.is_junk()
    assert convo.unjunk()
    assert convo.is_closed()
    assert convo.closed is True


def test_in_state_across_records(Conversation: type) -> None:
    convos = [Conversation(subject=s) for s in ("a", "b", "c")]
    convos[0].view()
    convos[2].view()
    convos[2].junk()

    assert Conversation.in_state(convos, "needs_attention") == [convos[1]]
    assert Conversation.in_state(convos, "read", "junk") == [convos[0], convos[2]]
    assert Conversation.not_in_state(convos, "junk") == [convos[0], convos[1]]
