"""Support inbox -- a conversation record driven by a state machine.

Demonstrates:
- Declaring states with enter / after / exit actions
- Events with several source states and a guard
- Validation rules scoped to one event
- Failed events leaving the record untouched
- Lifecycle timestamp columns and transition observers

Run: python -m examples.conversation
"""

from datetime import datetime

from record_fsm import MachineBuilder, acts_as_state_machine


# ---------------------------------------------------------------------------
# Machine
# ---------------------------------------------------------------------------

inbox = MachineBuilder(initial="needs_attention", column="state_machine")

inbox.state("needs_attention")
inbox.state("read", enter=lambda c: print(f"  notify: {c.subject!r} was read"))
inbox.state("closed", after="mark_closed", exit="mark_open")
inbox.state("awaiting_response")
inbox.state("junk")

with inbox.event("new_message") as event:
    event.transitions(to="needs_attention", from_=["read", "closed", "awaiting_response"])

with inbox.event("view") as event:
    event.transitions(to="read", from_=["needs_attention", "read"])

with inbox.event("reply") as event:
    event.transitions(to="awaiting_response", from_=["read", "closed"], guard="has_agent")

with inbox.event("close") as event:
    event.transitions(
        to="closed",
        from_=["read", "awaiting_response"],
        validate=lambda v: v.add("presence", "subject", message="closing needs a subject"),
    )

with inbox.event("junk") as event:
    event.transitions(to="junk", from_=["read", "closed", "awaiting_response"])

with inbox.event("unjunk") as event:
    event.transitions(to="closed", from_="junk")

inbox.on_transition(
    lambda c, event, old, new: print(f"  [{event}] {old} -> {new}")
)


# ---------------------------------------------------------------------------
# Record
# ---------------------------------------------------------------------------

@acts_as_state_machine(inbox)
class Conversation:
    def __init__(self, subject: str = "", agent: str | None = None) -> None:
        self.subject = subject
        self.agent = agent
        self.closed = False
        self.state_machine = None
        self.read_created_at: datetime | None = None
        self.read_updated_at: datetime | None = None

    def has_agent(self) -> bool:
        return self.agent is not None

    def mark_closed(self) -> None:
        self.closed = True

    def mark_open(self) -> None:
        self.closed = False


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> None:
    convo = Conversation(subject="")
    print(f"new conversation: {convo.current_state}")

    convo.view()

    print(f"reply without agent fired? {convo.reply()}")
    convo.agent = "sam"
    print(f"reply with agent fired? {convo.reply()}")

    print(f"close without subject fired? {convo.close()}")
    print(f"  errors: {convo.validation_errors('close')}")
    convo.subject = "Refund request"
    print(f"close with subject fired? {convo.close()} (closed flag: {convo.closed})")

    convo.new_message()
    convo.view()
    print(f"read first at {convo.read_created_at}, last left at {convo.read_updated_at}")

    inboxes = [convo, Conversation(subject="Hi"), Conversation(subject="Win $$$")]
    inboxes[2].view()
    inboxes[2].junk()
    waiting = Conversation.in_state(inboxes, "needs_attention")
    print(f"needs attention: {[c.subject for c in waiting]}")


if __name__ == "__main__":
    main()
