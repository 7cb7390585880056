import pytest

from chat import ChatRelay
from conftest import messages_for, messages_of_type, types_for
from membership import MembershipController
from negotiation import NegotiationRouter
from outcomes import OutcomeStatus


@pytest.fixture
def membership(registry):
    chat = ChatRelay(registry)
    router = NegotiationRouter(lambda connection_id: True)
    return MembershipController(registry, chat, router, max_members=3)


def test_first_join_creates_room(membership, registry):
    outcome = membership.join("A", "r1")

    assert outcome.ok
    assert registry.get("r1").members == ["A"]
    assert registry.room_of("A") == "r1"
    assert types_for(outcome.deliveries, "A") == ["users_in_room", "chat_history"]
    assert messages_for(outcome.deliveries, "A")[0]["members"] == ["A"]
    assert messages_for(outcome.deliveries, "A")[1]["entries"] == []
    assert messages_of_type(outcome.deliveries, "offer_request") == []


def test_join_notifies_existing_members_in_order(membership):
    membership.join("A", "r1")
    outcome = membership.join("B", "r1")

    assert types_for(outcome.deliveries, "A") == ["users_in_room", "chat_message", "offer_request"]
    assert types_for(outcome.deliveries, "B") == ["users_in_room", "chat_history"]
    to_a = messages_for(outcome.deliveries, "A")
    assert to_a[0]["members"] == ["A", "B"]
    assert to_a[1]["from"] == "system"
    assert to_a[1]["content"] == "B joined"
    assert to_a[2] == {"type": "offer_request", "from": "B"}


def test_joiner_gets_backlog_without_its_own_join_notice(membership, registry):
    membership.join("A", "r1")
    membership.chat.send("A", "hello")
    outcome = membership.join("B", "r1")

    history = messages_for(outcome.deliveries, "B")[1]
    assert history["type"] == "chat_history"
    assert [(entry["sender"], entry["content"]) for entry in history["entries"]] == [
        ("system", "A joined"),
        ("A", "hello"),
    ]
    assert registry.get("r1").history[-1].content == "B joined"


def test_fourth_join_is_rejected(membership, registry):
    for member in ["A", "B", "C"]:
        membership.join(member, "r1")
    history_before = list(registry.get("r1").history)

    outcome = membership.join("D", "r1")

    assert outcome.status is OutcomeStatus.ROOM_FULL
    assert outcome.deliveries == [("D", {"type": "room_full", "roomId": "r1"})]
    assert registry.get("r1").members == ["A", "B", "C"]
    assert list(registry.get("r1").history) == history_before
    assert registry.room_of("D") is None


def test_duplicate_join_is_a_noop(membership, registry):
    membership.join("A", "r1")
    membership.join("B", "r1")
    history_size = len(registry.get("r1").history)

    outcome = membership.join("B", "r1")

    assert outcome.status is OutcomeStatus.DUPLICATE_JOIN
    assert outcome.deliveries == []
    assert registry.get("r1").members == ["A", "B"]
    assert len(registry.get("r1").history) == history_size


def test_member_of_full_room_rejoining_is_a_duplicate(membership):
    for member in ["A", "B", "C"]:
        membership.join(member, "r1")
    assert membership.join("C", "r1").status is OutcomeStatus.DUPLICATE_JOIN


@pytest.mark.parametrize("existing", [0, 1, 2])
def test_mesh_bootstrap_count(membership, existing):
    members = ["A", "B", "C"][:existing]
    for member in members:
        membership.join(member, "r1")

    outcome = membership.join("Z", "r1")

    requests = messages_of_type(outcome.deliveries, "offer_request")
    assert [target for target, _ in requests] == members
    assert all(message["from"] == "Z" for _, message in requests)


def test_leave_notifies_remaining_members(membership, registry):
    for member in ["A", "B", "C"]:
        membership.join(member, "r1")

    outcome = membership.leave("B")

    assert outcome.ok
    assert registry.get("r1").members == ["A", "C"]
    assert registry.room_of("B") is None
    for member in ["A", "C"]:
        chat, left, snapshot = messages_for(outcome.deliveries, member)
        assert chat["from"] == "system" and chat["content"] == "B left"
        assert left == {"type": "user_left", "participant": "B"}
        assert snapshot == {"type": "users_in_room", "members": ["A", "C"]}
    assert messages_for(outcome.deliveries, "B") == []


def test_leave_twice_is_idempotent(membership, registry):
    membership.join("A", "r1")
    membership.join("B", "r1")

    first = membership.leave("A")
    second = membership.leave("A")

    assert first.ok and len(first.deliveries) == 3
    assert second.status is OutcomeStatus.NOT_IN_ROOM
    assert second.deliveries == []
    assert registry.get("r1").members == ["B"]


def test_last_leave_destroys_room_and_history(membership, registry):
    membership.join("A", "r1")
    membership.chat.send("A", "note to self")

    outcome = membership.leave("A")

    assert outcome.ok
    assert outcome.deliveries == []
    assert registry.get("r1") is None

    membership.join("B", "r1")
    assert list(registry.get("r1").history)[0].content == "B joined"


def test_join_other_room_leaves_current_one(membership, registry):
    membership.join("A", "r1")
    membership.join("B", "r1")

    outcome = membership.join("B", "r2")

    assert outcome.ok
    assert registry.get("r1").members == ["A"]
    assert registry.get("r2").members == ["B"]
    assert registry.room_of("B") == "r2"
    assert types_for(outcome.deliveries, "A") == ["chat_message", "user_left", "users_in_room"]


def test_full_room_rejection_keeps_current_room(membership, registry):
    for member in ["A", "B", "C"]:
        membership.join(member, "r1")
    membership.join("D", "r2")

    outcome = membership.join("D", "r1")

    assert outcome.status is OutcomeStatus.ROOM_FULL
    assert registry.room_of("D") == "r2"
    assert registry.get("r2").members == ["D"]
