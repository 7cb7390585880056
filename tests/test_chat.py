from chat import ChatRelay
from outcomes import OutcomeStatus


def join(registry, room_id, *members):
    room = registry.get_or_create(room_id)
    for member in members:
        room.add_member(member)
        registry.bind(member, room_id)
    return room


def test_chat_from_unbound_connection_is_dropped(registry):
    relay = ChatRelay(registry)
    outcome = relay.send("ghost", "hello?")
    assert outcome.status is OutcomeStatus.NOT_IN_ROOM
    assert outcome.deliveries == []


def test_chat_reaches_everyone_but_the_sender(registry):
    room = join(registry, "r1", "A", "B", "C")
    relay = ChatRelay(registry)

    outcome = relay.send("C", "hi")

    assert outcome.ok
    assert sorted(target for target, _ in outcome.deliveries) == ["A", "B"]
    for _, message in outcome.deliveries:
        assert message["type"] == "chat_message"
        assert message["from"] == "C"
        assert message["content"] == "hi"
        assert message["timestamp"]
    assert [(entry.sender, entry.content) for entry in room.history] == [("C", "hi")]


def test_chat_alone_in_room_is_stored_but_not_delivered(registry):
    room = join(registry, "r1", "A")
    outcome = ChatRelay(registry).send("A", "anyone?")
    assert outcome.ok
    assert outcome.deliveries == []
    assert len(room.history) == 1


def test_history_is_bounded_through_relay(registry):
    room = join(registry, "r1", "A", "B")
    relay = ChatRelay(registry)
    for i in range(55):
        relay.send("A", str(i))
    assert len(room.history) == 50
    assert [entry.content for entry in room.history] == [str(i) for i in range(5, 55)]


def test_system_messages_share_the_bounded_history(registry):
    room = join(registry, "r1", "A")
    relay = ChatRelay(registry)
    relay.send("A", "first")
    entry = relay.append_system("r1", "A joined")

    assert entry.sender == "system"
    assert [entry.sender for entry in room.history] == ["A", "system"]
