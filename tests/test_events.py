from dodgeball.core.events import Event, EventBus, EventType


def test_subscribe_and_unsubscribe():
    bus = EventBus()
    received = []
    unsubscribe = bus.subscribe(EventType.GAME_OVER, received.append)

    bus.emit(Event(EventType.GAME_OVER, data={"score": 30}))
    bus.emit(Event(EventType.GAME_STARTED))
    unsubscribe()
    bus.emit(Event(EventType.GAME_OVER, data={"score": 40}))

    assert [e.data["score"] for e in received] == [30]


def test_subscribe_all_sees_every_type():
    bus = EventBus()
    types = []
    bus.subscribe_all(lambda e: types.append(e.type))

    bus.emit(Event(EventType.COLLISION))
    bus.emit(Event("custom"))

    assert types == [EventType.COLLISION, "custom"]


def test_handler_error_is_isolated():
    bus = EventBus()
    received = []

    def broken(event):
        raise ValueError("bad handler")

    bus.subscribe(EventType.OBSTACLE_DODGED, broken)
    bus.subscribe(EventType.OBSTACLE_DODGED, received.append)

    bus.emit(Event(EventType.OBSTACLE_DODGED, data={"score": 10}))

    assert len(received) == 1


def test_history_is_bounded_and_filterable():
    bus = EventBus(history_limit=5)
    for i in range(8):
        bus.emit(Event(EventType.OBSTACLE_DODGED, data={"score": i * 10}))
    bus.emit(Event(EventType.GAME_OVER, data={"score": 70}))

    history = bus.get_history(limit=100)
    assert len(history) == 5
    assert history[-1].type == EventType.GAME_OVER

    dodged = bus.get_history(EventType.OBSTACLE_DODGED, limit=2)
    assert [e.data["score"] for e in dodged] == [60, 70]

    bus.clear_history()
    assert bus.get_history() == []


def test_publish_builds_the_event():
    bus = EventBus()
    received = []
    bus.subscribe(EventType.HIT_ABSORBED, received.append)

    event = bus.publish(EventType.HIT_ABSORBED, source="engine", by="shield")

    assert received == [event]
    assert event.data == {"by": "shield"}
    assert event.source == "engine"
