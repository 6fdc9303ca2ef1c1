import pytest

from tinysim.events import Event, EventManager, get_event_manager


def test_listener_receives_params():
    manager = EventManager()
    seen = []
    manager.add_listener("input", lambda e: seen.append(e.get_param("keys")))
    event = Event("input")
    event.set_param("keys", [True, False])
    manager.send_event(event)
    assert seen == [[True, False]]


def test_send_by_id_creates_event():
    manager = EventManager()
    seen = []
    manager.add_listener(7, lambda e: seen.append(e.type))
    manager.send_event(7)
    assert seen == [7]


def test_only_matching_listeners_called():
    manager = EventManager()
    seen = []
    manager.add_listener(1, lambda e: seen.append("one"))
    manager.add_listener(2, lambda e: seen.append("two"))
    manager.send_event(2)
    assert seen == ["two"]


def test_listeners_called_in_registration_order():
    manager = EventManager()
    seen = []
    for name in ("a", "b", "c"):
        manager.add_listener("x", lambda e, n=name: seen.append(n))
    manager.send_event("x")
    assert seen == ["a", "b", "c"]


def test_missing_param_raises():
    with pytest.raises(KeyError):
        Event("x").get_param("absent")


def test_set_param_overwrites():
    event = Event("x")
    event.set_param("k", 1)
    event.set_param("k", 2)
    assert event.get_param("k") == 2


def test_global_manager_is_shared():
    seen = []
    get_event_manager().add_listener(
        "test-global-manager-shared", lambda e: seen.append(e.type)
    )
    get_event_manager().send_event("test-global-manager-shared")
    assert seen == ["test-global-manager-shared"]