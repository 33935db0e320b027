import pytest

from planning_poker.models import DEFAULT_CUSTOM_DECK
from planning_poker.services.rooms import state
from planning_poker.registry import RoomStore


def test_create_defaults():
    store = RoomStore()
    room = store.create()
    assert room.name == 'Room'
    assert room.deck_name == 'Fibonacci'
    assert room.custom_deck == DEFAULT_CUSTOM_DECK
    assert room.custom_deck is not DEFAULT_CUSTOM_DECK
    assert store.get(room.id) is room
    assert len(room.id) == 12


def test_create_generates_distinct_ids():
    store = RoomStore()
    ids = {store.create().id for _ in range(200)}
    assert len(ids) == 200


def test_create_rejects_unknown_deck():
    with pytest.raises(ValueError):
        RoomStore().create(deck_name='Tarot')


def test_create_retries_on_id_collision(monkeypatch):
    store = RoomStore()
    taken = store.create()
    ids = iter([taken.id, 'fresh-id'])
    monkeypatch.setattr('planning_poker.registry.generate_room_id', lambda: next(ids))
    assert store.create().id == 'fresh-id'


def test_get_missing_room():
    store = RoomStore()
    assert store.get('nope') is None
    assert store.get(None) is None


def test_locked_yields_none_for_missing_room():
    with RoomStore().locked('nope') as room:
        assert room is None


def test_delete_cancels_running_timer():
    store = RoomStore()
    room = store.create()
    handle = state.start_timer(room)
    assert store.delete(room.id) is room
    assert handle.cancelled
    assert room.timer.running is False
    assert store.get(room.id) is None
    assert store.delete(room.id) is None


def test_locked_after_delete_yields_none():
    store = RoomStore()
    room = store.create()
    store.delete(room.id)
    with store.locked(room.id) as locked:
        assert locked is None


def test_reap_disabled_without_ttl():
    store = RoomStore()
    room = store.create()
    assert store.reap(now=room.last_activity + 10 ** 6) == []
    assert room.id in store


def test_reap_drops_only_idle_rooms():
    store = RoomStore(ttl_sec=60)
    idle = store.create()
    busy = store.create()
    idle.last_activity = 1000.0
    busy.last_activity = 1050.0

    assert store.reap(now=1100.0) == [idle.id]
    assert idle.id not in store
    assert busy.id in store


def test_locked_touches_activity():
    store = RoomStore(ttl_sec=60)
    room = store.create()
    room.last_activity = 0.0
    with store.locked(room.id):
        pass
    assert room.last_activity > 0.0


def test_clear():
    store = RoomStore()
    store.create()
    store.create()
    store.clear()
    assert len(store) == 0


def test_locked_without_touch_keeps_activity():
    store = RoomStore(ttl_sec=60)
    room = store.create()
    room.last_activity = 0.0
    with store.locked(room.id, touch=False) as locked:
        assert locked is room
    assert room.last_activity == 0.0
    assert store.reap(now=1000.0) == [room.id]
