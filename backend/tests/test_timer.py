from conftest import received

from planning_poker import socketio, store
from planning_poker.services.rooms import scheduler, state


def test_schedule_is_disabled_in_tests(flask_app, monkeypatch):
    spawned = []
    monkeypatch.setattr(socketio, 'start_background_task', lambda *a, **kw: spawned.append(a))
    room = store.create()
    handle = state.start_timer(room)
    assert scheduler.schedule_room_timer(flask_app, room.id, handle) is False
    assert spawned == []


def test_double_start_spawns_one_tick_loop(flask_app, client, sio_client, monkeypatch):
    flask_app.config['ENABLE_TIMER_IN_TESTS'] = True
    spawned = []
    monkeypatch.setattr(socketio, 'start_background_task', lambda *a, **kw: spawned.append(a))
    room_id = client.post('/api/rooms', json={}).get_json()['id']

    sio_client.emit('timer:start', {'roomId': room_id})
    sio_client.emit('timer:start', {'roomId': room_id})

    assert len(spawned) == 1
    target, app, spawned_room_id, handle = spawned[0]
    assert target is scheduler.run_room_timer
    assert spawned_room_id == room_id
    assert store.get(room_id).timer.handle is handle


def test_tick_loop_counts_one_second_per_tick(flask_app, sio_client, monkeypatch):
    room = store.create()
    sio_client.emit('room:join', {'roomId': room.id, 'name': 'Alice'})
    sio_client.get_received()
    handle = state.start_timer(room)
    sleeps = []

    def fake_sleep(seconds):
        sleeps.append(seconds)
        if len(sleeps) == 4:
            with store.locked(room.id) as locked:
                state.stop_timer(locked)

    monkeypatch.setattr(socketio, 'sleep', fake_sleep)
    ticks = scheduler.run_room_timer(flask_app, room.id, handle)

    assert ticks == 3
    assert room.timer.seconds == 3
    assert room.timer.running is False
    states = received(sio_client, 'room:state')
    assert [s['timer']['seconds'] for s in states] == [1, 2, 3]
    assert all(s['timer']['running'] for s in states)


def test_reset_round_ends_tick_loop(flask_app, monkeypatch):
    room = store.create()
    handle = state.start_timer(room)

    def fake_sleep(seconds):
        with store.locked(room.id) as locked:
            if locked.timer.seconds == 2:
                state.reset_round(locked)

    monkeypatch.setattr(socketio, 'sleep', fake_sleep)
    assert scheduler.run_room_timer(flask_app, room.id, handle) == 2
    assert room.timer.seconds == 0
    assert handle.cancelled


def test_tick_loop_exits_when_room_deleted(flask_app, monkeypatch):
    room = store.create()
    handle = state.start_timer(room)
    monkeypatch.setattr(socketio, 'sleep', lambda seconds: store.delete(room.id))
    assert scheduler.run_room_timer(flask_app, room.id, handle) == 0
    assert handle.cancelled


def test_reap_idle_rooms_notifies_members(flask_app, sio_client, monkeypatch):
    room = store.create()
    sio_client.emit('room:join', {'roomId': room.id, 'name': 'Alice'})
    sio_client.get_received()
    monkeypatch.setattr(store, 'ttl_sec', 30)
    room.last_activity = 0.0

    assert scheduler.reap_idle_rooms(flask_app) == [room.id]
    assert store.get(room.id) is None
    assert received(sio_client, 'room:closed') == [{'id': room.id}]


def test_reaper_not_scheduled_in_tests(flask_app):
    assert scheduler.schedule_reaper(flask_app) is False


def test_ticks_do_not_keep_abandoned_room_alive(flask_app, monkeypatch):
    room = store.create()
    handle = state.start_timer(room)
    monkeypatch.setattr(store, 'ttl_sec', 30)
    room.last_activity = 0.0
    reaped = []

    def fake_sleep(seconds):
        # One tick runs, then the reaper sweeps before the next one
        if room.timer.seconds == 1:
            reaped.extend(store.reap())

    monkeypatch.setattr(socketio, 'sleep', fake_sleep)
    assert scheduler.run_room_timer(flask_app, room.id, handle) == 1

    assert reaped == [room.id]
    assert store.get(room.id) is None
    assert handle.cancelled
    assert room.last_activity == 0.0
