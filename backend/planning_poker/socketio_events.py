from typing import Callable, Dict, List, Optional, Tuple

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from planning_poker import socketio, store
from planning_poker.exceptions import (
    InvalidVote,
    MalformedEvent,
    NotRoomMember,
    PlanningPokerException,
    RoomNotFound,
)
from planning_poker.messages import parse_event
from planning_poker.models import Room
from planning_poker.services.rooms import state
from planning_poker.services.rooms.broadcast import ROOM_ERROR, broadcast_state
from planning_poker.services.rooms.scheduler import schedule_room_timer

_namespace = '/'


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _notify_error(exc: PlanningPokerException) -> None:
    # Sender only, never broadcast
    emit(ROOM_ERROR, exc.to_dict())


def _run(event: str, data, action: Callable) -> None:
    """Validate the payload and run `action(sid, message)`, reporting failures to the sender."""
    sid = _get_sid()
    try:
        action(sid, parse_event(event, data))
    except MalformedEvent as exc:
        current_app.logger.warning(f"[malformed] sid={sid} {exc.message}")
        _notify_error(exc)
    except PlanningPokerException as exc:
        current_app.logger.info(f"[rejected] event={event} sid={sid} room={exc.room_id} {exc.message}")
        _notify_error(exc)


def _mutate(sid: str, message, apply: Callable, broadcast: bool = True) -> None:
    with store.locked(message.room_id) as room:
        if room is None:
            raise RoomNotFound(message.room_id)
        if current_app.config.get('REQUIRE_MEMBERSHIP') and sid not in room.participants:
            raise NotRoomMember(room.id, sid)
        # Returning False means nothing changed and nobody needs a snapshot
        if apply(room, message) is not False and broadcast:
            broadcast_state(room, _namespace)


def _drop_presence(sid: str, keep_room_id: Optional[str] = None) -> List[str]:
    """Remove the connection's participant (and vote) from every room it is in."""
    left = []
    for candidate in store.rooms():
        if candidate.id == keep_room_id or sid not in candidate.participants:
            continue
        with store.locked(candidate.id) as room:
            if room is None or not state.leave(room, sid):
                continue
            broadcast_state(room, _namespace)
        left.append(candidate.id)
    return left


# ---- Connection lifecycle ----

def handle_connect(auth=None):
    # Clients vote with their connection id, so hand it back
    emit('connected', {'id': _get_sid()})


def handle_disconnect(reason=None):
    sid = _get_sid()
    for room_id in _drop_presence(sid):
        current_app.logger.info(f"[leave] room={room_id} sid={sid} reason={reason}")


def _join(sid: str, message) -> None:
    if store.get(message.room_id) is None:
        raise RoomNotFound(message.room_id)
    # A connection belongs to at most one room: leave the previous one first
    for old_room_id in _drop_presence(sid, keep_room_id=message.room_id):
        leave_room(old_room_id)
        current_app.logger.info(f"[leave] room={old_room_id} sid={sid} reason=switched-room")

    with store.locked(message.room_id) as room:
        if room is None:
            raise RoomNotFound(message.room_id)
        join_room(room.id)
        participant = state.join(room, sid, message.name, message.role)
        current_app.logger.info(
            f"[join] room={room.id} sid={sid} name={participant.name} role={participant.role.value}"
        )
        # The joiner is in the Socket.IO room by now, so it gets this snapshot too
        broadcast_state(room, _namespace)


def handle_join(data=None):
    _run('room:join', data, _join)


# ---- Room mutations ----

def _add_story(room: Room, msg) -> None:
    state.add_story(room, msg.title)


def _update_story(room: Room, msg) -> None:
    state.update_story(room, msg.id, msg.patch.model_dump(exclude_unset=True))


def _remove_story(room: Room, msg) -> None:
    state.remove_story(room, msg.id)


def _set_current_story(room: Room, msg) -> None:
    state.set_current_story(room, msg.id)


def _cast_vote(room: Room, msg) -> None:
    if current_app.config.get('REJECT_OFF_DECK_VOTES') and msg.value not in state.deck_values(room):
        raise InvalidVote(msg.value, room.id)
    state.cast_vote(room, msg.participant_id, msg.value)


def _reveal(room: Room, msg) -> None:
    state.reveal(room)


def _reset_round(room: Room, msg) -> None:
    state.reset_round(room)


def _set_final_estimate(room: Room, msg) -> bool:
    return state.set_final_estimate(room, msg.value)


def _set_deck(room: Room, msg) -> None:
    state.set_deck(room, msg.deck_name)


def _set_custom_deck(room: Room, msg) -> None:
    state.set_custom_deck(room, msg.custom_deck)


def _start_timer(room: Room, msg) -> None:
    handle = state.start_timer(room)
    if handle is None:
        current_app.logger.info(f"[timer-skip] room={room.id} already running")
        return
    current_app.logger.info(f"[timer-start] room={room.id}")
    schedule_room_timer(current_app._get_current_object(), room.id, handle)


def _stop_timer(room: Room, msg) -> None:
    state.stop_timer(room)
    current_app.logger.info(f"[timer-stop] room={room.id} seconds={room.timer.seconds}")


# event -> (mutation, broadcast afterwards)
ROOM_EVENTS: Dict[str, Tuple[Callable, bool]] = {
    'story:add': (_add_story, True),
    'story:update': (_update_story, True),
    'story:remove': (_remove_story, True),
    'story:setCurrent': (_set_current_story, True),
    'vote:cast': (_cast_vote, True),
    'round:reveal': (_reveal, True),
    'round:reset': (_reset_round, True),
    'round:setFinal': (_set_final_estimate, True),
    'deck:set': (_set_deck, True),
    'deck:setCustom': (_set_custom_deck, True),
    # The first tick broadcasts
    'timer:start': (_start_timer, False),
    'timer:stop': (_stop_timer, True),
}


def _make_handler(event: str, apply: Callable, broadcast: bool) -> Callable:
    def handler(data=None):
        _run(event, data, lambda sid, message: _mutate(sid, message, apply, broadcast))
    handler.__name__ = 'handle_' + event.replace(':', '_')
    return handler


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on the configured namespace."""
    global _namespace
    _namespace = namespace
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('room:join', handle_join, namespace=namespace)
    socketio.on_event('join', handle_join, namespace=namespace)
    for event, (apply, broadcast) in ROOM_EVENTS.items():
        socketio.on_event(event, _make_handler(event, apply, broadcast), namespace=namespace)
