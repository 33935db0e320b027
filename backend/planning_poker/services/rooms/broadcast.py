from planning_poker import socketio
from planning_poker.models import Room
from .snapshot import project

ROOM_STATE = 'room:state'
ROOM_ERROR = 'room:error'
ROOM_CLOSED = 'room:closed'


def broadcast_state(room: Room, namespace: str = '/') -> dict:
    """Send the full projected snapshot to every connection in the room.

    Call with the room lock held so snapshots leave in mutation order.
    """
    snapshot = project(room)
    socketio.emit(ROOM_STATE, snapshot, to=room.id, namespace=namespace)
    return snapshot


def broadcast_closed(room_id: str, namespace: str = '/') -> None:
    socketio.emit(ROOM_CLOSED, {'id': room_id}, to=room_id, namespace=namespace)
