from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from planning_poker import store
from planning_poker.messages import CreateRoom, describe_errors
from planning_poker.services.rooms.broadcast import broadcast_closed
from planning_poker.services.rooms.snapshot import project
from planning_poker.services.rooms.state import parse_custom_deck


rooms = Blueprint('rooms', __name__)


@rooms.route('', methods=['POST'], strict_slashes=False)
def create_room():
    data = request.get_json(silent=True) or {}
    try:
        body = CreateRoom.model_validate(data)
    except ValidationError as exc:
        return jsonify({'error': describe_errors(exc)}), 400
    room = store.create(
        name=body.name,
        deck_name=body.deck_name,
        custom_deck=parse_custom_deck(body.custom_deck),
    )
    current_app.logger.info(f"[create] room={room.id} name={room.name} deck={room.deck_name}")
    return jsonify({'id': room.id}), 201


@rooms.route('/<string:room_id>', methods=['GET'])
def get_room(room_id):
    with store.locked(room_id) as room:
        if room is None:
            return jsonify({'error': 'Room not found'}), 404
        return jsonify(project(room))


@rooms.route('/<string:room_id>', methods=['DELETE'])
def delete_room(room_id):
    room = store.delete(room_id)
    if room is None:
        return jsonify({'error': 'Room not found'}), 404
    broadcast_closed(room_id, current_app.config.get('SOCKETIO_NAMESPACE', '/'))
    current_app.logger.info(f"[delete] room={room_id}")
    return jsonify({'id': room_id})
