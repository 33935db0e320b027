"""
Domain exceptions.

Raised by the store, the message layer and the dispatcher guards; the
Socket.IO handlers turn them into a `room:error` for the sender and the
HTTP routes into JSON error bodies.
"""


class PlanningPokerException(Exception):
    """Base class for all planning poker errors"""

    def __init__(self, message, room_id=None):
        self.message = message
        self.room_id = room_id
        super().__init__(message)

    def to_dict(self):
        return {'message': self.message, 'roomId': self.room_id}


class RoomNotFound(PlanningPokerException):
    """The referenced room does not exist (or was reaped)"""

    def __init__(self, room_id):
        super().__init__('Room not found', room_id)


class MalformedEvent(PlanningPokerException):
    """An inbound payload failed validation"""

    def __init__(self, event, detail, room_id=None):
        self.event = event
        self.detail = detail
        super().__init__(f'Malformed {event} event: {detail}', room_id)


class NotRoomMember(PlanningPokerException):
    """Connection tried to mutate a room it has not joined"""

    def __init__(self, room_id, sid):
        self.sid = sid
        super().__init__('Join the room before changing it', room_id)


class InvalidVote(PlanningPokerException):
    """Vote value is not a card of the active deck"""

    def __init__(self, value, room_id=None):
        self.value = value
        super().__init__(f'{value!r} is not in the active deck', room_id)
