"""In-memory room registry.

One process-wide `RoomStore` owns every Room. Handlers never keep a Room
reference across events; they look it up by id and mutate it inside
`locked()`, which holds the room's lock for the whole mutation + broadcast.
"""
import logging
import secrets
import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from planning_poker.models import (
    DECKS,
    DEFAULT_CUSTOM_DECK,
    DEFAULT_DECK_NAME,
    DEFAULT_ROOM_NAME,
    Room,
)

logger = logging.getLogger(__name__)

ROOM_ID_BYTES = 6


def generate_room_id() -> str:
    return secrets.token_hex(ROOM_ID_BYTES)


class RoomStore:

    def __init__(self, ttl_sec: int = 0):
        self.ttl_sec = ttl_sec
        self._rooms: Dict[str, Room] = {}
        self._guard = threading.Lock()

    def init_app(self, app):
        self.ttl_sec = int(app.config.get('ROOM_TTL_SEC', 0) or 0)
        app.extensions['room_store'] = self

    def create(self, name=None, deck_name=None, custom_deck=None) -> Room:
        if deck_name and deck_name not in DECKS:
            raise ValueError(f'Unknown deck {deck_name!r}')
        with self._guard:
            room_id = generate_room_id()
            while room_id in self._rooms:
                logger.warning(f'Room id collision detected, regenerating: {room_id}')
                room_id = generate_room_id()
            room = Room(
                id=room_id,
                name=name or DEFAULT_ROOM_NAME,
                deck_name=deck_name or DEFAULT_DECK_NAME,
                custom_deck=list(custom_deck) if custom_deck else list(DEFAULT_CUSTOM_DECK),
            )
            self._rooms[room_id] = room
        logger.info(f'Created room {room_id} deck={room.deck_name}')
        return room

    def get(self, room_id) -> Optional[Room]:
        if not room_id:
            return None
        return self._rooms.get(room_id)

    def delete(self, room_id) -> Optional[Room]:
        with self._guard:
            room = self._rooms.pop(room_id, None)
        if room is None:
            return None
        with room.lock:
            # Orphaned tick loops exit on their next wake-up
            if room.timer.handle is not None:
                room.timer.handle.cancel()
                room.timer.handle = None
            room.timer.running = False
        logger.info(f'Deleted room {room_id}')
        return room

    def rooms(self) -> List[Room]:
        with self._guard:
            return list(self._rooms.values())

    @contextmanager
    def locked(self, room_id, touch: bool = True) -> Iterator[Optional[Room]]:
        """Yield the room with its lock held, or None if it does not exist.

        Pass touch=False for background work (timer ticks) that must not
        keep an abandoned room alive.
        """
        room = self.get(room_id)
        if room is None:
            yield None
            return
        with room.lock:
            if self._rooms.get(room.id) is not room:
                # Deleted while we were waiting for the lock
                yield None
                return
            if touch:
                room.touch()
            yield room

    def reap(self, now: Optional[float] = None) -> List[str]:
        """Delete rooms idle for longer than the TTL. Returns the reaped ids."""
        if not self.ttl_sec:
            return []
        now = time.time() if now is None else now
        reaped = []
        for room in self.rooms():
            with room.lock:
                if now - room.last_activity <= self.ttl_sec:
                    continue
                if self.delete(room.id) is not None:
                    reaped.append(room.id)
        if reaped:
            logger.info(f'Reaped {len(reaped)} idle room(s): {", ".join(reaped)}')
        return reaped

    def clear(self):
        for room_id in [r.id for r in self.rooms()]:
            self.delete(room_id)

    def __len__(self):
        return len(self._rooms)

    def __contains__(self, room_id):
        return room_id in self._rooms
