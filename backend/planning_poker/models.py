import threading
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


DEFAULT_ROOM_NAME = 'Room'
DEFAULT_DECK_NAME = 'Fibonacci'
CUSTOM_DECK_NAME = 'Custom'
DEFAULT_CUSTOM_DECK = ['1', '2', '3', '5', '8', '13', '?', '☕']
DEFAULT_STORY_TITLE = 'New story'
DEFAULT_PARTICIPANT_NAME = 'Anonymous'

# Every deck ends with the "unknown" and "break" cards
DECKS: Dict[str, Optional[List[str]]] = {
    'Fibonacci': ['0', '1', '2', '3', '5', '8', '13', '20', '40', '100', '?', '☕'],
    'Powers of 2': ['0', '1', '2', '4', '8', '16', '32', '64', '?', '☕'],
    'T-Shirt': ['XS', 'S', 'M', 'L', 'XL', '?', '☕'],
    CUSTOM_DECK_NAME: None,  # resolved from room.custom_deck
}


def short_id(length=8):
    return uuid.uuid4().hex[:length]


class Role(str, Enum):
    MEMBER = 'Member'
    FACILITATOR = 'Facilitator'

    @classmethod
    def parse(cls, value):
        """Map a client-supplied role onto the enum, defaulting to Member."""
        for role in cls:
            if value == role or (isinstance(value, str) and value.strip().lower() == role.value.lower()):
                return role
        return cls.MEMBER


class TimerHandle:
    """Cancellation token for one scheduled tick loop."""

    def __init__(self):
        self._cancelled = threading.Event()

    def cancel(self):
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()


@dataclass
class Timer:
    running: bool = False
    seconds: int = 0
    handle: Optional[TimerHandle] = field(default=None, repr=False, compare=False)


@dataclass
class Story:
    title: str
    id: str = field(default_factory=short_id)
    notes: str = ''
    final_estimate: str = ''

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'notes': self.notes,
            'finalEstimate': self.final_estimate,
        }


@dataclass
class Participant:
    id: str
    name: str = DEFAULT_PARTICIPANT_NAME
    role: Role = Role.MEMBER

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'role': self.role.value}


@dataclass
class Room:
    id: str
    name: str = DEFAULT_ROOM_NAME
    deck_name: str = DEFAULT_DECK_NAME
    custom_deck: List[str] = field(default_factory=lambda: list(DEFAULT_CUSTOM_DECK))
    stories: List[Story] = field(default_factory=list)
    current_story_id: Optional[str] = None
    participants: Dict[str, Participant] = field(default_factory=dict)
    votes: Dict[str, str] = field(default_factory=dict)
    revealed: bool = False
    timer: Timer = field(default_factory=Timer)
    created_at: int = field(default_factory=lambda: int(time.time() * 1000))
    last_activity: float = field(default_factory=time.time, repr=False, compare=False)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    @property
    def current_story(self) -> Optional[Story]:
        if self.current_story_id:
            return self.find_story(self.current_story_id)
        return None

    def find_story(self, story_id) -> Optional[Story]:
        for story in self.stories:
            if story.id == story_id:
                return story
        return None

    def touch(self):
        self.last_activity = time.time()
