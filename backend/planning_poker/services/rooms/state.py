from typing import Iterable, List, Optional, Union

from planning_poker.models import (
    DECKS,
    DEFAULT_PARTICIPANT_NAME,
    DEFAULT_STORY_TITLE,
    Participant,
    Role,
    Room,
    Story,
    TimerHandle,
)


def deck_values(room: Room) -> List[str]:
    values = DECKS.get(room.deck_name)
    if values is None:
        return list(room.custom_deck)
    return list(values)


def parse_custom_deck(custom_deck: Union[str, Iterable[str], None]) -> List[str]:
    """Accept "1, 2, 3" or a list of cards; blank entries are dropped."""
    if not custom_deck:
        return []
    if isinstance(custom_deck, str):
        parts = custom_deck.split(',')
    else:
        parts = custom_deck
    return [str(p).strip() for p in parts if str(p).strip()]


# ---- Round ----

def reset_round(room: Room) -> None:
    """The single round boundary: every change of current story ends up here."""
    room.votes = {}
    room.revealed = False
    stop_timer(room)
    room.timer.seconds = 0


def cast_vote(room: Room, participant_id: str, value: str) -> None:
    room.votes[participant_id] = value


def reveal(room: Room) -> None:
    room.revealed = True
    stop_timer(room)


def set_final_estimate(room: Room, value: str) -> bool:
    story = room.current_story
    if story is None:
        return False
    story.final_estimate = value
    return True


# ---- Stories ----

def add_story(room: Room, title: Optional[str] = None) -> Story:
    story = Story(title=(title or '').strip() or DEFAULT_STORY_TITLE)
    room.stories.append(story)
    room.current_story_id = story.id
    reset_round(room)
    return story


def update_story(room: Room, story_id: str, patch: dict) -> Optional[Story]:
    story = room.find_story(story_id)
    if story is None:
        return None
    title = (patch.get('title') or '').strip()
    if title:
        story.title = title
    if patch.get('notes') is not None:
        story.notes = patch['notes']
    if patch.get('final_estimate') is not None:
        story.final_estimate = patch['final_estimate']
    return story


def remove_story(room: Room, story_id: str) -> bool:
    before = len(room.stories)
    room.stories = [s for s in room.stories if s.id != story_id]
    if len(room.stories) == before:
        return False
    if room.current_story_id == story_id:
        room.current_story_id = room.stories[0].id if room.stories else None
        reset_round(room)
    return True


def set_current_story(room: Room, story_id: Optional[str]) -> None:
    # Unknown ids fall back to None so current_story_id never dangles
    room.current_story_id = story_id if story_id and room.find_story(story_id) else None
    reset_round(room)


# ---- Deck ----

def set_deck(room: Room, deck_name: Optional[str]) -> None:
    if deck_name:
        room.deck_name = deck_name


def set_custom_deck(room: Room, custom_deck) -> None:
    cards = parse_custom_deck(custom_deck)
    if cards:
        room.custom_deck = cards


# ---- Timer ----

def start_timer(room: Room) -> Optional[TimerHandle]:
    """Mark the timer running. Returns a handle only if a new tick loop is needed."""
    if room.timer.handle is not None:
        return None
    handle = TimerHandle()
    room.timer.handle = handle
    room.timer.running = True
    return handle


def stop_timer(room: Room) -> None:
    room.timer.running = False
    if room.timer.handle is not None:
        room.timer.handle.cancel()
        room.timer.handle = None


def tick(room: Room, handle: TimerHandle) -> bool:
    if handle.cancelled or room.timer.handle is not handle:
        return False
    room.timer.seconds += 1
    return True


# ---- Presence ----

def join(room: Room, participant_id: str, name: Optional[str] = None, role=None) -> Participant:
    participant = Participant(
        id=participant_id,
        name=(name or '').strip() or DEFAULT_PARTICIPANT_NAME,
        role=Role.parse(role),
    )
    room.participants[participant_id] = participant
    return participant


def leave(room: Room, participant_id: str) -> bool:
    if participant_id not in room.participants:
        return False
    del room.participants[participant_id]
    room.votes.pop(participant_id, None)
    return True
