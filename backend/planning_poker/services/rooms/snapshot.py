from planning_poker.models import Room
from .state import deck_values

MASKED_VOTE = '🂠'


def mask_votes(votes):
    return {pid: MASKED_VOTE for pid in votes}


def project(room: Room) -> dict:
    """Build the client-safe view of a room.

    Vote values are masked until the round is revealed; voter ids are kept
    so clients can count votes. The timer handle is never included. Every
    call returns fresh containers, so callers may hand the result to another
    thread without sharing state with the room.
    """
    return {
        'id': room.id,
        'roomName': room.name,
        'deckName': room.deck_name,
        'customDeck': list(room.custom_deck),
        'deck': deck_values(room),
        'stories': [s.to_dict() for s in room.stories],
        'participants': [p.to_dict() for p in room.participants.values()],
        'currentStoryId': room.current_story_id,
        'votes': dict(room.votes) if room.revealed else mask_votes(room.votes),
        'revealed': room.revealed,
        'timer': {'running': room.timer.running, 'seconds': room.timer.seconds},
        'createdAt': room.created_at,
    }
