"""
Inbound message types.

One pydantic model per Socket.IO event name. Payloads use the camelCase
keys the web client sends (`roomId`, `participantId`, ...). `parse_event`
is the dispatcher's validation boundary: a payload either becomes a typed
message or raises `MalformedEvent`. Optional inputs that are merely empty
(a blank title, a blank deck name) are accepted here and defaulted by the
state machine.
"""
from typing import Dict, List, Optional, Type, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from planning_poker.exceptions import MalformedEvent
from planning_poker.models import DECKS


def _card_to_str(value):
    # Numeric cards arrive as JSON numbers from some clients
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _cards_to_str(value):
    if isinstance(value, list):
        return [_card_to_str(v) for v in value]
    return value


def _check_deck_name(value):
    if value and value not in DECKS:
        raise ValueError(f'unknown deck {value!r}, expected one of {", ".join(DECKS)}')
    return value


class Message(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')


class RoomMessage(Message):
    room_id: str = Field(alias='roomId', min_length=1)


class JoinRoom(RoomMessage):
    name: Optional[str] = None
    role: Optional[str] = None


class AddStory(RoomMessage):
    title: Optional[str] = None


class StoryPatch(Message):
    title: Optional[str] = None
    notes: Optional[str] = None
    final_estimate: Optional[str] = Field(default=None, alias='finalEstimate')

    @field_validator('final_estimate', mode='before')
    @classmethod
    def coerce_estimate(cls, v):
        return _card_to_str(v)


class UpdateStory(RoomMessage):
    id: str = Field(min_length=1)
    patch: StoryPatch = Field(default_factory=StoryPatch)

    @field_validator('patch', mode='before')
    @classmethod
    def missing_patch_is_empty(cls, v):
        return {} if v is None else v


class RemoveStory(RoomMessage):
    id: str = Field(min_length=1)


class SetCurrentStory(RoomMessage):
    id: Optional[str] = None


class CastVote(RoomMessage):
    participant_id: str = Field(alias='participantId', min_length=1)
    value: str

    @field_validator('value', mode='before')
    @classmethod
    def coerce_value(cls, v):
        return _card_to_str(v)


class SetFinalEstimate(RoomMessage):
    value: str = ''

    @field_validator('value', mode='before')
    @classmethod
    def none_is_blank(cls, v):
        return '' if v is None else _card_to_str(v)


class SetDeck(RoomMessage):
    deck_name: Optional[str] = Field(default=None, alias='deckName')

    @field_validator('deck_name')
    @classmethod
    def known_deck(cls, v):
        return _check_deck_name(v)


class SetCustomDeck(RoomMessage):
    custom_deck: Optional[Union[str, List[str]]] = Field(default=None, alias='customDeck')

    @field_validator('custom_deck', mode='before')
    @classmethod
    def coerce_cards(cls, v):
        return _cards_to_str(v)


class CreateRoom(Message):
    """HTTP body for POST /api/rooms"""
    name: Optional[str] = Field(default=None, validation_alias=AliasChoices('roomName', 'name'))
    deck_name: Optional[str] = Field(default=None, validation_alias=AliasChoices('deckName', 'deck_name'))
    custom_deck: Optional[Union[str, List[str]]] = Field(
        default=None, validation_alias=AliasChoices('customDeck', 'custom_deck'))

    @field_validator('custom_deck', mode='before')
    @classmethod
    def coerce_cards(cls, v):
        return _cards_to_str(v)

    @field_validator('deck_name')
    @classmethod
    def known_deck(cls, v):
        return _check_deck_name(v)


MESSAGE_TYPES: Dict[str, Type[RoomMessage]] = {
    'room:join': JoinRoom,
    'story:add': AddStory,
    'story:update': UpdateStory,
    'story:remove': RemoveStory,
    'story:setCurrent': SetCurrentStory,
    'vote:cast': CastVote,
    'round:reveal': RoomMessage,
    'round:reset': RoomMessage,
    'round:setFinal': SetFinalEstimate,
    'deck:set': SetDeck,
    'deck:setCustom': SetCustomDeck,
    'timer:start': RoomMessage,
    'timer:stop': RoomMessage,
}


def describe_errors(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = '.'.join(str(p) for p in err.get('loc', ())) or 'payload'
        parts.append(f"{loc}: {err.get('msg')}")
    return '; '.join(parts)


def parse_event(event: str, data) -> RoomMessage:
    model = MESSAGE_TYPES.get(event)
    if model is None:
        raise MalformedEvent(event, 'unknown event')
    if not isinstance(data, dict):
        raise MalformedEvent(event, 'payload must be an object')
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        room_id = data.get('roomId') if isinstance(data.get('roomId'), str) else None
        raise MalformedEvent(event, describe_errors(exc), room_id=room_id) from exc
