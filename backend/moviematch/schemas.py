"""Pydantic models for inbound Socket.IO payloads.

Field names follow the client's camelCase wire format through aliases.
Limits that come from app config (name length, minimum custom titles) are
passed in through the validation context.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from .errors import PayloadError


def _context(info: ValidationInfo, key, default):
    return (info.context or {}).get(key, default)


def _as_text(value) -> str:
    if value is None:
        return ''
    return value if isinstance(value, str) else str(value)


def _clean_name(value, info: ValidationInfo) -> str:
    name = _as_text(value).strip()
    if not name:
        raise ValueError('Player name is required')
    max_length = _context(info, 'max_name_length', 32)
    if len(name) > max_length:
        raise ValueError(f'Player name must be at most {max_length} characters')
    return name


class CreateLobbyPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    player_name: str = Field(default='', alias='playerName', validate_default=True)
    topic: str = 'popular'
    custom_movies: Optional[List[str]] = Field(default=None, alias='customMovies')

    @field_validator('player_name', mode='before')
    @classmethod
    def _check_name(cls, value, info: ValidationInfo):
        return _clean_name(value, info)

    @field_validator('topic', mode='before')
    @classmethod
    def _check_topic(cls, value):
        return _as_text(value).strip() or 'popular'

    @field_validator('custom_movies')
    @classmethod
    def _check_custom(cls, value, info: ValidationInfo):
        if value is None:
            return None
        titles = [title.strip() for title in value if title and title.strip()]
        minimum = _context(info, 'min_custom_movies', 2)
        if len(titles) < minimum:
            raise ValueError(f'At least {minimum} movie titles are required')
        return titles


class JoinLobbyPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    lobby_id: str = Field(default='', alias='lobbyId', validate_default=True)
    player_name: str = Field(default='', alias='playerName', validate_default=True)

    @field_validator('lobby_id', mode='before')
    @classmethod
    def _check_code(cls, value):
        code = _as_text(value).strip().upper()
        if not code:
            raise ValueError('Lobby code is required')
        return code

    @field_validator('player_name', mode='before')
    @classmethod
    def _check_name(cls, value, info: ValidationInfo):
        return _clean_name(value, info)


class CastVotePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    movie_id: str = Field(alias='movieId', min_length=1)
    vote_type: Literal['up', 'down', 'pass'] = Field(alias='voteType')


def parse_payload(model, data, **context):
    """Validate `data` against `model`, raising PayloadError with a readable message."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise PayloadError('Invalid payload')
    try:
        return model.model_validate(data, context=context)
    except ValidationError as exc:
        first = exc.errors()[0]
        message = first.get('msg', 'Invalid payload')
        if message.startswith('Value error, '):
            message = message[len('Value error, '):]
        else:
            field = '.'.join(str(part) for part in first.get('loc', ()))
            message = f"Invalid {field}: {message}" if field else message
        raise PayloadError(message) from exc
