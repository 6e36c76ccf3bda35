"""Requests and Response models"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from gamehub.core.exceptions import InvalidRequestError
from gamehub.core.models import MovePayload
from gamehub.core.shared_types import GameStatus


def _require_text(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise InvalidRequestError(f"{field_name} cannot be empty")
    return value.strip()


# --- REQUEST MODELS ---
class CreateGameRequest(BaseModel):
    name: str
    game_type: str
    creator_id: str
    settings: dict[str, Any] = Field(default_factory=dict)

    @field_validator("name", "game_type", "creator_id")
    @classmethod
    def validate_text(cls, value: str, info: ValidationInfo) -> str:
        return _require_text(value, info.field_name or "value")


class JoinGameRequest(BaseModel):
    user_id: str

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, value: str) -> str:
        return _require_text(value, "user_id")


class MoveRequest(BaseModel):
    user_id: str
    move: MovePayload

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, value: str) -> str:
        return _require_text(value, "user_id")

    @field_validator("move")
    @classmethod
    def validate_move(cls, value: MovePayload) -> MovePayload:
        if isinstance(value, str) and not value.strip():
            raise InvalidRequestError("move cannot be empty")
        if isinstance(value, dict) and not value:
            raise InvalidRequestError("move cannot be empty")
        return value


# --- RESPONSE MODELS ---
class CreateGameResponse(BaseModel):
    id: UUID
    name: str
    game_type: str
    status: GameStatus
    move_count: int
    created_at: datetime


class JoinGameResponse(BaseModel):
    seat_order: int
    role: Optional[str]
    game_status: GameStatus


class MoveResponse(BaseModel):
    next_player_id: Optional[str]
    move_count: int
    is_game_complete: bool
    winner: Optional[str]


class ForceStartResponse(BaseModel):
    first_player_id: str
    player_count: int
    game_status: GameStatus


class SeatResponse(BaseModel):
    user_id: str
    username: Optional[str] = None
    seat_order: int
    role: Optional[str]
    joined_at: datetime


class MoveRecordResponse(BaseModel):
    sequence: int
    player_id: str
    move: MovePayload
    board_state_after: dict[str, Any]
    created_at: datetime


class GameSnapshotResponse(BaseModel):
    id: UUID
    name: str
    game_type: str
    status: GameStatus
    current_player_id: Optional[str]
    move_count: int
    min_seats: int
    max_seats: int
    winner_id: Optional[str]
    settings: dict[str, Any]
    seats: list[SeatResponse]
    board_state: dict[str, Any]
    render_data: dict[str, Any]
    stats: dict[str, Any]
    created_at: datetime
    updated_at: datetime
    version: int


class GameTypeResponse(BaseModel):
    game_type: str
    name: str
    description: str
    min_seats: int
    max_seats: int
    complexity: str
    categories: list[str]


class ConfigurationCheckResponse(BaseModel):
    valid: bool
    error: Optional[str] = None
