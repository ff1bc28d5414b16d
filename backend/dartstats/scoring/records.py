from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from dartstats.scoring.throws import Multiplier, Throw


class MalformedRecord(ValueError):
    """A stored game row that cannot be turned into a GameRecord."""


@dataclass(frozen=True)
class PlayerRef:
    name: str
    user_id: str | None = None


@dataclass(frozen=True)
class UserIdentity:
    user_id: str
    email: str | None = None
    nick_name: str | None = None
    full_name: str | None = None

    def matches_id(self, player: PlayerRef) -> bool:
        return bool(self.user_id) and player.user_id == self.user_id

    def matches_email(self, player: PlayerRef) -> bool:
        # Guest players and older logs only carry the email as the player name.
        return bool(self.email) and player.name == self.email

    def matches(self, player: PlayerRef) -> bool:
        return self.matches_id(player) or self.matches_email(player)


def _as_utc(ts: datetime | None) -> datetime | None:
    if ts is None:
        return None
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


@dataclass(frozen=True)
class GameRecord:
    """
    A completed match as read from the game log store. Read-only to the engine.

    Naive creation times are taken to be UTC so records always sort together.
    """

    game_id: str | None
    players: tuple[PlayerRef, ...]
    history: tuple[Throw, ...]
    winner: str | None = None
    created_at: datetime | None = None
    owner_id: str | None = None
    other_users: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "created_at", _as_utc(self.created_at))

    def involves(self, user_id: str) -> bool:
        return self.owner_id == user_id or user_id in self.other_users


def find_player_index(game: GameRecord, user: UserIdentity) -> int | None:
    """
    Locate the user among the game's players: user id first, email second.
    """
    for i, p in enumerate(game.players):
        if user.matches_id(p):
            return i
    for i, p in enumerate(game.players):
        if user.matches_email(p):
            return i
    return None


def is_winner(game: GameRecord, player: PlayerRef) -> bool:
    if game.winner is None:
        return False
    return game.winner == player.name or (player.user_id is not None and game.winner == player.user_id)


def resolve_display_name(user: UserIdentity) -> str:
    return user.nick_name or user.full_name or user.email or user.user_id


# --- Boundary normalization of stored rows ---


def _load_json(v: Any) -> Any:
    if isinstance(v, (str, bytes, bytearray)):
        return json.loads(v)
    return v


_MULTIPLIER_BY_FACTOR = {1: Multiplier.SINGLE, 2: Multiplier.DOUBLE, 3: Multiplier.TRIPLE}


class ThrowPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    value: int = Field(..., ge=0, le=25)
    multiplier: Multiplier = Multiplier.SINGLE
    player_index: int = Field(..., alias="playerIndex")
    score: int | None = None
    leg: int = Field(default=1, ge=1)
    turn_index: int = Field(default=0, ge=0, alias="turnIndex")
    was_bust: bool = Field(default=False, alias="wasBust")

    @field_validator("leg", "turn_index", "was_bust", mode="before")
    @classmethod
    def _null_means_default(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            return cls.model_fields[info.field_name].default
        return v

    @field_validator("multiplier", mode="before")
    @classmethod
    def _normalize_multiplier(cls, v: Any) -> Any:
        if v is None:
            return Multiplier.SINGLE
        if isinstance(v, int) and not isinstance(v, bool):
            if v not in _MULTIPLIER_BY_FACTOR:
                raise ValueError("multiplier must be 1, 2 or 3")
            return _MULTIPLIER_BY_FACTOR[v]
        if isinstance(v, str):
            return v.strip().lower()
        return v

    def to_throw(self) -> Throw:
        return Throw(
            value=self.value,
            multiplier=self.multiplier,
            player_index=self.player_index,
            score=self.score,
            leg=self.leg,
            turn_index=self.turn_index,
            was_bust=self.was_bust,
        )


class PlayerPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    name: str = ""
    user_id: str | None = None


class GameDataPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    players: list[PlayerPayload] = Field(default_factory=list)
    history: list[ThrowPayload] = Field(default_factory=list)
    winner: str | None = None

    @field_validator("players", "history", mode="before")
    @classmethod
    def _list_from_text(cls, v: Any) -> Any:
        if v is None:
            return []
        return _load_json(v)


class GameRowPayload(BaseModel):
    """
    One row of the games table: the serialized match lives in `game_data`.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str | None = None
    user_id: str | None = None
    created_at: datetime | None = None
    game_data: GameDataPayload
    other_users: list[str] = Field(default_factory=list)

    @field_validator("game_data", mode="before")
    @classmethod
    def _game_data_from_text(cls, v: Any) -> Any:
        return _load_json(v)

    @field_validator("other_users", mode="before")
    @classmethod
    def _split_other_users(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [u for u in re.split(r"[,\s]+", v) if u]
        return v


def parse_game_row(row: Mapping[str, Any] | str) -> GameRecord:
    """
    Normalize a stored game row into a GameRecord.

    Both the row itself and its `game_data` / `history` fields may arrive as
    JSON text. Raises MalformedRecord when the row cannot be read.
    """
    try:
        payload = GameRowPayload.model_validate(_load_json(row))
    except ValueError as e:
        # pydantic.ValidationError and json.JSONDecodeError are both ValueErrors.
        raise MalformedRecord(f"unreadable game row: {e}") from e

    data = payload.game_data
    return GameRecord(
        game_id=payload.id,
        players=tuple(PlayerRef(name=p.name, user_id=p.user_id) for p in data.players),
        history=tuple(t.to_throw() for t in data.history),
        winner=data.winner,
        created_at=_as_utc(payload.created_at),
        owner_id=payload.user_id,
        other_users=tuple(payload.other_users),
    )
