from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from dartstats.scoring.records import (
    GameRecord,
    MalformedRecord,
    PlayerRef,
    UserIdentity,
    find_player_index,
    is_winner,
    parse_game_row,
    resolve_display_name,
)
from dartstats.scoring.throws import Multiplier


def _row(**overrides) -> dict:
    row = {
        "id": 7,
        "user_id": "u-1",
        "created_at": "2024-03-02T18:30:00",
        "game_data": {
            "players": [{"name": "me@example.com", "user_id": "u-1"}, {"name": "Guest"}],
            "winner": "Guest",
            "history": [
                {"value": 20, "multiplier": "triple", "playerIndex": 0, "score": 441, "leg": 1, "turnIndex": 0},
                {"value": 5, "multiplier": "single", "playerIndex": 1, "leg": 1, "turnIndex": 0, "wasBust": True},
            ],
        },
        "other_users": "u-2, u-3",
    }
    row.update(overrides)
    return row


def test_parse_structured_row() -> None:
    game = parse_game_row(_row())

    assert game.game_id == "7"
    assert game.owner_id == "u-1"
    assert game.other_users == ("u-2", "u-3")
    assert game.created_at == datetime(2024, 3, 2, 18, 30, tzinfo=timezone.utc)
    assert game.players == (PlayerRef(name="me@example.com", user_id="u-1"), PlayerRef(name="Guest"))
    assert game.winner == "Guest"

    first, second = game.history
    assert (first.value, first.multiplier, first.points, first.score) == (20, Multiplier.TRIPLE, 60, 441)
    assert second.score is None
    assert second.was_bust is True


def test_parse_serialized_game_data_and_history() -> None:
    data = _row()["game_data"]
    data = {**data, "history": json.dumps(data["history"])}
    game = parse_game_row(_row(game_data=json.dumps(data)))

    assert len(game.history) == 2
    assert game.history[0].turn_key == (1, 0)


def test_numeric_multipliers_are_accepted() -> None:
    data = _row()["game_data"]
    data["history"] = [{"value": 16, "multiplier": 2, "playerIndex": 0}]
    game = parse_game_row(_row(game_data=data))

    t = game.history[0]
    assert t.multiplier is Multiplier.DOUBLE
    assert (t.leg, t.turn_index, t.was_bust) == (1, 0, False)


def test_missing_history_is_empty() -> None:
    game = parse_game_row(_row(game_data={"players": [{"name": "a"}]}))
    assert game.history == ()
    assert game.winner is None


@pytest.mark.parametrize(
    "game_data",
    [
        "{not json",
        {"players": [], "history": [{"value": 99, "multiplier": "single", "playerIndex": 0}]},
        {"players": [], "history": [{"value": 20, "multiplier": "quad", "playerIndex": 0}]},
        {"players": [], "history": [{"value": 20, "multiplier": "single"}]},
    ],
)
def test_malformed_rows_raise(game_data) -> None:
    with pytest.raises(MalformedRecord):
        parse_game_row(_row(game_data=game_data))


def test_find_player_prefers_user_id() -> None:
    game = GameRecord(
        game_id="g",
        players=(PlayerRef(name="me@example.com"), PlayerRef(name="Robo", user_id="u-1")),
        history=(),
    )
    me = UserIdentity(user_id="u-1", email="me@example.com")

    assert find_player_index(game, me) == 1
    assert find_player_index(game, UserIdentity(user_id="u-5", email="me@example.com")) == 0
    assert find_player_index(game, UserIdentity(user_id="u-5")) is None


def test_is_winner_by_name_or_id() -> None:
    p = PlayerRef(name="Robo", user_id="u-1")
    game = GameRecord(game_id="g", players=(p,), history=(), winner="u-1")

    assert is_winner(game, p)
    assert not is_winner(GameRecord(game_id="g", players=(p,), history=()), p)


def test_display_name_fallbacks() -> None:
    assert resolve_display_name(UserIdentity("u-1", "a@b.c", "Nick", "Full Name")) == "Nick"
    assert resolve_display_name(UserIdentity("u-1", "a@b.c", None, "Full Name")) == "Full Name"
    assert resolve_display_name(UserIdentity("u-1", "a@b.c")) == "a@b.c"
    assert resolve_display_name(UserIdentity("u-1")) == "u-1"


def test_null_optional_throw_fields_fall_back_to_defaults() -> None:
    data = _row()["game_data"]
    data["history"] = [
        {"value": 20, "multiplier": "triple", "playerIndex": 0, "leg": None, "turnIndex": None, "wasBust": None}
    ]
    t = parse_game_row(_row(game_data=data)).history[0]

    assert (t.leg, t.turn_index, t.was_bust) == (1, 0, False)


def test_game_record_treats_naive_times_as_utc() -> None:
    game = GameRecord(game_id="g", players=(), history=(), created_at=datetime(2024, 1, 1, 9, 0))
    assert game.created_at == datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
