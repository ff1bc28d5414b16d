from __future__ import annotations

import logging
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Mapping, Protocol

from dartstats.scoring.records import GameRecord, MalformedRecord, UserIdentity, parse_game_row

logger = logging.getLogger(__name__)

_NO_TIMESTAMP = datetime.min.replace(tzinfo=timezone.utc)


class GameLogStore(Protocol):
    """
    The narrow query surface the stats engine and the API need from the
    backing record store.
    """

    def fetch_recent_games(self, user_id: str) -> list[GameRecord]: ...

    def get_user(self, user_id: str) -> UserIdentity | None: ...


class WritableGameLogStore(GameLogStore, Protocol):
    """A GameLogStore that also accepts new game rows and user profiles."""

    def add_game_row(self, row: Mapping[str, Any]) -> None: ...

    def upsert_user(self, user: UserIdentity) -> UserIdentity: ...


class InMemoryGameLogStore:
    """
    Minimal in-memory store for completed game rows and user profiles.

    Rows are kept as received (game_data may still be JSON text) and
    normalized when read back.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._rows: list[dict[str, Any]] = []
        self._users: dict[str, UserIdentity] = {}

    def clear(self) -> None:
        with self._lock:
            self._rows.clear()
            self._users.clear()

    def add_game_row(self, row: Mapping[str, Any]) -> None:
        with self._lock:
            self._rows.append(dict(row))

    def upsert_user(self, user: UserIdentity) -> UserIdentity:
        with self._lock:
            self._users[user.user_id] = user
        return user

    def get_user(self, user_id: str) -> UserIdentity | None:
        with self._lock:
            return self._users.get(user_id)

    def fetch_recent_games(self, user_id: str) -> list[GameRecord]:
        """
        Games created by the user plus games listing them as another
        participant, newest first. Unreadable rows are logged and skipped.
        """
        with self._lock:
            rows = list(self._rows)

        games: list[GameRecord] = []
        seen_ids: set[str] = set()
        for row in rows:
            try:
                game = parse_game_row(row)
            except MalformedRecord as e:
                logger.warning("skipping stored game %r: %s", row.get("id"), e)
                continue
            if not game.involves(user_id):
                continue
            if game.game_id is not None:
                if game.game_id in seen_ids:
                    continue
                seen_ids.add(game.game_id)
            games.append(game)

        games.sort(key=lambda g: g.created_at or _NO_TIMESTAMP, reverse=True)
        return games
