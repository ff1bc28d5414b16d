from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from dartstats.config import CHECKOUT_SUGGESTIONS, LOG_LEVEL
from dartstats.scoring.checkout import suggest_checkouts
from dartstats.scoring.records import GameRecord, MalformedRecord, UserIdentity, parse_game_row
from dartstats.scoring.stats import CheckoutTally, GameStats, compute_stats
from dartstats.scoring.store import GameLogStore, InMemoryGameLogStore, WritableGameLogStore

logger = logging.getLogger(__name__)


class UserProfileRequest(BaseModel):
    email: str | None = Field(default=None, max_length=320)
    nick_name: str | None = Field(default=None, max_length=100)
    full_name: str | None = Field(default=None, max_length=200)


class UserDTO(BaseModel):
    user_id: str
    email: str | None
    nick_name: str | None
    full_name: str | None


class GameRowRequest(BaseModel):
    id: str | None = Field(default=None, description="Generated when omitted")
    user_id: str = Field(..., min_length=1, description="Creator of the game")
    created_at: datetime | None = Field(default=None, description="Defaults to now")
    game_data: dict[str, Any] | str = Field(..., description="Serialized match: players, history, winner")
    other_users: list[str] | str | None = Field(default=None, description="Other participating user ids")


class PlayerDTO(BaseModel):
    name: str
    user_id: str | None


class GameSummaryDTO(BaseModel):
    game_id: str | None
    created_at: datetime | None
    players: list[PlayerDTO]
    winner: str | None
    throws: int


class CheckoutMissDTO(BaseModel):
    score: int
    attempts: int
    successes: int
    suggested_route: list[str]


class GameStatsDTO(BaseModel):
    user_name: str
    total_games: int
    games_won: int
    total_average: float
    checkout_rate: float
    checkout_attempts: int
    checkout_successes: int
    best_leg_average: float
    best_leg_darts: int
    scores_180: int
    scores_140_plus: int
    scores_100_plus: int
    average_first_9: float
    points_scored: int
    darts_thrown: int
    common_checkout_misses: list[CheckoutMissDTO]
    strengths: list[str]
    weaknesses: list[str]
    training_tips: list[str]
    recent_trend: str


class CheckoutSuggestionDTO(BaseModel):
    route: list[str]
    total: int


class CheckoutResponseDTO(BaseModel):
    remaining: int
    suggestions: list[CheckoutSuggestionDTO]


def _user_to_dto(u: UserIdentity) -> UserDTO:
    return UserDTO(user_id=u.user_id, email=u.email, nick_name=u.nick_name, full_name=u.full_name)


def _game_to_dto(g: GameRecord) -> GameSummaryDTO:
    return GameSummaryDTO(
        game_id=g.game_id,
        created_at=g.created_at,
        players=[PlayerDTO(name=p.name, user_id=p.user_id) for p in g.players],
        winner=g.winner,
        throws=len(g.history),
    )


def _checkout_miss_to_dto(c: CheckoutTally) -> CheckoutMissDTO:
    routes = suggest_checkouts(c.score, limit=1)
    return CheckoutMissDTO(
        score=c.score,
        attempts=c.attempts,
        successes=c.successes,
        suggested_route=routes[0].as_strings() if routes else [],
    )


def _stats_to_dto(s: GameStats) -> GameStatsDTO:
    return GameStatsDTO(
        user_name=s.user_name,
        total_games=s.total_games,
        games_won=s.games_won,
        total_average=s.total_average,
        checkout_rate=s.checkout_rate,
        checkout_attempts=s.checkout_attempts,
        checkout_successes=s.checkout_successes,
        best_leg_average=s.best_leg_average,
        best_leg_darts=s.best_leg_darts,
        scores_180=s.scores_180,
        scores_140_plus=s.scores_140_plus,
        scores_100_plus=s.scores_100_plus,
        average_first_9=s.average_first_9,
        points_scored=s.points_scored,
        darts_thrown=s.darts_thrown,
        common_checkout_misses=[_checkout_miss_to_dto(c) for c in s.common_checkout_misses],
        strengths=list(s.strengths),
        weaknesses=list(s.weaknesses),
        training_tips=list(s.training_tips),
        recent_trend=s.recent_trend,
    )


def get_store(request: Request) -> WritableGameLogStore:
    return request.app.state.store


def _require_user(store: GameLogStore, user_id: str) -> UserIdentity:
    user = store.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="user not found")
    return user


def create_app(store: WritableGameLogStore | None = None) -> FastAPI:
    logging.getLogger("dartstats").setLevel(LOG_LEVEL)

    app = FastAPI(title="Darts dashboard stats")
    app.state.store = store if store is not None else InMemoryGameLogStore()

    @app.get("/", include_in_schema=False)
    def root(request: Request):
        # Browsers go to Swagger UI; API clients get the JSON index.
        accept = (request.headers.get("accept") or "").lower()
        if "text/html" in accept:
            return RedirectResponse(url="/docs")
        return {
            "name": "Darts dashboard stats",
            "docs": "/docs",
            "health": "/health",
            "endpoints": [
                "PUT /users/{user_id}",
                "POST /games",
                "GET /users/{user_id}/games",
                "GET /users/{user_id}/stats",
                "GET /checkout?remaining=<int>",
            ],
        }

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.put("/users/{user_id}", response_model=UserDTO)
    def upsert_user(
        user_id: str, req: UserProfileRequest, store: WritableGameLogStore = Depends(get_store)
    ) -> UserDTO:
        user = store.upsert_user(
            UserIdentity(user_id=user_id, email=req.email, nick_name=req.nick_name, full_name=req.full_name)
        )
        return _user_to_dto(user)

    @app.post("/games", response_model=GameSummaryDTO)
    def record_game(req: GameRowRequest, store: WritableGameLogStore = Depends(get_store)) -> GameSummaryDTO:
        row = req.model_dump()
        row["id"] = row["id"] or str(uuid4())
        row["created_at"] = row["created_at"] or datetime.now(timezone.utc)
        try:
            game = parse_game_row(row)
        except MalformedRecord as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        store.add_game_row(row)
        logger.info("recorded game %s for %s (%d throws)", game.game_id, req.user_id, len(game.history))
        return _game_to_dto(game)

    @app.get("/users/{user_id}/games", response_model=list[GameSummaryDTO])
    def list_games(user_id: str, store: GameLogStore = Depends(get_store)) -> list[GameSummaryDTO]:
        return [_game_to_dto(g) for g in store.fetch_recent_games(user_id)]

    @app.get("/users/{user_id}/stats", response_model=GameStatsDTO)
    def user_stats(user_id: str, store: GameLogStore = Depends(get_store)) -> GameStatsDTO:
        user = _require_user(store, user_id)
        stats = compute_stats(user, store.fetch_recent_games(user_id))
        if stats is None:
            raise HTTPException(status_code=404, detail="no game data")
        return _stats_to_dto(stats)

    @app.get("/checkout", response_model=CheckoutResponseDTO)
    def checkout_suggestions(remaining: int) -> CheckoutResponseDTO:
        suggestions = suggest_checkouts(remaining, limit=CHECKOUT_SUGGESTIONS)
        return CheckoutResponseDTO(
            remaining=remaining,
            suggestions=[CheckoutSuggestionDTO(route=s.as_strings(), total=s.total) for s in suggestions],
        )

    return app


app = create_app()
