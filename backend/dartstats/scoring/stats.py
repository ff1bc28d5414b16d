from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Sequence

from dartstats.config import MAX_RECENT_GAMES
from dartstats.scoring.feedback import derive_feedback
from dartstats.scoring.records import (
    GameRecord,
    MalformedRecord,
    UserIdentity,
    find_player_index,
    is_winner,
    parse_game_row,
    resolve_display_name,
)
from dartstats.scoring.throws import Multiplier, Throw, group_turns, sort_throws, turn_points

logger = logging.getLogger(__name__)

# Highest score that can be finished in three darts on a double.
MAX_CHECKOUT = 170
# Misses that leave more than this are treated as setup visits, not failed finishes.
MISS_TRACKING_LIMIT = 50
TOP_CHECKOUTS = 5

_NO_TIMESTAMP = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class CheckoutTally:
    score: int
    attempts: int
    successes: int


@dataclass(frozen=True)
class GameStats:
    total_average: float
    checkout_rate: float
    total_games: int
    games_won: int
    best_leg_average: float
    best_leg_darts: int
    scores_180: int
    scores_140_plus: int
    scores_100_plus: int
    average_first_9: float
    common_checkout_misses: tuple[CheckoutTally, ...]
    strengths: tuple[str, ...]
    weaknesses: tuple[str, ...]
    training_tips: tuple[str, ...]
    user_name: str
    points_scored: int
    darts_thrown: int
    checkout_attempts: int
    checkout_successes: int
    # Trend analysis over time is not implemented; dashboards always show "steady".
    recent_trend: str = "steady"


@dataclass
class _LegState:
    number: int = 1
    score: int = 0
    darts: int = 0
    first_9_score: int = 0
    first_9_darts: int = 0


@dataclass
class _Tally:
    """
    Running totals for one player. One tally is built per game and the
    per-game tallies are merged in game order.
    """

    points_scored: int = 0
    darts_thrown: int = 0
    checkout_attempts: int = 0
    checkout_successes: int = 0
    best_leg_average: float = 0.0
    best_leg_darts: int = 0
    first_9_total: int = 0
    first_9_rounds: int = 0
    scores_180: int = 0
    scores_140_plus: int = 0
    scores_100_plus: int = 0
    # starting score -> [attempts, successes], in first-seen order
    checkouts: dict[int, list[int]] = field(default_factory=dict)

    @property
    def three_dart_average(self) -> float:
        if self.darts_thrown == 0:
            return 0.0
        return (self.points_scored / self.darts_thrown) * 3.0

    @property
    def checkout_percentage(self) -> float:
        if self.checkout_attempts == 0:
            return 0.0
        return (self.checkout_successes / self.checkout_attempts) * 100.0

    @property
    def average_first_9(self) -> float:
        if self.first_9_rounds == 0:
            return 0.0
        return self.first_9_total / self.first_9_rounds

    def close_leg(self, leg: _LegState) -> None:
        if leg.darts == 0:
            return
        leg_average = leg.score / (leg.darts / 3)
        # Strict comparison: on a tie the earlier leg is kept.
        if leg_average > self.best_leg_average:
            self.best_leg_average = leg_average
            self.best_leg_darts = leg.darts
        self.points_scored += leg.score
        self.darts_thrown += leg.darts

    def record_checkout(self, score: int, *, success: bool) -> None:
        entry = self.checkouts.setdefault(score, [0, 0])
        entry[0] += 1
        if success:
            entry[1] += 1

    def merge(self, other: _Tally) -> None:
        self.points_scored += other.points_scored
        self.darts_thrown += other.darts_thrown
        self.checkout_attempts += other.checkout_attempts
        self.checkout_successes += other.checkout_successes
        if other.best_leg_average > self.best_leg_average:
            self.best_leg_average = other.best_leg_average
            self.best_leg_darts = other.best_leg_darts
        self.first_9_total += other.first_9_total
        self.first_9_rounds += other.first_9_rounds
        self.scores_180 += other.scores_180
        self.scores_140_plus += other.scores_140_plus
        self.scores_100_plus += other.scores_100_plus
        for score, (attempts, successes) in other.checkouts.items():
            entry = self.checkouts.setdefault(score, [0, 0])
            entry[0] += attempts
            entry[1] += successes

    def top_checkouts(self, limit: int = TOP_CHECKOUTS) -> tuple[CheckoutTally, ...]:
        # sorted() is stable: equal attempt counts keep first-seen order.
        ranked = sorted(self.checkouts.items(), key=lambda kv: kv[1][0], reverse=True)
        return tuple(
            CheckoutTally(score=score, attempts=attempts, successes=successes)
            for score, (attempts, successes) in ranked[:limit]
        )


def _classify_turn(tally: _Tally, turn: Sequence[Throw]) -> None:
    """
    Count 180 / 140+ / 100+ visits. Only complete three-dart turns by a single
    player without a bust are eligible.
    """
    if len(turn) != 3:
        return
    if len({t.player_index for t in turn}) != 1:
        return
    if any(t.was_bust for t in turn):
        return

    total = turn_points(turn)
    if total == 180:
        logger.debug("maximum in leg %d turn %d", turn[0].leg, turn[0].turn_index)
        tally.scores_180 += 1
    elif total >= 140:
        tally.scores_140_plus += 1
    elif total >= 100:
        tally.scores_100_plus += 1


def _track_checkout(tally: _Tally, turn: Sequence[Throw], last: Throw) -> None:
    """
    Evaluate a finished turn as a checkout attempt.

    The first dart's recorded score is the turn's starting score; the last
    dart's recorded score is what the player was left on.
    """
    start = turn[0].score
    if start is None or start > MAX_CHECKOUT:
        return

    tally.checkout_attempts += 1
    if last.score == 0 and last.multiplier is Multiplier.DOUBLE:
        tally.checkout_successes += 1
        tally.record_checkout(start, success=True)
    elif last.score is not None and 0 < last.score <= MISS_TRACKING_LIMIT:
        tally.record_checkout(start, success=False)


def _replay_game(throws: Iterable[Throw]) -> _Tally:
    """
    Rebuild legs and turns from one player's throws in one game.

    Logs are not guaranteed to be ordered, so throws are sorted by
    (leg, turn_index) before grouping.
    """
    tally = _Tally()
    leg = _LegState()

    for turn in group_turns(sort_throws(throws)).values():
        if turn[0].leg != leg.number:
            tally.close_leg(leg)
            leg = _LegState(number=turn[0].leg)

        _classify_turn(tally, turn)

        for position, t in enumerate(turn):
            if not t.was_bust:
                leg.score += t.points
            leg.darts += 1

            if leg.first_9_darts < 3 and not t.was_bust:
                leg.first_9_score += t.points
                leg.first_9_darts += 1
                if leg.first_9_darts == 3:
                    tally.first_9_total += leg.first_9_score
                    tally.first_9_rounds += 1

            if position == 2:
                _track_checkout(tally, turn, t)

    tally.close_leg(leg)
    return tally


def _normalize(records: Iterable[GameRecord | Mapping[str, Any] | str]) -> list[GameRecord]:
    out: list[GameRecord] = []
    for r in records:
        if isinstance(r, GameRecord):
            out.append(r)
            continue
        try:
            out.append(parse_game_row(r))
        except MalformedRecord as e:
            logger.warning("skipping game record: %s", e)
    return out


def _created_at_key(game: GameRecord) -> datetime:
    return game.created_at or _NO_TIMESTAMP


def select_recent_games(
    user: UserIdentity, games: Iterable[GameRecord], *, limit: int = MAX_RECENT_GAMES
) -> list[GameRecord]:
    """
    Games the user played in, newest first, capped at `limit`.
    Games without a creation time sort last.
    """
    played = [g for g in games if any(user.matches(p) for p in g.players)]
    played.sort(key=_created_at_key, reverse=True)
    return played[:limit]


def compute_stats(
    user: UserIdentity,
    records: Iterable[GameRecord | Mapping[str, Any] | str],
    *,
    max_games: int = MAX_RECENT_GAMES,
    user_name: str | None = None,
) -> GameStats | None:
    """
    Aggregate a player's performance over their most recent games.

    Returns None when there is nothing to analyse. Unreadable records are
    logged and skipped; games the player does not appear in are ignored.
    """
    games = select_recent_games(user, _normalize(records), limit=max_games)
    if not games:
        return None

    tally = _Tally()
    games_won = 0
    for game in games:
        player_index = find_player_index(game, user)
        if player_index is None:
            logger.debug("player %s not found in game %s", user.user_id, game.game_id)
            continue

        if is_winner(game, game.players[player_index]):
            games_won += 1

        tally.merge(_replay_game(t for t in game.history if t.player_index == player_index))

    top = tally.top_checkouts()
    feedback = derive_feedback(
        total_average=tally.three_dart_average,
        checkout_rate=tally.checkout_percentage,
        scores_180=tally.scores_180,
        scores_140_plus=tally.scores_140_plus,
        average_first_9=tally.average_first_9,
        most_attempted_checkouts=[c.score for c in top],
    )

    return GameStats(
        total_average=tally.three_dart_average,
        checkout_rate=tally.checkout_percentage,
        total_games=len(games),
        games_won=games_won,
        best_leg_average=tally.best_leg_average,
        best_leg_darts=tally.best_leg_darts,
        scores_180=tally.scores_180,
        scores_140_plus=tally.scores_140_plus,
        scores_100_plus=tally.scores_100_plus,
        average_first_9=tally.average_first_9,
        common_checkout_misses=top,
        strengths=feedback.strengths,
        weaknesses=feedback.weaknesses,
        training_tips=feedback.training_tips,
        user_name=user_name if user_name is not None else resolve_display_name(user),
        points_scored=tally.points_scored,
        darts_thrown=tally.darts_thrown,
        checkout_attempts=tally.checkout_attempts,
        checkout_successes=tally.checkout_successes,
    )
