"""Community ranking engine (personal yearly orderings -> one leaderboard).

Single source of truth for the yearly results page:
- Scoring: every player spends a fixed budget of 1 across the games they
  ranked (rank 1 earns the largest share), scaled by the weighting scheme.
- Comparator: normalized score; then first-place votes; then top-two votes;
  then head-to-head among shared voters; then game name.
- Rank sets must form 1..N per player and year. Anything else rejects the
  whole computation with DataIntegrityError.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Callable, Iterable, Literal, Sequence

from .config import DEFAULT_SCHEME, FIRST_PLACE_RANK, TIE_TOLERANCE, TOP_TWO_RANK
from .types import ContributionPayload, RankingResultPayload

logger = logging.getLogger(__name__)


WeightingScheme = Literal["equal", "damped", "linear"]

SCHEMES: tuple[WeightingScheme, ...] = ("equal", "damped", "linear")


class DataIntegrityError(ValueError):
    """A player's ranking set for one year is not a contiguous 1..N permutation."""

    def __init__(self, player_id: str, year: int, reason: str):
        self.player_id = player_id
        self.year = year
        self.reason = reason
        super().__init__(f"invalid ranking for player {player_id} in {year}: {reason}")


@dataclass(frozen=True)
class Player:
    id: str
    name: str


@dataclass(frozen=True)
class Game:
    id: str
    name: str
    categories: tuple[str, ...] = ()


@dataclass(frozen=True)
class PersonalRanking:
    player_id: str
    game_id: str
    year: int
    # 1 = most preferred.
    rank: int


@dataclass(frozen=True)
class PlayerContribution:
    player: Player
    rank: int
    contribution: float


@dataclass(frozen=True)
class AggregateScore:
    game: Game
    score: float
    normalized_score: float
    total_weight: float
    # Sorted by rank ascending.
    player_contributions: tuple[PlayerContribution, ...]
    first_place_votes: int
    top_two_votes: int


_WEIGHTS: dict[str, Callable[[int], float]] = {
    "equal": lambda total: 1.0,
    "damped": lambda total: math.sqrt(total),
    "linear": lambda total: float(total),
}

_SCHEME_NAMES: dict[str, str] = {
    "equal": "Equal per Player (One Person = One Vote)",
    "damped": "Damped by Experience (Recommended)",
    "linear": "Linear by Games Played",
}

_SCHEME_DESCRIPTIONS: dict[str, str] = {
    "equal": (
        "Each player has equal voting weight (w_p = 1). Best for giving everyone "
        "an equal voice regardless of participation."
    ),
    "damped": (
        "Player weight is square root of games played (w_p = sqrt(n_p)). Values "
        "experience while not overpowering casual voters."
    ),
    "linear": (
        "Player weight proportional to games played (w_p = n_p). Gives more weight "
        "to players who participated more throughout the year."
    ),
}


def _check_scheme(scheme: str) -> None:
    if scheme not in _WEIGHTS:
        raise ValueError(f"scheme must be one of {SCHEMES}, got {scheme!r}")


def scheme_display_name(scheme: WeightingScheme) -> str:
    _check_scheme(scheme)
    return _SCHEME_NAMES[scheme]


def scheme_description(scheme: WeightingScheme) -> str:
    _check_scheme(scheme)
    return _SCHEME_DESCRIPTIONS[scheme]


def base_fraction(rank: int, total: int) -> float:
    """Share of a player's budget earned by the game at ``rank`` out of ``total``.

    raw_points = total - rank + 1, normalized by total * (total + 1) / 2 so the
    fractions of one player's ranks always sum to 1.
    """
    raw_points = total - rank + 1
    sum_points = total * (total + 1) / 2
    return raw_points / sum_points


def scheme_weight(total: int, scheme: WeightingScheme) -> float:
    """Voting weight of a player who ranked ``total`` games."""
    _check_scheme(scheme)
    return _WEIGHTS[scheme](total)


def _rank_sequence_problem(ranks: Sequence[int]) -> str | None:
    seen: set[int] = set()
    for rank_val in ranks:
        if not isinstance(rank_val, int) or isinstance(rank_val, bool) or rank_val <= 0:
            return f"non_positive_rank:{rank_val}"
        if rank_val in seen:
            return f"duplicate_rank:{rank_val}"
        seen.add(rank_val)
    missing = sorted(set(range(1, len(ranks) + 1)) - seen)
    if missing:
        return f"rank_gap:{missing[0]}"
    return None


def validate_rank_sequences(rankings: Iterable[PersonalRanking]) -> None:
    """Raise DataIntegrityError for the first (player, year) group that is not 1..N."""
    ranks_by_group: dict[tuple[str, int], list[int]] = {}
    games_by_group: dict[tuple[str, int], set[str]] = {}
    for record in rankings:
        key = (record.player_id, record.year)
        ranked_games = games_by_group.setdefault(key, set())
        if record.game_id in ranked_games:
            error = DataIntegrityError(
                record.player_id, record.year, f"duplicate_game:{record.game_id}"
            )
            logger.warning(f"Rejected ranking data: {error}")
            raise error
        ranked_games.add(record.game_id)
        ranks_by_group.setdefault(key, []).append(record.rank)

    for (player_id, year), ranks in ranks_by_group.items():
        reason = _rank_sequence_problem(ranks)
        if reason is not None:
            error = DataIntegrityError(player_id, year, reason)
            logger.warning(f"Rejected ranking data: {error}")
            raise error


def build_personal_ranking(
    player_id: str,
    year: int,
    ordered_game_ids: Sequence[str],
) -> list[PersonalRanking]:
    """Number an ordered list of game ids 1..N, best first."""
    seen: set[str] = set()
    out: list[PersonalRanking] = []
    for index, game_id in enumerate(ordered_game_ids):
        if game_id in seen:
            raise DataIntegrityError(player_id, year, f"duplicate_game:{game_id}")
        seen.add(game_id)
        out.append(PersonalRanking(player_id=player_id, game_id=game_id, year=year, rank=index + 1))
    return out


def _select_year(
    rankings: Iterable[PersonalRanking],
    year: int | None,
) -> list[PersonalRanking]:
    records = list(rankings)
    if year is not None:
        return [record for record in records if record.year == year]
    years = {record.year for record in records}
    if len(years) > 1:
        raise ValueError(f"rankings span several years {sorted(years)}; pass year explicitly")
    return records


def _stable_contribution_sort_key(item: PlayerContribution) -> tuple[int, str, str]:
    return (item.rank, item.player.name.lower(), item.player.id)


def score_games(
    players: Sequence[Player],
    games: Sequence[Game],
    rankings: Iterable[PersonalRanking],
    scheme: WeightingScheme,
    *,
    year: int | None = None,
) -> list[AggregateScore]:
    """
    Fold every player's ranking for one year into one AggregateScore per game.

    Args:
      players: known players; rankings of unknown players are ignored and
        never validated.
      games: candidate games; games nobody ranked are omitted from the output.
      rankings: PersonalRanking records.
      scheme: weighting scheme ("equal", "damped" or "linear").
      year: restrict to this year. Without it all records must share one year.

    Raises:
      DataIntegrityError: a player's ranks for the year are not 1..N.
      ValueError: unknown scheme or records spanning several years.
    """
    _check_scheme(scheme)
    players_by_id = {player.id: player for player in players}
    # Only records that get scored are validated; unknown players cannot reject the run.
    scored_rankings = [
        record
        for record in _select_year(rankings, year)
        if record.player_id in players_by_id
    ]
    validate_rank_sequences(scored_rankings)

    ranks_by_player: dict[str, dict[str, int]] = {}
    for record in scored_rankings:
        ranks_by_player.setdefault(record.player_id, {})[record.game_id] = record.rank

    # Game count includes games missing from ``games``; they are only hidden from output.
    weights_by_player = {
        player_id: scheme_weight(len(game_ranks), scheme)
        for player_id, game_ranks in ranks_by_player.items()
    }

    games_by_id = {game.id: game for game in games}
    scores: list[AggregateScore] = []
    for game in games_by_id.values():
        total_score = 0.0
        total_weight = 0.0
        first_place_votes = 0
        top_two_votes = 0
        contributions: list[PlayerContribution] = []
        for player_id, game_ranks in ranks_by_player.items():
            rank = game_ranks.get(game.id)
            if rank is None:
                continue
            weight = weights_by_player[player_id]
            contribution = base_fraction(rank, len(game_ranks)) * weight
            total_score += contribution
            total_weight += weight
            contributions.append(
                PlayerContribution(
                    player=players_by_id[player_id],
                    rank=rank,
                    contribution=contribution,
                )
            )
            if rank == FIRST_PLACE_RANK:
                first_place_votes += 1
            if rank <= TOP_TWO_RANK:
                top_two_votes += 1

        if not contributions:
            continue
        scores.append(
            AggregateScore(
                game=game,
                score=total_score,
                normalized_score=total_score / total_weight,
                total_weight=total_weight,
                player_contributions=tuple(
                    sorted(contributions, key=_stable_contribution_sort_key)
                ),
                first_place_votes=first_place_votes,
                top_two_votes=top_two_votes,
            )
        )
    return scores


def head_to_head(a: AggregateScore, b: AggregateScore) -> tuple[int, int]:
    """Count shared voters preferring ``a`` over ``b`` and vice versa."""
    a_ranks = {item.player.id: item.rank for item in a.player_contributions}
    a_wins = 0
    b_wins = 0
    for item in b.player_contributions:
        a_rank = a_ranks.get(item.player.id)
        if a_rank is None:
            continue
        if a_rank < item.rank:
            a_wins += 1
        elif item.rank < a_rank:
            b_wins += 1
    return a_wins, b_wins


def _name_sort_key(item: AggregateScore) -> tuple[str, str, str]:
    return (item.game.name.casefold(), item.game.name, item.game.id)


def _compare_scores(a: AggregateScore, b: AggregateScore, tie_tolerance: float) -> int:
    diff = a.normalized_score - b.normalized_score
    if abs(diff) > tie_tolerance:
        return -1 if diff > 0 else 1

    if a.first_place_votes != b.first_place_votes:
        return b.first_place_votes - a.first_place_votes

    if a.top_two_votes != b.top_two_votes:
        return b.top_two_votes - a.top_two_votes

    a_wins, b_wins = head_to_head(a, b)
    if a_wins != b_wins:
        return b_wins - a_wins

    a_key = _name_sort_key(a)
    b_key = _name_sort_key(b)
    if a_key == b_key:
        return 0
    return -1 if a_key < b_key else 1


def resolve_order(
    scores: Iterable[AggregateScore],
    *,
    tie_tolerance: float = TIE_TOLERANCE,
) -> list[AggregateScore]:
    """Order aggregate scores best first with the full tie-break cascade.

    Tolerance ties and head-to-head can both form cycles, so the input is put
    into a canonical order first; the result never depends on input order.
    """
    if not math.isfinite(tie_tolerance) or tie_tolerance < 0:
        raise ValueError(f"tie_tolerance must be a finite non-negative number, got {tie_tolerance}")
    canonical = sorted(scores, key=lambda item: (-item.normalized_score, _name_sort_key(item)))
    return sorted(
        canonical,
        key=cmp_to_key(lambda a, b: _compare_scores(a, b, tie_tolerance)),
    )


def calculate_rankings(
    players: Sequence[Player],
    games: Sequence[Game],
    rankings: Iterable[PersonalRanking],
    scheme: WeightingScheme = DEFAULT_SCHEME,
    *,
    year: int | None = None,
    tie_tolerance: float = TIE_TOLERANCE,
) -> list[AggregateScore]:
    """
    Compute the community leaderboard for one year.

    Args:
      players: known players.
      games: candidate games.
      rankings: PersonalRanking records.
      scheme: weighting scheme (default "damped").
      year: restrict to this year.
      tie_tolerance: normalized scores closer than this count as tied.
    """
    scores = score_games(players, games, rankings, scheme, year=year)
    ordered = resolve_order(scores, tie_tolerance=tie_tolerance)
    logger.debug(
        f"Ranked {len(ordered)} games (scheme={scheme}, year={year}, players={len(players)})"
    )
    return ordered


def _contribution_payload(item: PlayerContribution) -> ContributionPayload:
    return {
        "player": {"id": item.player.id, "name": item.player.name},
        "rank": item.rank,
        "contribution": item.contribution,
    }


def to_payload(results: Iterable[AggregateScore]) -> list[RankingResultPayload]:
    """Serialize ordered results into the shape consumed by the results page."""
    return [
        {
            "game": {
                "id": item.game.id,
                "name": item.game.name,
                "categories": list(item.game.categories),
            },
            "score": item.score,
            "normalizedScore": item.normalized_score,
            "playerContributions": [
                _contribution_payload(contrib) for contrib in item.player_contributions
            ],
            "firstPlaceVotes": item.first_place_votes,
            "topTwoVotes": item.top_two_votes,
        }
        for item in results
    ]
