"""Type definitions for raw records and result payloads."""
from __future__ import annotations

from typing import List, Optional, TypedDict


class PlayerRow(TypedDict, total=False):
    """A player record as delivered by the storage layer."""
    id: str
    displayName: str
    # Storage column names, accepted as aliases
    name: Optional[str]
    nickname: Optional[str]


class GameRow(TypedDict, total=False):
    """A board game record as delivered by the storage layer."""
    id: str
    displayName: str
    name: Optional[str]
    categories: List[str]


class RankingRow(TypedDict, total=False):
    """
    One personal ranking entry: a player placed a game at ``rank`` for ``year``.

    ``user_id`` and ``board_game_id`` are the storage column names and are
    accepted in place of ``playerId`` and ``gameId``.
    """
    playerId: str
    gameId: str
    year: int
    rank: int  # 1 = most preferred
    user_id: Optional[str]
    board_game_id: Optional[str]


class CategoryPresetRow(TypedDict, total=False):
    """A saved named group of categories for filtering results."""
    name: str
    categories: List[str]


class PlayerPayload(TypedDict):
    id: str
    name: str


class GamePayload(TypedDict):
    id: str
    name: str
    categories: List[str]


class ContributionPayload(TypedDict):
    player: PlayerPayload
    rank: int
    contribution: float


class RankingResultPayload(TypedDict):
    """One row of the ordered community leaderboard."""
    game: GamePayload
    score: float
    normalizedScore: float
    playerContributions: List[ContributionPayload]
    firstPlaceVotes: int
    topTwoVotes: int
