"""
Input validation schemas using Pydantic v2
Validates player, game, ranking and category preset records from storage
"""

import logging
import re
from typing import Any, Iterable, List, Self, Type, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .community_ranking import Game, PersonalRanking, Player
from .config import MAX_CATEGORIES_PER_GAME, MAX_CATEGORY_LENGTH, MAX_NAME_LENGTH
from .filters import CategoryPreset
from .types import CategoryPresetRow, GameRow, PlayerRow, RankingRow

logger = logging.getLogger(__name__)

_RecordT = TypeVar("_RecordT", bound=BaseModel)


class InputSanitizer:
    """Utility class for input sanitization"""

    @staticmethod
    def sanitize_string(value: str, max_length: int = MAX_NAME_LENGTH) -> str:
        """Sanitize string input"""
        if not isinstance(value, str):
            return str(value)[:max_length]

        # Remove null bytes
        value = value.replace("\0", "")

        # Strip whitespace
        value = value.strip()

        # Limit length
        return value[:max_length]

    @staticmethod
    def sanitize_display_name(name: str) -> str:
        """Sanitize player or game name for display - keeps Unicode letters and punctuation"""
        name = InputSanitizer.sanitize_string(name, MAX_NAME_LENGTH)
        # Control characters only; names like "Ticket to Ride: Europe" stay intact
        name = re.sub(r"[\x00-\x1f\x7f]", "", name)
        return name.strip()

    @staticmethod
    def sanitize_category(category: str) -> str:
        """Sanitize category name"""
        category = InputSanitizer.sanitize_string(category, MAX_CATEGORY_LENGTH)
        return re.sub(r"\s+", " ", category)


# ==================== VALIDATOR FUNCTIONS ====================


def _coerce_identifier(v: Any) -> Any:
    # Numeric ids from older exports are accepted as strings
    if isinstance(v, int) and not isinstance(v, bool):
        return str(v)
    if isinstance(v, str):
        return v.strip()
    return v


def _clean_categories(v: List[str]) -> List[str]:
    cleaned: List[str] = []
    for category in v:
        category = InputSanitizer.sanitize_category(category)
        if category and category not in cleaned:
            cleaned.append(category)
    if len(cleaned) > MAX_CATEGORIES_PER_GAME:
        raise ValueError(f"categories cannot exceed {MAX_CATEGORIES_PER_GAME} entries")
    return cleaned


class PlayerRecord(BaseModel):
    """Validated player row"""

    id: str = Field(..., min_length=1, max_length=64, description="Player id")
    displayName: str = Field(
        ...,
        validation_alias=AliasChoices("displayName", "name", "nickname"),
        description="Name shown on the leaderboard",
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return _coerce_identifier(v)

    @field_validator("displayName")
    @classmethod
    def validate_display_name(cls, v: str) -> str:
        v = InputSanitizer.sanitize_display_name(v)
        if len(v) == 0:
            raise ValueError("displayName cannot be empty")
        return v

    def to_player(self) -> Player:
        return Player(id=self.id, name=self.displayName)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class GameRecord(BaseModel):
    """Validated board game row"""

    id: str = Field(..., min_length=1, max_length=64, description="Game id")
    displayName: str = Field(
        ...,
        validation_alias=AliasChoices("displayName", "name"),
        description="Game title",
    )
    categories: List[str] = Field(default_factory=list, description="Category tags")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return _coerce_identifier(v)

    @field_validator("displayName")
    @classmethod
    def validate_display_name(cls, v: str) -> str:
        v = InputSanitizer.sanitize_display_name(v)
        if len(v) == 0:
            raise ValueError("displayName cannot be empty")
        return v

    @field_validator("categories", mode="before")
    @classmethod
    def default_categories(cls, v: Any) -> Any:
        # Storage returns NULL for games that were never tagged
        return [] if v is None else v

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, v: List[str]) -> List[str]:
        return _clean_categories(v)

    def to_game(self) -> Game:
        return Game(id=self.id, name=self.displayName, categories=tuple(self.categories))

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class RankingRecord(BaseModel):
    """
    Validated personal ranking row.

    Rank sign and contiguity are checked per player and year by the engine,
    which reports them as DataIntegrityError with player and year attached.
    """

    playerId: str = Field(
        ...,
        min_length=1,
        max_length=64,
        validation_alias=AliasChoices("playerId", "user_id"),
    )
    gameId: str = Field(
        ...,
        min_length=1,
        max_length=64,
        validation_alias=AliasChoices("gameId", "board_game_id"),
    )
    year: int = Field(..., ge=1, le=9999, description="Ranking year")
    rank: int = Field(..., description="Position in the personal ranking (1 = best)")

    @field_validator("playerId", "gameId", mode="before")
    @classmethod
    def coerce_ids(cls, v: Any) -> Any:
        return _coerce_identifier(v)

    @field_validator("year", "rank", mode="before")
    @classmethod
    def reject_bool(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("must be an integer, not a boolean")
        return v

    def to_ranking(self) -> PersonalRanking:
        return PersonalRanking(
            player_id=self.playerId,
            game_id=self.gameId,
            year=self.year,
            rank=self.rank,
        )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CategoryPresetRecord(BaseModel):
    """Validated category preset"""

    name: str = Field(..., max_length=MAX_CATEGORY_LENGTH, description="Preset name")
    categories: List[str] = Field(default_factory=list, description="Categories in preset")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return InputSanitizer.sanitize_display_name(v)

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, v: List[str]) -> List[str]:
        return _clean_categories(v)

    @model_validator(mode="after")
    def validate_preset_fields(self) -> Self:
        if not self.name:
            raise ValueError("preset requires a name")
        if not self.categories:
            raise ValueError("preset requires at least one category")
        return self

    def to_preset(self) -> CategoryPreset:
        return CategoryPreset(name=self.name, categories=tuple(self.categories))

    model_config = ConfigDict(extra="ignore")


class RecordParser:
    """Turns storage rows into engine inputs, rejecting malformed rows"""

    @staticmethod
    def _validate_all(
        model: Type[_RecordT], records: Iterable[Any], kind: str
    ) -> List[_RecordT]:
        parsed: List[_RecordT] = []
        for index, record in enumerate(records):
            try:
                parsed.append(model.model_validate(record))
            except ValidationError as e:
                logger.warning(f"{kind} record {index} validation failed: {e}")
                raise ValueError(f"Invalid {kind} record {index}: {e}") from e
        return parsed

    @staticmethod
    def parse_players(records: Iterable[PlayerRow]) -> List[Player]:
        return [
            rec.to_player()
            for rec in RecordParser._validate_all(PlayerRecord, records, "player")
        ]

    @staticmethod
    def parse_games(records: Iterable[GameRow]) -> List[Game]:
        return [rec.to_game() for rec in RecordParser._validate_all(GameRecord, records, "game")]

    @staticmethod
    def parse_rankings(records: Iterable[RankingRow]) -> List[PersonalRanking]:
        """
        Validate ranking rows

        Returns:
            List[PersonalRanking]: one entry per row, in input order

        Raises:
            ValueError: If a row is malformed (names the row index)
        """
        return [
            rec.to_ranking()
            for rec in RecordParser._validate_all(RankingRecord, records, "ranking")
        ]

    @staticmethod
    def parse_presets(records: Iterable[CategoryPresetRow]) -> List[CategoryPreset]:
        return [
            rec.to_preset()
            for rec in RecordParser._validate_all(CategoryPresetRecord, records, "preset")
        ]


# ==================== EXPORT ====================

__all__ = [
    "InputSanitizer",
    "PlayerRecord",
    "GameRecord",
    "RankingRecord",
    "CategoryPresetRecord",
    "RecordParser",
]
