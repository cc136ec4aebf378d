from .community_ranking import (
    SCHEMES,
    AggregateScore,
    DataIntegrityError,
    Game,
    PersonalRanking,
    Player,
    PlayerContribution,
    WeightingScheme,
    base_fraction,
    build_personal_ranking,
    calculate_rankings,
    head_to_head,
    resolve_order,
    scheme_description,
    scheme_display_name,
    scheme_weight,
    score_games,
    to_payload,
    validate_rank_sequences,
)
from .filters import CategoryPreset, apply_preset, available_categories, filter_by_categories
from .types import CategoryPresetRow, GameRow, PlayerRow, RankingResultPayload, RankingRow
from .validation import InputSanitizer, RecordParser

__all__ = [
    "SCHEMES",
    "AggregateScore",
    "DataIntegrityError",
    "Game",
    "PersonalRanking",
    "Player",
    "PlayerContribution",
    "WeightingScheme",
    "base_fraction",
    "build_personal_ranking",
    "calculate_rankings",
    "head_to_head",
    "resolve_order",
    "scheme_description",
    "scheme_display_name",
    "scheme_weight",
    "score_games",
    "to_payload",
    "validate_rank_sequences",
    "CategoryPreset",
    "apply_preset",
    "available_categories",
    "filter_by_categories",
    "CategoryPresetRow",
    "GameRow",
    "PlayerRow",
    "RankingResultPayload",
    "RankingRow",
    "InputSanitizer",
    "RecordParser",
]
