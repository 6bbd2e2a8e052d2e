"""Shared helpers for season handling and tag canonicalization."""

from cwl_stats.common.season_manager import (
    SeasonManager,
    generate_all_seasons,
    get_current_season,
    is_current_season,
    truncate_seasons,
)
from cwl_stats.common.tags import file_tag, normalize_tag, strip_tag

__all__ = [
    'SeasonManager',
    'generate_all_seasons',
    'get_current_season',
    'is_current_season',
    'truncate_seasons',
    'normalize_tag',
    'strip_tag',
    'file_tag',
]
