"""
Season Manager - Centralized season handling for CWL data collection.

A CWL season is one calendar month identified as YYYY-MM. This module
generates the ordered list of seasons to process and answers questions about
the current season. It is the single interface for season-related operations
across the pipeline.
"""

from datetime import date
from typing import List, Optional

from cwl_stats.config import START_YEAR


def format_season(year: int, month: int) -> str:
    """Format a year and month as a YYYY-MM season id."""
    return f"{year:04d}-{month:02d}"


def get_current_season(today: Optional[date] = None) -> str:
    """Get the season id of the current calendar month.

    Args:
        today: Reference date, defaults to the local date

    Returns:
        Season id such as "2025-03"
    """
    today = today or date.today()
    return format_season(today.year, today.month)


def is_current_season(season: str, today: Optional[date] = None) -> bool:
    """Check whether a season id is the current calendar month."""
    return season == get_current_season(today)


def generate_all_seasons(start_year: int = START_YEAR, today: Optional[date] = None) -> List[str]:
    """Generate every season from January of start_year through the current month.

    Args:
        start_year: First year to include
        today: Reference date, defaults to the local date

    Returns:
        Season ids in chronological order, current month included
    """
    today = today or date.today()
    seasons = []
    for year in range(start_year, today.year + 1):
        last_month = today.month if year == today.year else 12
        for month in range(1, last_month + 1):
            seasons.append(format_season(year, month))
    return seasons


def truncate_seasons(seasons: List[str], start: Optional[str]) -> List[str]:
    """Drop seasons before the given start season.

    A start value that does not match any generated season leaves the full
    list untouched.
    """
    if not start or start not in seasons:
        return list(seasons)
    return seasons[seasons.index(start):]


class SeasonManager:
    """Manages the list of seasons processed in one run."""

    def __init__(self, start_year: int = START_YEAR, today: Optional[date] = None):
        self.start_year = start_year
        self.today = today or date.today()
        self.current_season = get_current_season(self.today)

    def get_seasons(self, start: Optional[str] = None) -> List[str]:
        """Get the seasons to process, optionally starting at a later season.

        Args:
            start: Season id to start from, e.g. "2023-06"

        Returns:
            Season ids in chronological order
        """
        return truncate_seasons(generate_all_seasons(self.start_year, self.today), start)

    def is_current(self, season: str) -> bool:
        """Check whether a season is the one currently running."""
        return season == self.current_season
