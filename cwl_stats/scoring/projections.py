"""
League-difficulty-adjusted star projections.

Projects a player's stars over a full CWL season in a target league, nudging
the career average down when the target is harder than the league the player
usually plays in and up when it is easier.
"""

from dataclasses import dataclass
from typing import List, Optional

from cwl_stats.config import ATTACKS_PER_SEASON, LEAGUE_TIERS
from cwl_stats.processing.models import PlayerSeasonStats

CONFIDENCE_HIGH = "high"
CONFIDENCE_MEDIUM = "medium"
CONFIDENCE_LOW = "low"

HARDER_PENALTY_PER_TIER = -5
HARDER_PENALTY_CAP = -15
EASIER_BONUS_PER_TIER = 4
EASIER_BONUS_CAP = 10


@dataclass
class LeagueProjection:
    projected_stars: float
    adjustment: float
    confidence: str
    historical_league: Optional[str] = None


def get_league_tier_distance(from_league: Optional[str], to_league: Optional[str]) -> int:
    """Tiers between two leagues, positive when to_league is harder. Unknown tiers give 0."""
    if from_league not in LEAGUE_TIERS or to_league not in LEAGUE_TIERS:
        return 0
    return LEAGUE_TIERS.index(to_league) - LEAGUE_TIERS.index(from_league)


def get_most_common_league(seasons: List[PlayerSeasonStats]) -> Optional[str]:
    """
    The league a player has mostly played in, recent seasons weighing more.

    Args:
        seasons: Season records, oldest first

    Returns:
        League tier, or None when no season has one
    """
    weights = {}
    tiered = [s for s in seasons if s.league_tier]
    for position, season in enumerate(tiered, start=1):
        weights[season.league_tier] = weights.get(season.league_tier, 0) + position

    if not weights:
        return None
    return sorted(weights.items(), key=lambda item: item[1], reverse=True)[0][0]


def get_league_adjusted_projection(avg_stars: float, seasons: List[PlayerSeasonStats],
                                   target_league: Optional[str]) -> LeagueProjection:
    """
    Project a player's stars for a season in the target league.

    Args:
        avg_stars: Career average stars per attack
        seasons: Season records, oldest first
        target_league: League tier of the clan the player would attack for

    Returns:
        LeagueProjection
    """
    base = avg_stars * ATTACKS_PER_SEASON
    historical = get_most_common_league(seasons) if seasons else None
    if not historical:
        return LeagueProjection(projected_stars=base, adjustment=0, confidence=CONFIDENCE_LOW)

    distance = get_league_tier_distance(historical, target_league)
    if distance == 0:
        adjustment = 0
        confidence = CONFIDENCE_HIGH
    elif distance > 0:
        adjustment = max(HARDER_PENALTY_CAP, distance * HARDER_PENALTY_PER_TIER)
        confidence = CONFIDENCE_MEDIUM if distance == 1 else CONFIDENCE_LOW
    else:
        adjustment = min(EASIER_BONUS_CAP, abs(distance) * EASIER_BONUS_PER_TIER)
        confidence = CONFIDENCE_MEDIUM

    projected = avg_stars * (1 + adjustment / 100) * ATTACKS_PER_SEASON
    return LeagueProjection(
        projected_stars=projected,
        adjustment=adjustment,
        confidence=confidence,
        historical_league=historical,
    )
