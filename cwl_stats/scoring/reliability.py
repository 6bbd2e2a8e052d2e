"""
Player scoring.

Pure functions over a player's accumulated career and season records:
three-star rate, reliability score with its breakdown, missed attacks, career
defense, best season, performance trend and league history.
"""

from collections import OrderedDict
from typing import List, Optional, Tuple

from cwl_stats.config import (
    DEFAULT_DEFENSE_QUALITY,
    DEFAULT_LEAGUE_SCORE,
    PERFORMANCE_TREND_THRESHOLD,
    RECENT_SEASONS_WINDOW,
    RELIABILITY_WEIGHTS,
    get_league_score,
)
from cwl_stats.processing.models import (
    BestSeason,
    LeagueHistoryEntry,
    PlayerCareerStats,
    PlayerSeasonStats,
    ReliabilityBreakdown,
)

TREND_IMPROVING = "improving"
TREND_STABLE = "stable"
TREND_DECLINING = "declining"


def calculate_three_star_rate(triples: int, attacks: int) -> float:
    return triples / attacks * 100 if attacks > 0 else 0.0


def calculate_performance(avg_stars: float, three_star_rate: float) -> float:
    """Half from average stars, half from three-star rate, capped at 100."""
    return min(100.0, (avg_stars / 3) * 50 + (three_star_rate / 100) * 50)


def calculate_attendance(attacks: int, wars: int) -> float:
    return min(100.0, attacks / wars * 100) if wars > 0 else 0.0


def calculate_league_adjustment(seasons: List[PlayerSeasonStats]) -> float:
    """
    Average league difficulty across seasons, weighted by attacks.

    Seasons without a known tier score DEFAULT_LEAGUE_SCORE.
    """
    total_score = 0.0
    total_weight = 0
    for season in seasons:
        total_score += get_league_score(season.league_tier) * season.attacks
        total_weight += season.attacks
    return total_score / total_weight if total_weight > 0 else float(DEFAULT_LEAGUE_SCORE)


def calculate_reliability(performance: float, attendance: float, league_adjustment: float) -> ReliabilityBreakdown:
    """
    Combine the three sub-scores into the weighted reliability score.

    Args:
        performance: Offensive performance, 0-100
        attendance: Attacks used per war joined, 0-100
        league_adjustment: League difficulty, 0-100

    Returns:
        ReliabilityBreakdown keeping every component
    """
    weighted = (performance * RELIABILITY_WEIGHTS["performance"]
                + attendance * RELIABILITY_WEIGHTS["attendance"]
                + league_adjustment * RELIABILITY_WEIGHTS["league_adjustment"])
    return ReliabilityBreakdown(
        performance=performance,
        attendance=attendance,
        league_adjustment=league_adjustment,
        weighted=weighted,
    )


def calculate_defense(seasons: List[PlayerSeasonStats]) -> Tuple[int, int, int, float, float]:
    """
    Sum defensive figures across seasons.

    A player never attacked on defense keeps DEFAULT_DEFENSE_QUALITY.

    Returns:
        (times attacked, stars allowed, triples allowed,
         average stars allowed, defense quality)
    """
    times_attacked = sum(s.times_attacked or 0 for s in seasons)
    stars_allowed = sum(s.stars_allowed or 0 for s in seasons)
    triples_allowed = sum(s.triples_allowed or 0 for s in seasons)

    if times_attacked <= 0:
        return times_attacked, stars_allowed, triples_allowed, 0.0, DEFAULT_DEFENSE_QUALITY

    avg_allowed = stars_allowed / times_attacked
    quality = max(0.0, 100 - (avg_allowed / 3) * 100)
    return times_attacked, stars_allowed, triples_allowed, avg_allowed, quality


def find_best_season(seasons: List[PlayerSeasonStats]) -> Optional[BestSeason]:
    """The season with the most stars, higher average stars breaking ties."""
    if not seasons:
        return None

    best = seasons[0]
    for season in seasons[1:]:
        if season.stars > best.stars or (season.stars == best.stars and season.avg_stars > best.avg_stars):
            best = season
    return BestSeason(season=best.season, stars=best.stars, avg_stars=best.avg_stars)


def _classify_difference(difference: float) -> str:
    if difference > PERFORMANCE_TREND_THRESHOLD:
        return TREND_IMPROVING
    if difference < -PERFORMANCE_TREND_THRESHOLD:
        return TREND_DECLINING
    return TREND_STABLE


def classify_performance_trend(seasons: List[PlayerSeasonStats]) -> Optional[str]:
    """
    Classify how a player's average stars moved over time.

    With more seasons than the recent window, the mean of the recent seasons
    is compared with the mean of the earlier ones; with two or three seasons
    the last is compared with the first. Fewer than two seasons give None.

    Args:
        seasons: Season records in chronological order

    Returns:
        "improving", "stable", "declining" or None
    """
    if len(seasons) > RECENT_SEASONS_WINDOW:
        recent = seasons[-RECENT_SEASONS_WINDOW:]
        earlier = seasons[:-RECENT_SEASONS_WINDOW]
        recent_avg = sum(s.avg_stars for s in recent) / len(recent)
        earlier_avg = sum(s.avg_stars for s in earlier) / len(earlier)
        return _classify_difference(recent_avg - earlier_avg)

    if len(seasons) >= 2:
        return _classify_difference(seasons[-1].avg_stars - seasons[0].avg_stars)

    return None


def build_league_history(seasons: List[PlayerSeasonStats]) -> List[LeagueHistoryEntry]:
    """Group seasons by league tier, most attacks first. Seasons without a tier are ignored."""
    grouped = OrderedDict()
    for season in seasons:
        if not season.league_tier:
            continue
        entry = grouped.get(season.league_tier)
        if entry is None:
            entry = LeagueHistoryEntry(league_tier=season.league_tier, seasons_played=0, attacks_in_league=0)
            grouped[season.league_tier] = entry
        entry.seasons_played += 1
        entry.attacks_in_league += season.attacks

    return sorted(grouped.values(), key=lambda e: e.attacks_in_league, reverse=True)


def score_player(player: PlayerCareerStats) -> PlayerCareerStats:
    """
    Compute every derived field of a player in place.

    Args:
        player: Enriched career stats

    Returns:
        The same player
    """
    player.three_star_rate = calculate_three_star_rate(player.triples, player.attacks)
    player.reliability = calculate_reliability(
        calculate_performance(player.avg_stars, player.three_star_rate),
        calculate_attendance(player.attacks, player.wars),
        calculate_league_adjustment(player.seasons),
    )

    # Not clamped: duplicated war data can push attacks above wars
    player.missed_attacks = player.wars - player.attacks

    (player.total_times_attacked,
     player.total_stars_allowed,
     player.total_triples_allowed,
     player.career_avg_stars_allowed,
     player.career_defense_quality) = calculate_defense(player.seasons)

    player.best_season = find_best_season(player.seasons)
    player.performance_trend = classify_performance_trend(player.seasons)

    player.league_history = build_league_history(player.seasons)
    player.primary_league = player.league_history[0].league_tier if player.league_history else None
    return player
