"""Player scoring and league-adjusted projections."""

from cwl_stats.scoring.projections import LeagueProjection, get_league_adjusted_projection
from cwl_stats.scoring.reliability import score_player

__all__ = ['LeagueProjection', 'get_league_adjusted_projection', 'score_player']
