"""
Output Writer

Serializes the scored players and clans into the JSON files read by the web
front end:
    players.json          every player, most career stars first
    family.json           family totals and a ranked clan summary
    clans/{TAG}.json      one file per clan with its current players

Keys are camelCase. Floats are rounded to two decimals here and nowhere else.
All documents are built before the first file is written.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from cwl_stats.common.tags import file_tag
from cwl_stats.config import get_output_dir
from cwl_stats.processing.models import ClanStats, LeagueInfo, PlayerCareerStats
from cwl_stats.processing.repository import ClanRepository, PlayerRepository
from cwl_stats.scoring.projections import get_league_adjusted_projection

logger = logging.getLogger(__name__)


def _round(value: Optional[float]) -> float:
    return round(value or 0.0, 2)


def _league_dict(league: Optional[LeagueInfo]) -> Optional[Dict[str, Any]]:
    if league is None:
        return None
    return {'tier': league.tier, 'group': league.group}


class OutputWriter:
    """Builds and writes the output documents."""

    def __init__(self, output_dir: Optional[Path] = None):
        self.output_dir = Path(output_dir) if output_dir else get_output_dir()
        self.clans_dir = self.output_dir / 'clans'

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    @staticmethod
    def reliability_dict(player: PlayerCareerStats) -> Optional[Dict[str, float]]:
        breakdown = player.reliability
        if breakdown is None:
            return None
        return {
            'performance': _round(breakdown.performance),
            'attendance': _round(breakdown.attendance),
            'leagueAdj': _round(breakdown.league_adjustment),
            'weighted': _round(breakdown.weighted),
        }

    def clan_player_record(self, player: PlayerCareerStats) -> Dict[str, Any]:
        """The player fields shared by players.json and the clan files."""
        return {
            'name': player.name,
            'tag': player.tag,
            'th': player.th,
            'wars': player.wars,
            'attacks': player.attacks,
            'stars': player.stars,
            'avgStars': _round(player.avg_stars),
            'destruction': _round(player.destruction),
            'avgDestruction': _round(player.avg_destruction),
            'triples': player.triples,
            'starBuckets': player.star_buckets.to_dict(),
            'threeStarRate': _round(player.three_star_rate),
            'reliabilityScore': _round(player.reliability_score),
            'reliabilityBreakdown': self.reliability_dict(player),
            'missedAttacks': player.missed_attacks,
        }

    def player_record(self, player: PlayerCareerStats) -> Dict[str, Any]:
        """
        Full players.json record.

        Optional fields without a value are left out.
        """
        record = self.clan_player_record(player)
        record['clan'] = player.clan
        record['clanTag'] = player.clan_tag

        if player.best_season is not None:
            record['bestSeason'] = {
                'season': player.best_season.season,
                'stars': player.best_season.stars,
                'avgStars': _round(player.best_season.avg_stars),
            }
        if player.performance_trend:
            record['performanceTrend'] = player.performance_trend

        record['totalTimesAttacked'] = player.total_times_attacked
        record['totalStarsAllowed'] = player.total_stars_allowed
        record['totalTriplesAllowed'] = player.total_triples_allowed
        record['careerAvgStarsAllowed'] = _round(player.career_avg_stars_allowed)
        record['careerDefenseQuality'] = _round(player.career_defense_quality)

        if player.primary_league:
            record['primaryLeague'] = player.primary_league
        if player.league_history:
            record['leagueHistory'] = [
                {
                    'leagueTier': entry.league_tier,
                    'seasonsPlayed': entry.seasons_played,
                    'attacksInLeague': entry.attacks_in_league,
                }
                for entry in player.league_history
            ]
        return record

    @staticmethod
    def clan_stats_dict(clan: ClanStats) -> Dict[str, Any]:
        return {
            'wars': clan.wars,
            'warsWon': clan.wars_won,
            'warsLost': clan.wars_lost,
            'warsTied': clan.wars_tied,
            'stars': clan.stars,
            'destruction': _round(clan.destruction),
            'attacks': clan.attacks,
            'winRate': _round(clan.win_rate),
        }

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def build_players(self, players: PlayerRepository) -> List[Dict[str, Any]]:
        return [self.player_record(p) for p in players.sorted_by_stars()]

    def build_family(self, players: PlayerRepository, clans: ClanRepository,
                     leagues: Dict[str, Optional[LeagueInfo]], current_season: str,
                     generated_at: str) -> Dict[str, Any]:
        """
        Build family.json.

        Args:
            players: Scored players
            clans: Accumulated clans
            leagues: Latest league per clan tag
            current_season: Season id of the current month
            generated_at: ISO timestamp

        Returns:
            The family document
        """
        ranked = []
        for rank, clan in enumerate(clans.sorted_by_stars(), start=1):
            entry = {'name': clan.name, 'tag': clan.tag, 'rank': rank}
            entry.update(self.clan_stats_dict(clan))
            entry['playerCount'] = len(players.for_clan(clan.tag))
            entry['allTimePlayerCount'] = len(clan.roster)
            entry['league'] = _league_dict(leagues.get(clan.tag))
            ranked.append(entry)

        all_clans = list(clans)
        return {
            'generatedAt': generated_at,
            'currentSeason': current_season,
            'totalPlayers': len(players),
            'totalWars': sum(c.wars for c in all_clans),
            'totalStars': sum(c.stars for c in all_clans),
            'totalAttacks': sum(c.attacks for c in all_clans),
            'clans': ranked,
        }

    def build_clan(self, clan: ClanStats, players: PlayerRepository, league: Optional[LeagueInfo],
                   current_season: str, generated_at: str) -> Dict[str, Any]:
        """Build one clans/{TAG}.json document."""
        clan_players = []
        for player in players.for_clan(clan.tag):
            record = self.clan_player_record(player)
            if league is not None:
                projection = get_league_adjusted_projection(player.avg_stars, player.seasons, league.tier)
                record['projection'] = {
                    'projectedStars': _round(projection.projected_stars),
                    'adjustment': projection.adjustment,
                    'confidence': projection.confidence,
                    'historicalLeague': projection.historical_league,
                }
            clan_players.append(record)

        return {
            'generatedAt': generated_at,
            'currentSeason': current_season,
            'clan': {'name': clan.name, 'tag': clan.tag},
            'league': _league_dict(league),
            'stats': self.clan_stats_dict(clan),
            'seasons': [
                {
                    'season': s.season,
                    'state': s.state,
                    'leagueTier': s.league_tier,
                    'wars': s.wars,
                    'warsEnded': s.wars_ended,
                    'wins': s.wins,
                    'losses': s.losses,
                    'ties': s.ties,
                }
                for s in clan.seasons
            ],
            'players': clan_players,
        }

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def _write_temp(self, path: Path, document: Any) -> str:
        """Write a document next to its destination and return the temp path."""
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
        except BaseException:
            os.unlink(tmp_path)
            raise
        return tmp_path

    def write_all(self, players: PlayerRepository, clans: ClanRepository,
                  leagues: Dict[str, Optional[LeagueInfo]], current_season: str) -> List[Path]:
        """
        Write players.json, family.json and every clan file.

        Every document is written to a temp file first; the real files are
        only replaced once all of them were written.

        Args:
            players: Scored players
            clans: Accumulated clans
            leagues: Latest league per clan tag
            current_season: Season id of the current month

        Returns:
            Paths written
        """
        generated_at = datetime.now(timezone.utc).isoformat()

        documents = [
            (self.output_dir / 'players.json', self.build_players(players)),
            (self.output_dir / 'family.json',
             self.build_family(players, clans, leagues, current_season, generated_at)),
        ]
        for clan in clans:
            documents.append((
                self.clans_dir / f"{file_tag(clan.tag)}.json",
                self.build_clan(clan, players, leagues.get(clan.tag), current_season, generated_at),
            ))

        staged = []
        try:
            for path, document in documents:
                staged.append((path, self._write_temp(path, document)))
        except BaseException:
            for _, tmp_path in staged:
                os.unlink(tmp_path)
            raise

        written = []
        for path, tmp_path in staged:
            os.replace(tmp_path, path)
            logger.info(f"Written {path}")
            written.append(path)
        return written
