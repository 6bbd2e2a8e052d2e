"""
Player Enricher

Backfills fields the ClashKing payloads do not carry, after every season has
been accumulated:

1. Defense: times attacked, stars/triples allowed and defense quality from the
   per-season clan roster files under history/seasons/{season}/clans/.
2. League tier: from the clan war league CSV exports.
3. Town hall, only while still unset, from in order: the war statistics
   CSV exports, the individual player files, the season roster files.

Every source is optional. A missing or malformed file is logged and skipped.
"""

import json
import logging
import math
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from cwl_stats.common.tags import file_tag, normalize_tag
from cwl_stats.config import CSV_DIR, DEFAULT_DEFENSE_QUALITY, FAMILY_CLANS, PLAYERS_DIR, SEASONS_DIR
from cwl_stats.enrichment.csv_sources import load_league_tiers, load_war_statistics_th
from cwl_stats.processing.models import LeagueInfo, PlayerCareerStats

logger = logging.getLogger(__name__)

SEASON_DIR_PATTERN = re.compile(r'^\d{4}-\d{2}$')

DEFENSE_FIELDS = ('timesAttacked', 'starsAllowed', 'avgStarsAllowed', 'triplesAllowed', 'defenseQuality')


def _load_json(path: Path) -> Optional[Dict]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read {path}: {e}")
        return None
    return data if isinstance(data, dict) else None


def _is_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _positive_int(value) -> Optional[int]:
    if not _is_number(value):
        return None
    return int(value) if value > 0 else None


def _entry_tag(entry: Dict, key: str, source: Path) -> Optional[str]:
    """Canonical tag of a file entry, or None when missing or not text."""
    tag = entry.get(key)
    if not tag:
        return None
    if not isinstance(tag, str):
        logger.warning(f"Skipping entry with invalid {key} {tag!r} in {source}")
        return None
    return normalize_tag(tag)


class PlayerEnricher:
    """Applies the enrichment sources to accumulated players."""

    def __init__(self, seasons_dir: Optional[Path] = None, players_dir: Optional[Path] = None,
                 csv_dir: Optional[Path] = None, clan_tags: Optional[Iterable[str]] = None):
        self.seasons_dir = Path(seasons_dir) if seasons_dir else SEASONS_DIR
        self.players_dir = Path(players_dir) if players_dir else PLAYERS_DIR
        self.csv_dir = Path(csv_dir) if csv_dir else CSV_DIR
        self.clan_tags = [normalize_tag(t) for t in (clan_tags or FAMILY_CLANS.values())]

        self._roster_cache: Dict[Tuple[str, str], Optional[Dict]] = {}
        self.league_tiers: Dict[Tuple[str, str], str] = {}
        self.stats = {
            "defense_applied": 0,
            "league_tiers_applied": 0,
            "th_from_war_stats": 0,
            "th_from_player_files": 0,
            "th_from_season_rosters": 0,
        }

    # ------------------------------------------------------------------
    # Season roster files
    # ------------------------------------------------------------------

    def roster_file(self, season: str, clan_tag: str) -> Path:
        return self.seasons_dir / season / 'clans' / f"{file_tag(clan_tag)}.json"

    def load_season_clan(self, season: str, clan_tag: str) -> Optional[Dict]:
        """Load a season clan detail file once per run."""
        key = (season, normalize_tag(clan_tag))
        if key not in self._roster_cache:
            path = self.roster_file(season, clan_tag)
            self._roster_cache[key] = _load_json(path) if path.exists() else None
        return self._roster_cache[key]

    def season_dirs(self, newest_first: bool = True) -> List[str]:
        if not self.seasons_dir.exists():
            return []
        names = [p.name for p in self.seasons_dir.iterdir()
                 if p.is_dir() and SEASON_DIR_PATTERN.match(p.name)]
        return sorted(names, reverse=newest_first)

    # ------------------------------------------------------------------
    # Defense
    # ------------------------------------------------------------------

    def apply_defense(self, players: Iterable[PlayerCareerStats]) -> int:
        """
        Copy per-season defense figures from the season roster files.

        Args:
            players: Accumulated players

        Returns:
            Number of player seasons updated
        """
        rosters: Dict[Tuple[str, str], Dict[str, Dict]] = {}
        applied = 0

        for player in players:
            for season in player.seasons:
                key = (season.season, season.clan_tag)
                if key not in rosters:
                    rosters[key] = self._defense_roster(season.season, season.clan_tag)

                entry = rosters[key].get(player.tag)
                if entry is None:
                    continue

                season.times_attacked = int(entry.get('timesAttacked') or 0)
                season.stars_allowed = int(entry.get('starsAllowed') or 0)
                season.avg_stars_allowed = entry.get('avgStarsAllowed') or 0
                season.triples_allowed = int(entry.get('triplesAllowed') or 0)
                quality = entry.get('defenseQuality')
                season.defense_quality = DEFAULT_DEFENSE_QUALITY if quality is None else quality
                applied += 1

        self.stats["defense_applied"] += applied
        logger.debug(f"Applied defense data to {applied} player seasons")
        return applied

    def _defense_roster(self, season: str, clan_tag: str) -> Dict[str, Dict]:
        data = self.load_season_clan(season, clan_tag)
        roster = data.get('roster') if data else None
        if not isinstance(roster, list):
            return {}

        source = self.roster_file(season, clan_tag)
        entries = {}
        for entry in roster:
            if not isinstance(entry, dict):
                continue
            tag = _entry_tag(entry, 'tag', source)
            if not tag:
                continue
            invalid = [f for f in DEFENSE_FIELDS if entry.get(f) is not None and not _is_number(entry.get(f))]
            if invalid:
                logger.warning(f"Skipping defense data for {tag} in {source}: invalid {', '.join(invalid)}")
                continue
            entries[tag] = entry
        return entries

    # ------------------------------------------------------------------
    # League tiers
    # ------------------------------------------------------------------

    def apply_league_tiers(self, players: Iterable[PlayerCareerStats]) -> int:
        """Label each player season with its clan's league tier."""
        if not self.league_tiers:
            self.league_tiers = load_league_tiers(self.csv_dir)

        applied = 0
        for player in players:
            for season in player.seasons:
                tier = self.league_tiers.get((season.clan_tag, season.season))
                if tier:
                    season.league_tier = tier
                    applied += 1

        self.stats["league_tiers_applied"] += applied
        return applied

    # ------------------------------------------------------------------
    # Town hall
    # ------------------------------------------------------------------

    def apply_town_hall(self, players: List[PlayerCareerStats]):
        """Fill missing town hall levels from the fallback sources in priority order."""
        self._fill_th(players, load_war_statistics_th(self.csv_dir), "th_from_war_stats")
        if any(not p.th for p in players):
            self._fill_th(players, self.load_player_file_th(), "th_from_player_files")
        if any(not p.th for p in players):
            self._fill_th(players, self.load_season_roster_th(), "th_from_season_rosters")

    def _fill_th(self, players: List[PlayerCareerStats], levels: Dict[str, int], stat_key: str):
        for player in players:
            if player.th:
                continue
            level = levels.get(player.tag)
            if level:
                player.th = level
                self.stats[stat_key] += 1
        logger.debug(f"{stat_key}: {self.stats[stat_key]} players")

    def load_player_file_th(self) -> Dict[str, int]:
        """
        Read the latest town hall from the individual player files.

        Seasons in a player file are newest first; the root "th" field is used
        when no season has one.
        """
        levels = {}
        if not self.players_dir.exists():
            return levels

        for path in sorted(self.players_dir.glob('*.json')):
            data = _load_json(path)
            if not data:
                continue
            tag = _entry_tag(data, 'playerTag', path)
            if not tag:
                continue

            latest = None
            seasons = data.get('seasons')
            for season in seasons if isinstance(seasons, list) else []:
                if isinstance(season, dict):
                    latest = _positive_int(season.get('th'))
                    if latest:
                        break
            latest = latest or _positive_int(data.get('th'))
            if latest:
                levels[tag] = latest
        return levels

    def load_season_roster_th(self) -> Dict[str, int]:
        """Read town hall levels from the season roster files, newest season winning."""
        levels = {}
        for season in self.season_dirs(newest_first=True):
            for clan_tag in self.clan_tags:
                data = self.load_season_clan(season, clan_tag)
                roster = data.get('roster') if data else None
                if not isinstance(roster, list):
                    continue
                for entry in roster:
                    if not isinstance(entry, dict):
                        continue
                    tag = _entry_tag(entry, 'tag', self.roster_file(season, clan_tag))
                    level = _positive_int(entry.get('townHallLevel'))
                    if tag and level and tag not in levels:
                        levels[tag] = level
        return levels

    # ------------------------------------------------------------------
    # Clan league
    # ------------------------------------------------------------------

    def latest_league_for_clan(self, clan_tag: str) -> Optional[LeagueInfo]:
        """
        Find the league a clan played in most recently.

        The newest season file with a league tier wins; the league CSV
        exports are used when no season file has one.
        """
        for season in self.season_dirs(newest_first=True):
            data = self.load_season_clan(season, clan_tag)
            league = data.get('league') if data else None
            if isinstance(league, dict) and isinstance(league.get('tier'), str) and league['tier']:
                group = league.get('group')
                return LeagueInfo(tier=league['tier'], group=group if isinstance(group, str) else None)

        clan_tag = normalize_tag(clan_tag)
        seasons = sorted((s for (t, s) in self.league_tiers if t == clan_tag), reverse=True)
        if seasons:
            return LeagueInfo(tier=self.league_tiers[(clan_tag, seasons[0])])
        return None

    def enrich(self, players: List[PlayerCareerStats]) -> Dict[str, int]:
        """
        Run every enrichment step over the players.

        Args:
            players: Accumulated players

        Returns:
            Counters of applied enrichments
        """
        logger.info("Populating defense data from season files...")
        self.apply_defense(players)
        logger.info("Populating league tier data from CSV files...")
        self.apply_league_tiers(players)
        logger.info("Populating missing TH data...")
        self.apply_town_hall(players)
        return dict(self.stats)
