"""
Player and Clan Repositories

In-memory keyed stores for the career statistics built during one run.
Records are keyed by canonical tag; inserting a season for an existing
player merges it into the career totals.
"""

import logging
from typing import Dict, Iterator, List, Optional

from cwl_stats.common.tags import normalize_tag
from cwl_stats.processing.accumulator import PlayerWarTally
from cwl_stats.processing.models import ClanStats, PlayerCareerStats, PlayerSeasonStats

logger = logging.getLogger(__name__)


class PlayerRepository:
    """Keyed store of PlayerCareerStats."""

    def __init__(self):
        self._players: Dict[str, PlayerCareerStats] = {}
        self.season_records = 0

    def __len__(self) -> int:
        return len(self._players)

    def __iter__(self) -> Iterator[PlayerCareerStats]:
        return iter(self._players.values())

    def __contains__(self, tag: str) -> bool:
        return normalize_tag(tag) in self._players

    def get(self, tag: str) -> Optional[PlayerCareerStats]:
        return self._players.get(normalize_tag(tag))

    def get_or_create(self, tag: str) -> PlayerCareerStats:
        tag = normalize_tag(tag)
        player = self._players.get(tag)
        if player is None:
            player = PlayerCareerStats(tag=tag)
            self._players[tag] = player
        return player

    def record_season(self, tag: str, season: str, clan_name: str, clan_tag: str,
                      tally: PlayerWarTally) -> PlayerSeasonStats:
        """
        Merge one season's tally into a player's career.

        The clan, name and town hall of the latest recorded season replace
        earlier values; counters are summed.

        Args:
            tag: Player tag
            season: Season id
            clan_name: Name of the clan the player attacked for
            clan_tag: Tag of that clan
            tally: Attacks counted for the season

        Returns:
            The season record appended to the player
        """
        player = self.get_or_create(tag)
        clan_tag = normalize_tag(clan_tag)

        if tally.latest_name:
            player.name = tally.latest_name
        if tally.latest_th:
            player.th = tally.latest_th
        player.clan = clan_name
        player.clan_tag = clan_tag

        season_stats = PlayerSeasonStats(
            season=season,
            clan=clan_name,
            clan_tag=clan_tag,
            town_hall_level=tally.latest_th,
            attacks=tally.attacks,
            stars=tally.stars,
            destruction=tally.destruction,
            triples=tally.triples,
            wars_participated=tally.wars_participated,
            star_buckets=tally.star_buckets,
        )
        player.seasons.append(season_stats)

        player.wars += tally.wars_participated
        player.attacks += tally.attacks
        player.stars += tally.stars
        player.destruction += tally.destruction
        player.triples += tally.triples
        player.star_buckets.merge(tally.star_buckets)

        self.season_records += 1
        return season_stats

    def sorted_by_stars(self) -> List[PlayerCareerStats]:
        """Players ordered by career stars, highest first."""
        return sorted(self._players.values(), key=lambda p: p.stars, reverse=True)

    def for_clan(self, clan_tag: str) -> List[PlayerCareerStats]:
        """Players whose current clan is the given clan, ordered by career stars."""
        clan_tag = normalize_tag(clan_tag)
        return [p for p in self.sorted_by_stars() if p.clan_tag == clan_tag]


class ClanRepository:
    """Keyed store of ClanStats for the tracked clans."""

    def __init__(self, clans: Optional[Dict[str, str]] = None):
        self._clans: Dict[str, ClanStats] = {}
        for name, tag in (clans or {}).items():
            self.register(name, tag)

    def __len__(self) -> int:
        return len(self._clans)

    def __iter__(self) -> Iterator[ClanStats]:
        return iter(self._clans.values())

    def register(self, name: str, tag: str) -> ClanStats:
        tag = normalize_tag(tag)
        clan = self._clans.get(tag)
        if clan is None:
            clan = ClanStats(name=name, tag=tag)
            self._clans[tag] = clan
        return clan

    def get(self, tag: str) -> Optional[ClanStats]:
        return self._clans.get(normalize_tag(tag))

    def sorted_by_stars(self) -> List[ClanStats]:
        return sorted(self._clans.values(), key=lambda c: c.stars, reverse=True)
