#!/usr/bin/env python3
"""
Comprehensive CWL Data Aggregation Script

Aggregates Clan War League results of every family clan for every season
since January 2021 into career statistics for players and clans.

Usage:
    # Default: use cached seasons, fetch what is missing
    python -m cwl_stats.aggregate_all_seasons

    # Force refresh all data from the API
    python -m cwl_stats.aggregate_all_seasons --refresh

    # Refresh only the current season, use cache for history
    python -m cwl_stats.aggregate_all_seasons --refresh-current

    # Use only cached data, no API calls
    python -m cwl_stats.aggregate_all_seasons --offline

    # Start from a specific season with detailed logs
    python -m cwl_stats.aggregate_all_seasons --start=2021-11 --verbose

Output files:
    public/data/players.json     Player statistics across all seasons
    public/data/family.json      Family-wide aggregated statistics
    public/data/clans/*.json     Individual clan files with player data
"""

import argparse
import logging
import sys
import time
from datetime import date
from typing import List, Optional

from cwl_stats.collector import FetchContext, SeasonCollector
from cwl_stats.common.season_manager import SeasonManager
from cwl_stats.config import FAMILY_CLANS, LOG_FORMAT, RATE_LIMIT_DELAY
from cwl_stats.enrichment import PlayerEnricher
from cwl_stats.output import OutputWriter
from cwl_stats.processing import (
    ClanRepository,
    PlayerRepository,
    accumulate_clan_season,
    collect_roster_tags,
    extract_wars,
    extract_wars_with_attacks,
    process_player_from_wars,
)
from cwl_stats.processing.parser import count_war_states
from cwl_stats.scoring import score_player

# Set up logging
logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


class SeasonAggregator:
    """Runs one aggregation over every season and family clan."""

    def __init__(self, refresh: bool = False, refresh_current: bool = False, offline: bool = False,
                 start: Optional[str] = None, collector: Optional[SeasonCollector] = None,
                 enricher: Optional[PlayerEnricher] = None, writer: Optional[OutputWriter] = None,
                 today: Optional[date] = None, rate_limit_delay: float = RATE_LIMIT_DELAY):
        """
        Initialize aggregator.

        Args:
            refresh: Ignore the cache for every season
            refresh_current: Ignore the cache for the current season only
            offline: Never call the API
            start: First season to process (YYYY-MM)
            collector: Season payload collector
            enricher: Player enricher
            writer: Output writer
            today: Reference date for the season list
            rate_limit_delay: Seconds to wait after each clan season that hit the API
        """
        self.refresh = refresh
        self.refresh_current = refresh_current
        self.offline = offline
        self.start = start
        self.rate_limit_delay = rate_limit_delay

        self.season_manager = SeasonManager(today=today)
        self.collector = collector or SeasonCollector()
        self.enricher = enricher or PlayerEnricher()
        self.writer = writer or OutputWriter()

        self.context = FetchContext(current_season=self.season_manager.current_season, offline=offline)
        self.players = PlayerRepository()
        self.clans = ClanRepository(FAMILY_CLANS)
        self._network_used = False

        self.stats = {
            "seasons_processed": 0,
            "seasons_with_data": 0,
            "clan_seasons_failed": 0,
        }

    def should_refresh(self, season: str) -> bool:
        return self.refresh or (self.refresh_current and self.season_manager.is_current(season))

    def process_clan_season(self, season: str, clan_name: str, clan_tag: str) -> bool:
        """
        Fetch and accumulate one clan's season.

        Args:
            season: Season id
            clan_name: Clan display name
            clan_tag: Clan tag

        Returns:
            True if the clan had data for the season
        """
        result = self.collector.fetch_with_cache(clan_tag, season, self.should_refresh(season), self.context)
        self._network_used = result.network_used

        raw = result.payload
        if raw is None:
            logger.debug(f"No data for {clan_name} in {season}")
            return False

        if self.season_manager.is_current(season) and raw.get('state'):
            logger.info(f"Current season state: {raw.get('state')}")

        all_wars = extract_wars(raw)
        attack_wars = extract_wars_with_attacks(raw)

        states = count_war_states(all_wars)
        if states:
            logger.debug(f"War states for {clan_name}: {states}")

        if not all_wars:
            logger.debug(f"No wars found for {clan_name} in {season}")
            return True

        logger.debug(f"Processing {len(attack_wars)}/{len(all_wars)} wars with attacks for {clan_name}")

        for player_tag in collect_roster_tags(all_wars, clan_tag):
            tally = process_player_from_wars(attack_wars, player_tag, clan_tag)
            if tally.attacks == 0:
                continue
            self.players.record_season(player_tag, season, clan_name, clan_tag, tally)

        clan = self.clans.get(clan_tag)
        accumulate_clan_season(clan, season, all_wars, attack_wars, state=raw.get('state'))
        return True

    def aggregate(self, seasons: List[str]):
        """Process every season and clan in order."""
        logger.info(f"Processing {len(seasons)} seasons: {seasons[0]} to {seasons[-1]}")

        for i, season in enumerate(seasons, start=1):
            logger.info(f"Processing season {season} ({i}/{len(seasons)})...")
            season_has_data = False

            for clan_name, clan_tag in FAMILY_CLANS.items():
                self._network_used = False
                try:
                    if self.process_clan_season(season, clan_name, clan_tag):
                        season_has_data = True
                except Exception as e:
                    self.stats["clan_seasons_failed"] += 1
                    logger.error(f"Error processing {clan_name} {season}: {e}")
                finally:
                    if self._network_used and self.rate_limit_delay > 0:
                        time.sleep(self.rate_limit_delay)

            self.stats["seasons_processed"] += 1
            if season_has_data:
                self.stats["seasons_with_data"] += 1

    def enrich_and_score(self):
        """Run enrichment over all players, then score them."""
        players = list(self.players)
        self.enricher.enrich(players)

        for clan in self.clans:
            for summary in clan.seasons:
                summary.league_tier = self.enricher.league_tiers.get((clan.tag, summary.season))

        for player in players:
            score_player(player)

    def run(self):
        """Aggregate, enrich, score and write every output file."""
        logger.info("Starting comprehensive CWL data aggregation...")
        if self.start and self.start not in self.season_manager.get_seasons():
            logger.warning(f"Start season {self.start} not found, processing all seasons")
        seasons = self.season_manager.get_seasons(self.start)

        self.aggregate(seasons)
        logger.info(f"Aggregation complete: {self.stats['seasons_with_data']} seasons with data, "
                    f"{len(self.players)} unique players, "
                    f"{self.players.season_records} player-season records")

        self.enrich_and_score()

        leagues = {clan.tag: self.enricher.latest_league_for_clan(clan.tag) for clan in self.clans}
        logger.info("Writing output files...")
        self.writer.write_all(self.players, self.clans, leagues, self.season_manager.current_season)
        logger.info("All files written successfully")

    def show_summary(self):
        """Log a summary of the run."""
        logger.info("=" * 60)
        logger.info("AGGREGATION SUMMARY")
        logger.info("=" * 60)
        logger.info(f"Seasons processed: {self.stats['seasons_processed']}")
        logger.info(f"Seasons with data: {self.stats['seasons_with_data']}")
        logger.info(f"Clan seasons failed: {self.stats['clan_seasons_failed']}")
        logger.info(f"Players: {len(self.players)}")
        logger.info(f"Collector: {self.collector.stats}")
        logger.info(f"Enrichment: {self.enricher.stats}")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Aggregate CWL statistics across all seasons',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument('--refresh', action='store_true',
                        help='Force refresh all data from API (ignore cache)')
    parser.add_argument('--refresh-current', action='store_true',
                        help='Refresh only current season from API, use cache for history')
    parser.add_argument('--offline', action='store_true',
                        help='Use only cached data, skip all API calls')
    parser.add_argument('--start', metavar='YYYY-MM',
                        help='Start from specific season (e.g. --start=2021-11)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Show detailed progress logs')

    args, unknown = parser.parse_known_args(argv)
    if unknown:
        logger.warning(f"Ignoring unknown arguments: {' '.join(unknown)}")
    return args


def main(argv: Optional[List[str]] = None) -> int:
    """Main function"""
    args = parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        aggregator = SeasonAggregator(
            refresh=args.refresh,
            refresh_current=args.refresh_current,
            offline=args.offline,
            start=args.start
        )
        aggregator.run()
        aggregator.show_summary()
    except Exception:
        logger.exception("Fatal error")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
