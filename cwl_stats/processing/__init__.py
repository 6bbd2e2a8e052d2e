"""
War processing.

Parses raw season payloads into war records and accumulates player and clan
statistics from them.
"""

from cwl_stats.processing.accumulator import (
    PlayerWarTally,
    accumulate_clan_season,
    collect_roster_tags,
    process_player_from_wars,
)
from cwl_stats.processing.parser import (
    determine_war_result,
    extract_wars,
    extract_wars_with_attacks,
    has_complete_war_data,
    parse_war_entry,
)
from cwl_stats.processing.repository import ClanRepository, PlayerRepository

__all__ = [
    'PlayerWarTally',
    'accumulate_clan_season',
    'collect_roster_tags',
    'process_player_from_wars',
    'determine_war_result',
    'extract_wars',
    'extract_wars_with_attacks',
    'has_complete_war_data',
    'parse_war_entry',
    'ClanRepository',
    'PlayerRepository',
]
