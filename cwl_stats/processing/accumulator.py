"""
Player and clan accumulation for one clan in one season.

These functions only read parsed war records; merging the results into career
totals is left to the repositories.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set

from cwl_stats.common.tags import normalize_tag
from cwl_stats.processing.models import ClanSeasonSummary, ClanStats, StarBuckets, WarRecord
from cwl_stats.processing.parser import WAR_RESULT_LOSS, WAR_RESULT_WIN, determine_war_result

logger = logging.getLogger(__name__)


@dataclass
class PlayerWarTally:
    """A player's attacks for one clan across the wars of one season."""
    attacks: int = 0
    stars: int = 0
    destruction: float = 0.0
    triples: int = 0
    star_buckets: StarBuckets = field(default_factory=StarBuckets)
    war_start_times: Set[str] = field(default_factory=set)
    latest_name: Optional[str] = None
    latest_th: Optional[int] = None

    @property
    def wars_participated(self) -> int:
        return len(self.war_start_times)


def process_player_from_wars(wars: List[WarRecord], player_tag: str, clan_tag: str) -> PlayerWarTally:
    """
    Tally one player's attacks for a clan across a list of wars.

    The clan is looked up on either side of each war. Participation is counted
    by distinct war start time since war tags are not always present. The
    latest name and town hall seen win, in war order.

    Args:
        wars: Wars with attack data
        player_tag: Player tag
        clan_tag: Tag of the player's clan

    Returns:
        PlayerWarTally, all zero if the player never attacked
    """
    player_tag = normalize_tag(player_tag)
    clan_tag = normalize_tag(clan_tag)
    tally = PlayerWarTally()

    for war in wars:
        sides = war.sides_for(clan_tag)
        if sides is None:
            continue

        member = sides[0].find_member(player_tag)
        if member is None:
            continue

        if war.start_time:
            tally.war_start_times.add(war.start_time)
        if member.name:
            tally.latest_name = member.name
        if member.town_hall_level:
            tally.latest_th = member.town_hall_level

        for attack in member.attacks:
            tally.attacks += 1
            tally.stars += attack.stars
            tally.destruction += attack.destruction
            tally.star_buckets.add(attack.stars)
            if attack.stars == 3:
                tally.triples += 1

    if tally.wars_participated > tally.attacks:
        logger.debug(f"{player_tag} joined {tally.wars_participated} wars but attacked {tally.attacks} times")

    return tally


def collect_roster_tags(wars: List[WarRecord], clan_tag: str) -> List[str]:
    """
    Collect the tags of every member who appeared for a clan.

    Args:
        wars: All wars of the season, preparation included
        clan_tag: Clan tag

    Returns:
        Canonical player tags in order of first appearance
    """
    clan_tag = normalize_tag(clan_tag)
    seen = set()
    tags = []

    for war in wars:
        for side in (war.clan, war.opponent):
            if side is None or side.tag != clan_tag:
                continue
            for member in side.members:
                if member.tag and member.tag not in seen:
                    seen.add(member.tag)
                    tags.append(member.tag)
    return tags


def accumulate_clan_season(clan: ClanStats, season: str, all_wars: List[WarRecord],
                           attack_wars: List[WarRecord], state: Optional[str] = None) -> ClanSeasonSummary:
    """
    Add one season of wars to a clan's career totals.

    Only ended wars change the won/lost/tied record, compared on stars alone.
    Stars, destruction and attacks accrue from every war with attack data.
    The season summary classifies ended wars with the destruction tiebreaker.

    Args:
        clan: Clan stats to update in place
        season: Season id
        all_wars: Every war involving the clan, preparation included
        attack_wars: Wars with attack data
        state: Season state from the payload

    Returns:
        Summary of the season for this clan
    """
    own_wars = [war for war in all_wars if war.sides_for(clan.tag) is not None]
    summary = ClanSeasonSummary(season=season, state=state, wars=len(own_wars))
    clan.wars += len(own_wars)

    for war in attack_wars:
        if war.clan is None or war.opponent is None:
            continue
        sides = war.sides_for(clan.tag)
        if sides is None:
            continue
        ours, theirs = sides

        if war.is_complete:
            if ours.stars > theirs.stars:
                clan.wars_won += 1
            elif ours.stars < theirs.stars:
                clan.wars_lost += 1
            else:
                clan.wars_tied += 1

            summary.wars_ended += 1
            result = determine_war_result(ours.stars, theirs.stars, ours.destruction, theirs.destruction)
            if result == WAR_RESULT_WIN:
                summary.wins += 1
            elif result == WAR_RESULT_LOSS:
                summary.losses += 1
            else:
                summary.ties += 1

        clan.stars += ours.stars
        clan.destruction += ours.destruction
        clan.attacks += ours.attacks

    for tag in collect_roster_tags(own_wars, clan.tag):
        clan.roster.add(tag)

    clan.seasons.append(summary)
    return summary
