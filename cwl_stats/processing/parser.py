"""
War Parser for CWL Season Payloads
Handles flattening of ClashKing season payloads into typed war records.

A season payload lists its wars either directly under "warTags" or nested in
"rounds[].warTags". Each entry is either a bare war tag string (the war data
was not included) or a full war object with "clan" and "opponent" sides.
"""

import logging
from collections import Counter
from typing import Any, Dict, List, Optional, Union

from cwl_stats.common.tags import normalize_tag
from cwl_stats.processing.models import (
    Attack,
    WarMember,
    WarRecord,
    WarSide,
    WarState,
    WarTagRef,
)

logger = logging.getLogger(__name__)

WarEntry = Union[WarTagRef, WarRecord]

WAR_RESULT_WIN = "win"
WAR_RESULT_LOSS = "loss"
WAR_RESULT_TIE = "tie"


def _to_int(value: Any, default: Optional[int] = 0) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_float(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


class WarParser:
    """Parse raw war objects into WarRecord instances."""

    @staticmethod
    def parse_attack(raw: Dict) -> Attack:
        return Attack(
            attacker_tag=normalize_tag(raw.get('attackerTag')),
            defender_tag=normalize_tag(raw.get('defenderTag')),
            stars=_to_int(raw.get('stars')),
            destruction=_to_float(raw.get('destructionPercentage')),
            order=_to_int(raw.get('order'), None),
            duration=_to_int(raw.get('duration'), None),
        )

    @staticmethod
    def parse_member(raw: Dict) -> WarMember:
        attacks = [WarParser.parse_attack(a) for a in raw.get('attacks') or [] if isinstance(a, dict)]
        return WarMember(
            tag=normalize_tag(raw.get('tag')),
            name=raw.get('name') or None,
            town_hall_level=_to_int(raw.get('townHallLevel'), None) or None,
            map_position=_to_int(raw.get('mapPosition'), None),
            attacks=attacks,
            opponent_attacks=_to_int(raw.get('opponentAttacks')),
        )

    @staticmethod
    def parse_side(raw: Optional[Dict]) -> Optional[WarSide]:
        """
        Parse one side of a war.

        Args:
            raw: The "clan" or "opponent" object of a war

        Returns:
            WarSide, or None when the side is absent
        """
        if not isinstance(raw, dict):
            return None

        members = [WarParser.parse_member(m) for m in raw.get('members') or [] if isinstance(m, dict)]
        return WarSide(
            tag=normalize_tag(raw.get('tag')),
            name=raw.get('name'),
            clan_level=_to_int(raw.get('clanLevel'), None),
            attacks=_to_int(raw.get('attacks')),
            stars=_to_int(raw.get('stars')),
            destruction=_to_float(raw.get('destructionPercentage')),
            members=members,
        )

    @staticmethod
    def parse_war(raw: Dict) -> WarRecord:
        return WarRecord(
            tag=raw.get('tag'),
            war_tag=raw.get('warTag'),
            state=WarState.from_raw(raw.get('state')),
            raw_state=raw.get('state'),
            team_size=_to_int(raw.get('teamSize'), None),
            preparation_start_time=raw.get('preparationStartTime'),
            start_time=raw.get('startTime'),
            end_time=raw.get('endTime'),
            clan=WarParser.parse_side(raw.get('clan')),
            opponent=WarParser.parse_side(raw.get('opponent')),
        )


def parse_war_entry(entry: Any) -> Optional[WarEntry]:
    """
    Parse one entry of a warTags list.

    Args:
        entry: A war tag string or a war object

    Returns:
        WarTagRef for a bare tag, WarRecord for a war object, None otherwise
    """
    if isinstance(entry, str):
        return WarTagRef(war_tag=entry)
    if isinstance(entry, dict):
        return WarParser.parse_war(entry)
    logger.debug(f"Ignoring war entry of type {type(entry).__name__}")
    return None


def has_complete_war_data(payload: Optional[Dict]) -> bool:
    """
    Check whether a season payload carries full war objects.

    The first round with a non-empty warTags list decides: a string entry
    means the payload only has war tags, an object with a "clan" field means
    the wars are included. A payload without such a round is incomplete.
    """
    if not isinstance(payload, dict):
        return False

    rounds = payload.get('rounds')
    if not isinstance(rounds, list) or not rounds:
        return False

    for round_data in rounds:
        war_tags = round_data.get('warTags') if isinstance(round_data, dict) else None
        if not isinstance(war_tags, list) or not war_tags:
            continue

        first = war_tags[0]
        if isinstance(first, str):
            return False
        if isinstance(first, dict) and 'clan' in first:
            return True

    return False


def iter_war_entries(payload: Dict) -> List[Any]:
    """Collect the raw war entries listed directly and inside rounds, in payload order."""
    entries = []
    direct = payload.get('warTags')
    if isinstance(direct, list):
        entries.extend(direct)

    rounds = payload.get('rounds')
    if isinstance(rounds, list):
        for round_data in rounds:
            war_tags = round_data.get('warTags') if isinstance(round_data, dict) else None
            if isinstance(war_tags, list):
                entries.extend(war_tags)
    return entries


def extract_wars(payload: Optional[Dict]) -> List[WarRecord]:
    """
    Flatten a season payload into its war records.

    Bare war tags, "#0" placeholders for unstarted rounds and entries without
    either side are dropped.

    Args:
        payload: Raw season payload

    Returns:
        War records in payload order
    """
    if not isinstance(payload, dict):
        return []

    wars = []
    for entry in iter_war_entries(payload):
        war = parse_war_entry(entry)
        if not isinstance(war, WarRecord):
            continue
        if war.is_placeholder:
            continue
        if war.clan is None and war.opponent is None:
            continue
        wars.append(war)
    return wars


def extract_wars_with_attacks(payload: Optional[Dict]) -> List[WarRecord]:
    """Flatten a season payload, keeping only wars past the preparation phase."""
    return [war for war in extract_wars(payload) if war.has_attack_data]


def determine_war_result(our_stars: int, their_stars: int,
                         our_destruction: float, their_destruction: float) -> str:
    """
    Classify a single war result, stars first and destruction as tiebreaker.

    Returns:
        "win", "loss" or "tie"
    """
    if our_stars > their_stars:
        return WAR_RESULT_WIN
    if our_stars < their_stars:
        return WAR_RESULT_LOSS
    if our_destruction > their_destruction:
        return WAR_RESULT_WIN
    if our_destruction < their_destruction:
        return WAR_RESULT_LOSS
    return WAR_RESULT_TIE


def count_war_states(wars: List[WarRecord]) -> Dict[str, int]:
    """Count wars by their raw upstream state, for logging."""
    return dict(Counter(war.raw_state or "unknown" for war in wars))
