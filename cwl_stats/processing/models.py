"""
CWL Data Models

Typed records for parsed war data and accumulated statistics. Raw payloads
use the upstream "clan"/"opponent" names for the two sides of a war; a family
clan can appear on either side.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

from cwl_stats.config import UNKNOWN_STATE_HAS_ATTACKS


class WarState(Enum):
    """Lifecycle state of a single war."""
    PREPARATION = "preparation"
    IN_WAR = "inWar"
    ENDED = "warEnded"
    UNKNOWN = "unknown"

    @classmethod
    def from_raw(cls, value: Optional[str]) -> 'WarState':
        """Map an upstream state string to a WarState, case-insensitively."""
        state = (value or "").lower()
        if state == "preparation":
            return cls.PREPARATION
        if state == "inwar":
            return cls.IN_WAR
        if state in ("warended", "ended"):
            return cls.ENDED
        return cls.UNKNOWN


@dataclass
class Attack:
    """One attack by a war member."""
    attacker_tag: str
    defender_tag: str
    stars: int = 0
    destruction: float = 0.0
    order: Optional[int] = None
    duration: Optional[int] = None


@dataclass
class WarMember:
    """One roster entry on a war side."""
    tag: str
    name: Optional[str] = None
    town_hall_level: Optional[int] = None
    map_position: Optional[int] = None
    attacks: List[Attack] = field(default_factory=list)
    opponent_attacks: int = 0


@dataclass
class WarSide:
    """One clan's side of a war."""
    tag: str
    name: Optional[str] = None
    clan_level: Optional[int] = None
    attacks: int = 0
    stars: int = 0
    destruction: float = 0.0
    members: List[WarMember] = field(default_factory=list)

    def find_member(self, player_tag: str) -> Optional[WarMember]:
        for member in self.members:
            if member.tag == player_tag:
                return member
        return None


@dataclass
class WarTagRef:
    """A war entry that only carries the war tag, with no war data."""
    war_tag: str


@dataclass
class WarRecord:
    """A fully populated war between two clans."""
    tag: Optional[str] = None
    war_tag: Optional[str] = None
    state: WarState = WarState.UNKNOWN
    raw_state: Optional[str] = None
    team_size: Optional[int] = None
    preparation_start_time: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    clan: Optional[WarSide] = None
    opponent: Optional[WarSide] = None

    @property
    def is_placeholder(self) -> bool:
        return self.tag == "#0" or self.war_tag == "#0"

    @property
    def has_attack_data(self) -> bool:
        if self.state == WarState.UNKNOWN:
            return UNKNOWN_STATE_HAS_ATTACKS
        return self.state != WarState.PREPARATION

    @property
    def is_complete(self) -> bool:
        return self.state == WarState.ENDED

    def sides_for(self, clan_tag: str):
        """
        Find the side belonging to a clan.

        Args:
            clan_tag: Canonical clan tag

        Returns:
            (our side, their side) tuple, their side may be None;
            None when the clan is on neither side
        """
        if self.clan and self.clan.tag == clan_tag:
            return self.clan, self.opponent
        if self.opponent and self.opponent.tag == clan_tag:
            return self.opponent, self.clan
        return None


@dataclass
class StarBuckets:
    """Histogram of attacks by stars earned."""
    zero_stars: int = 0
    one_stars: int = 0
    two_stars: int = 0
    three_stars: int = 0

    def add(self, stars: int):
        if stars == 3:
            self.three_stars += 1
        elif stars == 2:
            self.two_stars += 1
        elif stars == 1:
            self.one_stars += 1
        else:
            self.zero_stars += 1

    def merge(self, other: 'StarBuckets'):
        self.zero_stars += other.zero_stars
        self.one_stars += other.one_stars
        self.two_stars += other.two_stars
        self.three_stars += other.three_stars

    @property
    def total(self) -> int:
        return self.zero_stars + self.one_stars + self.two_stars + self.three_stars

    def to_dict(self) -> Dict[str, int]:
        return {
            'zeroStars': self.zero_stars,
            'oneStars': self.one_stars,
            'twoStars': self.two_stars,
            'threeStars': self.three_stars,
        }


@dataclass
class PlayerSeasonStats:
    """One player's activity for one clan in one season."""
    season: str
    clan: str
    clan_tag: str
    town_hall_level: Optional[int] = None
    attacks: int = 0
    stars: int = 0
    destruction: float = 0.0
    triples: int = 0
    wars_participated: int = 0
    star_buckets: StarBuckets = field(default_factory=StarBuckets)

    # Filled in by enrichment
    times_attacked: Optional[int] = None
    stars_allowed: Optional[int] = None
    avg_stars_allowed: Optional[float] = None
    triples_allowed: Optional[int] = None
    defense_quality: Optional[float] = None
    league_tier: Optional[str] = None

    @property
    def avg_stars(self) -> float:
        return self.stars / self.attacks if self.attacks > 0 else 0.0

    @property
    def avg_destruction(self) -> float:
        return self.destruction / self.attacks if self.attacks > 0 else 0.0


@dataclass
class ReliabilityBreakdown:
    """Sub-scores of the reliability score, each between 0 and 100."""
    performance: float
    attendance: float
    league_adjustment: float
    weighted: float


@dataclass
class BestSeason:
    season: str
    stars: int
    avg_stars: float


@dataclass
class LeagueHistoryEntry:
    league_tier: str
    seasons_played: int
    attacks_in_league: int


@dataclass
class LeagueInfo:
    tier: str
    group: Optional[str] = None


@dataclass
class PlayerCareerStats:
    """A player's statistics accumulated over every processed season."""
    tag: str
    name: str = "Unknown"
    th: Optional[int] = None
    clan: Optional[str] = None
    clan_tag: Optional[str] = None
    wars: int = 0
    attacks: int = 0
    stars: int = 0
    destruction: float = 0.0
    triples: int = 0
    star_buckets: StarBuckets = field(default_factory=StarBuckets)
    seasons: List[PlayerSeasonStats] = field(default_factory=list)

    # Derived by scoring
    three_star_rate: float = 0.0
    reliability: Optional[ReliabilityBreakdown] = None
    missed_attacks: int = 0
    best_season: Optional[BestSeason] = None
    performance_trend: Optional[str] = None
    total_times_attacked: int = 0
    total_stars_allowed: int = 0
    total_triples_allowed: int = 0
    career_avg_stars_allowed: float = 0.0
    career_defense_quality: float = 0.0
    primary_league: Optional[str] = None
    league_history: List[LeagueHistoryEntry] = field(default_factory=list)

    @property
    def avg_stars(self) -> float:
        return self.stars / self.attacks if self.attacks > 0 else 0.0

    @property
    def avg_destruction(self) -> float:
        return self.destruction / self.attacks if self.attacks > 0 else 0.0

    @property
    def reliability_score(self) -> float:
        return self.reliability.weighted if self.reliability else 0.0


@dataclass
class ClanSeasonSummary:
    """One clan's war results within one season."""
    season: str
    state: Optional[str] = None
    league_tier: Optional[str] = None
    wars: int = 0
    wars_ended: int = 0
    wins: int = 0
    losses: int = 0
    ties: int = 0


@dataclass
class ClanStats:
    """A family clan's statistics accumulated over every processed season."""
    name: str
    tag: str
    wars: int = 0
    wars_won: int = 0
    wars_lost: int = 0
    wars_tied: int = 0
    stars: int = 0
    destruction: float = 0.0
    attacks: int = 0
    roster: Set[str] = field(default_factory=set)
    seasons: List[ClanSeasonSummary] = field(default_factory=list)

    @property
    def win_rate(self) -> float:
        return self.wars_won / self.wars * 100 if self.wars > 0 else 0.0
