"""
Season payload collector.

Resolves the raw payload of one clan for one season from the cache or the
ClashKing API, following this precedence:

1. Offline runs only ever read the cache, and only complete payloads count.
2. Without a refresh, a complete cached payload is returned as-is.
3. An incomplete cached payload (war tags only) is a miss, but its state is
   still recorded for the running season.
4. The live /group endpoint is tried for the running season while it has not
   ended and no refresh was requested; incomplete group data falls through.
5. The historical endpoint is used for everything else.

Successful network fetches are written to the cache.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from cwl_stats.collector.api_client import ClashKingClient
from cwl_stats.collector.cache_store import CacheStore
from cwl_stats.common.tags import normalize_tag
from cwl_stats.processing.parser import has_complete_war_data

logger = logging.getLogger(__name__)

ENDED_SEASON_STATES = ("ended", "warended")

SOURCE_CACHE = "cache"
SOURCE_GROUP = "group"
SOURCE_HISTORICAL = "historical"
SOURCE_NONE = "none"


@dataclass
class FetchContext:
    """Run-scoped state shared by every fetch of one run."""
    current_season: str
    offline: bool = False
    current_season_state: Optional[str] = None

    def observe(self, season: str, payload: Optional[Dict]):
        """Record the lifecycle state of the running season."""
        if season != self.current_season or not payload:
            return
        state = payload.get('state')
        if state:
            self.current_season_state = state

    @property
    def current_season_ended(self) -> bool:
        return (self.current_season_state or "").lower() in ENDED_SEASON_STATES


@dataclass
class FetchResult:
    """Outcome of resolving one clan's season payload."""
    payload: Optional[Dict]
    source: str
    network_used: bool

    @property
    def found(self) -> bool:
        return self.payload is not None


class SeasonCollector:
    """Combines the cache and the API client into one fetch operation."""

    def __init__(self, client: Optional[ClashKingClient] = None, cache: Optional[CacheStore] = None):
        self.client = client or ClashKingClient()
        self.cache = cache or CacheStore()
        self.stats = {
            "cache_hits": 0,
            "cache_incomplete": 0,
            "group_fetches": 0,
            "historical_fetches": 0,
            "no_data": 0,
        }

    def fetch_with_cache(self, tag: str, season: str, refresh: bool, context: FetchContext) -> FetchResult:
        """
        Resolve the raw payload of a clan for a season.

        Args:
            tag: Clan tag
            season: Season id (YYYY-MM)
            refresh: Ignore the cache and refetch
            context: Run-scoped fetch context

        Returns:
            FetchResult with the payload (or None) and where it came from
        """
        tag = normalize_tag(tag)

        if context.offline or not refresh:
            cached = self.cache.load(tag, season)
            if cached is not None:
                context.observe(season, cached)
                if has_complete_war_data(cached):
                    self.stats["cache_hits"] += 1
                    return FetchResult(cached, SOURCE_CACHE, False)
                self.stats["cache_incomplete"] += 1
                logger.debug(f"Cache for {tag} {season} has incomplete war data, will re-fetch")

        if context.offline:
            logger.debug(f"No usable cached data for {tag} {season} (offline mode)")
            self.stats["no_data"] += 1
            return FetchResult(None, SOURCE_NONE, False)

        use_group = (season == context.current_season
                     and not context.current_season_ended
                     and not refresh)

        if use_group:
            logger.debug(f"Current season {season} may be in progress, trying /group endpoint first")
            group = self._fetch_group(tag, season, context)
            if group is not None:
                return FetchResult(group, SOURCE_GROUP, True)
            logger.debug("/group data incomplete, falling back to historical endpoint")

        self.stats["historical_fetches"] += 1
        data = self.client.get_season(tag, season)
        if data is None:
            self.stats["no_data"] += 1
            return FetchResult(None, SOURCE_NONE, True)

        context.observe(season, data)
        self._save(tag, season, data)
        return FetchResult(data, SOURCE_HISTORICAL, True)

    def _fetch_group(self, tag: str, season: str, context: FetchContext) -> Optional[Dict]:
        """Fetch the live group; returns it only when it is complete and for this season."""
        self.stats["group_fetches"] += 1
        group = self.client.get_group(tag)
        if group is None:
            return None

        group_season = group.get('season')
        self._save(tag, group_season, group)
        if group_season != season:
            logger.debug(f"/group for {tag} returned season {group_season}, expected {season}")
            return None

        context.observe(season, group)
        logger.debug(f"Cached current season data for {tag} ({season}, state: {group.get('state')})")
        if not has_complete_war_data(group):
            return None
        return group

    def _save(self, tag: str, season: str, payload: Dict):
        try:
            self.cache.save(tag, season, payload)
        except OSError as e:
            logger.warning(f"Could not cache {tag} {season}: {e}")
