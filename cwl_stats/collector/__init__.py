"""
CWL payload collection.

Fetches raw season payloads from the ClashKing API and keeps them in a local
JSON cache, one file per clan and season.
"""

from cwl_stats.collector.api_client import ClashKingClient
from cwl_stats.collector.cache_store import CacheStore
from cwl_stats.collector.collector import FetchContext, FetchResult, SeasonCollector

__all__ = [
    'ClashKingClient',
    'CacheStore',
    'FetchContext',
    'FetchResult',
    'SeasonCollector',
]
