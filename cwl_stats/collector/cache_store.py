"""
Local cache of raw CWL season payloads.

One JSON file per (clan, season), named {TAG}-{YYYY-MM}.json. Files are only
ever replaced whole, so an interrupted run leaves every file either old or new.
The cache assumes a single writer; concurrent runs would race on the files.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from cwl_stats.common.tags import strip_tag
from cwl_stats.config import get_cache_dir

logger = logging.getLogger(__name__)


class CacheStore:
    """Reads and writes raw season payloads on disk."""

    def __init__(self, cache_dir: Optional[Path] = None):
        self.cache_dir = Path(cache_dir) if cache_dir else get_cache_dir()
        self.stats = {
            "hits": 0,
            "misses": 0,
            "writes": 0,
            "read_errors": 0,
        }

    def path_for(self, tag: str, season: str) -> Path:
        """Get the cache file path for a clan and season."""
        return self.cache_dir / f"{strip_tag(tag)}-{season}.json"

    def exists(self, tag: str, season: str) -> bool:
        return self.path_for(tag, season).exists()

    def load(self, tag: str, season: str) -> Optional[Dict]:
        """
        Load a cached payload.

        Args:
            tag: Clan tag, with or without '#'
            season: Season id (YYYY-MM)

        Returns:
            The cached payload, or None when missing or unreadable
        """
        path = self.path_for(tag, season)
        if not path.exists():
            self.stats["misses"] += 1
            return None

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.stats["read_errors"] += 1
            logger.warning(f"Cache read error for {tag} {season}: {e}")
            return None

        if not isinstance(data, dict):
            self.stats["read_errors"] += 1
            logger.warning(f"Cache file for {tag} {season} is not a JSON object, ignoring")
            return None

        self.stats["hits"] += 1
        return data

    def save(self, tag: str, season: str, payload: Dict) -> Path:
        """
        Write a payload to the cache, replacing any previous file.

        Args:
            tag: Clan tag, with or without '#'
            season: Season id (YYYY-MM)
            payload: Raw payload as returned by the API

        Returns:
            Path of the written file
        """
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(tag, season)

        fd, tmp_path = tempfile.mkstemp(dir=str(self.cache_dir), suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

        self.stats["writes"] += 1
        logger.debug(f"Cached {tag} {season} (state: {payload.get('state') or 'unknown'})")
        return path
