"""
ClashKing API client for Clan War League data.

Two endpoints are used per clan:
    /cwl/{tag}/{season}  historical payload for any season
    /cwl/{tag}/group     live group for the running season, nested under "data"
"""

import logging
import time
from typing import Dict, Optional
from urllib.parse import quote

import requests

from cwl_stats.common.tags import normalize_tag
from cwl_stats.config import BASE_URL, MAX_RETRIES, REQUEST_TIMEOUT, RETRY_BASE_DELAY

logger = logging.getLogger(__name__)


class ClashKingClient:
    """Thin interface to the ClashKing CWL endpoints with retry logic."""

    def __init__(self, base_url: str = BASE_URL, max_retries: int = MAX_RETRIES,
                 retry_base_delay: float = RETRY_BASE_DELAY, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.session = session or requests.Session()
        self.stats = {
            "requests_made": 0,
            "requests_failed": 0,
            "not_found": 0,
        }

    def _url(self, tag: str, suffix: str) -> str:
        return f"{self.base_url}/cwl/{quote(normalize_tag(tag), safe='')}/{suffix}"

    def _make_request(self, url: str, description: str) -> Optional[Dict]:
        """
        Make a GET request with retry logic.

        HTTP 404 means the clan has no data for the request and returns None
        immediately. Other failures are retried after a delay of
        retry_base_delay * attempt number; once retries run out the failure is
        logged and None returned.

        Args:
            url: Full endpoint URL
            description: Label used in log messages

        Returns:
            Decoded JSON body, or None
        """
        for attempt in range(self.max_retries):
            try:
                logger.debug(f"Fetching {description} (attempt {attempt + 1}/{self.max_retries})")
                self.stats["requests_made"] += 1
                response = self.session.get(url, timeout=REQUEST_TIMEOUT)

                if response.status_code == 404:
                    self.stats["not_found"] += 1
                    logger.debug(f"No data for {description} (404)")
                    return None

                response.raise_for_status()
                return response.json()

            except (requests.exceptions.RequestException, ValueError) as e:
                self.stats["requests_failed"] += 1

                if attempt == self.max_retries - 1:
                    logger.error(f"Failed to fetch {description}: {e}")
                    return None

                wait_time = self.retry_base_delay * (attempt + 1)
                logger.debug(f"Retry in {wait_time}s due to: {e}")
                time.sleep(wait_time)

        return None

    def get_season(self, tag: str, season: str) -> Optional[Dict]:
        """Fetch the historical payload of a clan for one season."""
        data = self._make_request(self._url(tag, season), f"{tag} {season}")
        if data is not None and not isinstance(data, dict):
            logger.warning(f"Unexpected payload type for {tag} {season}: {type(data).__name__}")
            return None
        return data

    def get_group(self, tag: str) -> Optional[Dict]:
        """
        Fetch the live CWL group of a clan.

        Args:
            tag: Clan tag

        Returns:
            The season payload unwrapped from "data", or None when the clan is
            not in CWL or the response carries no season id
        """
        body = self._make_request(self._url(tag, 'group'), f"/group for {tag}")
        if not body:
            logger.debug(f"Empty /group response for {tag}, clan may not be in CWL this season")
            return None

        data = body.get('data') if isinstance(body, dict) and 'data' in body else body
        if not isinstance(data, dict) or not data.get('season'):
            logger.debug(f"No season data in /group response for {tag}")
            return None
        return data
