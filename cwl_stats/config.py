"""
Configuration settings for the CWL family statistics pipeline.

This module centralizes all configuration parameters for fetching Clan War
League data, caching raw payloads, enrichment sources, scoring and output.
Values can be overridden through environment variables or a .env file.
"""

import os
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

load_dotenv()

# ============================================
# Tracked Clans
# ============================================

# Processing order within a season follows this order
FAMILY_CLANS: Dict[str, str] = {
    "coc masters PL": "#P0J2J8GJ",
    "Akademia CoC PL": "#JPRPRVUY",
    "Psychole!": "#29RYVJ8C8",
}

# First CWL season tracked for the family
START_YEAR = 2021

# ============================================
# API Configuration
# ============================================

BASE_URL = os.getenv('CWL_API_BASE_URL', 'https://api.clashk.ing')

# Rate limiting settings
RATE_LIMIT_DELAY = float(os.getenv('CWL_RATE_LIMIT_DELAY', '0.4'))  # Seconds after each clan/season
MAX_RETRIES = int(os.getenv('CWL_MAX_RETRIES', '2'))
RETRY_BASE_DELAY = 0.5  # Seconds, multiplied by the attempt number

REQUEST_TIMEOUT = 30  # Seconds

# ============================================
# Paths
# ============================================

OUTPUT_DIR = Path(os.getenv('CWL_OUTPUT_DIR', 'public/data'))
CLANS_DIR = OUTPUT_DIR / 'clans'
HISTORY_DIR = OUTPUT_DIR / 'history'
SEASONS_DIR = HISTORY_DIR / 'seasons'
PLAYERS_DIR = OUTPUT_DIR / 'players'
CSV_DIR = OUTPUT_DIR / 'mix csv'

CACHE_DIR = Path(os.getenv('CWL_CACHE_DIR', 'tmp/cwl-cache'))

LEAGUE_CSV_PATTERN = '*-clan-war-leagues.csv'
WAR_STATS_CSV_PATTERN = '*-war-statistics.csv'

# ============================================
# Scoring Configuration
# ============================================

# Difficulty score per league tier
LEAGUE_TIER_SCORES: Dict[str, int] = {
    "Champion League I": 100,
    "Champion League II": 90,
    "Champion League III": 80,
    "Master League I": 70,
    "Master League II": 60,
    "Master League III": 50,
    "Crystal League I": 40,
    "Crystal League II": 35,
    "Crystal League III": 30,
    "Gold League I": 25,
    "Gold League II": 20,
    "Gold League III": 15,
}

RELIABILITY_WEIGHTS: Dict[str, float] = {
    "performance": 0.45,
    "attendance": 0.35,
    "league_adjustment": 0.20,
}

# Change in average stars needed before a trend counts as improving/declining
PERFORMANCE_TREND_THRESHOLD = 0.15
RECENT_SEASONS_WINDOW = 3

# ============================================
# Permissive Defaults
# ============================================

# A player never attacked on defense is scored as a perfect defender
DEFAULT_DEFENSE_QUALITY = 100.0

# Unranked or unknown league tiers sit in the middle of the difficulty table
DEFAULT_LEAGUE_SCORE = 50

# Wars with a missing or unrecognized state still count as having attacks;
# only an explicit preparation state is excluded
UNKNOWN_STATE_HAS_ATTACKS = True

# ============================================
# Projection Configuration
# ============================================

# Ordered from easiest to hardest
LEAGUE_TIERS = [
    "Gold League III",
    "Gold League II",
    "Gold League I",
    "Crystal League III",
    "Crystal League II",
    "Crystal League I",
    "Master League III",
    "Master League II",
    "Master League I",
    "Champion League III",
    "Champion League II",
    "Champion League I",
]

ATTACKS_PER_SEASON = 7

# ============================================
# Logging
# ============================================

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_cache_dir() -> Path:
    """Get the raw payload cache directory."""
    return CACHE_DIR


def get_output_dir() -> Path:
    """Get the root output directory."""
    return OUTPUT_DIR


def get_league_score(tier: Optional[str]) -> int:
    """Get the difficulty score for a league tier.

    Args:
        tier: League name such as "Master League II", or None

    Returns:
        Score between 15 and 100, DEFAULT_LEAGUE_SCORE if unknown
    """
    if not tier:
        return DEFAULT_LEAGUE_SCORE
    return LEAGUE_TIER_SCORES.get(tier, DEFAULT_LEAGUE_SCORE)
