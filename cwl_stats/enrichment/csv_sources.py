"""
Tabular enrichment sources.

Per-clan CSV exports dropped into the "mix csv" directory:
    *-clan-war-leagues.csv   Tag, Season, League Name (one row per clan season)
    *-war-statistics.csv     Tag, Average TH (one row per player)
"""

import logging
import math
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd

from cwl_stats.common.tags import normalize_tag
from cwl_stats.config import CSV_DIR, LEAGUE_CSV_PATTERN, WAR_STATS_CSV_PATTERN

logger = logging.getLogger(__name__)

LEAGUE_COLUMNS = ['Tag', 'Season', 'League Name']
WAR_STATS_COLUMNS = ['Tag', 'Average TH']


def read_export(path: Path, required_columns: List[str]) -> Optional[pd.DataFrame]:
    """
    Read one CSV export with every column as text.

    Args:
        path: CSV file
        required_columns: Columns that must be present

    Returns:
        DataFrame, or None if the file is unreadable or lacks a column
    """
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False, skipinitialspace=True)
    except (OSError, ValueError) as e:
        logger.warning(f"Error parsing CSV {path.name}: {e}")
        return None

    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in required_columns if c not in df.columns]
    if missing:
        logger.debug(f"Skipping {path.name}, missing columns: {', '.join(missing)}")
        return None
    return df


def load_league_tiers(csv_dir: Optional[Path] = None) -> Dict[Tuple[str, str], str]:
    """
    Build the league tier lookup from the clan war league exports.

    Args:
        csv_dir: Directory holding the exports

    Returns:
        Mapping of (clan tag, season) to league name
    """
    csv_dir = Path(csv_dir) if csv_dir else CSV_DIR
    tiers = {}
    if not csv_dir.exists():
        logger.debug(f"No CSV directory at {csv_dir}")
        return tiers

    files = sorted(csv_dir.glob(LEAGUE_CSV_PATTERN))
    logger.debug(f"Found {len(files)} league CSV files")

    for path in files:
        df = read_export(path, LEAGUE_COLUMNS)
        if df is None:
            continue

        for _, row in df.iterrows():
            clan_tag = normalize_tag(row.get('Tag'))
            season = (row.get('Season') or '').strip()
            league_name = (row.get('League Name') or '').replace('"', '').strip()
            if clan_tag and season and league_name:
                tiers[(clan_tag, season)] = league_name

    logger.debug(f"Loaded {len(tiers)} league tier entries")
    return tiers


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def load_war_statistics_th(csv_dir: Optional[Path] = None) -> Dict[str, int]:
    """
    Build a player town hall lookup from the war statistics exports.

    The average town hall is rounded to a level; when a player appears in
    several exports the highest level is kept.

    Args:
        csv_dir: Directory holding the exports

    Returns:
        Mapping of player tag to town hall level
    """
    csv_dir = Path(csv_dir) if csv_dir else CSV_DIR
    levels = {}
    if not csv_dir.exists():
        return levels

    files = sorted(csv_dir.glob(WAR_STATS_CSV_PATTERN))
    logger.debug(f"Found {len(files)} war-statistics CSV files")

    for path in files:
        df = read_export(path, WAR_STATS_COLUMNS)
        if df is None:
            continue

        df['th_level'] = pd.to_numeric(df['Average TH'], errors='coerce')
        for _, row in df.iterrows():
            player_tag = normalize_tag(row.get('Tag'))
            avg_th = row.get('th_level')
            if not player_tag or pd.isna(avg_th) or avg_th <= 0:
                continue
            if not math.isfinite(avg_th):
                logger.warning(f"Skipping {player_tag} in {path.name}: invalid Average TH {row.get('Average TH')!r}")
                continue
            th_level = _round_half_up(float(avg_th))
            if th_level > levels.get(player_tag, 0):
                levels[player_tag] = th_level

    logger.debug(f"Loaded TH data for {len(levels)} players")
    return levels
