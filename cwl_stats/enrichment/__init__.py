"""Cross-source enrichment of accumulated player statistics."""

from cwl_stats.enrichment.csv_sources import load_league_tiers, load_war_statistics_th
from cwl_stats.enrichment.enricher import PlayerEnricher

__all__ = ['PlayerEnricher', 'load_league_tiers', 'load_war_statistics_th']
