"""
CWL family statistics.

Aggregates Clan War League results for the family clans across every season
since 2021 into player and clan career statistics with reliability scores.
"""

__version__ = "1.0.0"
