"""JSON output for the web front end."""

from cwl_stats.output.writer import OutputWriter

__all__ = ['OutputWriter']
