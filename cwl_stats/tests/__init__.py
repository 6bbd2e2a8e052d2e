"""
CWL Stats Test Suite

Unit tests for season handling, payload collection, war parsing,
accumulation, enrichment, scoring and output.

Run all tests:
    python -m unittest discover cwl_stats.tests

Run specific test module:
    python -m unittest cwl_stats.tests.test_parser
    python -m unittest cwl_stats.tests.test_collector
"""

__version__ = "1.0.0"
