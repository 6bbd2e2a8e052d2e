"""
Unit tests for season enumeration and tag normalization.
"""

import unittest
from datetime import date

from cwl_stats.common.season_manager import (
    SeasonManager,
    generate_all_seasons,
    get_current_season,
    is_current_season,
    truncate_seasons,
)
from cwl_stats.common.tags import file_tag, normalize_tag, strip_tag


class TestSeasonEnumeration(unittest.TestCase):
    """Test cases for the season list."""

    def test_generate_all_seasons(self):
        """Test seasons run from January of the start year through the current month."""
        seasons = generate_all_seasons(2021, date(2022, 3, 15))

        self.assertEqual(len(seasons), 15)
        self.assertEqual(seasons[0], "2021-01")
        self.assertEqual(seasons[11], "2021-12")
        self.assertEqual(seasons[-1], "2022-03")
        self.assertEqual(seasons, sorted(seasons))

    def test_generate_single_month(self):
        """Test January of the start year yields one season."""
        self.assertEqual(generate_all_seasons(2021, date(2021, 1, 31)), ["2021-01"])

    def test_truncate_seasons(self):
        """Test truncation starts at the matching season."""
        seasons = generate_all_seasons(2021, date(2021, 6, 1))
        self.assertEqual(truncate_seasons(seasons, "2021-04"), ["2021-04", "2021-05", "2021-06"])

    def test_truncate_unknown_start_keeps_full_list(self):
        """Test an unmatched start season processes everything."""
        seasons = generate_all_seasons(2021, date(2021, 6, 1))
        self.assertEqual(truncate_seasons(seasons, "2019-01"), seasons)
        self.assertEqual(truncate_seasons(seasons, "2021-4"), seasons)
        self.assertEqual(truncate_seasons(seasons, None), seasons)

    def test_current_season(self):
        """Test current season detection."""
        today = date(2024, 11, 2)
        self.assertEqual(get_current_season(today), "2024-11")
        self.assertTrue(is_current_season("2024-11", today))
        self.assertFalse(is_current_season("2024-10", today))

    def test_season_manager(self):
        """Test the manager wraps enumeration and truncation."""
        manager = SeasonManager(start_year=2023, today=date(2023, 3, 10))
        self.assertEqual(manager.current_season, "2023-03")
        self.assertEqual(manager.get_seasons(), ["2023-01", "2023-02", "2023-03"])
        self.assertEqual(manager.get_seasons("2023-02"), ["2023-02", "2023-03"])
        self.assertTrue(manager.is_current("2023-03"))


class TestTagNormalization(unittest.TestCase):
    """Test cases for tag canonicalization."""

    def test_adds_prefix(self):
        self.assertEqual(normalize_tag("P0J2J8GJ"), "#P0J2J8GJ")

    def test_keeps_prefix(self):
        self.assertEqual(normalize_tag("#P0J2J8GJ"), "#P0J2J8GJ")

    def test_trims_and_uppercases(self):
        self.assertEqual(normalize_tag("  #p0j2j8gj "), "#P0J2J8GJ")

    def test_idempotent(self):
        """Test normalizing twice equals normalizing once."""
        for tag in ["abc", "#ABC", " #xyz9 ", "#", "", "2PP"]:
            once = normalize_tag(tag)
            self.assertEqual(normalize_tag(once), once)

    def test_empty(self):
        self.assertEqual(normalize_tag(None), "")
        self.assertEqual(normalize_tag("   "), "")

    def test_file_tag(self):
        self.assertEqual(strip_tag("#29ryvj8c8"), "29RYVJ8C8")
        self.assertEqual(file_tag("29RYVJ8C8"), "29RYVJ8C8")


if __name__ == '__main__':
    unittest.main()
