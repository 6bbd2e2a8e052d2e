"""
Unit tests for player and clan accumulation and the repositories.
"""

import unittest

from cwl_stats.processing.accumulator import (
    accumulate_clan_season,
    collect_roster_tags,
    process_player_from_wars,
)
from cwl_stats.processing.models import ClanStats
from cwl_stats.processing.parser import extract_wars, extract_wars_with_attacks
from cwl_stats.processing.repository import ClanRepository, PlayerRepository
from cwl_stats.tests.fixtures import CLAN_NAME, CLAN_TAG, ENEMY_TAG, member, payload, side, war


class TestProcessPlayerFromWars(unittest.TestCase):
    """Test cases for process_player_from_wars."""

    def setUp(self):
        """Set up test fixtures."""
        wars = [
            war(side(CLAN_TAG, [member("#A", name="Old", th=14, attacks=[(3, 100)])]),
                side(ENEMY_TAG), start_time="T1"),
            war(side(ENEMY_TAG),
                side(CLAN_TAG, [member("#A", name="New", th=15, attacks=[(2, 75.5), (0, 20)])]),
                start_time="T2"),
            war(side(ENEMY_TAG), side("#OTHER", [member("#A", attacks=[(3, 100)])]), start_time="T3"),
            war(side(CLAN_TAG, [member("#A", attacks=[(1, 40)])]), side(ENEMY_TAG), start_time="T2"),
        ]
        self.wars = extract_wars_with_attacks(payload(wars))

    def test_counts(self):
        """Test attacks on either side of the war are tallied."""
        tally = process_player_from_wars(self.wars, "#A", CLAN_TAG)

        self.assertEqual(tally.attacks, 4)
        self.assertEqual(tally.stars, 6)
        self.assertAlmostEqual(tally.destruction, 235.5)
        self.assertEqual(tally.triples, 1)

    def test_histogram_sums_to_attacks(self):
        tally = process_player_from_wars(self.wars, "#A", CLAN_TAG)
        buckets = tally.star_buckets

        self.assertEqual(buckets.total, tally.attacks)
        self.assertEqual((buckets.zero_stars, buckets.one_stars, buckets.two_stars, buckets.three_stars),
                         (1, 1, 1, 1))

    def test_participation_by_distinct_start_time(self):
        """Test wars sharing a start time count once."""
        tally = process_player_from_wars(self.wars, "#A", CLAN_TAG)
        self.assertEqual(tally.wars_participated, 2)

    def test_latest_name_and_th(self):
        tally = process_player_from_wars(self.wars[:2], "#A", CLAN_TAG)
        self.assertEqual(tally.latest_name, "New")
        self.assertEqual(tally.latest_th, 15)

    def test_tags_compared_canonically(self):
        tally = process_player_from_wars(self.wars, "a", "p0j2j8gj")
        self.assertEqual(tally.attacks, 4)

    def test_roster_member_without_attacks(self):
        """Test a member who never attacked yields zero stats."""
        wars = extract_wars(payload([war(side(CLAN_TAG, [member("#B")]), side(ENEMY_TAG), start_time="T1")]))
        tally = process_player_from_wars(wars, "#B", CLAN_TAG)

        self.assertEqual(tally.attacks, 0)
        self.assertEqual(tally.wars_participated, 1)

    def test_unknown_player(self):
        tally = process_player_from_wars(self.wars, "#NOBODY", CLAN_TAG)
        self.assertEqual(tally.attacks, 0)
        self.assertEqual(tally.wars_participated, 0)


class TestCollectRosterTags(unittest.TestCase):
    """Test cases for collect_roster_tags."""

    def test_both_sides_and_order(self):
        wars = extract_wars(payload([
            war(side(CLAN_TAG, [member("#A"), member("#B")]), side(ENEMY_TAG, [member("#X")])),
            war(side(ENEMY_TAG, [member("#Y")]), side(CLAN_TAG, [member("#C"), member("#A")]),
                state="preparation"),
        ]))
        self.assertEqual(collect_roster_tags(wars, CLAN_TAG), ["#A", "#B", "#C"])


class TestAccumulateClanSeason(unittest.TestCase):
    """Test cases for accumulate_clan_season."""

    def setUp(self):
        """Set up test fixtures."""
        self.clan = ClanStats(name=CLAN_NAME, tag=CLAN_TAG)

    def _accumulate(self, wars, season="2024-01"):
        data = payload(wars)
        return accumulate_clan_season(self.clan, season, extract_wars(data), extract_wars_with_attacks(data))

    def test_in_progress_war_does_not_change_record(self):
        """Test an unfinished war leaves won/lost/tied untouched."""
        self._accumulate([war(side(CLAN_TAG, stars=20, attacks=12), side(ENEMY_TAG, stars=10), state="inWar")])

        self.assertEqual((self.clan.wars_won, self.clan.wars_lost, self.clan.wars_tied), (0, 0, 0))
        self.assertEqual(self.clan.stars, 20)
        self.assertEqual(self.clan.attacks, 12)
        self.assertEqual(self.clan.wars, 1)

    def test_ended_war_counts_once(self):
        """Test an ended win increments warsWon by exactly one."""
        self._accumulate([war(side(CLAN_TAG, stars=20), side(ENEMY_TAG, stars=10), state="warEnded")])

        self.assertEqual(self.clan.wars_won, 1)
        self.assertEqual(self.clan.wars_lost, 0)
        self.assertEqual(self.clan.wars_tied, 0)

    def test_opponent_side_loss(self):
        self._accumulate([war(side(ENEMY_TAG, stars=30), side(CLAN_TAG, stars=25, destruction=88.5))])

        self.assertEqual(self.clan.wars_lost, 1)
        self.assertEqual(self.clan.stars, 25)
        self.assertAlmostEqual(self.clan.destruction, 88.5)

    def test_star_tie_ignores_destruction(self):
        """Test aggregate ties use stars only while the season summary uses destruction."""
        summary = self._accumulate([war(side(CLAN_TAG, stars=25, destruction=90.0),
                                        side(ENEMY_TAG, stars=25, destruction=80.0))])

        self.assertEqual(self.clan.wars_tied, 1)
        self.assertEqual(self.clan.wars_won, 0)
        self.assertEqual(summary.wins, 1)
        self.assertEqual(summary.ties, 0)

    def test_preparation_counts_as_war_only(self):
        self._accumulate([war(side(CLAN_TAG, [member("#A")], stars=0), side(ENEMY_TAG), state="preparation")])

        self.assertEqual(self.clan.wars, 1)
        self.assertEqual(self.clan.stars, 0)
        self.assertIn("#A", self.clan.roster)

    def test_wars_of_other_clans_ignored(self):
        self._accumulate([war(side("#OTHER1", stars=30), side("#OTHER2", stars=10))])

        self.assertEqual(self.clan.wars, 0)
        self.assertEqual(self.clan.wars_won + self.clan.wars_lost + self.clan.wars_tied, 0)

    def test_season_summary(self):
        summary = self._accumulate([
            war(side(CLAN_TAG, stars=30), side(ENEMY_TAG, stars=10), start_time="T1"),
            war(side(CLAN_TAG, stars=5), side(ENEMY_TAG, stars=10), start_time="T2", state="inWar"),
        ], season="2024-02")

        self.assertEqual(summary.season, "2024-02")
        self.assertEqual(summary.wars, 2)
        self.assertEqual(summary.wars_ended, 1)
        self.assertEqual(summary.wins, 1)
        self.assertEqual(self.clan.seasons, [summary])


class TestRepositories(unittest.TestCase):
    """Test cases for PlayerRepository and ClanRepository."""

    def _tally(self, attacks, start_times, name="P", th=None):
        wars = []
        for start in start_times:
            wars.append(war(side(CLAN_TAG, [member("#A", name=name, th=th, attacks=attacks)]),
                            side(ENEMY_TAG), start_time=start))
        return process_player_from_wars(extract_wars(payload(wars)), "#A", CLAN_TAG)

    def test_record_season_merges(self):
        """Test seasons are summed into the career and latest values win."""
        repo = PlayerRepository()
        repo.record_season("#A", "2024-01", CLAN_NAME, CLAN_TAG, self._tally([(3, 100)], ["T1"], name="Old", th=14))
        repo.record_season("A", "2024-02", "Psychole!", "#29RYVJ8C8",
                           self._tally([(1, 50)], ["T2", "T3"], name="New", th=None))

        self.assertEqual(len(repo), 1)
        player = repo.get("#A")
        self.assertEqual(player.attacks, 3)
        self.assertEqual(player.stars, 5)
        self.assertEqual(player.wars, 3)
        self.assertEqual(player.name, "New")
        self.assertEqual(player.th, 14)
        self.assertEqual(player.clan_tag, "#29RYVJ8C8")
        self.assertEqual(player.star_buckets.total, player.attacks)
        self.assertEqual([s.season for s in player.seasons], ["2024-01", "2024-02"])
        self.assertEqual(repo.season_records, 2)

    def test_sorted_and_for_clan(self):
        repo = PlayerRepository()
        repo.record_season("#A", "2024-01", CLAN_NAME, CLAN_TAG, self._tally([(1, 50)], ["T1"]))
        repo.record_season("#B", "2024-01", "Psychole!", "#29RYVJ8C8", self._tally([(3, 100)], ["T1"]))

        self.assertEqual([p.tag for p in repo.sorted_by_stars()], ["#B", "#A"])
        self.assertEqual([p.tag for p in repo.for_clan(CLAN_TAG)], ["#A"])

    def test_clan_repository(self):
        repo = ClanRepository({"a": "abc", "b": "#DEF"})
        self.assertEqual(len(repo), 2)
        self.assertEqual(repo.get("#ABC").name, "a")
        self.assertIs(repo.register("again", "#ABC"), repo.get("abc"))


if __name__ == '__main__':
    unittest.main()
