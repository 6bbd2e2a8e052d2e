"""
Unit tests for the PlayerEnricher class and CSV sources.
"""

import json
import shutil
import tempfile
import unittest
from pathlib import Path

from cwl_stats.enrichment.csv_sources import load_league_tiers, load_war_statistics_th
from cwl_stats.enrichment.enricher import PlayerEnricher
from cwl_stats.processing.models import PlayerCareerStats, PlayerSeasonStats
from cwl_stats.scoring.reliability import score_player
from cwl_stats.tests.fixtures import CLAN_NAME, CLAN_TAG

OTHER_CLAN = "#29RYVJ8C8"


class EnrichmentTestCase(unittest.TestCase):
    """Shared temp directory layout."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = Path(tempfile.mkdtemp())
        self.seasons_dir = self.temp_dir / "history" / "seasons"
        self.players_dir = self.temp_dir / "players"
        self.csv_dir = self.temp_dir / "mix csv"
        self.enricher = PlayerEnricher(seasons_dir=self.seasons_dir, players_dir=self.players_dir,
                                       csv_dir=self.csv_dir, clan_tags=[CLAN_TAG, OTHER_CLAN])

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def write_json(self, path, data):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")

    def write_season_clan(self, season, clan_tag, roster, league=None):
        data = {"roster": roster}
        if league is not None:
            data["league"] = league
        self.write_json(self.seasons_dir / season / "clans" / f"{clan_tag.lstrip('#')}.json", data)

    def write_csv(self, name, text):
        self.csv_dir.mkdir(parents=True, exist_ok=True)
        (self.csv_dir / name).write_text(text, encoding="utf-8")

    def make_player(self, tag="#A", th=None, seasons=None):
        player = PlayerCareerStats(tag=tag, name="P", th=th, clan=CLAN_NAME, clan_tag=CLAN_TAG)
        for season in seasons or ["2024-01"]:
            player.seasons.append(PlayerSeasonStats(season=season, clan=CLAN_NAME, clan_tag=CLAN_TAG,
                                                    attacks=7, stars=14))
        return player


class TestDefenseBackfill(EnrichmentTestCase):
    """Test cases for defense enrichment."""

    def test_defense_copied(self):
        self.write_season_clan("2024-01", CLAN_TAG, [
            {"tag": "a", "timesAttacked": 5, "starsAllowed": 10, "avgStarsAllowed": 2.0,
             "triplesAllowed": 2, "defenseQuality": 33.33},
        ])
        player = self.make_player()

        self.assertEqual(self.enricher.apply_defense([player]), 1)

        season = player.seasons[0]
        self.assertEqual(season.times_attacked, 5)
        self.assertEqual(season.stars_allowed, 10)
        self.assertEqual(season.triples_allowed, 2)
        self.assertEqual(season.defense_quality, 33.33)

    def test_missing_quality_defaults_to_perfect(self):
        self.write_season_clan("2024-01", CLAN_TAG, [{"tag": "#A"}])
        player = self.make_player()
        self.enricher.apply_defense([player])

        self.assertEqual(player.seasons[0].defense_quality, 100)
        self.assertEqual(player.seasons[0].times_attacked, 0)

    def test_missing_file_leaves_defaults(self):
        player = self.make_player()
        self.assertEqual(self.enricher.apply_defense([player]), 0)
        self.assertIsNone(player.seasons[0].times_attacked)

    def test_malformed_file_skipped(self):
        path = self.seasons_dir / "2024-01" / "clans" / "P0J2J8GJ.json"
        path.parent.mkdir(parents=True)
        path.write_text("{broken", encoding="utf-8")
        player = self.make_player()

        with self.assertLogs('cwl_stats.enrichment.enricher', level='WARNING'):
            self.assertEqual(self.enricher.apply_defense([player]), 0)

    def test_invalid_defense_values_skipped(self):
        """Test a roster entry with non-numeric defense figures is skipped and scoring still runs."""
        self.write_season_clan("2024-01", CLAN_TAG, [
            {"tag": "#A", "timesAttacked": "2", "starsAllowed": 3, "defenseQuality": 50.0},
        ])
        player = self.make_player()

        with self.assertLogs('cwl_stats.enrichment.enricher', level='WARNING'):
            self.assertEqual(self.enricher.apply_defense([player]), 0)

        score_player(player)
        self.assertEqual(player.total_times_attacked, 0)
        self.assertEqual(player.career_defense_quality, 100)

    def test_non_text_tag_skipped(self):
        self.write_season_clan("2024-01", CLAN_TAG, [
            {"tag": 123, "timesAttacked": 1},
            {"tag": "#A", "timesAttacked": 2, "starsAllowed": 3, "triplesAllowed": 0},
        ])
        player = self.make_player()

        with self.assertLogs('cwl_stats.enrichment.enricher', level='WARNING'):
            self.assertEqual(self.enricher.apply_defense([player]), 1)

        self.assertEqual(player.seasons[0].times_attacked, 2)
        self.assertEqual(player.seasons[0].stars_allowed, 3)


class TestLeagueTiers(EnrichmentTestCase):
    """Test cases for league tier enrichment."""

    def test_load_league_tiers(self):
        self.write_csv("masters-clan-war-leagues.csv",
                       'Tag,Season,League Name,Position\n'
                       '"P0J2J8GJ",2024-01,"Master League I",3\n'
                       '#P0J2J8GJ,2024-02,"Champion League III",1\n'
                       ',2024-03,Gold League I,2\n')

        tiers = load_league_tiers(self.csv_dir)

        self.assertEqual(tiers, {
            (CLAN_TAG, "2024-01"): "Master League I",
            (CLAN_TAG, "2024-02"): "Champion League III",
        })

    def test_missing_columns_skipped(self):
        self.write_csv("bad-clan-war-leagues.csv", "Tag,Season\n#P0J2J8GJ,2024-01\n")
        self.assertEqual(load_league_tiers(self.csv_dir), {})

    def test_missing_directory(self):
        self.assertEqual(load_league_tiers(self.temp_dir / "nowhere"), {})

    def test_apply_league_tiers(self):
        self.write_csv("masters-clan-war-leagues.csv",
                       "Tag,Season,League Name\n#P0J2J8GJ,2024-01,Master League I\n")
        player = self.make_player(seasons=["2024-01", "2024-02"])

        self.assertEqual(self.enricher.apply_league_tiers([player]), 1)
        self.assertEqual(player.seasons[0].league_tier, "Master League I")
        self.assertIsNone(player.seasons[1].league_tier)


class TestTownHallBackfill(EnrichmentTestCase):
    """Test cases for the town hall fallback chain."""

    def test_war_statistics_highest_rounded(self):
        self.write_csv("a-war-statistics.csv", 'Tag,Average TH\n#A,"14.5"\n#B,12.4\n#C,abc\n')
        self.write_csv("b-war-statistics.csv", "Tag,Average TH\nA,13.2\n")

        self.assertEqual(load_war_statistics_th(self.csv_dir), {"#A": 15, "#B": 12})

    def test_existing_th_kept(self):
        self.write_csv("a-war-statistics.csv", "Tag,Average TH\n#A,16\n")
        player = self.make_player(th=14)

        self.enricher.apply_town_hall([player])

        self.assertEqual(player.th, 14)

    def test_priority_order(self):
        """Test each source only fills players the previous one left unset."""
        self.write_csv("a-war-statistics.csv", "Tag,Average TH\n#A,12\n")
        self.write_json(self.players_dir / "A.json", {"playerTag": "#A", "seasons": [{"th": 16}]})
        self.write_json(self.players_dir / "B.json",
                        {"playerTag": "#B", "th": 11, "seasons": [{"season": "2024-02"}, {"th": 9}]})
        self.write_json(self.players_dir / "C.json", {"playerTag": "#C", "th": 10})
        self.write_season_clan("2024-01", CLAN_TAG, [{"tag": "#D", "townHallLevel": 8},
                                                     {"tag": "#C", "townHallLevel": 7}])
        self.write_season_clan("2024-02", OTHER_CLAN, [{"tag": "#D", "townHallLevel": 9}])

        players = [self.make_player(tag) for tag in ("#A", "#B", "#C", "#D", "#E")]
        self.enricher.apply_town_hall(players)

        self.assertEqual([p.th for p in players], [12, 9, 10, 9, None])
        self.assertEqual(self.enricher.stats["th_from_war_stats"], 1)
        self.assertEqual(self.enricher.stats["th_from_player_files"], 2)
        self.assertEqual(self.enricher.stats["th_from_season_rosters"], 1)

    def test_non_finite_average_th_skipped(self):
        self.write_csv("a-war-statistics.csv", "Tag,Average TH\n#A,inf\n#B,13\n")

        with self.assertLogs('cwl_stats.enrichment.csv_sources', level='WARNING'):
            levels = load_war_statistics_th(self.csv_dir)

        self.assertEqual(levels, {"#B": 13})

    def test_invalid_player_files_skipped(self):
        self.write_json(self.players_dir / "A.json", {"playerTag": 123, "th": 12})
        self.write_json(self.players_dir / "B.json", {"playerTag": "#B", "th": 11, "seasons": "2024-01"})

        with self.assertLogs('cwl_stats.enrichment.enricher', level='WARNING'):
            levels = self.enricher.load_player_file_th()

        self.assertEqual(levels, {"#B": 11})

    def test_invalid_season_roster_entries_skipped(self):
        self.write_season_clan("2024-01", CLAN_TAG, [{"tag": 123, "townHallLevel": 9},
                                                     {"tag": "#D", "townHallLevel": float("inf")},
                                                     {"tag": "#E", "townHallLevel": 10}])

        with self.assertLogs('cwl_stats.enrichment.enricher', level='WARNING'):
            levels = self.enricher.load_season_roster_th()

        self.assertEqual(levels, {"#E": 10})

    def test_enrich_survives_bad_values(self):
        """Test a full enrichment pass over files with bad values leaves a scorable player."""
        self.write_csv("a-war-statistics.csv", "Tag,Average TH\n#A,inf\n")
        self.write_json(self.players_dir / "X.json", {"playerTag": ["#A"]})
        self.write_season_clan("2024-01", CLAN_TAG, [{"tag": "#A", "timesAttacked": "2", "townHallLevel": 13}])
        player = self.make_player()

        with self.assertLogs('cwl_stats.enrichment', level='WARNING'):
            self.enricher.enrich([player])
        score_player(player)

        self.assertEqual(player.th, 13)
        self.assertEqual(player.total_times_attacked, 0)


class TestClanLeague(EnrichmentTestCase):
    """Test cases for the latest clan league lookup."""

    def test_newest_season_file_wins(self):
        self.write_season_clan("2024-01", CLAN_TAG, [], league={"tier": "Master League II", "group": "A"})
        self.write_season_clan("2024-03", CLAN_TAG, [], league={"tier": "Master League I", "group": "B"})
        self.write_season_clan("2024-04", CLAN_TAG, [])

        league = self.enricher.latest_league_for_clan(CLAN_TAG)

        self.assertEqual(league.tier, "Master League I")
        self.assertEqual(league.group, "B")

    def test_falls_back_to_csv(self):
        self.write_csv("m-clan-war-leagues.csv",
                       "Tag,Season,League Name\n#P0J2J8GJ,2023-12,Crystal League I\n"
                       "#P0J2J8GJ,2024-02,Master League III\n")
        self.enricher.apply_league_tiers([])

        league = self.enricher.latest_league_for_clan(CLAN_TAG)

        self.assertEqual(league.tier, "Master League III")
        self.assertIsNone(league.group)

    def test_unknown(self):
        self.assertIsNone(self.enricher.latest_league_for_clan(CLAN_TAG))


if __name__ == '__main__':
    unittest.main()
