"""Builders for raw ClashKing payloads used across the tests."""

CLAN_TAG = "#P0J2J8GJ"
CLAN_NAME = "coc masters PL"
ENEMY_TAG = "#ENEMY1"


def member(tag, name="Player", th=15, attacks=None):
    """A raw war member; attacks is a list of (stars, destruction) pairs."""
    return {
        "tag": tag,
        "name": name,
        "townHallLevel": th,
        "mapPosition": 1,
        "attacks": [
            {
                "attackerTag": tag,
                "defenderTag": "#DEF",
                "stars": stars,
                "destructionPercentage": destruction,
                "order": i + 1,
                "duration": 120,
            }
            for i, (stars, destruction) in enumerate(attacks or [])
        ],
        "opponentAttacks": 0,
    }


def side(tag, members=None, stars=0, destruction=0.0, attacks=None, name="Clan"):
    members = members or []
    return {
        "tag": tag,
        "name": name,
        "clanLevel": 20,
        "attacks": len([a for m in members for a in m["attacks"]]) if attacks is None else attacks,
        "stars": stars,
        "destructionPercentage": destruction,
        "members": members,
    }


def war(clan, opponent, state="warEnded", start_time="20240101T000000.000Z", war_tag="#WAR1"):
    return {
        "tag": war_tag,
        "warTag": war_tag,
        "state": state,
        "teamSize": 15,
        "preparationStartTime": start_time,
        "startTime": start_time,
        "endTime": start_time,
        "clan": clan,
        "opponent": opponent,
    }


def payload(wars, state="ended", season="2024-01"):
    """A complete season payload with one round per war."""
    return {
        "state": state,
        "season": season,
        "clans": [],
        "rounds": [{"warTags": [w]} for w in wars],
    }


def incomplete_payload(state="inWar", season="2024-01"):
    """A payload listing only war tags."""
    return {
        "state": state,
        "season": season,
        "rounds": [{"warTags": ["#WARTAG1", "#WARTAG2"]}],
    }
