"""
Unit tests for clan aggregate views.
"""

from service_proxy.app.domain.clan_stats import summarize_clan, summarize_donations, trophy_distribution


CLAN = {"tag": "#2PP", "name": "Test Clan", "clanLevel": 12, "clanPoints": 41000, "warWins": 220}

MEMBERS = {
    "items": [
        {"tag": "#P1", "name": "Ana", "role": "leader", "trophies": 3100, "donations": 500, "donationsReceived": 20},
        {"tag": "#P2", "name": "Ben", "role": "member", "trophies": 2000, "donations": 40, "donationsReceived": 300},
        {"tag": "#P3", "name": "Cy", "role": "elder", "trophies": 999, "donations": 120},
        {"tag": "#P4", "name": "Di", "role": "member"},
    ]
}


def counts(distribution):
    return {bracket["name"]: bracket["count"] for bracket in distribution}


def test_summarize_clan():
    summary = summarize_clan(CLAN, MEMBERS)

    assert summary["clan"] == {
        "tag": "#2PP",
        "name": "Test Clan",
        "level": 12,
        "points": 41000,
        "warWins": 220,
    }
    assert summary["totalMembers"] == 4
    assert summary["avgTrophies"] == round((3100 + 2000 + 999 + 0) / 4)
    assert summary["highest"] == 3100
    assert summary["lowest"] == 0
    assert counts(summary["trophyDistribution"]) == {
        "3000+": 1,
        "2500-2999": 0,
        "2000-2499": 1,
        "1500-1999": 0,
        "1000-1499": 0,
        "<1000": 2,
    }


def test_summarize_clan_without_members():
    summary = summarize_clan(CLAN, {"items": []})

    assert summary["totalMembers"] == 0
    assert summary["avgTrophies"] == 0
    assert summary["highest"] == 0
    assert summary["lowest"] == 0


def test_summarize_clan_tolerates_unexpected_payload():
    summary = summarize_clan({}, {"raw": "not json"})

    assert summary["totalMembers"] == 0
    assert summary["clan"]["tag"] is None


def test_distribution_bounds():
    distribution = trophy_distribution([2500, 2499, 1000, -5])

    assert counts(distribution)["2500-2999"] == 1
    assert counts(distribution)["2000-2499"] == 1
    assert counts(distribution)["1000-1499"] == 1
    assert counts(distribution)["<1000"] == 1
    assert "max" not in distribution[0]
    assert distribution[1]["max"] == 2999


def test_summarize_donations():
    summary = summarize_donations(MEMBERS)

    assert summary["totalDonations"] == 660
    assert summary["totalReceived"] == 320
    assert [member["tag"] for member in summary["members"]] == ["#P1", "#P3", "#P2", "#P4"]
    assert summary["members"][3] == {
        "tag": "#P4",
        "name": "Di",
        "role": "member",
        "donations": 0,
        "donationsReceived": 0,
    }


def test_average_rounds_half_up():
    summary = summarize_clan(CLAN, {"items": [{"trophies": 1500}, {"trophies": 1501}]})

    assert summary["avgTrophies"] == 1501
