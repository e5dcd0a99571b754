"""
Aggregate views computed from clan and member payloads.
"""

import math
from typing import Any, Dict, List


# (label, lower bound, upper bound); None means unbounded
TROPHY_BRACKETS = (
    ("3000+", 3000, None),
    ("2500-2999", 2500, 2999),
    ("2000-2499", 2000, 2499),
    ("1500-1999", 1500, 1999),
    ("1000-1499", 1000, 1499),
    ("<1000", 0, 999),
)


def _members(members_payload: Any) -> List[Dict[str, Any]]:
    if isinstance(members_payload, dict):
        return list(members_payload.get("items") or [])
    return []


def _int(value: Any) -> int:
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def trophy_distribution(trophies: List[int]) -> List[Dict[str, Any]]:
    distribution = []
    for label, low, high in TROPHY_BRACKETS:
        bracket: Dict[str, Any] = {"name": label, "min": low}
        if high is not None:
            bracket["max"] = high
        bracket["count"] = 0
        distribution.append(bracket)

    for value in trophies:
        for bracket in distribution:
            if value >= bracket["min"]:
                bracket["count"] += 1
                break
        else:
            # Negative counts land in the lowest bracket
            distribution[-1]["count"] += 1

    return distribution


def summarize_clan(clan: Dict[str, Any], members_payload: Any) -> Dict[str, Any]:
    """Clan summary with trophy statistics across its members."""
    trophies = [_int(member.get("trophies")) for member in _members(members_payload)]
    total_members = len(trophies)

    return {
        "clan": {
            "tag": clan.get("tag"),
            "name": clan.get("name"),
            "level": clan.get("clanLevel"),
            "points": clan.get("clanPoints"),
            "warWins": clan.get("warWins"),
        },
        "totalMembers": total_members,
        "avgTrophies": _round_half_up(sum(trophies) / total_members) if total_members else 0,
        "highest": max(trophies) if trophies else 0,
        "lowest": min(trophies) if trophies else 0,
        "trophyDistribution": trophy_distribution(trophies),
    }


def summarize_donations(members_payload: Any) -> Dict[str, Any]:
    """Donation totals and members ordered by donations, highest first."""
    per_member = [
        {
            "tag": member.get("tag"),
            "name": member.get("name"),
            "role": member.get("role"),
            "donations": _int(member.get("donations")),
            "donationsReceived": _int(member.get("donationsReceived")),
        }
        for member in _members(members_payload)
    ]
    per_member.sort(key=lambda member: member["donations"], reverse=True)

    return {
        "totalDonations": sum(member["donations"] for member in per_member),
        "totalReceived": sum(member["donationsReceived"] for member in per_member),
        "members": per_member,
    }
