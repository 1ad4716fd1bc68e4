"""Scoring utilities for the provider's per-arrow scoring strings."""

from __future__ import annotations

from typing import Dict, Iterable, List

from .errors import DecodeError

MISS = "M"
TEN = "T"

_SPECIAL_VALUES = {MISS: 0, TEN: 10}


def arrow_values(arrows: str) -> List[int]:
    """Return the value of each arrow in ``arrows``.

    Digits score their face value, ``M`` is a miss (0) and ``T`` a ten.
    Any other character raises :class:`DecodeError`.
    """
    values: List[int] = []
    for position, char in enumerate(arrows):
        if char in _SPECIAL_VALUES:
            values.append(_SPECIAL_VALUES[char])
        elif "0" <= char <= "9":
            values.append(ord(char) - ord("0"))
        else:
            raise DecodeError(arrows, position)
    return values


def decode_score(arrows: str) -> int:
    """Return the total for a scoring string; the empty string scores 0."""
    return sum(arrow_values(arrows))


def rank_scores(entries: Iterable[Dict]) -> List[Dict]:
    """Order leaderboard entries and assign competition-style places.

    Each entry must provide ``score`` and ``full_name``. Entries are sorted by
    score (high wins) then name; equal scores share a place and the next
    place skips accordingly (1, 2, 2, 4).
    """
    table = sorted(entries, key=lambda e: (-e["score"], e["full_name"]))
    last_score = None
    place = 0
    for idx, entry in enumerate(table, start=1):
        if last_score is None or entry["score"] < last_score:
            place = idx
            last_score = entry["score"]
        entry["place"] = place
    return table


__all__ = [
    "arrow_values",
    "decode_score",
    "rank_scores",
]
