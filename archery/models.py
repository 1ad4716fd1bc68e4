"""Typed records for upstream payloads and the assembled archer data.

The results provider uses short field names (``enm``, ``cgs``, ``rps`` ...).
They are translated here, right after deserialization, and nothing past
:mod:`archery.upstream` sees the raw shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .errors import UpstreamFetchError

# Participant field carrying the cross-tournament archer id.
STABLE_ID_FIELD = "uid"


def _require(payload: Dict[str, Any], key: str, kind: str) -> Any:
    try:
        return payload[key]
    except (KeyError, TypeError):
        raise UpstreamFetchError(f"{kind} payload missing field {key!r}") from None


def _local_id(value: Any) -> str:
    """Normalise an event-local archer id (int or str on the wire) to str."""
    if isinstance(value, dict):
        value = value.get("aid")
    if value is None:
        raise UpstreamFetchError("category entry without an archer id")
    return str(value)


# ---------------------------------------------------------------------------
# Upstream records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RawParticipant:
    local_id: str
    first_name: str
    last_name: str
    stable_id: Optional[str]
    targets: Tuple[str, ...] = ()
    target_numbers: Tuple[int, ...] = ()
    logistics: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "RawParticipant":
        stable = payload.get(STABLE_ID_FIELD)
        return cls(
            local_id=_local_id(_require(payload, "aid", "participant")),
            first_name=str(payload.get("fnm") or ""),
            last_name=str(payload.get("lnm") or ""),
            stable_id=None if stable is None else str(stable),
            targets=tuple(payload.get("tgt") or ()),
            target_numbers=tuple(payload.get("tnl") or ()),
            logistics={k: payload[k] for k in ("cnd", "tm", "alt", "rtl", "tbs") if k in payload},
        )


@dataclass(frozen=True)
class RawCategory:
    name: str
    display_order: int
    archer_ids: Tuple[str, ...]

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "RawCategory":
        return cls(
            name=str(_require(payload, "nm", "category")),
            display_order=int(payload.get("dor") or 0),
            archer_ids=tuple(_local_id(a) for a in payload.get("ars") or ()),
        )


@dataclass(frozen=True)
class RawEventRoster:
    event_id: str
    name: str
    event_type: str
    display_order: int
    categories: Tuple[RawCategory, ...]
    participants: Dict[str, RawParticipant] = field(compare=False)

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "RawEventRoster":
        raw_participants = _require(payload, "rps", "roster") or {}
        participants: Dict[str, RawParticipant] = {}
        for key, entry in raw_participants.items():
            participant = RawParticipant.from_json(entry)
            participants[str(key)] = participant
        return cls(
            event_id=str(_require(payload, "id", "roster")),
            name=str(payload.get("enm") or ""),
            event_type=str(payload.get("etp") or ""),
            display_order=int(payload.get("dor") or 0),
            categories=tuple(RawCategory.from_json(c) for c in _require(payload, "cgs", "roster") or ()),
            participants=participants,
        )


@dataclass(frozen=True)
class RawScores:
    event_id: str
    arrows: Dict[str, str] = field(compare=False)

    @classmethod
    def from_json(cls, payload: Dict[str, Any], event_id: str) -> "RawScores":
        raw = _require(payload, "ars", "scores") or {}
        return cls(event_id=str(event_id), arrows={str(k): str(v or "") for k, v in raw.items()})

    def for_archer(self, local_id: str) -> str:
        return self.arrows.get(local_id, "")


@dataclass(frozen=True)
class EventSummary:
    event_id: str
    display_order: int
    event_type: str
    name: str

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "EventSummary":
        return cls(
            event_id=str(_require(payload, "id", "event summary")),
            display_order=int(payload.get("dor") or 0),
            event_type=str(payload.get("etp") or ""),
            name=str(payload.get("enm") or ""),
        )


@dataclass(frozen=True)
class RawTournament:
    tournament_id: str
    name: str
    events: Tuple[EventSummary, ...]

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "RawTournament":
        return cls(
            tournament_id=str(_require(payload, "id", "tournament")),
            name=str(payload.get("nm") or ""),
            events=tuple(EventSummary.from_json(e) for e in payload.get("evs") or ()),
        )

    @property
    def first_event(self) -> Optional[EventSummary]:
        return self.events[0] if self.events else None


# ---------------------------------------------------------------------------
# Derived records
# ---------------------------------------------------------------------------


@dataclass
class ArcherResult:
    tournament_id: str
    tournament_name: str
    event_id: str
    category_name: str
    arrows: str = ""
    score: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tournamentId": self.tournament_id,
            "tournamentName": self.tournament_name,
            "eventId": self.event_id,
            "category": self.category_name,
            "arrows": self.arrows,
            "score": self.score,
        }


@dataclass
class Archer:
    stable_id: str
    first_name: str
    last_name: str
    results: Dict[str, ArcherResult] = field(default_factory=dict)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def display(self) -> "ArcherDisplay":
        return ArcherDisplay(self.stable_id, self.first_name, self.last_name, self.full_name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.display().to_dict(),
            "results": {tid: r.to_dict() for tid, r in self.results.items()},
        }


@dataclass(frozen=True)
class ArcherDisplay:
    stable_id: str
    first_name: str
    last_name: str
    full_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.stable_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "fullName": self.full_name,
        }


@dataclass
class CategoryView:
    name: str
    archers: Dict[str, ArcherDisplay] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "archers": {sid: a.to_dict() for sid, a in self.archers.items()}}


@dataclass
class Event:
    event_id: str
    name: str
    categories: Dict[str, CategoryView] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.event_id,
            "name": self.name,
            "categories": {name: c.to_dict() for name, c in self.categories.items()},
        }


@dataclass
class Tournament:
    tournament_id: str
    name: str
    event: Event

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.tournament_id, "name": self.name, "event": self.event.to_dict()}


@dataclass
class ArcheryData:
    archers: Dict[str, Archer]
    tournaments: Dict[str, Tournament]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "archers": {sid: a.to_dict() for sid, a in self.archers.items()},
            "tournaments": {tid: t.to_dict() for tid, t in self.tournaments.items()},
        }


__all__ = [
    "STABLE_ID_FIELD",
    "RawParticipant",
    "RawCategory",
    "RawEventRoster",
    "RawScores",
    "EventSummary",
    "RawTournament",
    "ArcherResult",
    "Archer",
    "ArcherDisplay",
    "CategoryView",
    "Event",
    "Tournament",
    "ArcheryData",
]
