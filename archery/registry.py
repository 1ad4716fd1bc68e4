"""Cross-tournament archer registry.

Rosters identify archers by an event-local numeric id that is only valid
inside one event. Each participant record also carries a stable id naming the
same person across tournaments, and the registry is keyed by that stable id
alone. Event-local ids are used only to look up stable ids for one event.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from .errors import IdentifierResolutionError, RegistryConsistencyError
from .models import Archer, ArcherResult, RawEventRoster, RawScores, RawTournament
from .scoring import decode_score

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventPass:
    """Inputs and id map from processing one tournament's event."""

    tournament: RawTournament
    roster: RawEventRoster
    scores: RawScores
    id_map: Dict[str, str]


def reconcile_identifiers(roster: RawEventRoster, registry: Dict[str, Archer]) -> Dict[str, str]:
    """Map the roster's event-local ids to stable ids, registering new archers.

    Archers already in ``registry`` keep their identity fields. A participant
    without a stable id, or two participants of the same event sharing one,
    raises :class:`IdentifierResolutionError`.
    """
    id_map: Dict[str, str] = {}
    owners: Dict[str, str] = {}
    for participant in roster.participants.values():
        local_id = participant.local_id
        stable_id = (participant.stable_id or "").strip()
        if not stable_id:
            raise IdentifierResolutionError(
                f"Participant {local_id} ({participant.first_name} {participant.last_name}) "
                f"in event {roster.event_id} has no stable id"
            )
        previous = owners.get(stable_id)
        if previous is not None and previous != local_id:
            # Upstream occasionally hands two people the same stable id.
            raise IdentifierResolutionError(
                f"Ambiguous identity in event {roster.event_id}: archers {previous} and "
                f"{local_id} share stable id {stable_id!r}"
            )
        owners[stable_id] = local_id

        archer = registry.get(stable_id)
        if archer is None:
            registry[stable_id] = Archer(
                stable_id=stable_id,
                first_name=participant.first_name,
                last_name=participant.last_name,
            )
        elif (archer.first_name, archer.last_name) != (participant.first_name, participant.last_name):
            logger.warning(
                "ambiguous identity: stable id %s registered as %r but event %s lists %r",
                stable_id,
                archer.full_name,
                roster.event_id,
                f"{participant.first_name} {participant.last_name}",
            )
        id_map[local_id] = stable_id
    return id_map


def resolve_stable_id(id_map: Dict[str, str], local_id: str, event_id: str) -> str:
    try:
        return id_map[local_id]
    except KeyError:
        raise IdentifierResolutionError(
            f"Archer {local_id} in event {event_id} is not in the participant list"
        ) from None


def record_results(event_pass: EventPass, registry: Dict[str, Archer]) -> None:
    """Attach one ``ArcherResult`` per categorised archer, keyed by tournament id."""
    tournament = event_pass.tournament
    roster = event_pass.roster
    for category in roster.categories:
        for local_id in category.archer_ids:
            stable_id = resolve_stable_id(event_pass.id_map, local_id, roster.event_id)
            arrows = event_pass.scores.for_archer(local_id)
            registry[stable_id].results[tournament.tournament_id] = ArcherResult(
                tournament_id=tournament.tournament_id,
                tournament_name=tournament.name,
                event_id=roster.event_id,
                category_name=category.name,
                arrows=arrows,
                score=decode_score(arrows),
            )


def build_archer_registry(client, tournament_ids: Iterable[str]) -> Tuple[Dict[str, Archer], List[EventPass]]:
    """Build the archer registry across ``tournament_ids`` in order.

    Tournaments are processed one after another against a registry private
    to this call. Any failure propagates and nothing is returned, so callers
    never see a partially built registry.

    Returns:
        ``(registry, passes)`` where ``passes`` holds one :class:`EventPass`
        per processed tournament id, in input order.
    """
    registry: Dict[str, Archer] = {}
    passes: List[EventPass] = []
    for tournament_id in tournament_ids:
        tournament = client.tournament(str(tournament_id))
        summary = tournament.first_event
        if summary is None:
            raise RegistryConsistencyError(f"Tournament {tournament.tournament_id} lists no events")
        roster, scores = client.event_data(summary.event_id)
        id_map = reconcile_identifiers(roster, registry)
        event_pass = EventPass(tournament=tournament, roster=roster, scores=scores, id_map=id_map)
        record_results(event_pass, registry)
        passes.append(event_pass)
        logger.debug(
            "processed tournament %s event %s: %d participants, registry size %d",
            tournament.tournament_id,
            roster.event_id,
            len(id_map),
            len(registry),
        )
    return registry, passes


__all__ = [
    "EventPass",
    "reconcile_identifiers",
    "resolve_stable_id",
    "record_results",
    "build_archer_registry",
]
