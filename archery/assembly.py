"""Per-tournament category views built on top of the archer registry."""

from __future__ import annotations

from typing import Dict, Iterable, List

from .errors import RegistryConsistencyError
from .models import Archer, ArcheryData, CategoryView, Event, Tournament
from .registry import EventPass, build_archer_registry, resolve_stable_id
from .scoring import rank_scores


def assemble_tournament(registry: Dict[str, Archer], event_pass: EventPass) -> Tournament:
    """Build the category view of one tournament's event.

    Display names come from the registry entries so the nested view always
    matches the flat archer list. The registry must already hold every
    archer in the roster; a missing entry raises
    :class:`RegistryConsistencyError`.
    """
    roster = event_pass.roster
    categories: Dict[str, CategoryView] = {}
    for category in sorted(roster.categories, key=lambda c: c.display_order):
        view = CategoryView(name=category.name)
        for local_id in category.archer_ids:
            stable_id = resolve_stable_id(event_pass.id_map, local_id, roster.event_id)
            archer = registry.get(stable_id)
            if archer is None:
                raise RegistryConsistencyError(
                    f"Category {category.name!r} of event {roster.event_id} references "
                    f"unregistered archer {stable_id!r}"
                )
            view.archers[stable_id] = archer.display()
        categories[category.name] = view

    tournament = event_pass.tournament
    return Tournament(
        tournament_id=tournament.tournament_id,
        name=tournament.name,
        event=Event(event_id=roster.event_id, name=roster.name, categories=categories),
    )


def assemble_archery_data(client, tournament_ids: Iterable[str]) -> ArcheryData:
    """Fetch, reconcile and assemble everything served by ``/api/archers``."""
    registry, passes = build_archer_registry(client, tournament_ids)
    tournaments: Dict[str, Tournament] = {}
    for event_pass in passes:
        tournament = assemble_tournament(registry, event_pass)
        tournaments[tournament.tournament_id] = tournament
    return ArcheryData(archers=registry, tournaments=tournaments)


def category_leaderboards(data: ArcheryData, category: str | None = None) -> Dict[str, Dict[str, List[dict]]]:
    """Return ``{tournament_id: {category: [ranked entries]}}``.

    Scores come from each archer's result for that tournament. ``category``
    restricts the output to one category name.
    """
    boards: Dict[str, Dict[str, List[dict]]] = {}
    for tournament_id, tournament in data.tournaments.items():
        per_category: Dict[str, List[dict]] = {}
        for name, view in tournament.event.categories.items():
            if category is not None and name != category:
                continue
            entries = []
            for stable_id, display in view.archers.items():
                result = data.archers[stable_id].results.get(tournament_id)
                if result is None:
                    raise RegistryConsistencyError(
                        f"Archer {stable_id!r} has no result for tournament {tournament_id}"
                    )
                entries.append({
                    "id": stable_id,
                    "full_name": display.full_name,
                    "arrows": result.arrows,
                    "score": result.score,
                })
            per_category[name] = rank_scores(entries)
        boards[tournament_id] = per_category
    return boards


__all__ = ["assemble_tournament", "assemble_archery_data", "category_leaderboards"]
