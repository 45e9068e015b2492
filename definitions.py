"""
concept descriptions: resolve the description log, group by concept and pick
one display term per concept
"""
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

import revisions

# Fully Specified Name; anything else is treated as a synonym
MAIN_TERM_TYPE = "900000000000003001"


@dataclass(frozen=True)
class ResolvedDescription:
    """Current state of one description row"""
    concept_id: str
    term: str
    effective_time: str
    active: bool = False
    main_term: bool = False


# concept_id -> description row id -> current state
ConceptDescriptions = Dict[str, Dict[str, ResolvedDescription]]


def description_from_row(row: Dict[str, str]) -> ResolvedDescription:
    return ResolvedDescription(
        concept_id=row["conceptId"],
        term=row["term"],
        effective_time=row["effectiveTime"],
        active=row["active"] == "1",
        main_term=row["typeId"] == MAIN_TERM_TYPE,
    )


def resolve_descriptions(rows: Iterable[Dict[str, str]]) -> Dict[str, ResolvedDescription]:
    return revisions.resolve(
        rows,
        key=lambda r: r["id"],
        effective_time=lambda r: r["effectiveTime"],
        project=description_from_row,
    )


def group_by_concept(resolved: Dict[str, ResolvedDescription]) -> ConceptDescriptions:
    """Group resolved descriptions under their concept.

    Nothing is filtered: inactive rows and synonyms stay in the group since
    best term selection falls back on them.
    """
    groups = defaultdict(dict)
    for row_id, desc in resolved.items():
        groups[desc.concept_id][row_id] = desc
    return dict(groups)


def build_concept_descriptions(rows: Iterable[Dict[str, str]]) -> ConceptDescriptions:
    return group_by_concept(resolve_descriptions(rows))


# (active, main_term) in order of preference
_TIERS = [(True, True), (True, False), (False, True), (False, False)]


def select_best_term(group: Dict[str, ResolvedDescription]) -> Optional[str]:
    """Pick the display term for one concept.

    Tiers, first non-empty wins: active fully specified name, active synonym,
    inactive fully specified name, inactive synonym. Within a tier the most
    recent effectiveTime wins; equal times keep group order (stable sort).
    Returns None for an empty group.
    """
    descs = list(group.values())
    for active, main_term in _TIERS:
        tier = [d for d in descs if d.active == active and d.main_term == main_term]
        if tier:
            tier.sort(key=lambda d: d.effective_time, reverse=True)
            return tier[0].term
    return None


def best_definitions(concepts: ConceptDescriptions) -> Dict[str, str]:
    """concept_id -> best term, concepts without any term are left out"""
    best = {}
    for concept_id, group in concepts.items():
        term = select_best_term(group)
        if term is not None:
            best[concept_id] = term
    return best
