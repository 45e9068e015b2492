"""
Persisted snapshots of resolved descriptions and is-a relationships.

Snapshots are merged release after release with the same most-recent-wins
rule used to resolve a single log, so a delta release never needs the full
history re-read. On disk flags use a sparse form (key present means true):

    descriptions:  concept_id -> {row_id -> {"t": term, "e": time, "a": 1, "m": 1}}
    relationships: row_id -> {"s": source_id, "d": destination_id, "e": time, "a": 1}
    best terms:    concept_id -> term
    index:         parent_id -> {child_id: true}

Every file is written in one go to a temporary file and swapped into place,
so an interrupted run leaves the previous snapshot intact.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict

import revisions
from definitions import ConceptDescriptions, ResolvedDescription
from snomed_dag import HierarchyIndex, ResolvedRelationship, sort_ids

logger = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """A persisted snapshot could not be read back"""


def merge_definitions(existing: ConceptDescriptions, new: ConceptDescriptions) -> ConceptDescriptions:
    """Merge a release's resolved descriptions into the running snapshot.

    Works per (concept_id, row_id): unseen concepts and rows are taken as
    they are, rows in both keep the later effectiveTime and the existing one
    on a tie. Inputs are not modified. Merging the same release twice gives
    the same result as merging it once.

    Releases are expected to arrive in order; incoming rows older than the
    snapshot are counted and logged, and the snapshot value kept.
    """
    merged = dict(existing)
    stale = 0
    for concept_id, group in new.items():
        if concept_id not in merged:
            merged[concept_id] = dict(group)
            continue
        stale += len(revisions.stale_revisions(merged[concept_id], group))
        merged[concept_id] = revisions.merge_revisions(merged[concept_id], group)
    if stale:
        logger.warning(
            "%d description rows are older than the snapshot, releases may be out of order", stale
        )
    return merged


def merge_relationships(existing: Dict[str, ResolvedRelationship],
                        new: Dict[str, ResolvedRelationship]) -> Dict[str, ResolvedRelationship]:
    stale = revisions.stale_revisions(existing, new)
    if stale:
        logger.warning(
            "%d relationship rows are older than the snapshot, releases may be out of order", len(stale)
        )
    return revisions.merge_revisions(existing, new)


# wire encoding

def definitions_to_wire(concepts: ConceptDescriptions) -> dict:
    out = {}
    for concept_id, group in concepts.items():
        rows = {}
        for row_id, desc in group.items():
            entry = {"t": desc.term, "e": desc.effective_time}
            if desc.active:
                entry["a"] = 1
            if desc.main_term:
                entry["m"] = 1
            rows[row_id] = entry
        out[concept_id] = rows
    return out


def definitions_from_wire(data) -> ConceptDescriptions:
    if not isinstance(data, dict):
        raise SnapshotError(f"Expected an object of concepts, got {type(data).__name__}")
    concepts = {}
    try:
        for concept_id, rows in data.items():
            concepts[concept_id] = {
                row_id: ResolvedDescription(
                    concept_id=concept_id,
                    term=entry["t"],
                    effective_time=entry["e"],
                    active=bool(entry.get("a")),
                    main_term=bool(entry.get("m")),
                )
                for row_id, entry in rows.items()
            }
    except (AttributeError, KeyError, TypeError) as e:
        raise SnapshotError(f"Malformed description snapshot: {e!r}") from e
    return concepts


def relationships_to_wire(relationships: Dict[str, ResolvedRelationship]) -> dict:
    out = {}
    for row_id, rel in relationships.items():
        entry = {"s": rel.source_id, "d": rel.destination_id, "e": rel.effective_time}
        if rel.active:
            entry["a"] = 1
        out[row_id] = entry
    return out


def relationships_from_wire(data) -> Dict[str, ResolvedRelationship]:
    if not isinstance(data, dict):
        raise SnapshotError(f"Expected an object of relationships, got {type(data).__name__}")
    try:
        return {
            row_id: ResolvedRelationship(
                source_id=entry["s"],
                destination_id=entry["d"],
                effective_time=entry["e"],
                active=bool(entry.get("a")),
            )
            for row_id, entry in data.items()
        }
    except (AttributeError, KeyError, TypeError) as e:
        raise SnapshotError(f"Malformed relationship snapshot: {e!r}") from e


def index_to_wire(index: HierarchyIndex) -> dict:
    return {parent: {child: True for child in sort_ids(kids)} for parent, kids in index.items()}


def index_from_wire(data) -> HierarchyIndex:
    if not isinstance(data, dict):
        raise SnapshotError(f"Expected an object of parents, got {type(data).__name__}")
    index = {}
    for parent, kids in data.items():
        if not isinstance(kids, dict):
            raise SnapshotError(
                f"Malformed hierarchy index: children of {parent} are a {type(kids).__name__}"
            )
        index[parent] = set(kids)
    return index


# files

def write_json(path, data, indent=None):
    """Write json atomically: temp file in the same directory, then replace."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent, ensure_ascii=False)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise


def read_json(path):
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Snapshot {path} is not valid json: {e}") from e


def load_definitions(path) -> ConceptDescriptions:
    return definitions_from_wire(read_json(path))


def load_relationships(path) -> Dict[str, ResolvedRelationship]:
    return relationships_from_wire(read_json(path))


def load_index(path) -> HierarchyIndex:
    return index_from_wire(read_json(path))


def load_best_definitions(path) -> Dict[str, str]:
    data = read_json(path)
    if not isinstance(data, dict):
        raise SnapshotError(f"Expected an object of terms in {path}")
    return data
