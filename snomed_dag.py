"""
build the SNOMED CT is-a hierarchy from the relationship log
and walk it to list every descendant of a concept
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Set, Tuple

import revisions
from rf2 import RELATIONSHIP_COLUMNS, read_rows

logger = logging.getLogger(__name__)

IS_A = "116680003"
ROOT_CONCEPT = "138875005"  # SNOMED CT Concept (root of entire hierarchy)

# parent concept_id -> child concept_ids
HierarchyIndex = Dict[str, Set[str]]


@dataclass(frozen=True)
class ResolvedRelationship:
    source_id: str  # child
    destination_id: str  # parent
    effective_time: str
    active: bool = False
    type_id: str = IS_A


@dataclass
class OntologyStats:
    """Statistics about the hierarchy index"""
    num_nodes: int
    num_edges: int
    num_parents: int
    num_leaves: int
    num_roots: int


def relationship_from_row(row):
    return ResolvedRelationship(
        source_id=row["sourceId"],
        destination_id=row["destinationId"],
        effective_time=row["effectiveTime"],
        active=row["active"] == "1",
        type_id=row["typeId"],
    )


def resolve_relationships(rows: Iterable[Dict[str, str]]) -> Dict[str, ResolvedRelationship]:
    """Resolve the relationship log and keep the is-a rows only.

    Every row takes part in resolution, the type filter runs on the
    current state of each row id.
    """
    resolved = revisions.resolve(
        rows,
        key=lambda r: r["id"],
        effective_time=lambda r: r["effectiveTime"],
        project=relationship_from_row,
    )
    return {row_id: rel for row_id, rel in resolved.items() if rel.type_id == IS_A}


def build_hierarchy_index(relationships: Dict[str, ResolvedRelationship]) -> HierarchyIndex:
    """parent -> children from active is-a relationships"""
    index = defaultdict(set)
    for rel in relationships.values():
        if rel.active and rel.type_id == IS_A:
            index[rel.destination_id].add(rel.source_id)
    return dict(index)


def children(index: HierarchyIndex, concept_id: str) -> List[str]:
    return sort_ids(index.get(concept_id, ()))


def sort_ids(ids: Iterable[str]) -> List[str]:
    """numeric order for SCTID strings"""
    return sorted(ids, key=lambda c: (len(c), c))


def descendants(root: str, index: HierarchyIndex) -> List[Tuple[str, int]]:
    """
    Depth-first pre-order walk from root.

    Returns (concept_id, depth) pairs starting with (root, 0). Siblings come
    in ascending id order. A concept reachable through several parents is
    listed once, at the first place it is reached, which also stops the walk
    on a cyclic index. An id that is neither a parent nor a child in the
    index is unknown and gives an empty list.
    """
    if root not in index and not any(root in kids for kids in index.values()):
        return []
    found = []
    seen = set()
    stack = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        if node in seen:
            logger.debug("Skipping repeat visit of %s", node)
            continue
        seen.add(node)
        found.append((node, depth))
        for child in reversed(children(index, node)):
            if child not in seen:
                stack.append((child, depth + 1))
    return found


def compute_stats(index: HierarchyIndex) -> OntologyStats:
    child_ids = set()
    for kids in index.values():
        child_ids.update(kids)
    nodes = child_ids | set(index)
    return OntologyStats(
        num_nodes=len(nodes),
        num_edges=sum(len(kids) for kids in index.values()),
        num_parents=len(index),
        num_leaves=len(child_ids - set(index)),
        num_roots=len(set(index) - child_ids),
    )


def build_from_file(rel_file) -> HierarchyIndex:
    return build_hierarchy_index(resolve_relationships(read_rows(rel_file, RELATIONSHIP_COLUMNS)))


if __name__ == "__main__":
    import argparse
    from snapshot import index_to_wire, write_json
    ap = argparse.ArgumentParser()
    ap.add_argument("--rel_file", required=True, help="sct2_Relationship_* file (Full or Snapshot)")
    ap.add_argument("--index_out", default="relationships-readable.json")
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO)
    index = build_from_file(Path(args.rel_file))
    write_json(args.index_out, index_to_wire(index), indent=2)
    print(compute_stats(index))
