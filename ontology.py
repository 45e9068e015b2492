"""
SNOMED-CT RF2 Release Processor
===============================
Turns one extracted SNOMED-CT release into the merged "latest" snapshot.

Releases are append-only logs. A row is never changed, a change to a
description or relationship is a new row with the same id and a later
effectiveTime. The current state of a row is its most recent revision.

Release types:
--------------
- Full/     every revision of every row since the first release
- Delta/    only the revisions added by this release

The first release is read from Full/, each later one from Delta/ and merged
into the previous snapshot, so the full history is only read once.

Columns used:
-------------
sct2_Description_*:  id | effectiveTime | active | conceptId | typeId | term
sct2_Relationship_*: id | effectiveTime | active | sourceId | destinationId | typeId

- typeId 900000000000003001 = Fully Specified Name (main term)
- typeId 116680003 = "Is a" (sourceId is the child, destinationId the parent)
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

import snapshot
from config import LATEST, Layout
from definitions import ConceptDescriptions, best_definitions, build_concept_descriptions
from rf2 import DESCRIPTION_COLUMNS, RELATIONSHIP_COLUMNS, find_terminology_file, read_rows
from snomed_dag import (
    HierarchyIndex,
    OntologyStats,
    ResolvedRelationship,
    build_hierarchy_index,
    compute_stats,
    resolve_relationships,
)

logger = logging.getLogger(__name__)


class ReleaseProcessor:
    """
    Resolves one release and folds it into the latest snapshot.

    Usage:
    ------
    processor = ReleaseProcessor("files/raw/uk_sct2cl_37.0.0_20230927000001Z")
    best, index, stats = processor.process()

    # Force the Full files to be read (start a fresh history):
    processor = ReleaseProcessor(release_dir, is_first=True)
    """

    def __init__(self,
                 release_dir: str,
                 layout: Optional[Layout] = None,
                 is_first: Optional[bool] = None,
                 force: bool = False):
        """
        Args:
            release_dir: extracted release folder
            layout: processed file locations (default: from SNOMED_FILES_DIR)
            is_first: read Full instead of Delta files (default: when no
                latest snapshot exists yet)
            force: re-read the raw files even if this release was processed
        """
        self.release_dir = Path(release_dir)
        self.release = self.release_dir.name
        self.layout = layout or Layout.from_env()
        self.is_first = (not self.layout.has_latest()) if is_first is None else is_first
        self.force = force

        self.definitions: ConceptDescriptions = {}
        self.relationships: Dict[str, ResolvedRelationship] = {}

    @property
    def release_type(self) -> str:
        return "Full" if self.is_first else "Delta"

    def _already_processed(self) -> bool:
        return (self.layout.defs_file(self.release).exists()
                and self.layout.rels_file(self.release).exists())

    def _load_descriptions(self):
        desc_file = find_terminology_file(self.release_dir, "Description", self.release_type)
        print(f"> Reading the description file {desc_file}...")
        self.definitions = build_concept_descriptions(read_rows(desc_file, DESCRIPTION_COLUMNS))
        print(f"  Resolved descriptions for {len(self.definitions):,} concepts")

    def _load_relationships(self):
        rel_file = find_terminology_file(self.release_dir, "Relationship", self.release_type)
        print(f"> Reading the relationship file {rel_file}...")
        self.relationships = resolve_relationships(read_rows(rel_file, RELATIONSHIP_COLUMNS))
        print(f"  Resolved {len(self.relationships):,} IS-A relationships")

    def _load_from_processed(self):
        print("> The json files for this release already exist, loading them...")
        self.definitions = snapshot.load_definitions(self.layout.defs_file(self.release))
        self.relationships = snapshot.load_relationships(self.layout.rels_file(self.release))

    def _save_release(self):
        wire = snapshot.definitions_to_wire(self.definitions)
        snapshot.write_json(self.layout.defs_file(self.release), wire)
        snapshot.write_json(self.layout.readable_defs_file(self.release), wire, indent=2)
        snapshot.write_json(self.layout.rels_file(self.release),
                            snapshot.relationships_to_wire(self.relationships))
        print(f"> Release files written to {self.layout.release_dir(self.release)}")

    def _combine_latest(self) -> Tuple[ConceptDescriptions, Dict[str, ResolvedRelationship]]:
        if self.is_first:
            print("> This is the first release, so it becomes latest.")
            return self.definitions, self.relationships

        print("> Loading latest snapshot...")
        latest_defs = snapshot.load_definitions(self.layout.defs_file(LATEST))
        rels_file = self.layout.rels_file(LATEST)
        if not rels_file.exists():
            raise snapshot.SnapshotError(
                f"{self.layout.defs_file(LATEST)} exists but {rels_file} is missing, "
                f"the latest snapshot is incomplete"
            )
        latest_rels = snapshot.load_relationships(rels_file)
        print("> Merging this release into latest...")
        return (snapshot.merge_definitions(latest_defs, self.definitions),
                snapshot.merge_relationships(latest_rels, self.relationships))

    def _save_latest(self, definitions, relationships, best, index):
        # defs.json marks latest as present, so it goes last
        wire = snapshot.definitions_to_wire(definitions)
        snapshot.write_json(self.layout.rels_file(LATEST), snapshot.relationships_to_wire(relationships))
        snapshot.write_json(self.layout.best_defs_file, best, indent=2)
        snapshot.write_json(self.layout.index_file, snapshot.index_to_wire(index), indent=2)
        snapshot.write_json(self.layout.readable_defs_file(LATEST), wire, indent=2)
        snapshot.write_json(self.layout.defs_file(LATEST), wire)
        print(f"> Latest files written to {self.layout.release_dir(LATEST)}")

    def process(self) -> Tuple[Dict[str, str], HierarchyIndex, OntologyStats]:
        """
        Resolve the release, merge it into latest and rebuild the outputs.

        Returns:
            best: concept_id -> display term
            index: parent concept_id -> child concept_ids
            stats: OntologyStats for the rebuilt index
        """
        print(f"\n{'='*60}")
        print(f"Processing SNOMED-CT release: {self.release_dir}")
        print(f"Release type: {self.release_type}")
        print(f"{'='*60}\n")

        if self._already_processed() and not self.force:
            self._load_from_processed()
        else:
            self._load_descriptions()
            self._load_relationships()
            self._save_release()

        definitions, relationships = self._combine_latest()
        best = best_definitions(definitions)
        missing = len(definitions) - len(best)
        if missing:
            logger.warning("%d concepts have no usable term", missing)
        index = build_hierarchy_index(relationships)

        # all in-memory state is final before latest is touched
        self._save_latest(definitions, relationships, best, index)

        stats = compute_stats(index)
        self._print_stats(len(definitions), len(best), stats)
        return best, index, stats

    def _print_stats(self, num_concepts: int, num_terms: int, stats: OntologyStats):
        print(f"\n{'='*60}")
        print("SNOMED-CT Latest Snapshot")
        print(f"{'='*60}")
        print(f"  Concepts described: {num_concepts:,}")
        print(f"  With a best term:   {num_terms:,}")
        print(f"  Concepts in index:  {stats.num_nodes:,}")
        print(f"  IS-A edges:         {stats.num_edges:,}")
        print(f"  Parent concepts:    {stats.num_parents:,}")
        print(f"  Leaf concepts:      {stats.num_leaves:,}")
        print(f"  Root concepts:      {stats.num_roots:,}")
        print(f"{'='*60}\n")
