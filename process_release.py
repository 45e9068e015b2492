"""
Process an extracted SNOMED CT release into the latest snapshot.

Inputs:
  - an extracted release folder, e.g. files/raw/uk_sct2cl_37.0.0_20230927000001Z
    (Full/ files are read for the first release, Delta/ files afterwards)

Outputs (under <files_dir>/processed):
  - <release>/defs.json, defs-readable.json, rels.json
  - latest/defs.json, defs-readable.json, rels.json
  - latest/defs-single.json             concept_id -> best term
  - latest/relationships-readable.json  parent -> {child: true}
"""

import argparse
import logging

from config import Layout
from ontology import ReleaseProcessor


def main(argv=None):
    ap = argparse.ArgumentParser()
    ap.add_argument("--release_dir", required=True, help="Extracted release folder")
    ap.add_argument("--files_dir", default=None, help="Root of processed files (default: $SNOMED_FILES_DIR or ./files)")
    ap.add_argument("--first", action="store_true", help="Read the Full files and start a new history")
    ap.add_argument("--force", action="store_true", help="Re-read the raw files even if already processed")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    processor = ReleaseProcessor(
        args.release_dir,
        layout=Layout.from_env(args.files_dir),
        is_first=True if args.first else None,
        force=args.force,
    )
    best, index, stats = processor.process()
    print(f"Wrote {len(best):,} best terms and {stats.num_edges:,} IS-A edges")


if __name__ == "__main__":
    main()
