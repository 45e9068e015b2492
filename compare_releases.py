"""
Check whether concepts disappear between two description snapshots.

Releases only ever add rows, so a concept present in the older snapshot
should still be present in the newer one (possibly inactive). Any id listed
here points at a processing problem or a release mixed up with another.
"""
import argparse
import logging
from typing import Dict, List, Tuple

import snapshot
from snomed_dag import sort_ids


def compare(old: Dict, new: Dict) -> Tuple[List[str], List[str]]:
    """(ids only in old, ids only in new)"""
    return sort_ids(old.keys() - new.keys()), sort_ids(new.keys() - old.keys())


def main(argv=None):
    ap = argparse.ArgumentParser()
    ap.add_argument("old_defs", help="defs.json of the earlier snapshot")
    ap.add_argument("new_defs", help="defs.json of the later snapshot")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    old = snapshot.load_definitions(args.old_defs)
    new = snapshot.load_definitions(args.new_defs)
    only_old, only_new = compare(old, new)
    for concept_id in only_old:
        print(f"{concept_id} in {args.old_defs} not in {args.new_defs}")
    for concept_id in only_new:
        print(f"{concept_id} in {args.new_defs} not in {args.old_defs}")
    print(f"{len(only_old)} concepts missing from the new snapshot, {len(only_new)} added")
    return 1 if only_old else 0


if __name__ == "__main__":
    raise SystemExit(main())
