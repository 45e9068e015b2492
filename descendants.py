"""
list every descendant of a SNOMED code, with its best term
reads defs-single.json and relationships-readable.json from processed/latest
"""
import argparse
import logging
from typing import Dict, List, Optional, Tuple

import pandas as pd

import snapshot
from config import Layout
from snomed_dag import HierarchyIndex, descendants

NO_TERM = "(no term)"
QUIT = ("q", "quit", "exit")

Listing = List[Tuple[str, int, Optional[str]]]


def describe(root: str, index: HierarchyIndex, best: Dict[str, str]) -> Listing:
    return [(code, depth, best.get(code)) for code, depth in descendants(root, index)]


def format_listing(listing: Listing, indent=True) -> str:
    lines = []
    for code, depth, term in listing:
        prefix = ">" * depth if indent else ""
        lines.append(f"{prefix}{code}\t{term if term is not None else NO_TERM}")
    return "\n".join(lines)


def export_csv(listing: Listing, out_path):
    df = pd.DataFrame(listing, columns=["concept_id", "depth", "term"])
    df.to_csv(out_path, index=False)
    print(f"Wrote {len(df)} concepts to {out_path}")


def lookup(code, index, best, out_csv=None) -> Listing:
    listing = describe(code, index, best)
    if not listing and code in best:
        # described but with no active is-a links, e.g. an inactive concept
        listing = [(code, 0, best[code])]
    if not listing:
        print(f"{code} is not in the hierarchy.\n")
        return listing
    print(f"{format_listing(listing)}\n")
    if out_csv:
        export_csv(listing, out_csv)
    return listing


def run(index: HierarchyIndex, best: Dict[str, str], out_csv=None, prompt=input):
    """Ask for codes until q or end of input. 'n' repeats the last listing without indenting."""
    last: Listing = []
    question = "Enter the SNOMED code to get all its descendants: "
    while True:
        try:
            answer = prompt(question).strip()
        except EOFError:
            break
        question = ("Enter 'n' to show the codes without the hierarchy indenting, "
                    "or enter another SNOMED code to go again (q to quit): ")
        if answer.lower() in QUIT:
            break
        if not answer:
            continue
        if answer == "n":
            print(f"{format_listing(last, indent=False)}\n")
            continue
        listing = lookup(answer, index, best, out_csv)
        if listing:
            last = listing
    print("\nBYE BYE !!!")


def main(argv=None):
    ap = argparse.ArgumentParser()
    ap.add_argument("--files_dir", default=None, help="Root of processed files (default: $SNOMED_FILES_DIR or ./files)")
    ap.add_argument("--root", default=None, help="Print the descendants of this code once and exit")
    ap.add_argument("--out_csv", default=None, help="Also write the listing to this csv")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    layout = Layout.from_env(args.files_dir)
    print("> Loading definitions...")
    best = snapshot.load_best_definitions(layout.best_defs_file)
    print("> Loading relationships...")
    index = snapshot.load_index(layout.index_file)

    if args.root:
        lookup(args.root, index, best, args.out_csv)
    else:
        run(index, best, args.out_csv)


if __name__ == "__main__":
    main()
