"""
read SNOMED CT RF2 revision logs
rows are yielded in file order, malformed rows are logged and skipped
"""
import csv
import logging
import re
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

logger = logging.getLogger(__name__)

DESCRIPTION_COLUMNS = [
    "id", "effectiveTime", "active", "moduleId", "conceptId",
    "languageCode", "typeId", "term", "caseSignificanceId",
]
RELATIONSHIP_COLUMNS = [
    "id", "effectiveTime", "active", "moduleId", "sourceId", "destinationId",
    "relationshipGroup", "typeId", "characteristicTypeId", "modifierId",
]

_EFFECTIVE_TIME = re.compile(r"^\d{8}$")


def read_rows(path, columns: Sequence[str]) -> Iterator[Dict[str, str]]:
    """Yield one dict per data row of an RF2 file.

    Header rows (first column "id") and blank lines are skipped. Rows with
    the wrong column count, an unparseable effectiveTime or bytes that are
    not utf-8 are logged and skipped, the rest of the file is still read.
    """
    skipped = 0
    with open(path, newline="", encoding="utf-8", errors="surrogateescape") as f:
        reader = csv.reader(f, delimiter="\t", quoting=csv.QUOTE_NONE)
        for line_no, parts in enumerate(reader, start=1):
            row = parse_row(parts, columns, line_no)
            if row is None:
                if parts and parts[0].strip() not in ("", "id"):
                    skipped += 1
                continue
            yield row
    if skipped:
        logger.warning("Skipped %d malformed rows in %s", skipped, path)


def parse_row(parts: List[str], columns: Sequence[str], line_no: int = 0) -> Optional[Dict[str, str]]:
    parts = [p.rstrip("\r") for p in parts]
    if not parts or parts[0] in ("", "id"):
        return None
    if len(parts) != len(columns):
        logger.warning(
            "Line %d: expected %d columns, got %d", line_no, len(columns), len(parts)
        )
        return None
    if not all(_decodes(p) for p in parts):
        logger.warning("Line %d: invalid utf-8 in row %r", line_no, parts[0])
        return None
    row = dict(zip(columns, parts))
    if not _EFFECTIVE_TIME.match(row["effectiveTime"]):
        logger.warning("Line %d: bad effectiveTime %r", line_no, row["effectiveTime"])
        return None
    return row


def _decodes(field: str) -> bool:
    # undecodable bytes come through as lone surrogates
    try:
        field.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def find_terminology_file(release_dir, component: str, release_type: str = "Full") -> Path:
    """Find the sct2_<component>_<release_type> file in an extracted release.

    Extracted releases hold one or more edition folders, each with
    Full/Delta/Snapshot sub-folders. The first match wins.
    """
    base = Path(release_dir)
    pattern = f"sct2_{component}_{release_type}*"
    candidates = [
        base / release_type / "Terminology",
        *sorted(d / release_type / "Terminology" for d in base.iterdir() if d.is_dir()),
    ] if base.exists() else []
    for term_dir in candidates:
        if term_dir.exists():
            matches = sorted(term_dir.glob(pattern))
            if matches:
                return matches[0]
    matches = sorted(base.rglob(pattern)) if base.exists() else []
    if matches:
        return matches[0]
    tried = "\n".join(f"  {c}" for c in candidates) or f"  {base}"
    raise FileNotFoundError(
        f"Could not find {pattern} file. Tried:\n{tried}\n"
        f"Please check your SNOMED-CT release path."
    )
