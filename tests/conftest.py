"""Shared fixtures: build RF2 rows and extracted release folders."""

from pathlib import Path

import pytest

from definitions import MAIN_TERM_TYPE
from rf2 import DESCRIPTION_COLUMNS, RELATIONSHIP_COLUMNS
from snomed_dag import IS_A

SYNONYM_TYPE = "900000000000013009"
FINDING_SITE = "363698007"


def desc_row(row_id, time, concept, term, active=True, main=True):
    return {
        "id": row_id,
        "effectiveTime": time,
        "active": "1" if active else "0",
        "moduleId": "999000011000000103",
        "conceptId": concept,
        "languageCode": "en",
        "typeId": MAIN_TERM_TYPE if main else SYNONYM_TYPE,
        "term": term,
        "caseSignificanceId": "900000000000448009",
    }


def rel_row(row_id, time, source, destination, active=True, type_id=IS_A):
    return {
        "id": row_id,
        "effectiveTime": time,
        "active": "1" if active else "0",
        "moduleId": "999000011000000103",
        "sourceId": source,
        "destinationId": destination,
        "relationshipGroup": "0",
        "typeId": type_id,
        "characteristicTypeId": "900000000000011006",
        "modifierId": "900000000000451002",
    }


def write_rf2(path: Path, columns, rows) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = ["\t".join(columns)]
    lines += ["\t".join(row[c] for c in columns) for row in rows]
    path.write_text("\r\n".join(lines) + "\r\n", encoding="utf-8")
    return path


def write_release(root: Path, name: str, release_type: str, descriptions, relationships) -> Path:
    """Lay out an extracted release the way the distribution zip does."""
    release = root / "raw" / name
    term_dir = release / "SnomedCT_UKClinicalRF2_PRODUCTION" / release_type / "Terminology"
    write_rf2(term_dir / f"sct2_Description_{release_type}-en_GB1000000_20230927.txt",
              DESCRIPTION_COLUMNS, descriptions)
    write_rf2(term_dir / f"sct2_Relationship_{release_type}_GB1000000_20230927.txt",
              RELATIONSHIP_COLUMNS, relationships)
    return release


@pytest.fixture
def files_dir(tmp_path: Path) -> Path:
    return tmp_path / "files"
