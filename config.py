"""
where processed files live

files/
├── raw/<release>/...                   extracted release (not touched here)
└── processed/
    ├── <release>/defs.json             descriptions resolved from one release
    ├── <release>/defs-readable.json
    ├── <release>/rels.json             is-a relationships resolved from one release
    └── latest/
        ├── defs.json                   merged over every release so far
        ├── defs-readable.json
        ├── rels.json
        ├── defs-single.json            best term per concept
        └── relationships-readable.json parent -> children
"""
import os
from dataclasses import dataclass
from pathlib import Path

FILES_DIR_ENV = "SNOMED_FILES_DIR"
LATEST = "latest"


def default_files_dir() -> Path:
    return Path(os.environ.get(FILES_DIR_ENV, "files"))


@dataclass
class Layout:
    files_dir: Path

    def __post_init__(self):
        self.files_dir = Path(self.files_dir)

    @classmethod
    def from_env(cls, files_dir=None):
        return cls(Path(files_dir) if files_dir else default_files_dir())

    @property
    def processed_dir(self) -> Path:
        return self.files_dir / "processed"

    def release_dir(self, release: str) -> Path:
        return self.processed_dir / release

    def defs_file(self, release: str = LATEST) -> Path:
        return self.release_dir(release) / "defs.json"

    def readable_defs_file(self, release: str = LATEST) -> Path:
        return self.release_dir(release) / "defs-readable.json"

    def rels_file(self, release: str = LATEST) -> Path:
        return self.release_dir(release) / "rels.json"

    @property
    def best_defs_file(self) -> Path:
        return self.release_dir(LATEST) / "defs-single.json"

    @property
    def index_file(self) -> Path:
        return self.release_dir(LATEST) / "relationships-readable.json"

    def has_latest(self) -> bool:
        return self.defs_file(LATEST).exists()
