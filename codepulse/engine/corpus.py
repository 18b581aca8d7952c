"""
File Corpus Loader for CodePulse

Reads the files a variant table cares about into memory.
This module loads data only, no analysis or signal detection.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

# Files above this size are generated or vendored far more often than written
MAX_FILE_SIZE = 512 * 1024  # 512KB per file

# Directories never read (dependencies, VCS metadata, build output)
SKIP_DIRS = (
    "node_modules", "venv", ".venv",
    "__pycache__", ".git", ".svn", ".hg",
    "dist", "build", ".next", ".dart_tool", ".gradle",
    "Pods", "DerivedData", "Carthage",
    "coverage", ".nyc_output", ".pytest_cache", ".mypy_cache",
    "vendor", "bin", "obj",
    ".idea", ".vscode", ".vs",
)


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class FileRecord:
    """One loaded file. Immutable once loaded."""
    path: str  # Relative to the checkout root, forward slashes
    name: str
    extension: str  # Lowercase, with the dot; "" when the file has none
    content: str


# =============================================================================
# MAIN LOADING FUNCTION
# =============================================================================

def load(root: str | Path, extensions: Iterable[str], names: Iterable[str] = ()) -> list[FileRecord]:
    """
    Load every file under `root` whose extension or basename is wanted.

    Args:
        root: Path to the checkout
        extensions: Extensions to read (e.g. {".js", ".dart"}), matched case-insensitively
        names: Exact basenames to read regardless of extension (e.g. "Podfile")

    Returns:
        FileRecords sorted by path. Empty when nothing matches.
    """
    root = Path(root)
    wanted_extensions = {ext.lower() for ext in extensions}
    wanted_names = set(names)

    if not root.is_dir():
        logger.warning(f"Corpus root {root} is not a directory, nothing to load")
        return []

    records: list[FileRecord] = []

    for file_path in sorted(root.rglob("*")):
        # Get relative path (normalized with forward slashes)
        rel_path = file_path.relative_to(root).as_posix()

        path_parts = rel_path.split("/")
        if any(part in SKIP_DIRS for part in path_parts[:-1]):
            continue

        if not file_path.is_file():
            continue

        extension = file_path.suffix.lower()
        if extension not in wanted_extensions and file_path.name not in wanted_names:
            continue

        try:
            if file_path.stat().st_size > MAX_FILE_SIZE:
                logger.debug(f"Skipping oversized file {rel_path}")
                continue
            content = file_path.read_text(encoding="utf-8", errors="ignore")
        except OSError as e:
            logger.warning(f"Skipping unreadable file {rel_path}: {e}")
            continue

        records.append(FileRecord(
            path=rel_path,
            name=file_path.name,
            extension=extension,
            content=content,
        ))

    return records
