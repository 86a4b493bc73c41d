"""A flat key-value file storing the learning progress of every flashcard.

Each line holds ``fingerprint;stage;timestamp_ms``. The file is loaded once at
the start of a session and rewritten as a whole when the session is saved.
"""

import contextlib
import logging
import os
import stat
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Union

from flash.core.errors import DataIntegrityError, StorageError

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = ";"

# Fingerprints, stages and timestamps are unsigned 64-bit integers
U64_MAX = 2 ** 64 - 1


@dataclass(frozen=True)
class StageRecord:
    """The stage a flashcard is in and when it entered it (unix ms)."""
    index: int
    timestamp_ms: int


ProgressMap = Dict[int, StageRecord]


def _parse_field(raw: str, name: str, path: Path, line_no: int) -> int:
    raw = raw.strip()
    if not (raw.isascii() and raw.isdigit()):
        raise DataIntegrityError(
            f"{path}:{line_no}: invalid {name} {raw!r} in progress database"
        )
    value = int(raw)
    if value > U64_MAX:
        raise DataIntegrityError(
            f"{path}:{line_no}: {name} {raw} does not fit in 64 bits"
        )
    return value


def parse_lines(lines: Iterable[str], path: Path) -> ProgressMap:
    """
    Parse progress lines.

    A malformed line aborts the whole load: silently dropping it would turn
    real progress into "never studied".
    """
    result: ProgressMap = {}
    for line_no, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        fields = line.split(FIELD_SEPARATOR)
        if len(fields) != 3:
            raise DataIntegrityError(
                f"{path}:{line_no}: expected 3 fields, got {len(fields)}"
            )
        fp = _parse_field(fields[0], "fingerprint", path, line_no)
        index = _parse_field(fields[1], "stage", path, line_no)
        timestamp_ms = _parse_field(fields[2], "timestamp", path, line_no)
        result[fp] = StageRecord(index, timestamp_ms)
    return result


def load(path: Union[str, Path]) -> ProgressMap:
    """Load the progress database, creating an empty one on first run."""
    path = Path(path)
    try:
        if not path.exists():
            logger.info("Creating progress database at %s", path)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.touch()
            return {}
        with open(path, "r", encoding="utf-8") as f:
            progress = parse_lines(f, path)
    except UnicodeDecodeError as e:
        raise DataIntegrityError(f"{path}: progress database is not valid UTF-8") from e
    except OSError as e:
        raise StorageError(f"error reading progress database {path}: {e}") from e
    logger.debug("Loaded %d progress records from %s", len(progress), path)
    return progress


def _file_mode(path: Path) -> int:
    """Permission bits of the existing database, or the umask default for a new one."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def save(progress: ProgressMap, path: Union[str, Path]) -> None:
    """
    Replace the progress database with ``progress``.

    The records are written to a temporary file next to the database which
    then replaces it, so a failed write leaves the previous file intact.
    """
    path = Path(path)
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        mode = _file_mode(path)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            for fp, record in progress.items():
                f.write(f"{fp};{record.index};{record.timestamp_ms}\n")
            f.flush()
            os.fsync(f.fileno())
        # mkstemp creates the file with 0600
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
        raise StorageError(f"error saving progress database {path}: {e}") from e
    logger.debug("Saved %d progress records to %s", len(progress), path)


def prune(path: Union[str, Path], older_than_ms: int) -> int:
    """
    Remove all records that entered their stage before ``older_than_ms``.

    Records of flashcards that were deleted from a cardbox, or whose back was
    edited, are never touched again; pruning is how they get cleaned up.
    Returns the number of removed records.
    """
    progress = load(path)
    kept = {fp: record for fp, record in progress.items() if record.timestamp_ms >= older_than_ms}
    removed = len(progress) - len(kept)
    save(kept, path)
    if removed:
        logger.info("Pruned %d stale progress records from %s", removed, path)
    return removed
