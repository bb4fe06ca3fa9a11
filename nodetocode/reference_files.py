"""Reference source file loading for the settings layer.

Responsibilities:
- Deduplicate configured reference paths and drop missing files with a warning.
- Read file contents so the prompt pipeline receives plain `ReferenceFile` records.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from .models.datatypes import ReferenceFile
from .telemetry.logger import Logger, LogSeverity, NullLogger


def load_reference_files(
    paths: Iterable[str | Path],
    logger: Logger | None = None,
) -> tuple[ReferenceFile, ...]:
    """Load existing reference files in configured order, first occurrence wins."""

    sink = logger or NullLogger()
    seen: set[str] = set()
    loaded: list[ReferenceFile] = []
    for raw_path in paths:
        path = Path(raw_path)
        key = str(path)
        if key in seen:
            continue
        seen.add(key)
        if not path.is_file():
            sink.log(f"Reference source file not found: {key}", LogSeverity.WARNING)
            continue
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            sink.log(f"Reference source file unreadable: {key} ({exc})", LogSeverity.WARNING)
            continue
        loaded.append(ReferenceFile(path=key, content=content))
    return tuple(loaded)
