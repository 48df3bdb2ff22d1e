"""Finding .xlsx inputs and naming outputs."""

from __future__ import annotations
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable

from .errors import WorkbookError
from .types import FileTask
from .workbook import WorkbookReader

logger = logging.getLogger(__name__)


def is_xlsx_file(path: str | Path) -> bool:
    return Path(path).suffix.lower() == ".xlsx"


def scan_xlsx_files(directory: str | Path) -> list[Path]:
    """All .xlsx files under directory, skipping hidden subdirectories."""
    directory = Path(directory)
    if not directory.exists():
        return []
    found: list[Path] = []
    _scan(directory, found)
    return sorted(found, key=lambda p: p.name)


def _scan(directory: Path, found: list[Path]) -> None:
    for entry in directory.iterdir():
        if entry.is_dir():
            if entry.name.startswith("."):
                continue
            _scan(entry, found)
        elif is_xlsx_file(entry):
            found.append(entry)


def collect_xlsx_files(paths: Iterable[str | Path]) -> list[Path]:
    """Expand directories and keep .xlsx files; sorted and de-duplicated."""
    files: set[Path] = set()
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            files.update(scan_xlsx_files(path))
        elif is_xlsx_file(path):
            files.add(path)
    return sorted(files)


def output_filename(source_name: str, now: datetime | None = None) -> str:
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return f"{source_name}_{stamp}.xlsx"


def build_file_tasks(paths: Iterable[str | Path]) -> list[FileTask]:
    """One FileTask per workbook, with its data-row count.

    Unreadable workbooks get row_count=0 and fail again, per file,
    when processed.
    """
    tasks: list[FileTask] = []
    for path in paths:
        try:
            with WorkbookReader.open(path) as reader:
                rows = reader.estimated_row_count()
        except WorkbookError as e:
            logger.warning("%s", e)
            rows = 0
        tasks.append(FileTask.from_path(path, row_count=rows))
    return tasks
