"""Parallel file processor.

Files are processed concurrently on a thread pool; rows inside one file
are processed in order.  Progress is weighted by rows, not files:

    percent = rows processed across all files / total rows * 100

Workers buffer their row counts locally and hand them to a shared
ProgressTracker every PROGRESS_BATCH rows (plus once for the remainder).
The tracker is the only shared mutable state; each file's results are
kept in its own FileOutcome and concatenated after every worker is done.
"""

from __future__ import annotations
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Protocol

from .config import MESSAGE_COLUMN_MARKER, Configuration
from .errors import ConfigError, WorkbookError
from .extractor import Extractor
from .types import (
    ExtractionResult, FileOutcome, FileStatus, FileTask, ProcessingReport,
)
from .workbook import SheetData, WorkbookReader

logger = logging.getLogger(__name__)

PROGRESS_BATCH = 200

ProgressCallback = Callable[[str, int], None]
StatusCallback = Callable[[str, FileStatus], None]


class Reader(Protocol):
    def sheet_names(self) -> list[str]: ...
    def read_sheet(self, name: str) -> SheetData: ...
    def close(self) -> None: ...


ReaderFactory = Callable[[object], Reader]


class ProgressTracker:
    """Shared row counter plus the progress callback, behind one lock.

    The callback runs while the lock is held, so the values it sees are
    non-decreasing no matter which worker reports.
    """

    __slots__ = ("_lock", "_callback", "_total", "_done", "_last")

    def __init__(self, total_rows: int, callback: ProgressCallback | None) -> None:
        self._lock = threading.Lock()
        self._callback = callback
        self._total = total_rows
        self._done = 0
        self._last = 0

    @property
    def rows_done(self) -> int:
        with self._lock:
            return self._done

    def percent(self) -> int:
        if self._total <= 0:
            return 0
        return min(100, self._done * 100 // self._total)

    def start(self, label: str) -> None:
        with self._lock:
            self._emit(label, 0)

    def advance(self, label: str, rows: int) -> None:
        if rows <= 0:
            return
        with self._lock:
            self._done += rows
            self._emit(label, max(self._last, self.percent()))

    def finish(self, label: str) -> None:
        with self._lock:
            self._emit(label, 100)

    def _emit(self, label: str, percent: int) -> None:
        self._last = percent
        if self._callback is not None:
            self._callback(label, percent)


class ParallelProcessor:
    """Fans FileTasks out over a thread pool and collects per-file outcomes."""

    def __init__(
        self,
        config: Configuration | None = None,
        *,
        reader_factory: ReaderFactory = WorkbookReader.open,
        extractor_factory: Callable[[Configuration], Extractor] = Extractor,
    ) -> None:
        self.config = config or Configuration()
        self.reader_factory = reader_factory
        self.extractor_factory = extractor_factory

    def process_files(
        self,
        tasks: list[FileTask],
        progress_callback: ProgressCallback | None = None,
        status_callback: StatusCallback | None = None,
    ) -> ProcessingReport:
        """Process every task concurrently; one failing file never stops the others."""
        if not tasks:
            raise ConfigError("no files to process")
        if not self.config.has_any_extraction_enabled():
            raise ConfigError("no extraction category enabled")

        tracker = ProgressTracker(sum(t.row_count for t in tasks), progress_callback)
        started = time.perf_counter()
        tracker.start(tasks[0].file_name)

        with ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="pii-scanner",
        ) as pool:
            futures = [
                pool.submit(self._run_task, task, tracker, status_callback)
                for task in tasks
            ]
            outcomes = [f.result() for f in futures]

        elapsed = time.perf_counter() - started
        tracker.finish(tasks[-1].file_name)
        logger.info(
            "processed %d files (%d failed) in %.2fs",
            len(outcomes), sum(o.status.is_error for o in outcomes), elapsed,
        )
        return ProcessingReport(outcomes=outcomes, elapsed_secs=elapsed)

    def _run_task(
        self,
        task: FileTask,
        tracker: ProgressTracker | None,
        status_callback: StatusCallback | None,
    ) -> FileOutcome:
        def set_status(status: FileStatus) -> None:
            if status_callback is not None:
                status_callback(task.file_name, status)

        set_status(FileStatus.processing(0))
        extractor = self.extractor_factory(self.config)
        try:
            results = self._process(task, extractor, tracker, set_status)
        except WorkbookError as e:
            logger.warning("%s", e)
            status = FileStatus.error(str(e))
            set_status(status)
            return FileOutcome(task, status, name_failures=extractor.name_failures)
        except Exception as e:
            # OSError and friends from the reader stay scoped to this file
            logger.exception("%s: processing failed", task.file_name)
            status = FileStatus.error(str(e) or type(e).__name__)
            set_status(status)
            return FileOutcome(task, status, name_failures=extractor.name_failures)
        finally:
            extractor.close()

        status = FileStatus.completed()
        set_status(status)
        logger.info("%s: %d matching rows", task.file_name, len(results))
        return FileOutcome(task, status, results, name_failures=extractor.name_failures)

    def process_file(self, task: FileTask) -> list[ExtractionResult]:
        """Process one file synchronously; raises WorkbookError on I/O failure."""
        extractor = self.extractor_factory(self.config)
        try:
            return self._process(task, extractor, None, lambda status: None)
        finally:
            extractor.close()

    def _process(
        self,
        task: FileTask,
        extractor: Extractor,
        tracker: ProgressTracker | None,
        set_status: Callable[[FileStatus], None],
    ) -> list[ExtractionResult]:
        reader = self.reader_factory(task.file_path)
        results: list[ExtractionResult] = []
        pending = 0          # rows not yet reported to the tracker
        seen = 0

        def flush() -> None:
            nonlocal pending
            if tracker is not None:
                tracker.advance(task.file_name, pending)
            if task.row_count > 0:
                set_status(FileStatus.processing(seen * 100 // task.row_count))
            pending = 0

        try:
            for sheet_name in reader.sheet_names():
                sheet = reader.read_sheet(sheet_name)
                column = self.find_target_column(sheet)
                if column is None:
                    logger.warning(
                        "%s / %s: no column %r, sheet skipped",
                        task.file_name, sheet_name, self.config.target_column or "(auto)",
                    )
                    continue

                for row_index, text in sheet.iter_column(column):
                    pending += 1
                    seen += 1
                    if text.strip():
                        result = self._extract_row(task, sheet_name, sheet, row_index, text, extractor)
                        if result is not None:
                            results.append(result)
                    if pending >= PROGRESS_BATCH:
                        flush()
            if pending:
                flush()
        finally:
            reader.close()
        return results

    def _extract_row(
        self,
        task: FileTask,
        sheet_name: str,
        sheet: SheetData,
        row_index: int,
        text: str,
        extractor: Extractor,
    ) -> ExtractionResult | None:
        found = extractor.extract(text)
        if not found:
            return None
        before, after = sheet.context(row_index, self.config.context_lines)
        logger.debug("%s / %s row %d: match", task.file_name, sheet_name, row_index + 1)
        return ExtractionResult(
            source_file=task.file_name,
            sheet_name=sheet_name,
            row_number=row_index + 1,
            source_text=text,
            context_before=before,
            context_after=after,
            phone_numbers=found.phone_numbers,
            id_cards=found.id_cards,
            bank_cards=found.bank_cards,
            names=found.names,
        )

    def find_target_column(self, sheet: SheetData) -> int | None:
        """Configured column, else the first "消息内容" header, else the first column."""
        if self.config.target_column:
            return sheet.column_index_by_name(self.config.target_column)
        columns = sheet.column_names()
        for idx, name in enumerate(columns):
            if MESSAGE_COLUMN_MARKER in name:
                return idx
        return 0 if columns else None
