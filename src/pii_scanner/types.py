"""Core types."""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


@dataclass(frozen=True, slots=True)
class Match:
    """A single located, validated occurrence in a text cell."""
    value: str
    is_valid: bool
    position: tuple[int, int]   # UTF-8 byte offsets (start, end)

    @property
    def start(self) -> int:
        return self.position[0]

    @property
    def end(self) -> int:
        return self.position[1]

    def overlaps(self, start: int, end: int) -> bool:
        return self.start < end and self.end > start


@dataclass(frozen=True, slots=True)
class CellMatches:
    """Matches for one text cell, one list per category."""
    phone_numbers: list[Match] = field(default_factory=list)
    id_cards: list[Match] = field(default_factory=list)
    bank_cards: list[Match] = field(default_factory=list)
    names: list[Match] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.phone_numbers or self.id_cards or self.bank_cards or self.names)


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    """One spreadsheet row with at least one match."""
    source_file: str
    sheet_name: str
    row_number: int                       # 1-based, header is row 1
    source_text: str
    context_before: list[str] = field(default_factory=list)
    context_after: list[str] = field(default_factory=list)
    phone_numbers: list[Match] = field(default_factory=list)
    id_cards: list[Match] = field(default_factory=list)
    bank_cards: list[Match] = field(default_factory=list)
    names: list[Match] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class FileTask:
    """Unit of parallel dispatch."""
    file_path: Path
    file_name: str
    row_count: int = 0

    @classmethod
    def from_path(cls, path: str | Path, row_count: int = 0) -> "FileTask":
        path = Path(path)
        return cls(file_path=path, file_name=path.name, row_count=row_count)


class StatusKind(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class FileStatus:
    kind: StatusKind = StatusKind.PENDING
    progress: int = 0
    message: str = ""

    @classmethod
    def pending(cls) -> "FileStatus":
        return cls()

    @classmethod
    def processing(cls, progress: int) -> "FileStatus":
        return cls(StatusKind.PROCESSING, max(0, min(100, progress)))

    @classmethod
    def completed(cls) -> "FileStatus":
        return cls(StatusKind.COMPLETED, 100)

    @classmethod
    def error(cls, message: str) -> "FileStatus":
        return cls(StatusKind.ERROR, 0, message)

    @property
    def is_error(self) -> bool:
        return self.kind is StatusKind.ERROR


@dataclass(slots=True)
class ProcessingStatistics:
    """Aggregate counts over a result set."""
    total_results: int = 0
    total_phones: int = 0
    valid_phones: int = 0
    total_id_cards: int = 0
    valid_id_cards: int = 0
    total_bank_cards: int = 0
    valid_bank_cards: int = 0
    total_names: int = 0
    valid_names: int = 0
    name_failures: int = 0
    elapsed_secs: float = 0.0

    @classmethod
    def from_results(
        cls,
        results: list[ExtractionResult],
        elapsed_secs: float = 0.0,
        name_failures: int = 0,
    ) -> "ProcessingStatistics":
        stats = cls(
            total_results=len(results),
            name_failures=name_failures,
            elapsed_secs=elapsed_secs,
        )
        for r in results:
            stats.total_phones += len(r.phone_numbers)
            stats.valid_phones += sum(m.is_valid for m in r.phone_numbers)
            stats.total_id_cards += len(r.id_cards)
            stats.valid_id_cards += sum(m.is_valid for m in r.id_cards)
            stats.total_bank_cards += len(r.bank_cards)
            stats.valid_bank_cards += sum(m.is_valid for m in r.bank_cards)
            stats.total_names += len(r.names)
            stats.valid_names += sum(m.is_valid for m in r.names)
        return stats

    def total_sensitive_info(self) -> int:
        return self.total_phones + self.total_id_cards + self.total_bank_cards + self.total_names

    def format_elapsed(self) -> str:
        if self.elapsed_secs >= 60:
            mins, secs = divmod(int(self.elapsed_secs), 60)
            return f"{mins}m {secs:02d}s"
        return f"{self.elapsed_secs:.2f}s"


@dataclass(slots=True)
class FileOutcome:
    """What happened to one FileTask."""
    task: FileTask
    status: FileStatus
    results: list[ExtractionResult] = field(default_factory=list)
    name_failures: int = 0

    @property
    def error(self) -> str | None:
        return self.status.message if self.status.is_error else None


@dataclass(slots=True)
class ProcessingReport:
    """Result of a parallel run: per-file outcomes in task order."""
    outcomes: list[FileOutcome]
    elapsed_secs: float

    @property
    def results(self) -> list[ExtractionResult]:
        return [r for o in self.outcomes for r in o.results]

    @property
    def errors(self) -> dict[str, str]:
        """Error messages keyed by file path; names alone can repeat across directories."""
        return {str(o.task.file_path): o.status.message for o in self.outcomes if o.status.is_error}

    @property
    def failed_count(self) -> int:
        return sum(o.status.is_error for o in self.outcomes)

    @property
    def statistics(self) -> ProcessingStatistics:
        return ProcessingStatistics.from_results(
            self.results,
            elapsed_secs=self.elapsed_secs,
            name_failures=sum(o.name_failures for o in self.outcomes),
        )
