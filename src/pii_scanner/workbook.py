"""Spreadsheet reader and result writer, both on openpyxl.

The reader turns every cell into text up front so the rest of the
package only ever sees rectangular grids of strings, header in row 0.
"""

from __future__ import annotations
import logging
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Iterator

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from .errors import ExportError, WorkbookError
from .types import ExtractionResult, Match

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = " | "
VALID_TOKEN = "有效"
INVALID_TOKEN = "无效"


def cell_to_text(value: Any) -> str:
    """Render a cell value the way it reads in a spreadsheet."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value)


class SheetData:
    """A rectangular text grid; row 0 is the header."""

    __slots__ = ("rows",)

    def __init__(self, rows: list[list[str]]) -> None:
        self.rows = rows

    def column_names(self) -> list[str]:
        return list(self.rows[0]) if self.rows else []

    def column_index_by_name(self, name: str) -> int | None:
        try:
            return self.column_names().index(name)
        except ValueError:
            return None

    @property
    def row_count(self) -> int:
        """Data rows, header excluded."""
        return max(len(self.rows) - 1, 0)

    def iter_column(self, index: int) -> Iterator[tuple[int, str]]:
        """Yield (row_index, text) for every data row; short rows read as ""."""
        for row_index in range(1, len(self.rows)):
            row = self.rows[row_index]
            yield row_index, row[index] if index < len(row) else ""

    def context(self, row_index: int, lines: int) -> tuple[list[str], list[str]]:
        """Up to ``lines`` data rows either side of row_index, each joined into one string."""
        if lines <= 0:
            return [], []
        before = self.rows[max(1, row_index - lines):row_index]
        after = self.rows[row_index + 1:row_index + 1 + lines]
        return (
            [CONTEXT_SEPARATOR.join(r) for r in before],
            [CONTEXT_SEPARATOR.join(r) for r in after],
        )


class WorkbookReader:
    """Read-only view of an .xlsx workbook."""

    def __init__(self, workbook: Any, path: Path) -> None:
        self._wb = workbook
        self.path = path

    @classmethod
    def open(cls, path: str | Path) -> "WorkbookReader":
        path = Path(path)
        try:
            wb = load_workbook(path, read_only=True, data_only=True)
        except Exception as e:
            # OSError, BadZipFile, KeyError or InvalidFileException depending on the file
            raise WorkbookError(f"cannot open workbook {path.name}: {e}") from e
        return cls(wb, path)

    def __enter__(self) -> "WorkbookReader":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self._wb.close()

    def sheet_names(self) -> list[str]:
        return list(self._wb.sheetnames)

    def read_sheet(self, name: str) -> SheetData:
        try:
            ws = self._wb[name]
            raw = [[cell_to_text(v) for v in row] for row in ws.iter_rows(values_only=True)]
        except Exception as e:
            raise WorkbookError(f"cannot read sheet {name!r} of {self.path.name}: {e}") from e
        width = max((len(r) for r in raw), default=0)
        return SheetData([r + [""] * (width - len(r)) for r in raw])

    def row_count(self, name: str) -> int:
        return self.read_sheet(name).row_count

    def estimated_row_count(self) -> int:
        """Data rows from each sheet's recorded dimensions, without reading cells.

        Trailing blank rows inside the dimensions are counted too.  Sheets
        with no dimension record are counted by reading them.
        """
        total = 0
        for name in self.sheet_names():
            try:
                max_row = self._wb[name].max_row
            except Exception as e:
                raise WorkbookError(f"cannot read sheet {name!r} of {self.path.name}: {e}") from e
            total += self.row_count(name) if max_row is None else max(max_row - 1, 0)
        return total

    def total_row_count(self) -> int:
        return sum(self.row_count(name) for name in self.sheet_names())


# ── Writer ──────────────────────────────────────────────────────────

HEADERS = [
    "源文件名", "工作表", "行号",
    "手机号", "手机号有效性",
    "身份证号", "身份证有效性",
    "银行卡号", "银行卡有效性",
    "姓名", "姓名可信度",
    "源文本", "上文", "下文",
]

COLUMN_WIDTHS = [20, 15, 8, 20, 12, 22, 12, 22, 12, 16, 12, 50, 30, 30]

_VALIDITY_COLUMNS = {5, 7, 9, 11}   # 1-based

_THIN = Side(style="thin")
_HEADER_FONT = Font(bold=True, color="FFFFFF")
_HEADER_FILL = PatternFill("solid", fgColor="4472C4")
_HEADER_BORDER = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)
_VALID_FONT = Font(color="008000")
_INVALID_FONT = Font(color="FF0000")


def format_values(matches: list[Match]) -> str:
    return ", ".join(m.value for m in matches)


def format_validity(matches: list[Match]) -> str:
    return ", ".join(VALID_TOKEN if m.is_valid else INVALID_TOKEN for m in matches)


def result_row(result: ExtractionResult) -> list[Any]:
    return [
        result.source_file,
        result.sheet_name,
        result.row_number,
        format_values(result.phone_numbers),
        format_validity(result.phone_numbers),
        format_values(result.id_cards),
        format_validity(result.id_cards),
        format_values(result.bank_cards),
        format_validity(result.bank_cards),
        format_values(result.names),
        format_validity(result.names),
        result.source_text,
        "\n".join(result.context_before),
        "\n".join(result.context_after),
    ]


class ResultWriter:
    """Builds the export workbook one ExtractionResult at a time."""

    def __init__(self) -> None:
        self._wb = Workbook()
        self._ws = self._wb.active
        self._ws.title = "提取结果"
        self._has_header = False

    def append_header(self) -> None:
        self._ws.append(HEADERS)
        for cell in self._ws[1]:
            cell.font = _HEADER_FONT
            cell.fill = _HEADER_FILL
            cell.border = _HEADER_BORDER
        self._has_header = True

    def append_result(self, result: ExtractionResult) -> None:
        self._ws.append(result_row(result))
        row = self._ws.max_row
        for col in _VALIDITY_COLUMNS:
            cell = self._ws.cell(row=row, column=col)
            if not cell.value:
                continue
            cell.font = _INVALID_FONT if INVALID_TOKEN in cell.value else _VALID_FONT

    def save(self, path: str | Path) -> None:
        for idx, width in enumerate(COLUMN_WIDTHS):
            self._ws.column_dimensions[_column_letter(idx)].width = width
        if self._has_header:
            self._ws.freeze_panes = "A2"
            self._ws.auto_filter.ref = f"A1:{_column_letter(len(HEADERS) - 1)}{self._ws.max_row}"
        try:
            self._wb.save(path)
        except OSError as e:
            raise ExportError(f"cannot save {path}: {e}") from e


def _column_letter(index: int) -> str:
    return get_column_letter(index + 1)


def export_results(results: list[ExtractionResult], path: str | Path) -> Path:
    """Write results to a new .xlsx file."""
    if not results:
        raise ExportError("no results to export")
    writer = ResultWriter()
    writer.append_header()
    for result in results:
        writer.append_result(result)
    writer.save(path)
    logger.info("exported %d rows to %s", len(results), path)
    return Path(path)
