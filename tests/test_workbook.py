"""Tests for the openpyxl reader/writer and file discovery."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from datetime import datetime

import pytest
from openpyxl import Workbook, load_workbook

from pii_scanner import Configuration, ParallelProcessor
from pii_scanner.errors import ExportError, WorkbookError
from pii_scanner.files import (
    build_file_tasks, collect_xlsx_files, is_xlsx_file, output_filename, scan_xlsx_files,
)
from pii_scanner.types import ExtractionResult, Match
from pii_scanner.workbook import (
    HEADERS, SheetData, WorkbookReader, cell_to_text, export_results, format_validity,
)


def make_xlsx(path, sheets):
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(row)
    wb.save(path)
    return path


# ── Cell normalization ───────────────────────────────────────────────

def test_cell_to_text():
    assert cell_to_text(None) == ""
    assert cell_to_text(13812345678) == "13812345678"
    assert cell_to_text(13812345678.0) == "13812345678"
    assert cell_to_text(2.5) == "2.5"
    assert cell_to_text(True) == "true"
    assert cell_to_text(False) == "false"
    assert cell_to_text(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02 03:04:05"
    assert cell_to_text("文本") == "文本"


# ── Reader ───────────────────────────────────────────────────────────

def test_reader_reads_text_grid(tmp_path):
    path = make_xlsx(tmp_path / "a.xlsx", {
        "客户": [["姓名", "消息内容", "金额"], ["张三", 13812345678, 2.5], ["李四"]],
        "空": [],
    })
    with WorkbookReader.open(path) as reader:
        assert reader.sheet_names() == ["客户", "空"]
        sheet = reader.read_sheet("客户")
        assert sheet.column_names() == ["姓名", "消息内容", "金额"]
        assert sheet.rows[1] == ["张三", "13812345678", "2.5"]
        assert sheet.rows[2] == ["李四", "", ""]
        assert reader.row_count("客户") == 2
        assert reader.total_row_count() == 2


def test_reader_open_failure(tmp_path):
    bogus = tmp_path / "not.xlsx"
    bogus.write_text("not a workbook")
    with pytest.raises(WorkbookError):
        WorkbookReader.open(bogus)
    with pytest.raises(WorkbookError):
        WorkbookReader.open(tmp_path / "missing.xlsx")


def test_reader_unknown_sheet(tmp_path):
    path = make_xlsx(tmp_path / "a.xlsx", {"S": [["h"]]})
    with WorkbookReader.open(path) as reader:
        with pytest.raises(WorkbookError):
            reader.read_sheet("nope")


def test_estimated_row_count(tmp_path):
    path = make_xlsx(tmp_path / "a.xlsx", {"S": [["h"], ["1"], ["2"]], "T": [["h"], ["3"]], "空": []})
    with WorkbookReader.open(path) as reader:
        assert reader.estimated_row_count() == 3
        assert reader.estimated_row_count() == reader.total_row_count()


def test_sheet_data_helpers():
    sheet = SheetData([["姓名", "消息内容"], ["张三", "电话13812345678"], ["李四"]])
    assert sheet.column_index_by_name("消息内容") == 1
    assert sheet.column_index_by_name("不存在") is None
    assert list(sheet.iter_column(1)) == [(1, "电话13812345678"), (2, "")]
    assert sheet.row_count == 2


# ── Writer ───────────────────────────────────────────────────────────

def _result():
    return ExtractionResult(
        source_file="a.xlsx",
        sheet_name="S",
        row_number=3,
        source_text="13812345678 12345678901234567",
        context_before=["r1", "r2"],
        context_after=["r4"],
        phone_numbers=[Match("13812345678", True, (0, 11))],
        bank_cards=[
            Match("4111111111111111", True, (12, 28)),
            Match("4111111111111112", False, (29, 45)),
        ],
    )


def test_format_validity():
    assert format_validity(_result().bank_cards) == "有效, 无效"
    assert format_validity([]) == ""


def test_export_results(tmp_path):
    out = export_results([_result()], tmp_path / "out.xlsx")
    ws = load_workbook(out).active
    rows = list(ws.iter_rows(values_only=True))
    assert list(rows[0]) == HEADERS
    row = rows[1]
    assert row[:5] == ("a.xlsx", "S", 3, "13812345678", "有效")
    assert row[7] == "4111111111111111, 4111111111111112"
    assert row[8] == "有效, 无效"
    assert row[12] == "r1\nr2"
    assert row[13] == "r4"
    assert ws.freeze_panes == "A2"
    assert ws.cell(row=2, column=9).font.color.rgb.endswith("FF0000")
    assert ws.cell(row=2, column=5).font.color.rgb.endswith("008000")


def test_export_nothing(tmp_path):
    with pytest.raises(ExportError):
        export_results([], tmp_path / "out.xlsx")


# ── File discovery ───────────────────────────────────────────────────

def test_is_xlsx_file():
    assert is_xlsx_file("test.xlsx")
    assert is_xlsx_file("test.XLSX")
    assert not is_xlsx_file("test.xls")
    assert not is_xlsx_file("test.txt")


def test_scan_and_collect(tmp_path):
    (tmp_path / "sub").mkdir()
    (tmp_path / ".hidden").mkdir()
    for p in ["b.xlsx", "sub/a.xlsx", ".hidden/c.xlsx", "notes.txt"]:
        (tmp_path / p).write_bytes(b"")
    assert [p.name for p in scan_xlsx_files(tmp_path)] == ["a.xlsx", "b.xlsx"]
    assert scan_xlsx_files(tmp_path / "missing") == []

    collected = collect_xlsx_files([tmp_path, tmp_path / "b.xlsx", tmp_path / "notes.txt"])
    assert sorted(p.name for p in collected) == ["a.xlsx", "b.xlsx"]


def test_output_filename():
    name = output_filename("测试文件", now=datetime(2024, 5, 6, 7, 8, 9))
    assert name == "测试文件_20240506_070809.xlsx"


def test_build_file_tasks(tmp_path):
    good = make_xlsx(tmp_path / "good.xlsx", {"S": [["h"], ["1"], ["2"]], "T": [["h"], ["3"]]})
    bad = tmp_path / "bad.xlsx"
    bad.write_text("garbage")
    tasks = build_file_tasks([good, bad])
    assert [(t.file_name, t.row_count) for t in tasks] == [("good.xlsx", 3), ("bad.xlsx", 0)]


# ── Real workbooks end to end ────────────────────────────────────────

def test_process_real_workbooks(tmp_path):
    a = make_xlsx(tmp_path / "a.xlsx", {"Sheet1": [["姓名", "消息内容"], ["张三", "电话13812345678"]]})
    b = make_xlsx(tmp_path / "b.xlsx", {"Sheet1": [["消息内容"], ["身份证110105199003072039"], [None]]})
    broken = tmp_path / "c.xlsx"
    broken.write_text("garbage")

    tasks = build_file_tasks([a, b, broken])
    report = ParallelProcessor(Configuration()).process_files(tasks)

    assert list(report.errors) == [str(broken)]
    assert [(r.source_file, r.row_number) for r in report.results] == [("a.xlsx", 2), ("b.xlsx", 2)]
    assert report.results[0].phone_numbers[0].position == (6, 17)
    assert report.results[1].id_cards[0].is_valid
    assert report.results[1].bank_cards == []
