"""Tests for the regex scanners."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from pii_scanner.patterns import scan_bank_cards, scan_id_cards, scan_phones


def _slice(text, start, end):
    return text.encode("utf-8")[start:end].decode("utf-8")


# ── Phone ────────────────────────────────────────────────────────────

def test_phone_in_chinese_text():
    found = scan_phones("联系13812345678请拨打")
    assert found == [("13812345678", 6, 17)]


def test_phone_with_country_code():
    found = scan_phones("+86 138 1234 5678")
    assert len(found) == 1
    assert found[0][0] == "+86 138 1234 5678"


def test_phone_rejects_bad_prefix():
    assert scan_phones("12812345678") == []


def test_phone_not_inside_longer_digit_run():
    assert scan_phones("013812345678") == []
    assert scan_phones("138123456789") == []


def test_phone_multiple_left_to_right():
    text = "电话13812345678，备用15912345678"
    found = scan_phones(text)
    assert [v for v, _, _ in found] == ["13812345678", "15912345678"]
    assert found[0][1:] == (6, 17)
    assert found[1][1:] == (26, 37)
    for value, start, end in found:
        assert _slice(text, start, end) == value


def test_phone_adjacent_separated_by_one_char():
    assert len(scan_phones("13812345678,15912345678")) == 2


def test_ideographic_space_separators():
    phones = scan_phones("电话138　1234　5678")
    assert [v for v, _, _ in phones] == ["138　1234　5678"]
    cards = scan_bank_cards("卡号6225　8801　2345　6789")
    assert [v for v, _, _ in cards] == ["6225　8801　2345　6789"]


# ── Resident ID ──────────────────────────────────────────────────────

def test_id_card_in_chinese_text():
    text = "身份证11010519900307888X核实"
    found = scan_id_cards(text)
    assert [v for v, _, _ in found] == ["11010519900307888X"]
    value, start, end = found[0]
    assert _slice(text, start, end) == value


def test_id_card_month_out_of_shape():
    assert scan_id_cards("11010519901307888X") == []


def test_id_card_not_inside_longer_run():
    assert scan_id_cards("1101051990030720391") == []


# ── Bank card ────────────────────────────────────────────────────────

def test_bank_card_in_chinese_text():
    found = scan_bank_cards("卡号6225880123456789绑定")
    assert [v for v, _, _ in found] == ["6225880123456789"]


def test_bank_card_grouped():
    assert [v for v, _, _ in scan_bank_cards("6225 8801 2345 6789")] == ["6225 8801 2345 6789"]
    assert [v for v, _, _ in scan_bank_cards("6225-8801-2345-6789")] == ["6225-8801-2345-6789"]


def test_bank_card_overmatches_up_to_nineteen_digits():
    assert [v for v, _, _ in scan_bank_cards("x6225880123456789012y")] == ["6225880123456789012"]


def test_bank_card_too_short_or_too_long():
    assert scan_bank_cards("622588012345") == []
    assert scan_bank_cards("62258801234567890123") == []
