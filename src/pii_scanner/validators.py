"""Structural and checksum validators.

Pure functions, no I/O.  Each takes the raw matched text (separators
included) and answers whether it is a plausible real value.
"""

from __future__ import annotations
import re

_NON_DIGIT = re.compile(r"[^0-9]")

# GB 11643 weights and check codes for 18-character resident ID numbers
ID_WEIGHTS = (7, 9, 10, 5, 8, 4, 2, 1, 6, 3, 7, 9, 10, 5, 8, 4, 2)
ID_CHECK_CODES = ("1", "0", "X", "9", "8", "7", "6", "5", "4", "3", "2")

_ASCII_DIGITS = frozenset("0123456789")


def clean_digits(text: str) -> str:
    """Drop every character that is not an ASCII digit."""
    return _NON_DIGIT.sub("", text)


def validate_phone(text: str) -> bool:
    """Mainland mobile number: 11 digits, ``1`` then ``3``-``9``."""
    digits = clean_digits(text)
    return len(digits) == 11 and digits[0] == "1" and digits[1] in "3456789"


def validate_bank_card(text: str) -> bool:
    """16-19 digits passing the Luhn check."""
    digits = clean_digits(text)
    if not 16 <= len(digits) <= 19:
        return False
    return luhn_check(digits)


def luhn_check(number: str) -> bool:
    if not number or not set(number) <= _ASCII_DIGITS:
        return False
    total = 0
    for pos, ch in enumerate(reversed(number), start=1):
        digit = int(ch)
        if pos % 2 == 0:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def validate_id_card(text: str) -> bool:
    """18-character resident ID: weighted mod-11 check code plus a real birth date."""
    if len(text) != 18:
        return False
    body, check = text[:17], text[17]
    if not set(body) <= _ASCII_DIGITS:
        return False
    if check not in _ASCII_DIGITS and check not in "Xx":
        return False
    return _id_checksum_ok(body, check) and _id_birth_date_ok(text)


def _id_checksum_ok(body: str, check: str) -> bool:
    total = sum(int(d) * w for d, w in zip(body, ID_WEIGHTS))
    return ID_CHECK_CODES[total % 11] == check.upper()


def _id_birth_date_ok(text: str) -> bool:
    year, month, day = int(text[6:10]), int(text[10:12]), int(text[12:14])
    if not 1900 <= year <= 2099:
        return False
    if not 1 <= month <= 12:
        return False
    return 1 <= day <= days_in_month(year, month)


def is_leap_year(year: int) -> bool:
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def days_in_month(year: int, month: int) -> int:
    if month in (1, 3, 5, 7, 8, 10, 12):
        return 31
    if month in (4, 6, 9, 11):
        return 30
    if month == 2:
        return 29 if is_leap_year(year) else 28
    return 0
