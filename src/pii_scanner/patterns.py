"""Regex scanners for structured PII in a single text cell.

Each scanner returns ``(value, start, end)`` triples, left to right and
non-overlapping, with UTF-8 byte offsets into the source text.  The
scanners are deliberately loose about lengths; validators decide.
"""

from __future__ import annotations
import re
from typing import Iterator

# re.ASCII keeps \d and \s to [0-9] and ASCII whitespace, so full-width
# digits never count as part of a number or as its boundary.  Separators
# also accept the ideographic space U+3000.
PHONE = re.compile(
    r"(?<!\d)"
    r"(?:\+?86[-\s\u3000]?)?"
    r"1[3-9]\d"
    r"[-\s\u3000]?\d{4}"
    r"[-\s\u3000]?\d{4}"
    r"(?!\d)",
    re.ASCII,
)

ID_CARD = re.compile(
    r"(?<!\d)"
    r"[1-9]\d{5}"                       # region
    r"(?:19|20)\d{2}"                   # year
    r"(?:0[1-9]|1[0-2])"                # month
    r"(?:0[1-9]|[12]\d|3[01])"          # day (shape only)
    r"\d{3}"                            # sequence
    r"[\dXx]"                           # check character
    r"(?![\dXx])",
    re.ASCII,
)

# 16 digits in groups of four plus up to 3 more: covers 16-19 digit cards
BANK_CARD = re.compile(
    r"(?<!\d)"
    r"\d{4}[-\s\u3000]?\d{4}[-\s\u3000]?\d{4}[-\s\u3000]?\d{4}"
    r"(?:[-\s\u3000]?\d{1,3})?"
    r"(?!\d)",
    re.ASCII,
)

Candidate = tuple[str, int, int]


def _scan(pattern: re.Pattern, text: str) -> list[Candidate]:
    return list(_byte_spans(text, pattern.finditer(text)))


def _byte_spans(text: str, found: Iterator[re.Match]) -> Iterator[Candidate]:
    """Convert character offsets to UTF-8 byte offsets, walking left to right."""
    char_pos = byte_pos = 0
    for m in found:
        byte_pos += len(text[char_pos:m.start()].encode("utf-8"))
        start = byte_pos
        end = start + len(m.group().encode("utf-8"))
        char_pos, byte_pos = m.end(), end
        yield m.group(), start, end


def byte_offset(text: str, char_index: int) -> int:
    return len(text[:char_index].encode("utf-8"))


def scan_phones(text: str) -> list[Candidate]:
    return _scan(PHONE, text)


def scan_id_cards(text: str) -> list[Candidate]:
    return _scan(ID_CARD, text)


def scan_bank_cards(text: str) -> list[Candidate]:
    return _scan(BANK_CARD, text)
