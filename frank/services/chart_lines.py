"""
Frank Karaoke - UltraStar Line Classifier

Shared by the chart parser and the chart validator so both read a chart the
same way.  Classification only looks at the leading character(s) of a
trimmed line; it never inspects the payload.

    #TAG:value          header
    : 12 4 5 syl        note   (':' normal, '*' golden, 'F' freestyle,
                                'R' rap, 'G' golden rap)
    - 16 [20]           line break
    P1 / P 2            player switch (duets)
    E                   end of song
"""

from __future__ import annotations

import re
from enum import Enum

from frank.models import NoteType

NOTE_MARKERS: dict[str, NoteType] = {
    ":": NoteType.NORMAL,
    "*": NoteType.GOLDEN,
    "F": NoteType.FREESTYLE,
    "R": NoteType.RAP,
    "G": NoteType.GOLDEN_RAP,
}


_WHITESPACE = re.compile(r"\s")
_NEWLINE = re.compile(r"\r?\n")
_INTEGER = re.compile(r"[+-]?[0-9]+", re.ASCII)
_DECIMAL = re.compile(
    r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?", re.ASCII
)


# Beats, lengths and pitches are 32-bit signed integers
INT_MIN = -(2**31)
INT_MAX = 2**31 - 1


class LineKind(str, Enum):
    """Categories of chart lines."""

    HEADER = "header"
    NOTE = "note"
    LINE_BREAK = "line_break"
    PLAYER_SWITCH = "player_switch"
    END = "end"
    BLANK = "blank"
    UNKNOWN = "unknown"


def split_lines(text: str) -> list[str]:
    r"""Split chart text into physical lines.

    Only ``\n`` and ``\r\n`` end a line.  Other characters that
    :meth:`str.splitlines` treats as breaks (form feed, ``\x85``, U+2028, ...)
    stay inside the line, so syllables keep them and line numbers match what
    an editor shows.
    """
    return _NEWLINE.split(text)


def classify_line(line: str) -> tuple[LineKind, str]:
    """
    Categorise one trimmed chart line.

    Returns ``(kind, payload)`` where *payload* is the text after the marker
    character.  For ``END`` and ``BLANK`` the payload is empty; for
    ``UNKNOWN`` it is the whole line.
    """
    if not line:
        return LineKind.BLANK, ""

    first = line[0]
    if first == "#":
        return LineKind.HEADER, line[1:]
    if first in NOTE_MARKERS:
        return LineKind.NOTE, line[1:]
    if first == "-":
        return LineKind.LINE_BREAK, line[1:]
    if line == "E":
        return LineKind.END, ""
    if first == "P":
        return LineKind.PLAYER_SWITCH, line[1:]
    return LineKind.UNKNOWN, line


def note_type_for(line: str) -> NoteType:
    """Return the note type for a line already classified as ``NOTE``."""
    return NOTE_MARKERS[line[0]]


def split_header(payload: str) -> tuple[str, str]:
    """Split a header payload (``TAG:value``) into an uppercase tag and a value.

    A header without a colon yields an empty value.
    """
    tag, _, value = payload.partition(":")
    return tag.strip().upper(), value.strip()


def player_number(payload: str) -> int | None:
    """Player selected by a switch line (``P1``, ``P 1``, ``P2``, ``P 2``).

    Any other ``P…`` line selects nobody and returns ``None``.
    """
    number = payload.strip()
    if number == "1":
        return 1
    if number == "2":
        return 2
    return None


def split_note_fields(payload: str) -> list[str]:
    """
    Split a note payload into at most four fields:
    ``[start_beat, length, pitch, text]``.

    The numeric fields may be separated by any run of whitespace.  Only a
    single separator is consumed before the syllable, so a leading space in
    the text (UltraStar's word boundary) survives, as do embedded spaces.
    """
    fields: list[str] = []
    rest = payload.strip()
    while rest and len(fields) < 3:
        parts = _WHITESPACE.split(rest, maxsplit=1)
        fields.append(parts[0])
        rest = parts[1] if len(parts) > 1 else ""
        if len(fields) < 3:
            rest = rest.lstrip()
    if rest and len(fields) == 3:
        fields.append(rest)
    return fields


def split_line_break_fields(payload: str) -> list[str]:
    """Split a line break payload into ``[start_beat, end_beat?, ...]``."""
    return payload.split()


def parse_int(token: str) -> int | None:
    """Parse a signed 32-bit decimal integer field, or ``None`` if it is not one."""
    if not _INTEGER.fullmatch(token):
        return None
    number = int(token)
    if not INT_MIN <= number <= INT_MAX:
        return None
    return number


def parse_decimal(value: str) -> float | None:
    """Parse a BPM/GAP style number; ``,`` is accepted as decimal separator."""
    normalized = value.replace(",", ".")
    if not _DECIMAL.fullmatch(normalized):
        return None
    return float(normalized)
