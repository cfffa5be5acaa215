"""
Frank Karaoke - UltraStar Chart Validation Service

Diagnoses malformed UltraStar ``.txt`` charts for content authors.

Unlike :mod:`frank.services.chart_parser`, which stops at the first problem,
the validator visits every line and reports every defect it finds, each with
a 1-indexed line number where one applies.  Only two conditions stop it
early: a file that cannot be read/decoded as UTF-8, and an empty file.

It also checks things the parser never looks at: the byte-level encoding,
the ``E`` end marker, that the chart has notes at all, and that every
referenced asset exists next to the chart with a supported extension.

Warnings never make a chart invalid: ``result.is_valid`` only looks at
``result.errors``.

Key entry points:
- ``validate_chart()``: validate a chart file on local disk
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from loguru import logger

from frank.config import (
    ALLOWED_AUDIO_EXTENSIONS,
    ALLOWED_IMAGE_EXTENSIONS,
    ALLOWED_VIDEO_EXTENSIONS,
)
from frank.services.chart_lines import (
    LineKind,
    classify_line,
    parse_decimal,
    parse_int,
    split_header,
    split_line_break_fields,
    split_lines,
    split_note_fields,
)

UTF8_BOM = b"\xef\xbb\xbf"
UNKNOWN_LINE_CONTEXT_CHARS = 50
_MAX_YEAR = 65535


# ---------------------------------------------------------------------------
# Diagnostic classes
# ---------------------------------------------------------------------------


class ValidationErrorKind(str, Enum):
    """Closed set of problems the validator can report."""

    # Encoding
    INVALID_UTF8 = "InvalidUtf8"
    CONTAINS_BOM = "ContainsBom"

    # Missing mandatory fields
    MISSING_TITLE = "MissingTitle"
    MISSING_ARTIST = "MissingArtist"
    MISSING_BPM = "MissingBpm"
    MISSING_AUDIO = "MissingAudio"

    # Invalid field values
    INVALID_BPM = "InvalidBpm"
    INVALID_GAP = "InvalidGap"
    INVALID_YEAR = "InvalidYear"

    # Note / line break format
    INVALID_NOTE_FORMAT = "InvalidNoteFormat"
    INVALID_LINE_BREAK = "InvalidLineBreak"

    # Asset references
    AUDIO_FILE_NOT_FOUND = "AudioFileNotFound"
    VIDEO_FILE_NOT_FOUND = "VideoFileNotFound"
    COVER_FILE_NOT_FOUND = "CoverFileNotFound"
    BACKGROUND_FILE_NOT_FOUND = "BackgroundFileNotFound"

    # Asset formats
    UNSUPPORTED_AUDIO_FORMAT = "UnsupportedAudioFormat"
    UNSUPPORTED_VIDEO_FORMAT = "UnsupportedVideoFormat"
    UNSUPPORTED_IMAGE_FORMAT = "UnsupportedImageFormat"

    # Structure
    NO_NOTES = "NoNotes"
    NO_END_MARKER = "NoEndMarker"
    EMPTY_FILE = "EmptyFile"


# Message templates; ``{}`` receives the error's value
_MESSAGES: dict[ValidationErrorKind, str] = {
    ValidationErrorKind.INVALID_UTF8: "File is not valid UTF-8",
    ValidationErrorKind.CONTAINS_BOM: "File contains UTF-8 BOM (should be UTF-8 without BOM)",
    ValidationErrorKind.MISSING_TITLE: "Missing required #TITLE tag",
    ValidationErrorKind.MISSING_ARTIST: "Missing required #ARTIST tag",
    ValidationErrorKind.MISSING_BPM: "Missing required #BPM tag",
    ValidationErrorKind.MISSING_AUDIO: "Missing required #AUDIO or #MP3 tag",
    ValidationErrorKind.INVALID_BPM: "Invalid BPM value: {}",
    ValidationErrorKind.INVALID_GAP: "Invalid GAP value: {}",
    ValidationErrorKind.INVALID_YEAR: "Invalid YEAR value: {}",
    ValidationErrorKind.INVALID_NOTE_FORMAT: "Invalid note format: {}",
    ValidationErrorKind.INVALID_LINE_BREAK: "Invalid line break format: {}",
    ValidationErrorKind.AUDIO_FILE_NOT_FOUND: "Audio file not found: {}",
    ValidationErrorKind.VIDEO_FILE_NOT_FOUND: "Video file not found: {}",
    ValidationErrorKind.COVER_FILE_NOT_FOUND: "Cover file not found: {}",
    ValidationErrorKind.BACKGROUND_FILE_NOT_FOUND: "Background file not found: {}",
    ValidationErrorKind.UNSUPPORTED_AUDIO_FORMAT: "Unsupported audio format: {}",
    ValidationErrorKind.UNSUPPORTED_VIDEO_FORMAT: "Unsupported video format: {}",
    ValidationErrorKind.UNSUPPORTED_IMAGE_FORMAT: "Unsupported image format: {}",
    ValidationErrorKind.NO_NOTES: "Song contains no notes",
    ValidationErrorKind.NO_END_MARKER: "Missing 'E' end marker",
    ValidationErrorKind.EMPTY_FILE: "File is empty",
}


@dataclass(frozen=True)
class ValidationError:
    """A single problem found in a chart.

    *value* is the offending value the message is about (a tag value, a
    token, a filename); *context* is extra free text such as the raw line.
    """

    kind: ValidationErrorKind
    line: int | None = None
    context: str | None = None
    value: str | None = None

    @property
    def message(self) -> str:
        return _MESSAGES[self.kind].format(self.value or "")

    def __str__(self) -> str:
        if self.line is not None:
            return f"Line {self.line}: {self.message}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "line": self.line,
            "context": self.context,
        }


@dataclass
class ValidationResult:
    """All errors and warnings for a single chart, in discovery order."""

    chart_path: Path
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def error(
        self,
        kind: ValidationErrorKind,
        line: int | None = None,
        context: str | None = None,
        value: str | None = None,
    ) -> None:
        self.errors.append(ValidationError(kind, line, context, value))

    def warn(
        self,
        kind: ValidationErrorKind,
        line: int | None = None,
        context: str | None = None,
        value: str | None = None,
    ) -> None:
        self.warnings.append(ValidationError(kind, line, context, value))

    def summary(self) -> str:
        if self.errors:
            status = "❌ INVALID"
        elif self.warnings:
            status = "⚠️  VALID"
        else:
            status = "✅ VALID"
        parts = [f"{status}: {self.chart_path}"]
        if self.errors:
            parts.append(f"  {len(self.errors)} error(s)")
        if self.warnings:
            parts.append(f"  {len(self.warnings)} warning(s)")
        return "\n".join(parts)

    def to_dict(self, include_warnings: bool = True) -> dict[str, Any]:
        return {
            "path": str(self.chart_path),
            "valid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": (
                [w.to_dict() for w in self.warnings] if include_warnings else []
            ),
        }


@dataclass
class ChartScan:
    """What the per-line pass learned about a chart."""

    has_title: bool = False
    has_artist: bool = False
    has_bpm: bool = False
    has_notes: bool = False
    has_end_marker: bool = False
    audio_file: str | None = None
    video_file: str | None = None
    cover_file: str | None = None
    background_file: str | None = None


# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------


def validate_file_basics(chart_path: Path, result: ValidationResult) -> str | None:
    """
    Read the chart and check its encoding.

    Returns the decoded text (without BOM), or ``None`` when validation
    cannot continue.
    """
    try:
        raw_bytes = chart_path.read_bytes()
    except OSError as e:
        result.error(ValidationErrorKind.INVALID_UTF8, context=str(e))
        return None

    if raw_bytes.startswith(UTF8_BOM):
        result.warn(ValidationErrorKind.CONTAINS_BOM)
        raw_bytes = raw_bytes[len(UTF8_BOM) :]

    try:
        text = raw_bytes.decode("utf-8")
    except UnicodeDecodeError:
        result.error(
            ValidationErrorKind.INVALID_UTF8,
            context="File is not valid UTF-8 encoding",
        )
        return None

    if not text.strip():
        result.error(ValidationErrorKind.EMPTY_FILE)
        return None

    return text


def _validate_header(
    payload: str, line_num: int, scan: ChartScan, result: ValidationResult
) -> None:
    tag, value = split_header(payload)

    if tag == "TITLE":
        scan.has_title = True
        if not value:
            result.error(
                ValidationErrorKind.MISSING_TITLE, line_num, "TITLE tag is empty"
            )
    elif tag == "ARTIST":
        scan.has_artist = True
        if not value:
            result.error(
                ValidationErrorKind.MISSING_ARTIST, line_num, "ARTIST tag is empty"
            )
    elif tag == "BPM":
        scan.has_bpm = True
        if parse_decimal(value) is None:
            result.error(ValidationErrorKind.INVALID_BPM, line_num, value=value)
    elif tag == "GAP":
        if value and parse_decimal(value) is None:
            result.error(ValidationErrorKind.INVALID_GAP, line_num, value=value)
    elif tag == "YEAR":
        year = parse_int(value)
        if value and (year is None or not 0 <= year <= _MAX_YEAR):
            result.warn(ValidationErrorKind.INVALID_YEAR, line_num, value=value)
    elif tag in ("MP3", "AUDIO"):
        scan.audio_file = value
    elif tag == "VIDEO":
        scan.video_file = value
    elif tag == "COVER":
        scan.cover_file = value
    elif tag == "BACKGROUND":
        scan.background_file = value


def validate_note_line(line: str, line_num: int, result: ValidationResult) -> None:
    """Check field count and integer fields of one note line."""
    fields = split_note_fields(line[1:])
    if len(fields) < 4:
        result.error(
            ValidationErrorKind.INVALID_NOTE_FORMAT,
            line_num,
            context=line,
            value=(
                "Note needs 4 parts (start, length, pitch, text), "
                f"got {len(fields)}"
            ),
        )
        return

    for name, token in zip(("start beat", "note length", "pitch"), fields[:3]):
        if parse_int(token) is None:
            result.error(
                ValidationErrorKind.INVALID_NOTE_FORMAT,
                line_num,
                value=f"Invalid {name}: {token}",
            )


def validate_line_break(line: str, line_num: int, result: ValidationResult) -> None:
    """Check one line break.  Unlike the parser, a bad end beat is an error here."""
    fields = split_line_break_fields(line[1:])
    if not fields:
        result.error(
            ValidationErrorKind.INVALID_LINE_BREAK,
            line_num,
            context=line,
            value="Line break needs at least a start beat",
        )
        return

    if parse_int(fields[0]) is None:
        result.error(
            ValidationErrorKind.INVALID_LINE_BREAK,
            line_num,
            value=f"Invalid start beat: {fields[0]}",
        )

    if len(fields) > 1 and parse_int(fields[1]) is None:
        result.error(
            ValidationErrorKind.INVALID_LINE_BREAK,
            line_num,
            value=f"Invalid end beat: {fields[1]}",
        )


def validate_lines(text: str, result: ValidationResult) -> ChartScan:
    """Single pass over every line, collecting per-line problems."""
    scan = ChartScan()

    for line_num, raw_line in enumerate(split_lines(text), start=1):
        line = raw_line.strip()
        kind, payload = classify_line(line)

        if kind == LineKind.HEADER:
            _validate_header(payload, line_num, scan, result)
        elif kind == LineKind.NOTE:
            scan.has_notes = True
            validate_note_line(line, line_num, result)
        elif kind == LineKind.LINE_BREAK:
            validate_line_break(line, line_num, result)
        elif kind == LineKind.END:
            scan.has_end_marker = True
        elif kind == LineKind.UNKNOWN:
            result.warn(
                ValidationErrorKind.INVALID_NOTE_FORMAT,
                line_num,
                value=f"Unknown line type: {line[:UNKNOWN_LINE_CONTEXT_CHARS]}",
            )
        # Player switches and blank lines need no checks

    return scan


def validate_structure(scan: ChartScan, result: ValidationResult) -> None:
    """File-level checks that need the whole chart to have been seen."""
    if not scan.has_title:
        result.error(ValidationErrorKind.MISSING_TITLE)
    if not scan.has_artist:
        result.error(ValidationErrorKind.MISSING_ARTIST)
    if not scan.has_bpm:
        result.error(ValidationErrorKind.MISSING_BPM)
    if scan.audio_file is None:
        result.error(ValidationErrorKind.MISSING_AUDIO)

    if not scan.has_notes:
        result.error(ValidationErrorKind.NO_NOTES)
    if not scan.has_end_marker:
        result.warn(ValidationErrorKind.NO_END_MARKER)


def _validate_asset(
    song_dir: Path,
    filename: str,
    allowed_extensions: set[str],
    not_found: ValidationErrorKind,
    unsupported: ValidationErrorKind,
    result: ValidationResult,
) -> None:
    path = song_dir / filename
    if not filename or not path.is_file():
        result.error(not_found, value=filename)
        return

    # Files without an extension are not second-guessed
    if path.suffix and path.suffix.lower() not in allowed_extensions:
        result.error(unsupported, context=filename, value=path.suffix[1:])


def validate_assets(song_dir: Path, scan: ChartScan, result: ValidationResult) -> None:
    """Check that every referenced asset exists and has a supported format."""
    if scan.audio_file is not None:
        _validate_asset(
            song_dir,
            scan.audio_file,
            ALLOWED_AUDIO_EXTENSIONS,
            ValidationErrorKind.AUDIO_FILE_NOT_FOUND,
            ValidationErrorKind.UNSUPPORTED_AUDIO_FORMAT,
            result,
        )
    if scan.video_file is not None:
        _validate_asset(
            song_dir,
            scan.video_file,
            ALLOWED_VIDEO_EXTENSIONS,
            ValidationErrorKind.VIDEO_FILE_NOT_FOUND,
            ValidationErrorKind.UNSUPPORTED_VIDEO_FORMAT,
            result,
        )
    if scan.cover_file is not None:
        _validate_asset(
            song_dir,
            scan.cover_file,
            ALLOWED_IMAGE_EXTENSIONS,
            ValidationErrorKind.COVER_FILE_NOT_FOUND,
            ValidationErrorKind.UNSUPPORTED_IMAGE_FORMAT,
            result,
        )
    if scan.background_file is not None:
        _validate_asset(
            song_dir,
            scan.background_file,
            ALLOWED_IMAGE_EXTENSIONS,
            ValidationErrorKind.BACKGROUND_FILE_NOT_FOUND,
            ValidationErrorKind.UNSUPPORTED_IMAGE_FORMAT,
            result,
        )


# ---------------------------------------------------------------------------
# Main validation entry point
# ---------------------------------------------------------------------------


def validate_chart(chart_path: str | Path) -> ValidationResult:
    """
    Run all validators on a chart file on local disk.

    Assets are looked up relative to the chart's directory.  Safe to call
    from several worker threads or processes at once.
    """
    chart_path = Path(chart_path)
    result = ValidationResult(chart_path)

    # Step 1: Encoding and emptiness
    text = validate_file_basics(chart_path, result)
    if text is None:
        return result

    # Step 2: Every line
    scan = validate_lines(text, result)

    # Step 3: Required tags, notes, end marker
    validate_structure(scan, result)

    # Step 4: Referenced files
    validate_assets(chart_path.parent, scan, result)

    logger.debug(
        "🔍 Validated {}: {} error(s), {} warning(s)",
        chart_path,
        len(result.errors),
        len(result.warnings),
    )
    return result
