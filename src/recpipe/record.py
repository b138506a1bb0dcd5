"""
Fixed-width 80-byte record type.

The 80-byte width matches the punch card format used on mainframe systems.
Every record flowing through a pipeline is exactly 80 ASCII characters,
padded with spaces when the source text is shorter.

Typical layout used by the demos and tests::

    0         1         2         3         4
    0123456789012345678901234567890123456789012...
    LASTNAME FIRSTNAME  DEPARTMENT EMP_ID  SALARY
    |8 chars||10 chars ||10 chars ||8chars||8chars|
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from .recpipe_exceptions import FieldRangeError, RecordFormatError

RECORD_WIDTH = 80


def _check_ascii(text: str, line_number: Optional[int] = None) -> None:
    if not text.isascii():
        bad = next(ch for ch in text if not ch.isascii())
        raise RecordFormatError(
            f"non-ASCII character {bad!r} in record", line_number
        )


def check_range(offset: int, length: int) -> None:
    """Raise FieldRangeError unless [offset, offset+length) lies in the record."""
    if offset < 0 or length < 0 or offset + length > RECORD_WIDTH:
        raise FieldRangeError(offset, length, RECORD_WIDTH)
    if length > 0 and offset >= RECORD_WIDTH:
        raise FieldRangeError(offset, length, RECORD_WIDTH)


@dataclass(frozen=True)
class Record:
    """A fixed-width 80-byte record.

    ::: This is-in-layer Core-Layer.
    ::: This is a value-object.
    ::: This is-in-process Main-Process.
    ::: This is stateless.

    Records are immutable; field updates return a new record. Construct with
    ``Record("text")`` for input data (strict: longer than 80 characters or
    non-ASCII raises RecordFormatError) or ``Record.fitted("text")`` for text
    a stage synthesizes, which is truncated to 80.
    """
    text: str

    def __init__(self, text: str = ""):
        if len(text) > RECORD_WIDTH:
            raise RecordFormatError(
                f"record is {len(text)} characters, maximum is {RECORD_WIDTH}"
            )
        _check_ascii(text)
        object.__setattr__(self, "text", text.ljust(RECORD_WIDTH))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def blank(cls) -> "Record":
        return cls("")

    @classmethod
    def from_line(cls, line: str, line_number: Optional[int] = None) -> "Record":
        """Build a record from one line of an input file, newline stripped."""
        line = line.rstrip("\r\n")
        if len(line) > RECORD_WIDTH:
            raise RecordFormatError(
                f"record is {len(line)} characters, maximum is {RECORD_WIDTH}",
                line_number,
            )
        _check_ascii(line, line_number)
        return cls(line)

    @classmethod
    def fitted(cls, text: str) -> "Record":
        """Pad or truncate stage-generated text to the record width."""
        return cls(text[:RECORD_WIDTH])

    # ------------------------------------------------------------------
    # Field access
    # ------------------------------------------------------------------

    def field(self, offset: int, length: int) -> str:
        """Return the ``length`` characters starting at ``offset``."""
        check_range(offset, length)
        return self.text[offset:offset + length]

    def field_eq(self, offset: int, length: int, value: str) -> bool:
        """Compare a field to a value, ignoring surrounding blanks."""
        return self.field(offset, length).strip() == value.strip()

    def field_contains(self, offset: int, length: int, substring: str) -> bool:
        return substring in self.field(offset, length)

    def with_field(self, offset: int, length: int, value: str) -> "Record":
        """Return a copy with the field cleared and overwritten by ``value``.

        The value is truncated to the field length, or padded with spaces.
        """
        check_range(offset, length)
        _check_ascii(value)
        value = value[:length].ljust(length)
        return Record(self.text[:offset] + value + self.text[offset + length:])

    def reformat(self, fields: Iterable[Tuple[int, int, int]]) -> "Record":
        """Build a new record from (source_offset, length, dest_offset) copies."""
        out = Record.blank()
        for src, length, dest in fields:
            out = out.with_field(dest, length, self.field(src, length))
        return out

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def rstrip(self) -> str:
        return self.text.rstrip(" ")

    def is_blank(self) -> bool:
        return not self.text.strip(" ")

    def __len__(self) -> int:
        return len(self.text)

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"Record({self.rstrip()!r})"


def records_from_text(text: str) -> List[Record]:
    """Parse newline-separated text into records, skipping empty lines."""
    return [
        Record.from_line(line, number)
        for number, line in enumerate(text.splitlines(), start=1)
        if line
    ]


def records_to_text(records: Sequence[Record]) -> str:
    """Join records with newlines, trailing blanks trimmed."""
    return "\n".join(r.rstrip() for r in records)
