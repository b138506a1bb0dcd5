"""
Selection stages: pass a record through unchanged or drop it.

- FilterStage:  FILTER o,l = "x" / != "x"
- LocateStage:  LOCATE / NLOCATE [o,l] /x/
- TakeStage:    TAKE n
- SkipStage:    SKIP n
- HoleStage:    HOLE
"""

from typing import List

from ..dsl.commands import Filter, NLocate, Skip, Take
from ..record import Record
from .base import Stage


class FilterStage(Stage):
    """
    Keeps records whose trimmed field equals the trimmed literal.

    ::: This is-in-layer Execution-Layer.
    ::: This is a step.
    ::: This is stateless.
    """

    def __init__(self, command: Filter):
        super().__init__(command)
        self.offset = command.offset
        self.length = command.length
        self.value = command.value
        self.negate = command.negate

    def step(self, record: Record) -> List[Record]:
        matched = record.field_eq(self.offset, self.length, self.value)
        if matched != self.negate:
            return [record]
        return []


class LocateStage(Stage):
    """
    Substring search over the whole record, or over one field.

    ::: This is-in-layer Execution-Layer.
    ::: This is a step.
    ::: This is stateless.

    Serves both LOCATE (keep matches) and NLOCATE (keep non-matches). An
    empty pattern is contained in every record.
    """

    def __init__(self, command):
        super().__init__(command)
        self.pattern = command.pattern
        self.field_range = command.field_range
        self.keep_matches = not isinstance(command, NLocate)

    def _contains(self, record: Record) -> bool:
        if self.field_range is None:
            return self.pattern in record.text
        return record.field_contains(
            self.field_range.offset, self.field_range.length, self.pattern
        )

    def step(self, record: Record) -> List[Record]:
        if self._contains(record) == self.keep_matches:
            return [record]
        return []


class TakeStage(Stage):
    """Passes the first n records that reach it, then drops the rest."""

    def __init__(self, command: Take):
        super().__init__(command)
        self.limit = command.count
        self.seen = 0

    def step(self, record: Record) -> List[Record]:
        self.seen += 1
        return [record] if self.seen <= self.limit else []


class SkipStage(Stage):
    """Drops the first n records that reach it, then passes the rest."""

    def __init__(self, command: Skip):
        super().__init__(command)
        self.limit = command.count
        self.seen = 0

    def step(self, record: Record) -> List[Record]:
        self.seen += 1
        return [record] if self.seen > self.limit else []


class HoleStage(Stage):
    def step(self, record: Record) -> List[Record]:
        return []


__all__ = ["FilterStage", "LocateStage", "TakeStage", "SkipStage", "HoleStage"]
