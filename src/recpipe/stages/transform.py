"""
Transform stages: rewrite a record or fan it out.

- SelectStage:    SELECT s,l[,d]; ...
- ChangeStage:    CHANGE /old/new/
- CaseStage:      UPPER / LOWER
- ReverseStage:   REVERSE
- DuplicateStage: DUPLICATE [k]
"""

from typing import List

from ..dsl.commands import Change, Duplicate, Select, Upper
from ..record import Record
from .base import Stage


class SelectStage(Stage):
    """
    Rebuilds the record from field copies onto a blank record.

    ::: This is-in-layer Execution-Layer.
    ::: This is a step.
    ::: This is stateless.
    """

    def __init__(self, command: Select):
        super().__init__(command)
        self.fields = [f.as_tuple() for f in command.fields]

    def step(self, record: Record) -> List[Record]:
        return [record.reformat(self.fields)]


class ChangeStage(Stage):
    """
    Replaces every occurrence of ``old`` with ``new``, then refits to 80.

    ::: This is-in-layer Execution-Layer.
    ::: This is a step.
    ::: This is stateless.
    """

    def __init__(self, command: Change):
        super().__init__(command)
        self.old = command.old
        self.new = command.new

    def step(self, record: Record) -> List[Record]:
        if self.old not in record.text:
            return [record]
        return [Record.fitted(record.text.replace(self.old, self.new))]


class CaseStage(Stage):
    """UPPER or LOWER."""

    def __init__(self, command):
        super().__init__(command)
        self.to_upper = isinstance(command, Upper)

    def step(self, record: Record) -> List[Record]:
        text = record.text.upper() if self.to_upper else record.text.lower()
        return [Record(text)]


class ReverseStage(Stage):
    def step(self, record: Record) -> List[Record]:
        # Reverse the content only, so the padding stays on the right
        return [Record(record.rstrip()[::-1])]


class DuplicateStage(Stage):
    def __init__(self, command: Duplicate):
        super().__init__(command)
        self.copies = command.copies

    def step(self, record: Record) -> List[Record]:
        return [record] * self.copies


__all__ = ["SelectStage", "ChangeStage", "CaseStage", "ReverseStage", "DuplicateStage"]
