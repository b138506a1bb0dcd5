"""
Accumulating stages: the only stages with end-of-input output.
"""

from typing import List

from ..dsl.commands import Count, Literal
from ..record import Record
from .base import Stage


class CountStage(Stage):
    """
    Counts records and emits the total once input ends.

    ::: This is-in-layer Execution-Layer.
    ::: This is a step.
    ::: This is stateful.

    ``step`` always returns nothing; ``end_of_input`` returns one record
    holding the decimal count, left-justified.
    """

    flushes = True

    def __init__(self, command: Count):
        super().__init__(command)
        self.count = 0

    def step(self, record: Record) -> List[Record]:
        self.count += 1
        return []

    def end_of_input(self) -> List[Record]:
        return [Record.fitted(str(self.count))]


class LiteralStage(Stage):
    """
    Injects one synthetic record ahead of the stream.

    ::: This is-in-layer Execution-Layer.
    ::: This is a step.
    ::: This is stateful.

    The literal goes out with the first record to reach the stage. When no
    record ever reaches it, ``end_of_input`` emits the literal instead, so
    it appears exactly once per run either way.
    """

    flushes = True

    def __init__(self, command: Literal):
        super().__init__(command)
        self.literal = Record.fitted(command.value)
        self.emitted = False

    def step(self, record: Record) -> List[Record]:
        if self.emitted:
            return [record]
        self.emitted = True
        return [self.literal, record]

    def end_of_input(self) -> List[Record]:
        if self.emitted:
            return []
        self.emitted = True
        return [self.literal]


__all__ = ["CountStage", "LiteralStage"]
