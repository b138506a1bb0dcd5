"""
Stage base class.

A stage is one Command bound to the mutable state it needs for a single
run. Executors call ``step`` once per record reaching the stage and
``end_of_input`` exactly once after the last record has left it.
"""

from typing import List

from ..dsl.commands import Command
from ..record import Record
from ..recpipe_exceptions import StageError


class Stage:
    """
    Runtime counterpart of a Command.

    ::: This is-in-layer Execution-Layer.
    ::: This is a step.
    ::: This is-in-process Main-Process.
    ::: This is stateful.

    Subclasses override ``step``; deferred emitters also override
    ``end_of_input`` and set ``flushes`` so the stepping session knows the
    stage owns a flush group.
    """

    flushes: bool = False

    def __init__(self, command: Command):
        self.command = command

    @property
    def name(self) -> str:
        return self.command.keyword

    def step(self, record: Record) -> List[Record]:
        raise NotImplementedError(f"{type(self).__name__}.step")

    def end_of_input(self) -> List[Record]:
        return []

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.command.describe()!r})"


class PassthroughStage(Stage):
    """Mid-pipeline CONSOLE: emits every record unchanged."""

    def step(self, record: Record) -> List[Record]:
        return [record]


def _stage_error(index: int, stage: Stage, cause: Exception) -> StageError:
    return StageError(index, stage.command.describe(), cause, stage.command.line or None)


def invoke_step(index: int, stage: Stage, record: Record) -> List[Record]:
    """Call ``stage.step``, wrapping failures in StageError."""
    try:
        return list(stage.step(record))
    except StageError:
        raise
    except Exception as e:
        raise _stage_error(index, stage, e) from e


def invoke_flush(index: int, stage: Stage) -> List[Record]:
    """Call ``stage.end_of_input``, wrapping failures in StageError."""
    try:
        return list(stage.end_of_input())
    except StageError:
        raise
    except Exception as e:
        raise _stage_error(index, stage, e) from e
