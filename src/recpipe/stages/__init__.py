"""
Pipeline Stages - runtime evaluation of pipeline commands.

``build_stage`` binds a Command to a fresh Stage instance. Stateful stages
(TAKE, SKIP, COUNT, LITERAL) keep their counters on the instance, so every
run must build its own stages.
"""

from typing import Callable, Dict, List, Sequence, Type

from ..dsl.commands import (
    Change,
    Command,
    Console,
    Count,
    Duplicate,
    Filter,
    Hole,
    Literal,
    Locate,
    Lower,
    NLocate,
    Reverse,
    Select,
    Skip,
    Take,
    Upper,
)
from .accumulate import CountStage, LiteralStage
from .base import PassthroughStage, Stage, invoke_flush, invoke_step
from .io import DirectoryFileResolver, MemoryFiles, RecordSink, RecordSource
from .selection import FilterStage, HoleStage, LocateStage, SkipStage, TakeStage
from .transform import CaseStage, ChangeStage, DuplicateStage, ReverseStage, SelectStage


_STAGE_TYPES: Dict[Type[Command], Callable[[Command], Stage]] = {
    Console: PassthroughStage,
    Filter: FilterStage,
    Locate: LocateStage,
    NLocate: LocateStage,
    Take: TakeStage,
    Skip: SkipStage,
    Hole: HoleStage,
    Select: SelectStage,
    Change: ChangeStage,
    Upper: CaseStage,
    Lower: CaseStage,
    Reverse: ReverseStage,
    Duplicate: DuplicateStage,
    Count: CountStage,
    Literal: LiteralStage,
}


def build_stage(command: Command) -> Stage:
    """Create a fresh stage for a transform command."""
    factory = _STAGE_TYPES.get(type(command))
    if factory is None:
        raise TypeError(f"{command.keyword or type(command).__name__} is not a transform stage")
    return factory(command)


def build_stages(commands: Sequence[Command]) -> List[Stage]:
    return [build_stage(cmd) for cmd in commands]


__all__ = [
    "Stage",
    "PassthroughStage",
    "FilterStage",
    "LocateStage",
    "TakeStage",
    "SkipStage",
    "HoleStage",
    "SelectStage",
    "ChangeStage",
    "CaseStage",
    "ReverseStage",
    "DuplicateStage",
    "CountStage",
    "LiteralStage",
    "RecordSource",
    "RecordSink",
    "DirectoryFileResolver",
    "MemoryFiles",
    "build_stage",
    "build_stages",
    "invoke_step",
    "invoke_flush",
]
