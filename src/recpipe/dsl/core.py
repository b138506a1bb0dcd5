"""
Pipeline Core - Pipeline and multi-pipeline specification model.

A Pipeline is one source, an ordered chain of transform stages and one sink.
A PipelineSpec is the ordered list of pipelines parsed from one DSL text;
by default pipeline k's console output becomes pipeline k+1's console input.

Pipe points are numbered 0..S for a pipeline of S stages: pipe point 0
holds the record as read from the source, pipe point i+1 the output of
stage i. The sink consumes pipe point S.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Sequence, Tuple

from .commands import Command, Console, FileRead, FileWrite


@dataclass(frozen=True)
class Pipeline:
    """One source -> stages -> sink chain.

    ::: This is-in-layer Domain-Specific-Language-Layer.
    ::: This is a value-object.
    ::: This is-in-process Main-Process.
    ::: This is stateless.
    """
    stages: Tuple[Command, ...] = ()
    source: Command = field(default_factory=Console)
    sink: Command = field(default_factory=Console)

    def __post_init__(self) -> None:
        if not self.source.is_source:
            raise ValueError(f"{self.source.keyword} cannot be a pipeline source")
        if not self.sink.is_sink:
            raise ValueError(f"{self.sink.keyword} cannot be a pipeline sink")
        for cmd in self.stages:
            if isinstance(cmd, (FileRead, FileWrite)):
                raise ValueError(f"{cmd.keyword} is only valid at the pipeline boundary")
        object.__setattr__(self, "stages", tuple(self.stages))

    @classmethod
    def of(cls, *stages: Command) -> "Pipeline":
        """Build a console-to-console pipeline from transform commands."""
        return cls(stages=tuple(stages))

    @property
    def stage_count(self) -> int:
        return len(self.stages)

    @property
    def pipe_point_count(self) -> int:
        return len(self.stages) + 1

    @property
    def writes_console(self) -> bool:
        return isinstance(self.sink, Console)

    def stage_names(self) -> List[str]:
        return [cmd.keyword for cmd in self.stages]

    def describe(self) -> str:
        parts = [self.source.describe()]
        parts.extend(cmd.describe() for cmd in self.stages)
        parts.append(self.sink.describe())
        return " | ".join(parts)


@dataclass(frozen=True)
class PipelineSpec:
    """An ordered, non-empty sequence of chained pipelines.

    ::: This is-in-layer Domain-Specific-Language-Layer.
    ::: This is a value-object.
    ::: This is-in-process Main-Process.
    ::: This is stateless.
    """
    pipelines: Tuple[Pipeline, ...]

    def __post_init__(self) -> None:
        if not self.pipelines:
            raise ValueError("a pipeline specification needs at least one pipeline")
        object.__setattr__(self, "pipelines", tuple(self.pipelines))

    @classmethod
    def single(cls, pipeline: Pipeline) -> "PipelineSpec":
        return cls((pipeline,))

    @classmethod
    def from_pipelines(cls, pipelines: Sequence[Pipeline]) -> "PipelineSpec":
        return cls(tuple(pipelines))

    def __iter__(self) -> Iterator[Pipeline]:
        return iter(self.pipelines)

    def __len__(self) -> int:
        return len(self.pipelines)

    def __getitem__(self, idx: int) -> Pipeline:
        return self.pipelines[idx]


__all__ = ["Pipeline", "PipelineSpec"]
