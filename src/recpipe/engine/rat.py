"""
Record-at-a-time (RAT) executor.

Each input record, with every record it fans out into, travels through the
whole stage chain before the next input record is admitted. After the last
input record, each stage's end-of-input output is threaded through the
remaining stages in declaration order.

The walk is an explicit cursor, RatCursor, that moves one pipe point per
``advance()``. ``RecordAtATimeExecutor.run`` drives a cursor to the end;
the stepping session drives the same cursor one call at a time.

Pipe points for a pipeline of S stages are numbered 0..S. Pipe point 0
holds the record as read, pipe point i+1 the output of stage i. A flush
group for stage i starts at pipe point i+1 with the stage's end-of-input
output and continues to pipe point S.
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from ..dsl.commands import Command
from ..dsl.core import Pipeline
from ..record import Record
from ..stages import Stage, build_stages, invoke_flush, invoke_step
from .batch import stage_commands

logger = logging.getLogger(__name__)
trace_logger = logging.getLogger("recpipe.trace")


@dataclass(frozen=True)
class TracePoint:
    """
    The records occupying one pipe point at one moment of a RAT walk.

    ::: This is-in-layer Execution-Layer.
    ::: This is a value-object.
    ::: This is stateless.

    Exactly one of ``record_index`` (record phase) and ``flush_index``
    (flush phase) is set. ``stage_index`` names the flushing stage.
    """
    pipe_point: int
    records: Tuple[Record, ...]
    record_index: Optional[int] = None
    flush_index: Optional[int] = None
    stage_index: Optional[int] = None

    @property
    def is_flush(self) -> bool:
        return self.flush_index is not None

    def describe(self) -> str:
        if self.is_flush:
            where = f"flush {self.flush_index} (stage {self.stage_index})"
        else:
            where = f"record {self.record_index}"
        return f"{where} @ pipe point {self.pipe_point}: {len(self.records)} record(s)"


class RatCursor:
    """
    One resumable record-at-a-time walk over a pipeline.

    ::: This is-in-layer Execution-Layer.
    ::: This is a iterator.
    ::: This is-in-process Main-Process.
    ::: This is stateful.

    ``current`` is the pipe point last arrived at (None before the first
    ``advance`` and after the walk is over). ``output`` collects every
    record that has reached the last pipe point so far.
    """

    def __init__(self, stages: Sequence[Stage], records: Iterable[Record]):
        self.stages: List[Stage] = list(stages)
        self.inputs: List[Record] = list(records)
        self.output: List[Record] = []
        self.current: Optional[TracePoint] = None
        self.finished = False
        self._next_record = 0
        self._next_flush_stage = 0
        self._flush_count = 0

    @property
    def stage_count(self) -> int:
        return len(self.stages)

    def advance(self) -> Optional[TracePoint]:
        """Move to the next pipe point; returns None once the walk is over."""
        if self.finished:
            return None

        point = self.current
        if point is not None and point.pipe_point < self.stage_count:
            records = self._through(point.pipe_point, point.records)
            return self._arrive(replace(point, pipe_point=point.pipe_point + 1, records=records))

        if self._next_record < len(self.inputs):
            index = self._next_record
            self._next_record += 1
            return self._arrive(TracePoint(0, (self.inputs[index],), record_index=index))

        while self._next_flush_stage < self.stage_count:
            index = self._next_flush_stage
            self._next_flush_stage += 1
            stage = self.stages[index]
            emitted = tuple(invoke_flush(index, stage))
            if stage.flushes:
                flush_index = self._flush_count
                self._flush_count += 1
                return self._arrive(TracePoint(
                    index + 1, emitted, flush_index=flush_index, stage_index=index,
                ))
            # No flush group: thread any stray output straight to the end
            for downstream in range(index + 1, self.stage_count):
                emitted = self._through(downstream, emitted)
            self.output.extend(emitted)

        self.finished = True
        self.current = None
        return None

    def run(self, on_point: Optional[Callable[[TracePoint], None]] = None) -> List[Record]:
        """Advance until the walk is over and return the output."""
        while True:
            point = self.advance()
            if point is None:
                return self.output
            if on_point is not None:
                on_point(point)

    def _through(self, index: int, records: Tuple[Record, ...]) -> Tuple[Record, ...]:
        stage = self.stages[index]
        out: List[Record] = []
        for record in records:
            out.extend(invoke_step(index, stage, record))
        return tuple(out)

    def _arrive(self, point: TracePoint) -> TracePoint:
        self.current = point
        if point.pipe_point == self.stage_count:
            self.output.extend(point.records)
        if trace_logger.isEnabledFor(logging.DEBUG):
            trace_logger.debug(point.describe())
        return point


class RecordAtATimeExecutor:
    """
    Record-at-a-time evaluation of one pipeline.

    ::: This is-in-layer Execution-Layer.
    ::: This is a executor.
    ::: This is-in-process Main-Process.
    ::: This is stateless.
    """

    name = "rat"

    def __init__(self, pipeline: Union[Pipeline, Sequence[Command]]):
        self.commands = stage_commands(pipeline)

    def cursor(self, records: Iterable[Record]) -> RatCursor:
        """Start a fresh walk with newly built stages."""
        return RatCursor(build_stages(self.commands), records)

    def run(self, records: Iterable[Record]) -> List[Record]:
        cursor = self.cursor(records)
        output = cursor.run()
        logger.debug("RAT run over %d stage(s): %d -> %d records",
                     cursor.stage_count, len(cursor.inputs), len(output))
        return output

    def trace(self, records: Iterable[Record]) -> Tuple[List[Record], List[TracePoint]]:
        """Run to the end, returning the output and every pipe point visited."""
        points: List[TracePoint] = []
        output = self.cursor(records).run(points.append)
        return output, points


__all__ = ["TracePoint", "RatCursor", "RecordAtATimeExecutor"]
