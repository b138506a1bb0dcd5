"""
Stepping session - a resumable, breakpoint-aware view of a RAT run.

A DebugSession drives the RAT executor's own cursor (``RatCursor``) one
pipe point per ``step``. It is not a separate executor: the output
collected by a fully stepped session is exactly ``run_rat``'s output.

States:

- ``NotStarted``                       before ``initialize`` / first ``step``
- ``AtPipePoint(record_index, pp)``    record phase, pipe point ``pp``
- ``AtFlush(flush_index, pp)``         flush group ``flush_index``, pipe point ``pp``
- ``Finished``                         nothing left to observe

Watches and breakpoints are positions ``0..S`` (pipe point indexes). A
watch reports the records at its pipe point for the record or flush group
currently being traced, or ``None`` when that pipe point has not been
reached (or does not apply to the current flush group).
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ..dsl.core import Pipeline
from ..dsl.parser import parse_pipeline
from ..record import Record
from ..recpipe_exceptions import SessionError
from ..stages import RecordSink, RecordSource
from .rat import RatCursor, RecordAtATimeExecutor, TracePoint
from .runner import SpecLike, SpecRunner, coerce_spec

logger = logging.getLogger(__name__)


# ============================================================
# STATES
# ============================================================

@dataclass(frozen=True)
class NotStarted:
    """::: This is a value-object."""

    def __str__(self) -> str:
        return "not started"


@dataclass(frozen=True)
class AtPipePoint:
    """::: This is a value-object."""
    record_index: int
    pipe_point_index: int

    def __str__(self) -> str:
        return f"record {self.record_index + 1}, pipe point {self.pipe_point_index}"


@dataclass(frozen=True)
class AtFlush:
    """::: This is a value-object."""
    flush_index: int
    pipe_point_index: int

    def __str__(self) -> str:
        return f"flush {self.flush_index + 1}, pipe point {self.pipe_point_index}"


@dataclass(frozen=True)
class Finished:
    """::: This is a value-object."""

    def __str__(self) -> str:
        return "finished"


SessionState = Union[NotStarted, AtPipePoint, AtFlush, Finished]


# ============================================================
# WATCHES AND SNAPSHOTS
# ============================================================

@dataclass(frozen=True)
class Watch:
    """A persistent subscription to one pipe point, labelled w1, w2, ..."""
    label: str
    position: int


@dataclass(frozen=True)
class WatchValue:
    """What one watch sees in a snapshot; ``records`` is None if not reached."""
    label: str
    position: int
    records: Optional[Tuple[Record, ...]]

    @property
    def reached(self) -> bool:
        return self.records is not None


@dataclass(frozen=True)
class SessionSnapshot:
    """
    Immutable view of a stepping session.

    ::: This is-in-layer Execution-Layer.
    ::: This is a value-object.
    ::: This is stateless.
    """
    state: SessionState
    records: Tuple[Record, ...]
    paused_at_breakpoint: bool
    watches: Tuple[WatchValue, ...]
    breakpoints: Tuple[int, ...]
    output: Tuple[Record, ...]
    stage_names: Tuple[str, ...]

    @property
    def pipe_point(self) -> Optional[int]:
        return getattr(self.state, "pipe_point_index", None)

    @property
    def is_finished(self) -> bool:
        return isinstance(self.state, Finished)

    def watch(self, label: str) -> WatchValue:
        for value in self.watches:
            if value.label == label:
                return value
        raise KeyError(label)


# ============================================================
# SESSION
# ============================================================

class DebugSession:
    """
    Single-step, resumable execution of one pipeline.

    ::: This is-in-layer Execution-Layer.
    ::: This is a debugger.
    ::: This is-in-process Main-Process.
    ::: This is stateful.

    Usage:
        session = DebugSession(pipeline, records)
        session.add_breakpoint(2)
        snap = session.run_to_breakpoint()
        while not snap.is_finished:
            snap = session.step()

    A session belongs to one caller; it is not safe to share between threads.
    """

    def __init__(self, pipeline: Union[Pipeline, str], input_records: Iterable[Record] = ()):
        self.pipeline = parse_pipeline(pipeline) if isinstance(pipeline, str) else pipeline
        self.input_records: List[Record] = list(input_records)
        self.watches: List[Watch] = []
        self.breakpoints: List[int] = []
        self._next_watch_id = 1
        self._cursor: Optional[RatCursor] = None
        self._state: SessionState = NotStarted()
        self._paused = False
        self._unit: Optional[Tuple[Optional[int], Optional[int]]] = None
        self._unit_points: Dict[int, Tuple[Record, ...]] = {}

    @classmethod
    def for_spec(
        cls,
        spec: SpecLike,
        input_records: Iterable[Record],
        pipeline_index: int = 0,
        *,
        sources: Optional[RecordSource] = None,
        sinks: Optional[RecordSink] = None,
    ) -> "DebugSession":
        """Debug one pipeline of a multi-pipeline spec.

        The pipelines before ``pipeline_index`` are run (file sinks included)
        to compute the records the chosen pipeline reads.
        """
        parsed = coerce_spec(spec)
        runner = SpecRunner(parsed, sources=sources, sinks=sinks)
        records = runner.input_for(pipeline_index, input_records)
        return cls(parsed[pipeline_index], records)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def stage_count(self) -> int:
        return self.pipeline.stage_count

    @property
    def state(self) -> SessionState:
        return self._state

    # ------------------------------------------------------------------
    # Execution control
    # ------------------------------------------------------------------

    def initialize(self) -> SessionSnapshot:
        """Start over with fresh stages and arrive at the first pipe point."""
        self._cursor = RecordAtATimeExecutor(self.pipeline).cursor(self.input_records)
        self._paused = False
        self._unit = None
        self._unit_points = {}
        self._advance()
        return self.snapshot()

    def step(self) -> SessionSnapshot:
        """Advance exactly one pipe point; breakpoints are ignored."""
        if isinstance(self._state, NotStarted):
            return self.initialize()
        self._paused = False
        if not isinstance(self._state, Finished):
            self._advance()
        return self.snapshot()

    def run_to_breakpoint(self) -> SessionSnapshot:
        """Step until arriving at a breakpoint position or finishing."""
        if isinstance(self._state, NotStarted):
            self.initialize()
        else:
            self._paused = False
            if not isinstance(self._state, Finished):
                self._advance()

        while not isinstance(self._state, Finished):
            if self._at_breakpoint():
                self._paused = True
                logger.debug("Paused at breakpoint: %s", self._state)
                break
            self._advance()
        return self.snapshot()

    def reset(self) -> SessionSnapshot:
        """Back to the first pipe point, keeping watches and breakpoints."""
        return self.initialize()

    def reinitialize(
        self,
        pipeline: Union[Pipeline, str],
        input_records: Optional[Iterable[Record]] = None,
    ) -> SessionSnapshot:
        """Switch to a new pipeline definition (and optionally new input).

        Watches and breakpoints beyond the new pipeline's last pipe point
        are dropped; the rest are kept.
        """
        self.pipeline = parse_pipeline(pipeline) if isinstance(pipeline, str) else pipeline
        if input_records is not None:
            self.input_records = list(input_records)
        limit = self.stage_count
        dropped = [w.label for w in self.watches if w.position > limit]
        self.watches = [w for w in self.watches if w.position <= limit]
        self.breakpoints = [b for b in self.breakpoints if b <= limit]
        if dropped:
            logger.debug("Dropped watches %s beyond pipe point %d", dropped, limit)
        return self.initialize()

    # ------------------------------------------------------------------
    # Watches and breakpoints
    # ------------------------------------------------------------------

    def add_watch(self, position: int) -> SessionSnapshot:
        self._check_position(position)
        self.watches.append(Watch(f"w{self._next_watch_id}", position))
        self._next_watch_id += 1
        return self.snapshot()

    def remove_watch(self, label: str) -> SessionSnapshot:
        remaining = [w for w in self.watches if w.label != label]
        if len(remaining) == len(self.watches):
            raise SessionError(f"No watch labelled {label!r}")
        self.watches = remaining
        return self.snapshot()

    def add_breakpoint(self, position: int) -> SessionSnapshot:
        self._check_position(position)
        if position not in self.breakpoints:
            self.breakpoints.append(position)
            self.breakpoints.sort()
        return self.snapshot()

    def remove_breakpoint(self, position: int) -> SessionSnapshot:
        if position in self.breakpoints:
            self.breakpoints.remove(position)
        return self.snapshot()

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> SessionSnapshot:
        pipe_point = getattr(self._state, "pipe_point_index", None)
        records = self._unit_points.get(pipe_point, ()) if pipe_point is not None else ()
        watches = tuple(
            WatchValue(w.label, w.position, self._unit_points.get(w.position))
            for w in self.watches
        )
        output = tuple(self._cursor.output) if self._cursor is not None else ()
        return SessionSnapshot(
            state=self._state,
            records=records,
            paused_at_breakpoint=self._paused,
            watches=watches,
            breakpoints=tuple(self.breakpoints),
            output=output,
            stage_names=tuple(self.pipeline.stage_names()),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _advance(self) -> None:
        point = self._cursor.advance()
        if point is None:
            self._state = Finished()
            self._unit = None
            self._unit_points = {}
            return
        unit = (point.record_index, point.flush_index)
        if unit != self._unit:
            self._unit = unit
            self._unit_points = {}
        self._unit_points[point.pipe_point] = point.records
        self._state = self._state_for(point)

    @staticmethod
    def _state_for(point: TracePoint) -> SessionState:
        if point.is_flush:
            return AtFlush(point.flush_index, point.pipe_point)
        return AtPipePoint(point.record_index, point.pipe_point)

    def _at_breakpoint(self) -> bool:
        pipe_point = getattr(self._state, "pipe_point_index", None)
        return pipe_point is not None and pipe_point in self.breakpoints

    def _check_position(self, position: int) -> None:
        if not 0 <= position <= self.stage_count:
            raise SessionError(
                f"pipe point {position} out of range 0..{self.stage_count}"
            )


def step_all(session: DebugSession) -> List[SessionSnapshot]:
    """Step a fresh session to the end, returning every snapshot along the way."""
    snapshots = [session.initialize()]
    while not snapshots[-1].is_finished:
        snapshots.append(session.step())
    return snapshots


__all__ = [
    "NotStarted",
    "AtPipePoint",
    "AtFlush",
    "Finished",
    "SessionState",
    "Watch",
    "WatchValue",
    "SessionSnapshot",
    "DebugSession",
    "step_all",
]
