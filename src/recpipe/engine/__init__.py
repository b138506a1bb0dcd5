"""
Pipeline Engine - executors, multi-pipeline runner and stepping session.

Both executors produce identical output for every pipeline and input:

- BatchExecutor: one stage at a time over the whole record sequence
- RecordAtATimeExecutor: one input record at a time through every stage

DebugSession exposes the RAT walk one pipe point at a time.
"""

from .batch import BatchExecutor
from .rat import RatCursor, RecordAtATimeExecutor, TracePoint
from .runner import (
    EXECUTORS,
    SpecRunner,
    coerce_spec,
    execute_pipeline,
    run_batch,
    run_rat,
    run_with,
)
from .stepping import (
    AtFlush,
    AtPipePoint,
    DebugSession,
    Finished,
    NotStarted,
    SessionSnapshot,
    SessionState,
    Watch,
    WatchValue,
    step_all,
)

__all__ = [
    "BatchExecutor",
    "RecordAtATimeExecutor",
    "RatCursor",
    "TracePoint",
    "SpecRunner",
    "EXECUTORS",
    "coerce_spec",
    "run_batch",
    "run_rat",
    "run_with",
    "execute_pipeline",
    "DebugSession",
    "SessionSnapshot",
    "SessionState",
    "NotStarted",
    "AtPipePoint",
    "AtFlush",
    "Finished",
    "Watch",
    "WatchValue",
    "step_all",
]
