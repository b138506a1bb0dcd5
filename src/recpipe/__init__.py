"""
recpipe - fixed-width record pipelines

Parses a CMS Pipelines style DSL into chained pipelines of record stages
and runs them over 80-byte records, either a stage at a time (batch) or a
record at a time (RAT), with a stepping debugger over the RAT walk.
"""

__version__ = "0.1.0"

from .record import RECORD_WIDTH, Record, records_from_text, records_to_text
from .recpipe_exceptions import (
    FieldRangeError,
    ParseError,
    RecordFormatError,
    RecordIOError,
    RecPipeError,
    SessionError,
    StageError,
)
from .dsl import Pipeline, PipelineSpec, parse_pipeline, parse_pipelines
from .engine import (
    BatchExecutor,
    DebugSession,
    RecordAtATimeExecutor,
    SessionSnapshot,
    execute_pipeline,
    run_batch,
    run_rat,
)
from .stages import DirectoryFileResolver, MemoryFiles, RecordSink, RecordSource

__all__ = [
    "__version__",
    "RECORD_WIDTH",
    "Record",
    "records_from_text",
    "records_to_text",
    "RecPipeError",
    "ParseError",
    "RecordFormatError",
    "FieldRangeError",
    "StageError",
    "RecordIOError",
    "SessionError",
    "Pipeline",
    "PipelineSpec",
    "parse_pipeline",
    "parse_pipelines",
    "BatchExecutor",
    "RecordAtATimeExecutor",
    "run_batch",
    "run_rat",
    "execute_pipeline",
    "DebugSession",
    "SessionSnapshot",
    "RecordSource",
    "RecordSink",
    "DirectoryFileResolver",
    "MemoryFiles",
]
