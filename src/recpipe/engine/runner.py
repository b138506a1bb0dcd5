"""
Multi-pipeline runner.

Runs every pipeline of a PipelineSpec in order, chaining them:

- a ``< path`` source reads through the caller's RecordSource;
- a CONSOLE source receives the previous pipeline's output when the
  previous sink was CONSOLE, and the caller's console input otherwise
  (including for the first pipeline);
- a ``> path`` sink hands its output to the caller's RecordSink.

The value of a run is the output of the last pipeline.

``run_batch`` and ``run_rat`` return a Result: ``Ok(records)`` or
``Err(PipelineError)``. ``execute_pipeline`` is the text-in, text-out
convenience entry used by the CLI.
"""

import logging
import time
from typing import Callable, Iterable, List, Optional, Tuple, Type, Union

from ..dsl.results import PipelineResult, pipeline_err, pipeline_ok
from ..dsl.commands import FileRead, FileWrite
from ..dsl.core import Pipeline, PipelineSpec
from ..dsl.parser import parse_pipelines
from ..record import Record, records_from_text, records_to_text
from ..recpipe_exceptions import RecPipeError
from ..stages import DirectoryFileResolver, RecordSink, RecordSource
from .batch import BatchExecutor
from .rat import RecordAtATimeExecutor

logger = logging.getLogger(__name__)

SpecLike = Union[PipelineSpec, Pipeline, str]
Executor = Union[Type[BatchExecutor], Type[RecordAtATimeExecutor]]

EXECUTORS = {
    BatchExecutor.name: BatchExecutor,
    RecordAtATimeExecutor.name: RecordAtATimeExecutor,
}


def coerce_spec(spec: SpecLike) -> PipelineSpec:
    """Accept DSL text, a single Pipeline or a PipelineSpec."""
    if isinstance(spec, PipelineSpec):
        return spec
    if isinstance(spec, Pipeline):
        return PipelineSpec.single(spec)
    if isinstance(spec, str):
        return parse_pipelines(spec)
    raise TypeError(f"Expected PipelineSpec, Pipeline or DSL text, got {type(spec).__name__}")


class SpecRunner:
    """
    Runs the pipelines of one specification in order.

    ::: This is-in-layer Execution-Layer.
    ::: This is a coordinator.
    ::: This is-in-process Main-Process.
    ::: This is stateful.

    ``current`` is the index of the pipeline being run, kept so failures
    can say which pipeline they came from.
    """

    def __init__(
        self,
        spec: PipelineSpec,
        executor: Executor = BatchExecutor,
        sources: Optional[RecordSource] = None,
        sinks: Optional[RecordSink] = None,
    ):
        self.spec = spec
        self.executor = executor
        resolver = None
        if sources is None or sinks is None:
            resolver = DirectoryFileResolver()
        self.sources: RecordSource = sources if sources is not None else resolver
        self.sinks: RecordSink = sinks if sinks is not None else resolver
        self.current = 0

    def input_for(self, index: int, console_input: Iterable[Record]) -> List[Record]:
        """Compute what pipeline ``index`` reads, running the pipelines before it."""
        if not 0 <= index < len(self.spec):
            raise IndexError(f"pipeline index {index} out of range (spec has {len(self.spec)})")
        console = list(console_input)
        previous: Optional[Tuple[Pipeline, List[Record]]] = None
        for k in range(index):
            previous = (self.spec[k], self._run_one(k, console, previous))
        return self._read_source(self.spec[index], console, previous)

    def run(self, console_input: Iterable[Record]) -> List[Record]:
        console = list(console_input)
        previous: Optional[Tuple[Pipeline, List[Record]]] = None
        for k in range(len(self.spec)):
            previous = (self.spec[k], self._run_one(k, console, previous))
        return previous[1]

    def _run_one(
        self,
        index: int,
        console: List[Record],
        previous: Optional[Tuple[Pipeline, List[Record]]],
    ) -> List[Record]:
        self.current = index
        pipeline = self.spec[index]
        records = self._read_source(pipeline, console, previous)
        output = self.executor(pipeline).run(records)
        if isinstance(pipeline.sink, FileWrite):
            self.sinks.write(pipeline.sink.path, output)
        logger.debug(
            "Pipeline %d (%s): %d -> %d records",
            index + 1, pipeline.describe(), len(records), len(output),
        )
        return output

    def _read_source(
        self,
        pipeline: Pipeline,
        console: List[Record],
        previous: Optional[Tuple[Pipeline, List[Record]]],
    ) -> List[Record]:
        if isinstance(pipeline.source, FileRead):
            return self.sources.read(pipeline.source.path)
        if previous is not None and previous[0].writes_console:
            return list(previous[1])
        return list(console)


def _run(
    executor: Executor,
    input_records: Iterable[Record],
    spec: SpecLike,
    sources: Optional[RecordSource],
    sinks: Optional[RecordSink],
) -> PipelineResult[List[Record]]:
    started = time.time()
    try:
        parsed = coerce_spec(spec)
    except RecPipeError as e:
        logger.error("Pipeline text rejected: %s", e)
        return pipeline_err("parse", "Invalid pipeline definition", e)

    runner = SpecRunner(parsed, executor, sources, sinks)
    records = list(input_records)
    try:
        output = runner.run(records)
    except RecPipeError as e:
        logger.error("Pipeline %d failed (%s executor): %s", runner.current + 1, executor.name, e)
        return pipeline_err(f"pipeline {runner.current + 1}", "Execution failed", e)

    logger.info(
        "Processed %d -> %d records (%s, %d pipeline(s), %.1f ms)",
        len(records), len(output), executor.name, len(parsed), (time.time() - started) * 1000,
    )
    return pipeline_ok(output)


def run_batch(
    input_records: Iterable[Record],
    spec: SpecLike,
    *,
    sources: Optional[RecordSource] = None,
    sinks: Optional[RecordSink] = None,
) -> PipelineResult[List[Record]]:
    """
    Run a specification with the batch executor.

    Args:
        input_records: Console input for the first pipeline
        spec: PipelineSpec, single Pipeline, or DSL text
        sources: Resolver for ``< path`` sources (default: files under cwd)
        sinks: Resolver for ``> path`` sinks (default: files under cwd)

    Returns:
        Ok(output records of the last pipeline) or Err(PipelineError)
    """
    return _run(BatchExecutor, input_records, spec, sources, sinks)


def run_rat(
    input_records: Iterable[Record],
    spec: SpecLike,
    *,
    sources: Optional[RecordSource] = None,
    sinks: Optional[RecordSink] = None,
) -> PipelineResult[List[Record]]:
    """Run a specification with the record-at-a-time executor."""
    return _run(RecordAtATimeExecutor, input_records, spec, sources, sinks)


def run_with(mode: str) -> Callable[..., PipelineResult[List[Record]]]:
    """Look up ``run_batch`` or ``run_rat`` by executor name."""
    if mode not in EXECUTORS:
        raise ValueError(f"Unknown executor {mode!r}; expected one of {sorted(EXECUTORS)}")
    return run_batch if mode == BatchExecutor.name else run_rat


def execute_pipeline(
    input_text: str,
    pipeline_text: str,
    mode: str = "batch",
    *,
    sources: Optional[RecordSource] = None,
    sinks: Optional[RecordSink] = None,
) -> Tuple[str, int, int]:
    """
    Run DSL text over newline-separated input text.

    Returns:
        (output_text, input_count, output_count)

    Raises:
        RecPipeError: on parse, record format or execution failure
    """
    runner = run_with(mode)
    records = records_from_text(input_text)
    output = runner(records, pipeline_text, sources=sources, sinks=sinks).unwrap()
    return records_to_text(output), len(records), len(output)


__all__ = [
    "SpecRunner",
    "coerce_spec",
    "run_batch",
    "run_rat",
    "run_with",
    "execute_pipeline",
    "EXECUTORS",
]
