"""
Batch executor.

Runs the whole record sequence through stage 1, the full result through
stage 2, and so on. Once every stage has seen every record, each stage's
end-of-input output is threaded through the stages after it, in
declaration order, and appended to the result.

Each stage pass is a ``ListF.bind`` of the stage's ``step``.
"""

import logging
from typing import Iterable, List, Sequence, Union

from ..dsl.results import ListF
from ..dsl.commands import Command
from ..dsl.core import Pipeline
from ..record import Record
from ..stages import Stage, build_stages, invoke_flush, invoke_step

logger = logging.getLogger(__name__)


def stage_commands(pipeline: Union[Pipeline, Sequence[Command]]) -> List[Command]:
    if isinstance(pipeline, Pipeline):
        return list(pipeline.stages)
    return list(pipeline)


class BatchExecutor:
    """
    Stage-at-a-time evaluation of one pipeline.

    ::: This is-in-layer Execution-Layer.
    ::: This is a executor.
    ::: This is-in-process Main-Process.
    ::: This is stateless.

    Stages are rebuilt from their commands on every ``run``, so one
    executor can run many inputs without sharing counters between them.
    """

    name = "batch"

    def __init__(self, pipeline: Union[Pipeline, Sequence[Command]]):
        self.commands = stage_commands(pipeline)

    def run(self, records: Iterable[Record]) -> List[Record]:
        stages = build_stages(self.commands)

        inputs = ListF.from_iter(records)
        current = inputs
        for index, stage in enumerate(stages):
            current = self._pass(index, stage, current)
        output = current.to_list()

        for index, stage in enumerate(stages):
            emitted = ListF.from_iter(invoke_flush(index, stage))
            if not emitted:
                continue
            for downstream in range(index + 1, len(stages)):
                emitted = self._pass(downstream, stages[downstream], emitted)
            output.extend(emitted)

        logger.debug("Batch run over %d stage(s): %d -> %d records",
                     len(stages), len(inputs), len(output))
        return output

    @staticmethod
    def _pass(index: int, stage: Stage, records: ListF) -> ListF:
        return records.bind(lambda record: invoke_step(index, stage, record))


__all__ = ["BatchExecutor"]
