"""
Pipeline DSL - commands, pipeline model and parser.

A pipeline definition reads like a CMS Pipelines script::

    PIPE CONSOLE
       | FILTER 18,10 = "SALES"
       | SELECT 0,8,0; 28,8,8
       | CONSOLE
    ?

Lines holding only ``?`` separate chained pipelines.
"""

from .results import (
    Err,
    ListF,
    Ok,
    PipelineError,
    PipelineResult,
    Result,
    pipeline_err,
    pipeline_ok,
)
from .commands import *  # noqa: F401,F403
from .commands import __all__ as _command_names
from .core import Pipeline, PipelineSpec
from .parser import (
    ParseResult,
    PipelineParser,
    parse_pipeline,
    parse_pipeline_file,
    parse_pipelines,
)

__all__ = list(_command_names) + [
    "Pipeline",
    "PipelineSpec",
    "PipelineParser",
    "ParseResult",
    "parse_pipelines",
    "parse_pipeline",
    "parse_pipeline_file",
    "Result",
    "Ok",
    "Err",
    "ListF",
    "PipelineError",
    "PipelineResult",
    "pipeline_ok",
    "pipeline_err",
]
