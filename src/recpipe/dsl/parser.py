"""
Pipeline Parser - Lark-based parser for the record pipeline DSL.

Turns DSL text into a PipelineSpec. The text is split into source lines;
each non-blank, non-comment line is parsed with the LALR grammar in
``grammar.lark`` and converted into Command objects by PipelineTransformer.
Lines holding only ``?`` (or a command line ending in ``?``) close the
current pipeline.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

from lark import Lark
from lark.exceptions import (
    UnexpectedCharacters,
    UnexpectedEOF,
    UnexpectedInput,
    UnexpectedToken,
    VisitError,
)

from ..recpipe_exceptions import ParseError
from .commands import COMMAND_KEYWORDS, Command, Console, FileRead, FileWrite
from .core import Pipeline, PipelineSpec
from .transformer import PipelineTransformer

logger = logging.getLogger(__name__)

TERMINATOR = "?"

# Usage hints shown when a command's arguments do not parse.
USAGE = {
    "CONSOLE": "CONSOLE",
    "<": "< path",
    ">": "> path",
    "FILTER": 'FILTER offset,length = "value"  or  FILTER offset,length != "value"',
    "LOCATE": "LOCATE [offset,length] /text/",
    "NLOCATE": "NLOCATE [offset,length] /text/",
    "SELECT": "SELECT src,len[,dest]; src,len[,dest]; ...",
    "CHANGE": "CHANGE /old/new/",
    "UPPER": "UPPER",
    "LOWER": "LOWER",
    "REVERSE": "REVERSE",
    "TAKE": "TAKE n",
    "SKIP": "SKIP n",
    "DUPLICATE": "DUPLICATE [n]",
    "COUNT": "COUNT",
    "LITERAL": 'LITERAL "text"',
    "HOLE": "HOLE",
}

_WORD = re.compile(r"[A-Za-z][A-Za-z0-9_]*")
_PATTERN_COMMANDS = ("LOCATE", "NLOCATE", "CHANGE")


# ============================================================
# RESULT TYPES
# ============================================================

@dataclass
class ParseResult:
    """Result of parsing pipeline DSL text."""
    success: bool
    spec: Optional[PipelineSpec] = None
    errors: List[ParseError] = field(default_factory=list)
    source: Optional[str] = None

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def __bool__(self) -> bool:
        return self.success


# ============================================================
# PARSER
# ============================================================

class PipelineParser:
    """
    Parser for record pipeline definitions.

    ::: This is-in-layer Domain-Specific-Language-Layer.
    ::: This is a parser.
    ::: This depends-on lark.
    ::: This is-in-process Main-Process.
    ::: This is stateless.

    Usage:
        parser = PipelineParser()
        result = parser.parse(text)
        if result.success:
            for pipeline in result.spec:
                ...
        else:
            for error in result.errors:
                print(error)
    """

    _instance: Optional["PipelineParser"] = None
    _parser: Optional[Lark] = None

    def __new__(cls) -> "PipelineParser":
        """Singleton pattern for parser reuse."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize the parser with the grammar file."""
        if PipelineParser._parser is not None:
            return

        grammar_path = Path(__file__).parent / "grammar.lark"

        if not grammar_path.exists():
            raise FileNotFoundError(
                f"Grammar file not found: {grammar_path}\n"
                "Ensure grammar.lark is in the same directory as parser.py"
            )

        with open(grammar_path, "r", encoding="utf-8") as f:
            grammar = f.read()

        PipelineParser._parser = Lark(
            grammar,
            start="line",
            parser="lalr",
            propagate_positions=True,
            maybe_placeholders=False,
        )

    @property
    def parser(self) -> Lark:
        """Get the Lark parser instance."""
        if PipelineParser._parser is None:
            raise RuntimeError("Parser not initialized")
        return PipelineParser._parser

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse(self, source: str) -> ParseResult:
        """
        Parse pipeline DSL text.

        Args:
            source: DSL text, one or more pipelines separated by ``?``

        Returns:
            ParseResult holding the PipelineSpec or the first error
        """
        try:
            spec = self._parse_spec(source)
        except ParseError as e:
            logger.debug("Pipeline parse failed: %s", e)
            return ParseResult(success=False, errors=[e], source=source)
        logger.debug("Parsed %d pipeline(s)", len(spec))
        return ParseResult(success=True, spec=spec, source=source)

    def parse_file(self, path: Union[str, Path]) -> ParseResult:
        """
        Parse a pipeline (.pipe) file.

        Args:
            path: Path to the file

        Returns:
            ParseResult holding the PipelineSpec or errors
        """
        path = Path(path)

        if not path.exists():
            return ParseResult(
                success=False,
                errors=[ParseError(f"File not found: {path}")],
            )

        try:
            source = path.read_text(encoding="utf-8")
        except OSError as e:
            return ParseResult(
                success=False,
                errors=[ParseError(f"Could not read file: {e}")],
            )

        return self.parse(source)

    def parse_line(self, text: str, line_number: int = 1) -> Tuple[List[Command], bool, bool]:
        """
        Parse one DSL line.

        Returns:
            (commands, opened, terminated): the commands on the line, whether
            the line began with the PIPE keyword, and whether it ended with
            the pipeline terminator
        """
        try:
            tree = self.parser.parse(text)
        except UnexpectedInput as e:
            raise self._convert_error(e, text, line_number) from None

        transformer = PipelineTransformer(text, line_number)
        try:
            return transformer.transform(tree)
        except VisitError as e:
            if isinstance(e.orig_exc, ParseError):
                raise e.orig_exc from None
            raise ParseError(
                f"Unexpected error: {type(e.orig_exc).__name__}: {e.orig_exc}",
                line=line_number,
                context=text,
            ) from e

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def _parse_spec(self, source: str) -> PipelineSpec:
        if not source or not source.strip():
            raise ParseError(
                "Empty pipeline text",
                suggestion="Provide at least one stage, e.g. PIPE CONSOLE | CONSOLE",
            )

        pipelines: List[Pipeline] = []
        pending: List[Command] = []
        opened = False

        for number, raw in enumerate(source.splitlines(), start=1):
            stripped = raw.strip()
            if not stripped or stripped.startswith("#"):
                continue

            if stripped == TERMINATOR:
                if pending or opened:
                    pipelines.append(self._assemble(pending))
                pending, opened = [], False
                continue

            if stripped.upper() == "PIPE":
                opened = True
                continue

            commands, line_opened, terminated = self.parse_line(stripped, number)
            opened = opened or line_opened
            pending.extend(commands)
            if terminated:
                pipelines.append(self._assemble(pending))
                pending, opened = [], False

        if pending or opened:
            pipelines.append(self._assemble(pending))

        if not pipelines:
            raise ParseError(
                "No pipeline stages found",
                suggestion="Provide at least one stage, e.g. PIPE CONSOLE | CONSOLE",
            )

        return PipelineSpec.from_pipelines(pipelines)

    def _assemble(self, commands: List[Command]) -> Pipeline:
        """Split a command list into source, transform stages and sink."""
        commands = list(commands)
        source: Command = Console()
        sink: Command = Console()

        if commands and commands[0].is_source:
            source = commands.pop(0)
        if commands and commands[-1].is_sink:
            sink = commands.pop()

        for cmd in commands:
            if isinstance(cmd, FileRead):
                raise ParseError(
                    "'<' reads a file and is only valid as the first stage of a pipeline",
                    line=cmd.line,
                    context=cmd.text,
                )
            if isinstance(cmd, FileWrite):
                raise ParseError(
                    "'>' writes a file and is only valid as the last stage of a pipeline",
                    line=cmd.line,
                    context=cmd.text,
                )

        return Pipeline(stages=tuple(commands), source=source, sink=sink)

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------

    def _convert_error(self, e: UnexpectedInput, text: str, line_number: int) -> ParseError:
        column = getattr(e, "column", None)
        if not isinstance(column, int) or column < 1:
            column = len(text) + 1
        if isinstance(e, UnexpectedEOF) or (
            isinstance(e, UnexpectedToken) and e.token.type == "$END"
        ):
            column = len(text) + 1

        prefix = text[:column - 1].rstrip()
        rest = text[column - 1:]
        word_match = _WORD.match(rest)
        keyword = self._command_at(prefix)

        # A word where a command should start, which is not a command
        if word_match and self._is_command_position(prefix):
            word = word_match.group(0)
            if word.upper() not in COMMAND_KEYWORDS:
                return ParseError(
                    f"Unknown command: {word}",
                    line=line_number,
                    column=column,
                    context=text,
                    suggestion="Known commands: " + ", ".join(sorted(
                        k for k in COMMAND_KEYWORDS if k.isalpha()
                    )),
                )

        usage = USAGE.get(keyword) if keyword else None
        suggestion = f"Usage: {usage}" if usage else None

        if rest.startswith('"') and keyword in ("FILTER", "LITERAL"):
            return ParseError(
                "Unterminated quoted string",
                line=line_number,
                column=column,
                context=text,
                suggestion=suggestion,
            )

        if keyword in _PATTERN_COMMANDS and rest and not rest[0].isalnum() and not rest[0].isspace():
            return ParseError(
                f"Malformed or unterminated {keyword} pattern starting with {rest[0]!r}",
                line=line_number,
                column=column,
                context=text,
                suggestion=suggestion,
            )

        if isinstance(e, UnexpectedEOF) or (
            isinstance(e, UnexpectedToken) and e.token.type == "$END"
        ):
            message = f"Missing arguments for {keyword}" if keyword else "Unexpected end of line"
        elif isinstance(e, UnexpectedCharacters):
            message = f"Unexpected character {e.char!r}"
            if keyword:
                message += f" in {keyword}"
        elif isinstance(e, UnexpectedToken):
            message = f"Unexpected input {str(e.token)!r}"
            if keyword:
                message += f" in {keyword}"
        else:
            message = str(e)

        return ParseError(
            message,
            line=line_number,
            column=column,
            context=text,
            suggestion=suggestion,
        )

    @staticmethod
    def _is_command_position(prefix: str) -> bool:
        return (
            not prefix
            or prefix.endswith("|")
            or prefix.upper() == "PIPE"
        )

    @staticmethod
    def _command_at(prefix: str) -> Optional[str]:
        """Find the command keyword governing the text just before an error."""
        segment = prefix.rsplit("|", 1)[-1].strip()
        if segment.upper().startswith("PIPE "):
            segment = segment[5:].strip()
        if segment[:1] in ("<", ">"):
            return segment[0]
        word = _WORD.match(segment)
        if word and word.group(0).upper() in COMMAND_KEYWORDS:
            return word.group(0).upper()
        return None


# ============================================================
# CONVENIENCE FUNCTIONS
# ============================================================

def parse_pipelines(source: str) -> PipelineSpec:
    """
    Parse DSL text into a PipelineSpec.

    Raises:
        ParseError: on the first malformed line
    """
    result = PipelineParser().parse(source)
    if not result.success:
        raise result.errors[0]
    return result.spec


def parse_pipeline(source: str) -> Pipeline:
    """Parse DSL text that must hold exactly one pipeline."""
    spec = parse_pipelines(source)
    if len(spec) != 1:
        raise ParseError(
            f"Expected a single pipeline, found {len(spec)}",
            suggestion="Remove the '?' terminators or use parse_pipelines()",
        )
    return spec[0]


def parse_pipeline_file(path: Union[str, Path]) -> PipelineSpec:
    """Parse a .pipe file, raising ParseError on failure."""
    result = PipelineParser().parse_file(path)
    if not result.success:
        raise result.errors[0]
    return result.spec


__all__ = [
    "PipelineParser",
    "ParseResult",
    "parse_pipelines",
    "parse_pipeline",
    "parse_pipeline_file",
    "TERMINATOR",
]
