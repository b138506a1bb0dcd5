"""
Pipeline Transformer - parse tree to Command transformer.

Converts the Lark tree for one DSL line into Command objects, validating
every statically known column range against the 80-byte record width.
"""

from typing import List, Optional, Tuple

from lark import Token, Transformer, v_args

from ..record import RECORD_WIDTH
from ..recpipe_exceptions import ParseError
from .commands import (
    Change,
    Command,
    Console,
    Count,
    Duplicate,
    FieldRange,
    FileRead,
    FileWrite,
    Filter,
    Hole,
    Literal,
    Locate,
    Lower,
    NLocate,
    Reverse,
    Select,
    SelectField,
    Skip,
    Take,
    Upper,
)


def unquote(token: str) -> str:
    """Strip the surrounding double quotes from a QUOTED token."""
    return token[1:-1]


def split_delimited(token: str) -> List[str]:
    """Split a delimited pattern (``/a/`` or ``/a/b/``) into its parts."""
    delim = token[0]
    return token[1:-1].split(delim)


@v_args(meta=True)
class PipelineTransformer(Transformer):
    """
    Transforms the parse tree of one DSL line into Commands.

    ::: This is-in-layer Domain-Specific-Language-Layer.
    ::: This is a abstract-syntax-tree-transformer.
    ::: This is-part-of `recpipe.dsl`.
    ::: This is-in-process Main-Process.
    ::: This is stateless.

    ``transform`` returns ``(commands, opened, terminated)``.
    """

    def __init__(self, source: str, line_number: int):
        super().__init__()
        self.source = source
        self.line_number = line_number

    # ============================================================
    # HELPERS
    # ============================================================

    def _text(self, meta, default: str) -> str:
        if getattr(meta, "empty", True):
            return default
        return self.source[meta.start_pos:meta.end_pos].strip()

    def _column(self, meta, token: Optional[Token] = None) -> int:
        if token is not None and getattr(token, "column", None):
            return token.column
        if not getattr(meta, "empty", True):
            return meta.column
        return 1

    def _error(self, message: str, column: int, suggestion: Optional[str] = None) -> ParseError:
        return ParseError(
            message,
            line=self.line_number,
            column=column,
            context=self.source,
            suggestion=suggestion,
        )

    def _check_range(self, offset: int, length: int, column: int, what: str = "field") -> None:
        """Enforce offset >= 0, length > 0, offset + length <= 80."""
        if offset < 0:
            raise self._error(f"{what} offset {offset} is negative", column)
        if length <= 0:
            raise self._error(f"{what} length must be positive, got {length}", column)
        if offset + length > RECORD_WIDTH:
            raise self._error(
                f"{what} {offset},{length} extends past column {RECORD_WIDTH} "
                f"(offset + length = {offset + length})",
                column,
                suggestion=f"offset + length must not exceed {RECORD_WIDTH}",
            )

    # ============================================================
    # LINE
    # ============================================================

    def line(self, meta, children) -> Tuple[List[Command], bool, bool]:
        opened = False
        terminated = False
        commands: List[Command] = []
        for child in children:
            if isinstance(child, Token):
                if child.type == "PIPE_KW":
                    opened = True
                elif child.type == "END":
                    terminated = True
            else:
                commands.append(child)
        return commands, opened, terminated

    # ============================================================
    # BOUNDARY STAGES
    # ============================================================

    def console(self, meta, children) -> Console:
        return Console(line=self.line_number, text=self._text(meta, "CONSOLE"))

    def file_read(self, meta, children) -> FileRead:
        path = str(children[0])
        return FileRead(path=path, line=self.line_number, text=self._text(meta, f"< {path}"))

    def file_write(self, meta, children) -> FileWrite:
        path = str(children[0])
        return FileWrite(path=path, line=self.line_number, text=self._text(meta, f"> {path}"))

    # ============================================================
    # SELECTION
    # ============================================================

    def field_range(self, meta, children) -> FieldRange:
        offset_tok, length_tok = children
        offset, length = int(offset_tok), int(length_tok)
        self._check_range(offset, length, self._column(meta, offset_tok))
        return FieldRange(offset, length)

    def filter(self, meta, children) -> Filter:
        rng, op, quoted = children
        return Filter(
            offset=rng.offset,
            length=rng.length,
            value=unquote(str(quoted)),
            negate=str(op) == "!=",
            line=self.line_number,
            text=self._text(meta, "FILTER"),
        )

    def _locate_args(self, children) -> Tuple[str, Optional[FieldRange]]:
        if len(children) == 2:
            rng, pattern = children
        else:
            rng, pattern = None, children[0]
        return split_delimited(str(pattern))[0], rng

    def locate(self, meta, children) -> Locate:
        pattern, rng = self._locate_args(children)
        return Locate(pattern=pattern, field_range=rng, line=self.line_number,
                      text=self._text(meta, "LOCATE"))

    def nlocate(self, meta, children) -> NLocate:
        pattern, rng = self._locate_args(children)
        return NLocate(pattern=pattern, field_range=rng, line=self.line_number,
                       text=self._text(meta, "NLOCATE"))

    def take(self, meta, children) -> Take:
        return Take(count=int(children[0]), line=self.line_number,
                    text=self._text(meta, "TAKE"))

    def skip(self, meta, children) -> Skip:
        return Skip(count=int(children[0]), line=self.line_number,
                    text=self._text(meta, "SKIP"))

    def hole(self, meta, children) -> Hole:
        return Hole(line=self.line_number, text=self._text(meta, "HOLE"))

    # ============================================================
    # TRANSFORMS
    # ============================================================

    def select_field(self, meta, children) -> Tuple[int, int, Optional[int], int]:
        values = [int(tok) for tok in children]
        dest = values[2] if len(values) == 3 else None
        return values[0], values[1], dest, self._column(meta, children[0])

    def select(self, meta, children) -> Select:
        fields = []
        cursor = 0
        for src, length, dest, column in children:
            self._check_range(src, length, column, "source field")
            if dest is None:
                dest = cursor
            self._check_range(dest, length, column, "destination field")
            fields.append(SelectField(src, length, dest))
            cursor = dest + length
        return Select(fields=tuple(fields), line=self.line_number,
                      text=self._text(meta, "SELECT"))

    def change(self, meta, children) -> Change:
        token = children[0]
        old, new = split_delimited(str(token))
        if not old:
            raise self._error(
                "CHANGE needs a non-empty search string",
                self._column(meta, token),
                suggestion="Usage: CHANGE /old/new/",
            )
        if not (old + new).isascii():
            raise self._error("CHANGE text must be ASCII", self._column(meta, token))
        return Change(old=old, new=new, line=self.line_number,
                      text=self._text(meta, "CHANGE"))

    def upper(self, meta, children) -> Upper:
        return Upper(line=self.line_number, text=self._text(meta, "UPPER"))

    def lower(self, meta, children) -> Lower:
        return Lower(line=self.line_number, text=self._text(meta, "LOWER"))

    def reverse(self, meta, children) -> Reverse:
        return Reverse(line=self.line_number, text=self._text(meta, "REVERSE"))

    def duplicate(self, meta, children) -> Duplicate:
        copies = int(children[0]) if children else 2
        if copies < 2:
            raise self._error(
                f"DUPLICATE needs at least 2 copies, got {copies}",
                self._column(meta, children[0]),
                suggestion="Usage: DUPLICATE [k] with k >= 2",
            )
        return Duplicate(copies=copies, line=self.line_number,
                         text=self._text(meta, "DUPLICATE"))

    # ============================================================
    # ACCUMULATORS
    # ============================================================

    def count(self, meta, children) -> Count:
        return Count(line=self.line_number, text=self._text(meta, "COUNT"))

    def literal(self, meta, children) -> Literal:
        value = unquote(str(children[0])) if children else ""
        if not value.isascii():
            raise self._error("LITERAL text must be ASCII", self._column(meta))
        return Literal(value=value, line=self.line_number,
                       text=self._text(meta, "LITERAL"))


__all__ = ["PipelineTransformer", "unquote", "split_delimited"]
