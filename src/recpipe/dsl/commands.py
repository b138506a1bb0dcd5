"""
Pipeline Commands - the closed set of stage variants produced by the parser.

Each command is an immutable value carrying only the parameters its stage
needs, plus the DSL line it came from so runtime errors can point back at
the source. Commands hold no runtime state; ``recpipe.stages.build_stage``
binds a command to a fresh stage instance for every run.

Cardinality by variant:

- 1:1        CONSOLE (passthrough), SELECT, CHANGE, UPPER, LOWER, REVERSE
- 1:0-or-1   FILTER, LOCATE, NLOCATE, TAKE, SKIP
- 1:N        DUPLICATE
- N:1        COUNT (emits on end of input)
- 0:1, 1:1   LITERAL
- 1:0        HOLE
- boundary   CONSOLE, < file (sources); CONSOLE, > file (sinks)
"""

from dataclasses import dataclass, field
from typing import ClassVar, Optional, Tuple


@dataclass(frozen=True)
class FieldRange:
    """A zero-based column range inside a record.

    ::: This is-in-layer Domain-Specific-Language-Layer.
    ::: This is a value-object.
    """
    offset: int
    length: int

    def __str__(self) -> str:
        return f"{self.offset},{self.length}"


@dataclass(frozen=True)
class SelectField:
    """One (source offset, length, destination offset) copy for SELECT.

    ::: This is-in-layer Domain-Specific-Language-Layer.
    ::: This is a value-object.
    """
    source: int
    length: int
    dest: int

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.source, self.length, self.dest)


@dataclass(frozen=True)
class Command:
    """
    Base class for every pipeline command.

    ::: This is-in-layer Domain-Specific-Language-Layer.
    ::: This is a value-object.
    ::: This is-in-process Main-Process.
    ::: This is stateless.

    ``line`` is the 1-based DSL line number and ``text`` the stage text as
    written; both are excluded from equality so that commands parsed from
    differently formatted sources compare equal.
    """
    keyword: ClassVar[str] = ""
    is_source: ClassVar[bool] = False
    is_sink: ClassVar[bool] = False

    line: int = field(default=0, compare=False, kw_only=True)
    text: str = field(default="", compare=False, kw_only=True)

    def describe(self) -> str:
        return self.text or self.keyword


# ============================================================
# BOUNDARY COMMANDS
# ============================================================

@dataclass(frozen=True)
class Console(Command):
    """CONSOLE: reads console input at the head, writes console output at the tail."""
    keyword: ClassVar[str] = "CONSOLE"
    is_source: ClassVar[bool] = True
    is_sink: ClassVar[bool] = True


@dataclass(frozen=True)
class FileRead(Command):
    """``< path``: reads records from a file; only valid at the head."""
    keyword: ClassVar[str] = "<"
    is_source: ClassVar[bool] = True
    path: str = ""


@dataclass(frozen=True)
class FileWrite(Command):
    """``> path``: writes records to a file; only valid at the tail."""
    keyword: ClassVar[str] = ">"
    is_sink: ClassVar[bool] = True
    path: str = ""


# ============================================================
# SELECTION COMMANDS
# ============================================================

@dataclass(frozen=True)
class Filter(Command):
    """FILTER o,l = "x" keeps records whose field equals x; ``!=`` drops them."""
    keyword: ClassVar[str] = "FILTER"
    offset: int = 0
    length: int = 0
    value: str = ""
    negate: bool = False


@dataclass(frozen=True)
class Locate(Command):
    """LOCATE [o,l] /x/ keeps records containing x (anywhere, or in the field)."""
    keyword: ClassVar[str] = "LOCATE"
    pattern: str = ""
    field_range: Optional[FieldRange] = None


@dataclass(frozen=True)
class NLocate(Command):
    """NLOCATE [o,l] /x/ keeps records not containing x."""
    keyword: ClassVar[str] = "NLOCATE"
    pattern: str = ""
    field_range: Optional[FieldRange] = None


@dataclass(frozen=True)
class Take(Command):
    keyword: ClassVar[str] = "TAKE"
    count: int = 0


@dataclass(frozen=True)
class Skip(Command):
    keyword: ClassVar[str] = "SKIP"
    count: int = 0


@dataclass(frozen=True)
class Hole(Command):
    keyword: ClassVar[str] = "HOLE"


# ============================================================
# TRANSFORM COMMANDS
# ============================================================

@dataclass(frozen=True)
class Select(Command):
    """SELECT s,l[,d]; ... rebuilds the record from field copies."""
    keyword: ClassVar[str] = "SELECT"
    fields: Tuple[SelectField, ...] = ()


@dataclass(frozen=True)
class Change(Command):
    """CHANGE /old/new/ replaces every occurrence of old with new."""
    keyword: ClassVar[str] = "CHANGE"
    old: str = ""
    new: str = ""


@dataclass(frozen=True)
class Upper(Command):
    keyword: ClassVar[str] = "UPPER"


@dataclass(frozen=True)
class Lower(Command):
    keyword: ClassVar[str] = "LOWER"


@dataclass(frozen=True)
class Reverse(Command):
    keyword: ClassVar[str] = "REVERSE"


@dataclass(frozen=True)
class Duplicate(Command):
    keyword: ClassVar[str] = "DUPLICATE"
    copies: int = 2


# ============================================================
# ACCUMULATING COMMANDS
# ============================================================

@dataclass(frozen=True)
class Count(Command):
    keyword: ClassVar[str] = "COUNT"


@dataclass(frozen=True)
class Literal(Command):
    """LITERAL "text" emits one synthetic record ahead of the stream."""
    keyword: ClassVar[str] = "LITERAL"
    value: str = ""


# Keyword -> command class, used by the parser for early keyword checks.
COMMAND_KEYWORDS = {
    cls.keyword: cls
    for cls in (
        Console, FileRead, FileWrite, Filter, Locate, NLocate, Take, Skip,
        Hole, Select, Change, Upper, Lower, Reverse, Duplicate, Count, Literal,
    )
}


__all__ = [
    "FieldRange",
    "SelectField",
    "Command",
    "Console",
    "FileRead",
    "FileWrite",
    "Filter",
    "Locate",
    "NLocate",
    "Take",
    "Skip",
    "Hole",
    "Select",
    "Change",
    "Upper",
    "Lower",
    "Reverse",
    "Duplicate",
    "Count",
    "Literal",
    "COMMAND_KEYWORDS",
]
