"""
RecPipe Exception Hierarchy

Contains all exception classes raised by the record pipeline engine.
"""

from typing import Optional


class RecPipeError(Exception):
    """
    Base exception for all record pipeline operations.

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is-in-process Main-Process.
    ::: This is stateless.
    """
    pass


class ParseError(RecPipeError):
    """
    Raised when pipeline DSL text cannot be parsed.

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is-in-process Main-Process.
    ::: This is stateless.

    Carries the 1-based line and column of the offending input, the text of
    the line, and an optional suggestion for fixing it.
    """

    def __init__(
        self,
        message: str,
        line: int = 1,
        column: int = 1,
        context: Optional[str] = None,
        suggestion: Optional[str] = None,
    ):
        self.message = message
        self.line = line
        self.column = column
        self.context = context
        self.suggestion = suggestion
        super().__init__(str(self))

    def __str__(self) -> str:
        loc = f"line {self.line}, column {self.column}"
        msg = f"Parse error at {loc}: {self.message}"
        if self.context:
            msg += f"\n  Context: {self.context}"
        if self.suggestion:
            msg += f"\n  Suggestion: {self.suggestion}"
        return msg


class RecordFormatError(RecPipeError):
    """
    Raised when text cannot become an 80-byte record (too long, non-ASCII).

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is-in-process Main-Process.
    ::: This is stateless.
    """

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"input line {line_number}: {message}"
        super().__init__(message)


class FieldRangeError(RecPipeError):
    """
    Raised when a field address falls outside the 80-byte record.

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is-in-process Main-Process.
    ::: This is stateless.
    """

    def __init__(self, offset: int, length: int, width: int = 80):
        self.offset = offset
        self.length = length
        self.width = width
        super().__init__(
            f"field position {offset}:{length} exceeds record length {width}"
        )


class StageError(RecPipeError):
    """
    Raised when a stage fails while processing a record.

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is-in-process Main-Process.
    ::: This is stateless.

    Wraps the underlying error with the failing stage's index in the
    pipeline and the DSL line that declared it.
    """

    def __init__(self, stage_index: int, command_text: str, cause: Exception,
                 line: Optional[int] = None):
        self.stage_index = stage_index
        self.command_text = command_text
        self.cause = cause
        self.line = line
        where = f"stage {stage_index} ({command_text})"
        if line is not None:
            where += f" at line {line}"
        super().__init__(f"{where}: {cause}")


class RecordIOError(RecPipeError):
    """
    Raised when a file source or sink cannot be read or written.

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is-in-process Main-Process.
    ::: This is stateless.
    """
    pass


class SessionError(RecPipeError):
    """
    Raised for invalid calls on a debugging session (bad watch position etc).

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is-in-process Main-Process.
    ::: This is stateless.
    """
    pass


__all__ = [
    "RecPipeError",
    "ParseError",
    "RecordFormatError",
    "FieldRangeError",
    "StageError",
    "RecordIOError",
    "SessionError",
]
