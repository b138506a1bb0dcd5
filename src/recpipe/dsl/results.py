"""
Run outcomes and record batches.

``Result`` (``Ok``/``Err``) is what ``run_batch`` and ``run_rat`` hand back;
``ListF`` is the record sequence a batch pass works on, where one stage
pass is ``records.bind(stage.step)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, Iterator, Optional, Tuple, TypeVar

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")


class Result(Generic[T, E]):
    """
    Success or failure of a pipeline run.

    ::: This is-in-layer Domain-Specific-Language-Layer.
    ::: This is a value-object.
    ::: This is stateless.
    """

    @property
    def is_ok(self) -> bool:
        return isinstance(self, Ok)

    @property
    def is_err(self) -> bool:
        return isinstance(self, Err)

    def unwrap(self) -> T:
        """Return the value, or raise the failure.

        An ``Err`` whose error carries a ``cause`` exception re-raises that
        exception, so callers see e.g. ``ParseError`` rather than a wrapper.
        """
        if isinstance(self, Ok):
            return self.value
        cause = getattr(self.error, "cause", None)  # type: ignore[attr-defined]
        if isinstance(cause, Exception):
            raise cause
        raise ValueError(f"Cannot unwrap Err: {self}")


@dataclass(frozen=True)
class Ok(Result[T, Any]):
    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True)
class Err(Result[Any, E]):
    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


@dataclass(frozen=True)
class ListF(Generic[T]):
    """
    Immutable record batch.

    ::: This is-in-layer Domain-Specific-Language-Layer.
    ::: This is a value-object.
    ::: This is stateless.
    """
    items: Tuple[T, ...]

    @classmethod
    def from_iter(cls, it: Iterable[T]) -> "ListF[T]":
        return cls(tuple(it))

    def bind(self, f: Callable[[T], Iterable[U]]) -> "ListF[U]":
        """Feed each item to ``f`` and concatenate what it emits, in order."""
        return ListF(tuple(out for item in self.items for out in f(item)))

    def to_list(self) -> list:
        return list(self.items)

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class PipelineError:
    """Where a run failed (``"parse"`` or ``"pipeline k"``) and why.

    ::: This is-in-layer Domain-Specific-Language-Layer.
    ::: This is a value-object.
    """
    step: str
    message: str
    cause: Optional[Exception] = None

    def __str__(self) -> str:
        if self.cause:
            return f"[{self.step}] {self.message}: {self.cause}"
        return f"[{self.step}] {self.message}"


PipelineResult = Result[T, PipelineError]


def pipeline_ok(value: T) -> PipelineResult[T]:
    return Ok(value)


def pipeline_err(step: str, message: str, cause: Optional[Exception] = None) -> PipelineResult[Any]:
    return Err(PipelineError(step, message, cause))
