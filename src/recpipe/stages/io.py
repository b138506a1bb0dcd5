"""
Record sources and sinks for ``< path`` and ``> path`` stages.

The engine never touches the file system itself: the runner asks a
RecordSource for the records behind a ``< path`` and hands ``> path``
output to a RecordSink. DirectoryFileResolver serves both against a base
directory; MemoryFiles keeps everything in a dict, for tests and embedding.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from ..record import Record, records_from_text, records_to_text
from ..recpipe_exceptions import RecordFormatError, RecordIOError

logger = logging.getLogger(__name__)


class RecordSource(ABC):
    """
    Resolves a ``< path`` stage to its records.

    ::: This is-in-layer Infrastructure-Layer.
    ::: This is a interface.
    ::: This is-in-process Main-Process.
    """

    @abstractmethod
    def read(self, path: str) -> List[Record]:
        raise NotImplementedError


class RecordSink(ABC):
    """
    Receives the output of a ``> path`` stage.

    ::: This is-in-layer Infrastructure-Layer.
    ::: This is a interface.
    ::: This is-in-process Main-Process.
    """

    @abstractmethod
    def write(self, path: str, records: List[Record]) -> None:
        raise NotImplementedError


class DirectoryFileResolver(RecordSource, RecordSink):
    """
    Reads and writes text files, one record per line, relative to a base directory.

    ::: This is-in-layer Infrastructure-Layer.
    ::: This is a adapter.
    ::: This is-in-process Main-Process.
    ::: This is stateless.

    Input lines longer than 80 characters or holding non-ASCII characters
    raise RecordFormatError naming the file and line. Output lines carry
    no trailing blanks.
    """

    def __init__(self, base_dir: Optional[Union[str, Path]] = None):
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()

    def resolve(self, path: str) -> Path:
        candidate = Path(path)
        if candidate.is_absolute():
            return candidate
        return self.base_dir / candidate

    def read(self, path: str) -> List[Record]:
        target = self.resolve(path)
        try:
            text = target.read_text(encoding="ascii", errors="strict")
        except UnicodeDecodeError as e:
            raise RecordFormatError(f"{target}: file is not ASCII ({e.reason})") from e
        except OSError as e:
            raise RecordIOError(f"Cannot read {target}: {e}") from e

        try:
            records = records_from_text(text)
        except RecordFormatError as e:
            raise RecordFormatError(f"{target}: {e}") from e
        logger.debug("Read %d records from %s", len(records), target)
        return records

    def write(self, path: str, records: List[Record]) -> None:
        target = self.resolve(path)
        text = records_to_text(records)
        if records:
            text += "\n"
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="ascii")
        except OSError as e:
            raise RecordIOError(f"Cannot write {target}: {e}") from e
        logger.debug("Wrote %d records to %s", len(records), target)


class MemoryFiles(RecordSource, RecordSink):
    """
    In-memory file store.

    ::: This is-in-layer Infrastructure-Layer.
    ::: This is a adapter.
    ::: This is-in-process Main-Process.
    ::: This is stateful.

    Seed it with ``MemoryFiles({"in.txt": records})``; written files land in
    ``files`` under the same path key.
    """

    def __init__(self, files: Optional[Dict[str, Iterable[Record]]] = None):
        self.files: Dict[str, List[Record]] = {
            name: list(records) for name, records in (files or {}).items()
        }

    def read(self, path: str) -> List[Record]:
        if path not in self.files:
            raise RecordIOError(f"Cannot read {path}: no such file")
        return list(self.files[path])

    def write(self, path: str, records: List[Record]) -> None:
        self.files[path] = list(records)

    def __contains__(self, path: str) -> bool:
        return path in self.files

    def __getitem__(self, path: str) -> List[Record]:
        return self.files[path]


__all__ = ["RecordSource", "RecordSink", "DirectoryFileResolver", "MemoryFiles"]
