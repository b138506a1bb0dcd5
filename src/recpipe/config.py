"""
recpipe Configuration.

Configuration dataclass with environment variable support for the
command-line runner and debugger.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
import os


# =============================================================================
# Default Values
# =============================================================================

DEFAULT_EXECUTOR = "batch"
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_TRACE_PREVIEW = 5  # records shown per pipe point in the console UI

EXECUTOR_NAMES = ("batch", "rat")


def _env_path(name: str) -> Optional[Path]:
    value = os.environ.get(name)
    return Path(value) if value else None


@dataclass
class RecPipeConfig:
    """Configuration for running and debugging pipelines.

    ::: This is-in-layer Infrastructure-Layer.
    ::: This is a value-object.
    ::: This is stateless.
    ::: This is serializable.

    Supports environment variables:
    - RECPIPE_EXECUTOR: batch or rat (default: batch)
    - RECPIPE_BASE_DIR: Directory that < path and > path resolve against (default: cwd)
    - RECPIPE_LOG_LEVEL: stderr log level (default: WARNING)
    - RECPIPE_TRACE_PREVIEW: Records shown per pipe point in the debugger (default: 5)
    - RECPIPE_CONSOLE_ENABLED: Enable rich console output (default: true)
    """

    executor: str = field(default_factory=lambda: os.environ.get("RECPIPE_EXECUTOR", DEFAULT_EXECUTOR).lower())
    base_dir: Optional[Path] = field(default_factory=lambda: _env_path("RECPIPE_BASE_DIR"))
    log_level: str = field(default_factory=lambda: os.environ.get("RECPIPE_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper())
    trace_preview: int = field(default_factory=lambda: int(os.environ.get("RECPIPE_TRACE_PREVIEW", DEFAULT_TRACE_PREVIEW)))
    console_enabled: bool = field(default_factory=lambda: os.environ.get("RECPIPE_CONSOLE_ENABLED", "true").lower() == "true")

    def __post_init__(self) -> None:
        if self.executor not in EXECUTOR_NAMES:
            raise ValueError(
                f"executor must be one of {', '.join(EXECUTOR_NAMES)}, got {self.executor!r}"
            )
        if self.trace_preview < 1:
            raise ValueError(f"trace_preview must be positive, got {self.trace_preview}")
        if self.base_dir is not None and not isinstance(self.base_dir, Path):
            self.base_dir = Path(self.base_dir)

    @property
    def resolved_base_dir(self) -> Path:
        return self.base_dir if self.base_dir is not None else Path.cwd()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "executor": self.executor,
            "base_dir": str(self.base_dir) if self.base_dir is not None else None,
            "log_level": self.log_level,
            "trace_preview": self.trace_preview,
            "console_enabled": self.console_enabled,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecPipeConfig":
        kwargs = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if kwargs.get("base_dir") is not None:
            kwargs["base_dir"] = Path(kwargs["base_dir"])
        return cls(**kwargs)
