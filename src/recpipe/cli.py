"""
recpipe command-line entry point.

    recpipe run PIPE_FILE INPUT_FILE [-o OUT] [--rat] [-v]
    recpipe debug PIPE_FILE INPUT_FILE [--watch P] [--break P] [--pipeline K]

Exit status is 0 on success and 1 on any pipeline error.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import RecPipeConfig
from .dsl.parser import parse_pipeline_file
from .engine.runner import execute_pipeline
from .engine.stepping import DebugSession, SessionSnapshot
from .logging_config import (
    configure_logging,
    get_trace_logger,
    restore_stderr_logging,
    suppress_stderr_logging,
)
from .record import records_from_text
from .recpipe_exceptions import RecordFormatError, RecordIOError, RecPipeError
from .stages import DirectoryFileResolver

logger = logging.getLogger(__name__)

INTERACTIVE_HELP = (
    "s: step   r: run to breakpoint   x: reset   "
    "w N: watch pipe N   b N: break at pipe N   q: quit"
)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="ascii")
    except UnicodeDecodeError as e:
        raise RecPipeError(f"{path}: file is not ASCII ({e.reason})") from e
    except OSError as e:
        raise RecordIOError(f"Cannot read {path}: {e}") from e


def _read_input(path: Path) -> str:
    try:
        return path.read_text(encoding="ascii")
    except UnicodeDecodeError as e:
        line_number = e.object[:e.start].count(b"\n") + 1
        raise RecordFormatError(f"{path}: non-ASCII byte in record", line_number) from e
    except OSError as e:
        raise RecordIOError(f"Cannot read {path}: {e}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recpipe",
        description="Run and debug fixed-width 80-byte record pipelines",
    )
    parser.add_argument("--base-dir", type=Path, help="Directory for < and > file stages (default: cwd)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run a pipeline file over an input file")
    run.add_argument("pipe_file", type=Path, help="Pipeline definition (.pipe)")
    run.add_argument("input_file", type=Path, help="Input records, one per line")
    run.add_argument("--output", "-o", type=Path, help="Write output here instead of stdout")
    run.add_argument("--rat", action="store_true", help="Use the record-at-a-time executor")
    run.add_argument("--trace", action="store_true", help="Log every pipe point (implies --rat)")

    debug = sub.add_parser("debug", help="Step through one pipeline")
    debug.add_argument("pipe_file", type=Path, help="Pipeline definition (.pipe)")
    debug.add_argument("input_file", type=Path, help="Input records, one per line")
    debug.add_argument("--watch", type=int, action="append", default=[], metavar="P",
                       help="Watch pipe point P (repeatable)")
    debug.add_argument("--break", dest="breakpoints", type=int, action="append", default=[],
                       metavar="P", help="Break at pipe point P (repeatable)")
    debug.add_argument("--pipeline", type=int, default=1, metavar="K",
                       help="1-based pipeline to debug (default: 1)")
    debug.add_argument("--interactive", "-i", action="store_true", help="Prompt for commands")
    debug.add_argument("--no-console", action="store_true", help="Plain text instead of rich output")
    return parser


# ============================================================
# RUN
# ============================================================

def cmd_run(args: argparse.Namespace, config: RecPipeConfig) -> int:
    mode = "rat" if (args.rat or args.trace) else config.executor
    if args.trace:
        get_trace_logger(to_stderr=True)

    pipeline_text = _read_text(args.pipe_file)
    input_text = _read_input(args.input_file)
    resolver = DirectoryFileResolver(config.resolved_base_dir)

    output_text, input_count, output_count = execute_pipeline(
        input_text, pipeline_text, mode, sources=resolver, sinks=resolver,
    )

    if args.output:
        try:
            args.output.write_text(output_text + ("\n" if output_count else ""), encoding="ascii")
        except OSError as e:
            raise RecordIOError(f"Cannot write {args.output}: {e}") from e
    elif output_count:
        sys.stdout.write(output_text + "\n")

    print(f"Processed {input_count} -> {output_count} records", file=sys.stderr)
    return 0


# ============================================================
# DEBUG
# ============================================================

def _plain(snapshot: SessionSnapshot) -> str:
    lines = [f"[{snapshot.state}]" + ("  paused at breakpoint" if snapshot.paused_at_breakpoint else "")]
    for value in snapshot.watches:
        if not value.reached:
            shown = "not yet reached"
        elif not value.records:
            shown = "(filtered out)"
        else:
            shown = " | ".join(r.rstrip() for r in value.records)
        lines.append(f"  {value.label} @ pipe {value.position}: {shown}")
    lines.append(f"  output: {len(snapshot.output)} record(s)")
    return "\n".join(lines)


def _interact(session: DebugSession, show) -> SessionSnapshot:
    snapshot = session.snapshot()
    print(INTERACTIVE_HELP)
    while True:
        try:
            line = input("recpipe> ").strip()
        except EOFError:
            return snapshot
        if not line:
            continue
        cmd, _, arg = line.partition(" ")
        try:
            if cmd == "q":
                return snapshot
            elif cmd == "s":
                snapshot = session.step()
            elif cmd == "r":
                snapshot = session.run_to_breakpoint()
            elif cmd == "x":
                snapshot = session.reset()
            elif cmd == "w":
                snapshot = session.add_watch(int(arg))
            elif cmd == "b":
                snapshot = session.add_breakpoint(int(arg))
            else:
                print(INTERACTIVE_HELP)
                continue
        except ValueError:
            print(f"Expected a pipe point number, got {arg!r}")
            continue
        except RecPipeError as e:
            print(f"Error: {e}")
            continue
        show(snapshot)


def cmd_debug(args: argparse.Namespace, config: RecPipeConfig) -> int:
    spec = parse_pipeline_file(args.pipe_file)
    records = records_from_text(_read_input(args.input_file))
    resolver = DirectoryFileResolver(config.resolved_base_dir)

    index = args.pipeline - 1
    if not 0 <= index < len(spec):
        raise RecPipeError(f"--pipeline must be between 1 and {len(spec)}, got {args.pipeline}")
    session = DebugSession.for_spec(spec, records, index, sources=resolver, sinks=resolver)
    for position in args.watch:
        session.add_watch(position)
    for position in args.breakpoints:
        session.add_breakpoint(position)

    use_console = config.console_enabled and not args.no_console
    if use_console:
        from .console_ui import DebuggerView
        view = DebuggerView(session.pipeline, preview=config.trace_preview)
        show = view.show
    else:
        def show(snapshot: SessionSnapshot) -> None:
            print(_plain(snapshot))

    saved = suppress_stderr_logging() if use_console else None
    try:
        if args.interactive:
            snapshot = _interact(session, show)
        else:
            snapshot = session.run_to_breakpoint()
            show(snapshot)
            while not snapshot.is_finished:
                snapshot = session.run_to_breakpoint()
                show(snapshot)
    finally:
        if saved is not None:
            restore_stderr_logging(saved)

    print(f"Processed {len(session.input_records)} -> {len(snapshot.output)} records", file=sys.stderr)
    return 0


# ============================================================
# MAIN
# ============================================================

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the recpipe command."""
    args = build_parser().parse_args(argv)

    try:
        config = RecPipeConfig()
    except ValueError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1
    if args.base_dir is not None:
        config.base_dir = args.base_dir
    if args.verbose:
        config.log_level = "DEBUG"
    try:
        configure_logging(config.log_level)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    handler = cmd_run if args.command == "run" else cmd_debug
    try:
        return handler(args, config)
    except RecPipeError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
