"""
recpipe Console UI.

Rich terminal rendering of stepping-session snapshots: the stage list with
its pipe points, the watch list and the output collected so far.

::: This is-in-layer UI-Layer.
::: This is-in-component Console-UI.
::: This depends-on rich.
"""

from typing import List, Optional, Sequence

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .dsl.core import Pipeline
from .engine.stepping import AtFlush, AtPipePoint, Finished, SessionSnapshot, WatchValue
from .record import Record


class DebuggerView:
    """Rich rendering of DebugSession snapshots.

    ::: This is-in-layer Presentation-Layer.
    ::: This is a adapter.
    ::: This is stateless.
    ::: This depends-on `rich.console.Console`.

    Shows:
    - Session state and breakpoint pause marker
    - Stages with their pipe points, watches and breakpoints
    - Watch values for the record or flush group being traced
    - Output collected so far
    """

    def __init__(self, pipeline: Pipeline, preview: int = 5, console: Optional[Console] = None):
        """Initialize the view.

        Args:
            pipeline: Pipeline being debugged, for stage descriptions
            preview: Records shown per pipe point before eliding
            console: Rich console to print to (default: stdout)
        """
        self.pipeline = pipeline
        self.preview = preview
        self.console = console or Console()

    def show(self, snapshot: SessionSnapshot) -> None:
        """Print one snapshot."""
        self.console.print(self.render(snapshot))

    def render(self, snapshot: SessionSnapshot) -> Group:
        return Group(
            self._build_header(snapshot),
            self._build_stage_panel(snapshot),
            self._build_watch_panel(snapshot),
            self._build_output_panel(snapshot),
        )

    # ------------------------------------------------------------------
    # Panels
    # ------------------------------------------------------------------

    def _build_header(self, snapshot: SessionSnapshot) -> Panel:
        """Build header panel."""
        title = Text()
        from recpipe import __version__
        title.append("recpipe debugger", style="bold blue")
        title.append(f" v{__version__}", style="dim")
        title.append(f"  [{snapshot.state}]", style=self._state_style(snapshot))
        if snapshot.paused_at_breakpoint:
            title.append("  paused at breakpoint", style="bold red")
        return Panel(title, style="blue")

    def _build_stage_panel(self, snapshot: SessionSnapshot) -> Panel:
        """Build the stage list, one row per pipe point and per stage."""
        table = Table(show_header=False, box=None, padding=(0, 1))
        table.add_column("Marker", width=2)
        table.add_column("Where", style="dim")
        table.add_column("What")

        watched = {}
        for value in snapshot.watches:
            watched.setdefault(value.position, []).append(value.label)

        table.add_row("", "source", Text(self.pipeline.source.describe()))
        for position in range(self.pipeline.pipe_point_count):
            marker = Text("●", style="red") if position in snapshot.breakpoints else Text("")
            label = Text(f"pipe {position}")
            if position == snapshot.pipe_point:
                label.stylize("bold yellow")
            labels = " ".join(watched.get(position, []))
            table.add_row(marker, label, Text(labels, style="cyan"))
            if position < self.pipeline.stage_count:
                table.add_row("", f"stage {position}", Text(self.pipeline.stages[position].describe()))
        table.add_row("", "sink", Text(self.pipeline.sink.describe()))

        return Panel(table, title="Stages", border_style="blue")

    def _build_watch_panel(self, snapshot: SessionSnapshot) -> Panel:
        """Build the watch list."""
        if not snapshot.watches:
            return Panel(Text("No watches", style="dim"), title="Watches", border_style="dim")

        table = Table(show_header=True, box=None, padding=(0, 1))
        table.add_column("Watch", width=6)
        table.add_column("Pipe", justify="right", width=4)
        table.add_column("Records")
        for value in snapshot.watches:
            table.add_row(value.label, str(value.position), self._watch_text(value))
        return Panel(table, title="Watches", border_style="cyan")

    def _build_output_panel(self, snapshot: SessionSnapshot) -> Panel:
        count = len(snapshot.output)
        return Panel(
            self._records_text(snapshot.output),
            title=f"Output ({count} record{'s' if count != 1 else ''})",
            border_style="green",
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _watch_text(self, value: WatchValue) -> Text:
        if not value.reached:
            return Text("not yet reached", style="dim italic")
        if not value.records:
            return Text("(filtered out)", style="yellow")
        return self._records_text(value.records)

    def _records_text(self, records: Sequence[Record]) -> Text:
        text = Text(no_wrap=True, overflow="ellipsis")
        lines: List[str] = [r.rstrip() for r in records[:self.preview]]
        text.append("\n".join(lines))
        if len(records) > self.preview:
            text.append(f"\n... ({len(records)} total)", style="dim")
        return text

    @staticmethod
    def _state_style(snapshot: SessionSnapshot) -> str:
        if isinstance(snapshot.state, Finished):
            return "green"
        if isinstance(snapshot.state, AtFlush):
            return "magenta"
        if isinstance(snapshot.state, AtPipePoint):
            return "yellow"
        return "dim"
