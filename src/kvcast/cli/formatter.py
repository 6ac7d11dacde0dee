# src/kvcast/cli/formatter.py
from typing import Any, Dict, List, Optional, Tuple

from rich.console import Console
from rich.json import JSON
from rich.table import Table
from rich.text import Text

from kvcast.core.models import FieldKind, FieldValue, Record
from kvcast.parsing.exporter import RecordCodec

MODE_CLIENT = "client"
MODE_SERVER = "server"
COLUMN_WIDTH = 20
RULE = "=" * 53


def render_value(value: FieldValue) -> str:
    """Strings verbatim (retained quotes included), booleans lowercase, numbers as %g."""
    if value.kind is FieldKind.BOOLEAN:
        return "true" if value.value else "false"
    if value.kind is FieldKind.NUMBER:
        return format(value.value, "g")
    return value.value


class RecordFormatter:
    """
    RecordFormatter: the visual side of both programs.
    Renders records as simple `key: value` lines (sender), right-aligned
    columns (listener) or pretty JSON (debug).
    """

    def __init__(self, console: Optional[Console] = None, debug: bool = False):
        self.console = console or Console()
        self.debug = debug
        self.codec = RecordCodec()

    def show_record(self, record: Record, mode: str = MODE_SERVER):
        if self.debug:
            self.console.print("DEBUG MODE:")
            self.console.print(JSON(self.codec.pretty(record)))
            return

        if mode == MODE_CLIENT:
            self.console.print("Parsed JSON data:")
            for f in record:
                self.console.print(Text(f"{f.name}: {render_value(f.value)}"))
            return

        # Two right-aligned columns, 20 characters minimum each
        table = Table.grid(padding=(0, 1))
        table.add_column(justify="right", min_width=COLUMN_WIDTH, no_wrap=True)
        table.add_column(justify="right", min_width=COLUMN_WIDTH, no_wrap=True)
        for f in record:
            table.add_row(Text(f"{f.name}:"), Text(render_value(f.value)))
        self.console.print(table)

    def show_datagram(self, record: Record, address: Tuple[str, int]):
        """Listener view of one received datagram."""
        self.console.print(f"Received from {address[0]}:{address[1]}")
        self.console.print(RULE)
        self.show_record(record, MODE_SERVER)
        self.console.print(RULE + "\n")

    def show_invalid(self, payload: bytes, address: Tuple[str, int], reason: str):
        self.console.print(f"Received from {address[0]}:{address[1]}")
        self.console.print(RULE)
        self.console.print(Text(f"Invalid JSON received: {payload.decode('utf-8', errors='replace')}"),
                           style="yellow")
        self.console.print(RULE + "\n")

    def show_rejection(self, line_no: Optional[int], error: str):
        """One diagnostic line per discarded input line."""
        self.console.print(Text(f"Line {line_no} discarded: {error}"), style="bold yellow")

    def print_report(self, reports: List[Dict[str, Any]], summary: Dict[str, Any]):
        """Builds the summary table shown at the end of a send run."""
        table = Table(title="KvCast Transmission Report", show_header=True, header_style="bold magenta")
        table.add_column("Line", justify="right", style="dim")
        table.add_column("Status")
        table.add_column("Fields", justify="right")
        table.add_column("Bytes", justify="right")
        table.add_column("Detail")

        colors = {"SENT": "green", "SKIPPED": "dim", "REJECTED": "red",
                  "OVERSIZE": "yellow", "SEND_ERROR": "red"}
        for r in reports:
            color = colors.get(r["status"], "white")
            table.add_row(
                str(r.get("line_no")),
                f"[{color}]{r['status']}[/{color}]",
                str(r.get("fields", 0)),
                str(r.get("bytes", 0)),
                Text(r.get("error") or ""),
            )

        self.console.print(table)
        self.console.print(
            f"Lines: {summary['total_lines']}  "
            f"Sent: [green]{summary['sent']}[/green]  "
            f"Rejected: [red]{summary['rejected']}[/red]  "
            f"Skipped: {summary['skipped']}  "
            f"Bytes: {summary['bytes_sent']}"
        )
