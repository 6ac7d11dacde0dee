#!/usr/bin/env python3
"""
KVCAST CLI - Sender & Listener
------------------------------
Command-line interface for both ends of the feed:

    kvcast send <ip> <port> [file]           parse a record file and transmit it
    kvcast listen <multicast_ip> <port>      join a group and display records

Author: KvCast Team
Date: 2026-10-19
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn, TimeElapsedColumn

from kvcast.cli.formatter import MODE_CLIENT, RecordFormatter
from kvcast.core.config import KvCastConfig, load_config
from kvcast.core.engine import STATUS_REJECTED, STATUS_SENT, BroadcastEngine
from kvcast.core.errors import ArgumentError, ConfigError, TransportError
from kvcast.core.receiver import ReceiverEngine
from kvcast.parsing.exporter import RecordCodec
from kvcast.transport.connection import create_listener, create_sender
from kvcast.transport.validator import validate_endpoint

VERSION = "1.0.0"

# Global console for consistent styling across the application
console = Console()


class KvCastCLI:
    """
    CLI wrapper that translates user commands into engine actions.
    Validation failures end the process here, never inside the library.
    """

    def __init__(self, console: Console = console):
        self.console = console
        self.parser = argparse.ArgumentParser(
            prog="kvcast",
            description="KvCast - key:value records over UDP multicast as JSON",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="Example: kvcast listen 239.0.0.1 5000"
        )
        self._setup_args()

    def _setup_args(self):
        self.parser.add_argument("-v", "--version", action="version", version=f"kvcast v{VERSION}")
        subparsers = self.parser.add_subparsers(dest="command", metavar="Command")

        send_parser = subparsers.add_parser("send", help="Parse a record file and transmit each line")
        send_parser.add_argument("ip", help="Destination IPv4 address (unicast or multicast)")
        send_parser.add_argument("port", help="Destination UDP port")
        send_parser.add_argument("file", nargs="?", help="Record file (prompted for when omitted)")
        send_parser.add_argument("--delay", type=float, help="Seconds between datagrams")
        send_parser.add_argument("--ttl", type=int, help="Multicast TTL")
        send_parser.add_argument("--config", help="YAML settings file")
        send_parser.add_argument("--debug", action="store_true", default=None, help="Print records as JSON")

        listen_parser = subparsers.add_parser("listen", help="Receive and display records")
        listen_parser.add_argument("ip", help="Multicast group to join (224.0.0.0 - 239.255.255.255)")
        listen_parser.add_argument("port", help="UDP port to bind")
        listen_parser.add_argument("--unicast", action="store_true", default=None,
                                   help="Bind the port without joining the group")
        listen_parser.add_argument("--count", type=int, help="Stop after N datagrams")
        listen_parser.add_argument("--config", help="YAML settings file")
        listen_parser.add_argument("--debug", action="store_true", default=None, help="Print records as JSON")

    def print_header(self, subtitle: str):
        self.console.print(Panel.fit(
            f"[bold cyan]KvCast v{VERSION}[/bold cyan]\n"
            "=====================================================",
            title=f"[bold white]{subtitle}[/bold white]",
            border_style="cyan"
        ))

    def _fail(self, message: str):
        self.console.print(f"[bold red]Error:[/bold red] {message}", highlight=False)
        sys.exit(1)

    def _load_config(self, args: argparse.Namespace) -> KvCastConfig:
        try:
            config = load_config(args.config)
        except ConfigError as e:
            self._fail(str(e))
        overrides = {
            "debug": args.debug,
            "delay": getattr(args, "delay", None),
            "ttl": getattr(args, "ttl", None),
            "unicast": getattr(args, "unicast", None),
        }
        config = config.with_overrides(**overrides)
        logging.basicConfig(level=getattr(logging, config.log_level.upper(), logging.INFO))
        return config

    def _prompt_for_file(self) -> Path:
        """Re-prompts until the user names an existing file."""
        while True:
            name = self.console.input("[bold yellow]Enter the record file name: [/bold yellow]").rstrip()
            path = Path(name)
            if name and path.is_file():
                return path
            self.console.print(f"[red]Cannot open '{name}'. Try again.[/red]")

    def run_send(self, args: argparse.Namespace) -> int:
        config = self._load_config(args)
        try:
            host, port = validate_endpoint(args.ip, args.port, require_multicast=False)
        except ArgumentError as e:
            self._fail(str(e))

        path = Path(args.file) if args.file else self._prompt_for_file()
        if not path.is_file():
            self._fail(f"File '{path}' not found.")

        formatter = RecordFormatter(self.console, debug=config.debug)
        codec = RecordCodec(max_datagram_bytes=config.buffer_size)

        try:
            sender = create_sender(host, port, config)
            sender.connect()
        except TransportError as e:
            self._fail(str(e))

        engine = BroadcastEngine(sender, delay=config.delay, codec=codec)
        total = engine.count_lines(path)
        reports = []
        try:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(bar_width=40),
                TaskProgressColumn(),
                TimeElapsedColumn(),
                console=self.console
            ) as progress:
                task_id = progress.add_task("Sending records...", total=total)

                def on_report(report):
                    if report["status"] == STATUS_SENT:
                        formatter.show_record(codec.decode(report["payload"]), MODE_CLIENT)
                    elif report["status"] == STATUS_REJECTED:
                        formatter.show_rejection(report["line_no"], report["error"])
                    progress.update(task_id, advance=1, description=f"Line {report['line_no']}")

                reports = engine.broadcast_file(path, progress_callback=on_report)
        finally:
            sender.close()

        formatter.print_report(reports, engine.generate_summary(reports))
        return 0

    def run_listen(self, args: argparse.Namespace) -> int:
        config = self._load_config(args)
        try:
            group, port = validate_endpoint(args.ip, args.port, require_multicast=True)
        except ArgumentError as e:
            self._fail(str(e))

        formatter = RecordFormatter(self.console, debug=config.debug)
        listener = create_listener(group, port, config)
        try:
            listener.connect()
        except TransportError as e:
            self._fail(f"{e}\nFailed to join multicast group {group}")

        self.console.print(f"Socket created, joined multicast group {group} on port {port}...")
        engine = ReceiverEngine(listener, on_record=formatter.show_datagram, on_invalid=formatter.show_invalid)
        try:
            stats = engine.serve(max_datagrams=args.count)
        finally:
            listener.disconnect()

        self.console.print(
            f"Datagrams: {stats['datagrams_received']}  "
            f"Records: [green]{stats['records_decoded']}[/green]  "
            f"Invalid: [red]{stats['invalid_payloads']}[/red]"
        )
        return 0

    def run(self, argv: Optional[List[str]] = None) -> int:
        argv = sys.argv[1:] if argv is None else argv
        if not argv:
            self.print_header("Key:Value Multicast Feed")
            self.parser.print_help()
            return 0

        args = self.parser.parse_args(argv)
        if args.command == "send":
            self.print_header("Record Sender")
            return self.run_send(args)
        if args.command == "listen":
            self.print_header("Multicast Listener")
            return self.run_listen(args)
        self.parser.print_help()
        return 0


def main():
    """Application entry point with interrupt handling."""
    try:
        sys.exit(KvCastCLI().run())
    except KeyboardInterrupt:
        console.print("\n[bold red]Terminated by user.[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
