#!/usr/bin/env python3
"""
KVCAST ENGINE - The Broadcaster
-------------------------------
Drives the sending side: reads a record file line by line, parses each
line into a Record, encodes it as JSON and transmits it as one datagram,
pausing a fixed delay between sends.

Malformed lines are reported and skipped; they never stop the loop.

Author: KvCast Team
Date: 2026-10-19
"""

import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from kvcast.core.errors import PayloadTooLarge
from kvcast.core.models import ErrorKind
from kvcast.parsing.exporter import RecordCodec
from kvcast.parsing.pipeline import RecordAssembler

logger = logging.getLogger("kvcast.engine")

STATUS_SENT = "SENT"
STATUS_SKIPPED = "SKIPPED"        # blank line, nothing to do
STATUS_REJECTED = "REJECTED"      # malformed line discarded
STATUS_OVERSIZE = "OVERSIZE"      # encoded record exceeds one datagram
STATUS_SEND_ERROR = "SEND_ERROR"


class BroadcastEngine:
    """
    Principal orchestrator for the sender.

    Args:
        sender: Object with send(payload: bytes) -> int (a DatagramSender).
        delay: Seconds to wait after each transmitted datagram.
        sleep: Injected pause function, time.sleep by default.
    """

    def __init__(self, sender: Any, delay: float = 1.0,
                 assembler: Optional[RecordAssembler] = None,
                 codec: Optional[RecordCodec] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.sender = sender
        self.delay = delay
        self.assembler = assembler or RecordAssembler()
        self.codec = codec or RecordCodec()
        self.sleep = sleep

    def broadcast_line(self, line: str, line_no: Optional[int] = None) -> Dict[str, Any]:
        """Parses and transmits one line. Returns a report dict, never raises for bad input."""
        result = self.assembler.assemble(line, line_no)
        report: Dict[str, Any] = {
            "line_no": line_no,
            "status": STATUS_SENT,
            "error": None,
            "fields": 0,
            "bytes": 0,
            "payload": None,
        }

        if not result.ok:
            error = result.error
            if error.kind in (ErrorKind.EMPTY_LINE, ErrorKind.NO_PAIRS_PARSED):
                logger.debug(f"Line {line_no}: {error.reason}")
                report["status"] = STATUS_SKIPPED
            else:
                logger.warning(f"Discarding line {line_no}: {error.reason}")
                report["status"] = STATUS_REJECTED
            report["error"] = error.reason
            return report

        report["fields"] = len(result.record)
        try:
            payload = self.codec.encode(result.record)
        except PayloadTooLarge as e:
            logger.warning(f"Discarding line {line_no}: {e}")
            report.update(status=STATUS_OVERSIZE, error=str(e))
            return report

        try:
            sent = self.sender.send(payload)
        except OSError as e:
            logger.error(f"Send failed for line {line_no}: {e}")
            report.update(status=STATUS_SEND_ERROR, error=str(e))
            return report

        report.update(bytes=sent, payload=payload)
        logger.info(f"Sent line {line_no} ({sent} bytes, {len(result.record)} fields)")
        return report

    def broadcast_lines(self, lines: Iterable[str],
                        progress_callback: Optional[Callable[[Dict[str, Any]], None]] = None) -> List[Dict[str, Any]]:
        """Transmits every valid line, pacing only after successful sends."""
        reports = []
        for line_no, line in enumerate(lines, 1):
            report = self.broadcast_line(line, line_no)
            reports.append(report)
            if progress_callback:
                progress_callback(report)
            if report["status"] == STATUS_SENT and self.delay > 0:
                self.sleep(self.delay)
        return reports

    def broadcast_file(self, path: Union[str, Path],
                       progress_callback: Optional[Callable[[Dict[str, Any]], None]] = None) -> List[Dict[str, Any]]:
        """
        Reads a UTF-8 record file (BOM-aware) and broadcasts it.
        Lines end at '\\n' only; any other control character stays inside
        the line for the lexer to judge.

        Raises:
            FileNotFoundError: If the path does not exist.
        """
        file_path = Path(path)
        logger.info(f"Broadcasting records from {file_path}")
        with open(file_path, "r", encoding="utf-8-sig", newline="\n") as f:
            return self.broadcast_lines(f, progress_callback)

    @staticmethod
    def count_lines(path: Union[str, Path]) -> int:
        """Number of lines broadcast_file will report for this path."""
        with open(Path(path), "r", encoding="utf-8-sig", newline="\n") as f:
            return sum(1 for _ in f)

    def generate_summary(self, reports: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Counts per status plus total bytes put on the wire."""
        summary = {
            "total_lines": len(reports),
            "sent": 0,
            "skipped": 0,
            "rejected": 0,
            "oversize": 0,
            "send_errors": 0,
            "bytes_sent": 0,
        }
        keys = {
            STATUS_SENT: "sent",
            STATUS_SKIPPED: "skipped",
            STATUS_REJECTED: "rejected",
            STATUS_OVERSIZE: "oversize",
            STATUS_SEND_ERROR: "send_errors",
        }
        for r in reports:
            summary[keys[r["status"]]] += 1
            summary["bytes_sent"] += r.get("bytes", 0) or 0
        return summary
