#!/usr/bin/env python3
"""
KVCAST RECEIVER - The Listener Loop
-----------------------------------
Receives JSON datagrams, decodes each into a Record and hands it to a
display callback. Runs until stop() is called, a datagram budget is
exhausted, or the process is interrupted.

Author: KvCast Team
Date: 2026-10-19
"""

import logging
import socket
from typing import Any, Callable, Dict, Optional, Tuple

from kvcast.core.errors import CodecError
from kvcast.core.models import Record
from kvcast.parsing.exporter import RecordCodec

logger = logging.getLogger("kvcast.receiver")

RecordCallback = Callable[[Record, Tuple[str, int]], None]


class ReceiverEngine:
    """
    Pulls datagrams from a listener (anything with receive() returning
    (payload, address)) and dispatches decoded Records.
    """

    def __init__(self, listener: Any, codec: Optional[RecordCodec] = None,
                 on_record: Optional[RecordCallback] = None,
                 on_invalid: Optional[Callable[[bytes, Tuple[str, int], str], None]] = None):
        self.listener = listener
        self.codec = codec or RecordCodec()
        self.on_record = on_record
        self.on_invalid = on_invalid
        self._running = False
        self.stats = {
            "datagrams_received": 0,
            "records_decoded": 0,
            "invalid_payloads": 0,
            "bytes_received": 0,
            "errors": 0,
        }

    def handle_datagram(self, payload: bytes, address: Tuple[str, int]) -> Optional[Record]:
        self.stats["datagrams_received"] += 1
        self.stats["bytes_received"] += len(payload)

        try:
            record = self.codec.decode(payload)
        except CodecError as e:
            self.stats["invalid_payloads"] += 1
            logger.warning(f"Invalid datagram from {address[0]}:{address[1]}: {e}")
            if self.on_invalid:
                self.on_invalid(payload, address, str(e))
            return None

        self.stats["records_decoded"] += 1
        logger.debug(f"Decoded {len(record)} fields from {address[0]}:{address[1]}")
        if self.on_record:
            self.on_record(record, address)
        return record

    def serve(self, max_datagrams: Optional[int] = None) -> Dict[str, int]:
        """
        Receive loop. Timeouts only give the loop a chance to notice stop();
        other socket errors are logged and the loop carries on.
        """
        self._running = True
        handled = 0
        while self._running:
            if max_datagrams is not None and handled >= max_datagrams:
                break
            try:
                payload, address = self.listener.receive()
            except socket.timeout:
                continue
            except OSError as e:
                self.stats["errors"] += 1
                logger.error(f"recvfrom failed: {e}")
                continue

            self.handle_datagram(payload, address)
            handled += 1

        self._running = False
        return dict(self.stats)

    def stop(self):
        self._running = False
