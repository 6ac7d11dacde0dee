#!/usr/bin/env python3
"""
KVCAST EXPORTER - Datagram Codec
--------------------------------
Converts Records to compact UTF-8 JSON objects for the wire and turns
received payloads back into Records for display.

Author: KvCast Team
Date: 2026-10-19
"""

import json
import logging
from typing import Any, Dict, List

from kvcast.core.errors import CodecError, PayloadTooLarge
from kvcast.core.models import Field, FieldValue, Record

logger = logging.getLogger("kvcast.codec")

# Receive buffer size used by the listener; one record must fit in one datagram.
MAX_DATAGRAM_BYTES = 4096


class RecordCodec:
    """
    The Reconstructor: Record <-> JSON object bytes.

    Duplicate field names collapse on encode (last one wins), which is
    what any JSON object decoder on the other side would do anyway.
    """

    def __init__(self, max_datagram_bytes: int = MAX_DATAGRAM_BYTES):
        self.max_datagram_bytes = max_datagram_bytes

    def to_object(self, record: Record) -> Dict[str, Any]:
        return {name: value.to_json() for name, value in record.as_dict().items()}

    def encode(self, record: Record) -> bytes:
        payload = json.dumps(
            self.to_object(record),
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        ).encode("utf-8")
        if len(payload) > self.max_datagram_bytes:
            raise PayloadTooLarge(
                f"Encoded record is {len(payload)} bytes (limit {self.max_datagram_bytes})"
            )
        return payload

    def decode(self, payload: bytes) -> Record:
        try:
            obj = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CodecError(f"Invalid JSON received: {e}")
        if not isinstance(obj, dict):
            raise CodecError(f"Expected a JSON object, got {type(obj).__name__}")

        fields: List[Field] = []
        for name, raw in obj.items():
            value = self._to_field_value(raw)
            if value is None:
                logger.warning(f"Skipping field '{name}': unsupported JSON type {type(raw).__name__}")
                continue
            fields.append(Field(name=name, value=value))
        return Record(tuple(fields))

    def _to_field_value(self, raw: Any):
        # bool is a subclass of int; test it first
        if isinstance(raw, bool):
            return FieldValue.boolean(raw)
        if isinstance(raw, (int, float)):
            try:
                return FieldValue.number(raw)
            except OverflowError:
                return None
        if isinstance(raw, str):
            return FieldValue.string(raw)
        return None

    def pretty(self, record: Record) -> str:
        """Indented JSON for debug display."""
        return json.dumps(self.to_object(record), indent=2, ensure_ascii=False)
