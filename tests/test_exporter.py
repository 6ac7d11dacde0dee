import json

import pytest

from kvcast.core.errors import CodecError, PayloadTooLarge
from kvcast.core.models import Field, FieldKind, FieldValue, Record
from kvcast.parsing.exporter import MAX_DATAGRAM_BYTES, RecordCodec
from kvcast.parsing.pipeline import parse_line


@pytest.fixture
def codec():
    return RecordCodec()


@pytest.mark.parametrize("line", [
    'msg:"hello"',
    'msg:"hello \\"world\\""',
    'a:true b:False c:42 d:3.14e2 e:4MB f:"true"',
    'tab:"a\\tb" nl:"x\\ny" neg:-0.25 name:ünïcödé',
])
def test_round_trip_preserves_type_and_content(codec, line):
    """ROUND TRIP: decode(encode(record)) gives back equal field values."""
    record = parse_line(line)
    decoded = codec.decode(codec.encode(record))
    assert decoded == record


def test_encoding_is_compact_utf8(codec):
    payload = codec.encode(parse_line('a:1 b:2.5 c:true d:"q" e:é'))
    assert payload == '{"a":1,"b":2.5,"c":true,"d":"\\"q\\"","e":"é"}'.encode("utf-8")


def test_decoded_numbers_are_floats(codec):
    record = codec.decode(b'{"n":7}')
    value = record.get("n")
    assert value.kind is FieldKind.NUMBER
    assert isinstance(value.value, float)


def test_duplicates_collapse_to_last_on_the_wire(codec):
    payload = codec.encode(parse_line("a:1 b:x a:2"))
    assert json.loads(payload) == {"a": 2, "b": "x"}


@pytest.mark.parametrize("payload", [b"not json", b"[1,2]", b'"text"', b"\xff\xfe"])
def test_decode_rejects_non_objects(codec, payload):
    with pytest.raises(CodecError):
        codec.decode(payload)


def test_unsupported_values_are_skipped(codec):
    record = codec.decode(b'{"a":null,"b":[1],"c":{"x":1},"d":"ok"}')
    assert record.names() == ("d",)


def test_oversize_record_is_refused(codec):
    fields = tuple(Field(f"key{i}", FieldValue.string("v" * 100)) for i in range(50))
    with pytest.raises(PayloadTooLarge):
        codec.encode(Record(fields))


def test_payload_at_limit_is_accepted():
    codec = RecordCodec(max_datagram_bytes=8)
    assert codec.encode(parse_line("a:12")) == b'{"a":12}'
    with pytest.raises(PayloadTooLarge):
        RecordCodec(max_datagram_bytes=7).encode(parse_line("a:12"))


def test_default_limit_matches_receive_buffer():
    assert MAX_DATAGRAM_BYTES == 4096
