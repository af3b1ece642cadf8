"""Tests for payload decoding."""

import json

import pytest

from kinesis_tail.decoder import decode_payload


@pytest.mark.parametrize("value", [
    {"event": "login", "user": {"id": 7, "tags": ["a", "b"]}, "ok": True, "extra": None},
    [1, 2.5, "three", [4]],
    "plain string",
    42,
    False,
    None,
])
def test_json_payloads_decode_to_values(value):
    assert decode_payload(json.dumps(value).encode("utf-8")) == value


def test_utf8_text_in_json():
    assert decode_payload('{"city": "Zürich"}'.encode("utf-8")) == {"city": "Zürich"}


@pytest.mark.parametrize("payload", [
    b"hello world",
    b"\xff\xfe\x00\x01",
    b"{not json}",
    b"",
    b"NaN",
    b'{"value": Infinity}',
])
def test_non_json_payloads_fall_back_to_bytes(payload):
    result = decode_payload(payload)

    assert isinstance(result, bytes)
    assert result == payload


def test_bytearray_input():
    assert decode_payload(bytearray(b'{"a": 1}')) == {"a": 1}
