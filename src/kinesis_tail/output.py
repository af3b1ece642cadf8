"""Print record events as JSON lines."""

import base64
import json
import sys
from datetime import datetime
from typing import Any, TextIO

from .models import RecordEvent


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(value).decode('ascii')
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def serialize_event(event: RecordEvent) -> str:
    """Serialize an event as one compact line of JSON."""
    return json.dumps(event.to_output(), default=_json_default, separators=(',', ':'))


class JsonLineSink:
    """Writes each event to a text stream, one line per event."""

    def __init__(self, stream: TextIO = None):
        self.stream = stream if stream is not None else sys.stdout

    def __call__(self, event: RecordEvent) -> None:
        self.stream.write(serialize_event(event) + "\n")
        self.stream.flush()
