"""Decode Kinesis record payloads for display."""

import json
import logging
from typing import Any, Union

logger = logging.getLogger(__name__)


def _reject_constant(name: str):
    raise ValueError(f"non-standard JSON constant {name}")


def decode_payload(data: Union[bytes, bytearray]) -> Any:
    """
    Decode a record payload as JSON, falling back to the raw bytes.

    Only standard JSON is accepted: the payload must be UTF-8 and must not
    use ``NaN`` or ``Infinity``. Anything else is returned unchanged as
    ``bytes`` so the output sink can render it as base64. Never raises.
    """
    raw = bytes(data)
    try:
        return json.loads(raw.decode("utf-8"), parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        logger.debug(f"Payload is not JSON, keeping raw bytes: {e}")
        return raw
