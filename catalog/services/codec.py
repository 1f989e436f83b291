"""Response obfuscation for the public content API.

Payloads are serialized to compact JSON, base64 encoded, and a single filler
character is inserted at a fixed position. Clients strip that character before
decoding. This only keeps raw responses from being readable at a glance: it is
not encryption, offers no confidentiality or integrity, and must never be used
to gate access to anything.
"""

import base64
import binascii
import json
from typing import Any

FILLER_POSITION = 2
FILLER_CHAR = "x"


class PayloadDecodeError(ValueError):
    pass


def encode_payload(payload: Any) -> str:
    json_str = json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)
    encoded = base64.b64encode(json_str.encode("utf-8")).decode("ascii")
    return encoded[:FILLER_POSITION] + FILLER_CHAR + encoded[FILLER_POSITION:]


def decode_payload(encoded: str) -> Any:
    if not isinstance(encoded, str) or len(encoded) <= FILLER_POSITION:
        raise PayloadDecodeError("Encoded payload is too short")

    cleaned = encoded[:FILLER_POSITION] + encoded[FILLER_POSITION + 1:]
    try:
        raw = base64.b64decode(cleaned, validate=True)
        return json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise PayloadDecodeError(f"Could not decode payload: {e}") from e
