
import base64
import json

import pytest

from catalog.services.codec import (
    FILLER_CHAR,
    FILLER_POSITION,
    PayloadDecodeError,
    decode_payload,
    encode_payload,
)


@pytest.mark.parametrize("payload", [
    [],
    {},
    {"name": "Ação São Paulo 東京 🎬"},
    {"page": 1, "data": [{"id": 1, "tags": ["a", "b"], "meta": {"nested": {"deep": None}}}]},
    "plain string",
    0,
])
def test_decode_reverses_encode(payload):
    assert decode_payload(encode_payload(payload)) == payload


def test_filler_inserted_at_fixed_position():
    payload = {"page": 1}
    plain = base64.b64encode(json.dumps(payload, separators=(",", ":")).encode()).decode()
    encoded = encode_payload(payload)

    assert len(encoded) == len(plain) + 1
    assert encoded[FILLER_POSITION] == FILLER_CHAR
    assert encoded[:FILLER_POSITION] + encoded[FILLER_POSITION + 1:] == plain


def test_encoding_is_deterministic():
    assert encode_payload({"a": [1, 2]}) == encode_payload({"a": [1, 2]})


def test_encoded_payload_is_not_plain_json():
    encoded = encode_payload({"name": "secret-looking"})
    with pytest.raises(ValueError):
        json.loads(encoded)


@pytest.mark.parametrize("bad", ["", "ab", "ab!!!!", "abx@@@@"])
def test_decode_rejects_malformed_input(bad):
    with pytest.raises(PayloadDecodeError):
        decode_payload(bad)


def test_decode_rejects_valid_base64_without_filler():
    plain = base64.b64encode(b'{"a":1}').decode()
    with pytest.raises(PayloadDecodeError):
        decode_payload(plain)
