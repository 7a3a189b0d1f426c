"""
Module: serialization.py
Description: Payload validation and JSON wire encoding.

Message bodies travel as JSON text. Payloads must be a number, string,
boolean, dict or None at the top level; nested values must be JSON
serializable, with string dict keys at every depth. Retrieved bodies
are decoded with the json module, so integers and floats keep their
JSON distinction (1 vs 1.0) while tuples come back as lists.
"""

import json
from typing import Any

from ..errors import InvalidArgument
from .logger import get_logger

logger = get_logger(__name__)

PAYLOAD_TYPES = (int, float, str, bool, dict, type(None))


def _check_keys(value: Any, name: str, path: str = "") -> None:
    """Reject dict keys json.dumps would coerce to strings."""
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise InvalidArgument(
                    f"Invalid {name}; dict keys must be strings, "
                    f"received {type(key).__name__} key {key!r}"
                    + (f" at {path}" if path else "")
                )
            _check_keys(item, name, f"{path}[{key!r}]")
    elif isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            _check_keys(item, name, f"{path}[{i}]")


def encode_payload(payload: Any, name: str = "payload argument") -> str:
    """
    Validate a payload and encode it as a JSON message body.

    Args:
        payload: Value to encode
        name: Description of the value used in error messages

    Returns:
        JSON text

    Raises:
        InvalidArgument: If payload has an unsupported type or cannot be
            encoded as strict JSON with string dict keys
    """
    if not isinstance(payload, PAYLOAD_TYPES):
        raise InvalidArgument(
            f"Invalid {name}; expected number, string, boolean, "
            f"dict or None, received {type(payload).__name__}"
        )

    try:
        body = json.dumps(payload, allow_nan=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise InvalidArgument(f"Invalid {name}; {e}", cause=e) from e

    # json.dumps has ruled out cycles, so the walk terminates
    _check_keys(payload, name)
    return body


def decode_body(body: str, message_id: str = "") -> Any:
    """
    Decode a JSON message body.

    Bodies that are not valid JSON (e.g. sent by a producer that does not
    use this client) are returned unchanged as text.
    """
    try:
        return json.loads(body)
    except ValueError:
        logger.warning(
            "Message body is not JSON, returning raw text",
            message_id=message_id
        )
        return body
