"""
Translation between PersistedSessionRecord and its Redis string value.

The value is a single JSON object using the camelCase wire names.
Optional fields that are unset are omitted rather than written as null.
"""

import json
from typing import Union

from pydantic import ValidationError

from errors.exceptions import MalformedRecord
from session.models import PersistedSessionRecord

# Fields dropped from the wire form when they hold no value
_OPTIONAL_WIRE_FIELDS = ("fingerprint", "userAgent")


def encode_record(record: PersistedSessionRecord) -> str:
    """
    Serialize a record to its wire representation.

    The output is deterministic for a given record: keys follow the
    model's field order and timestamps are ISO-8601 strings.
    """
    payload = record.model_dump(mode="json", by_alias=True)
    for name in _OPTIONAL_WIRE_FIELDS:
        if payload.get(name) is None:
            payload.pop(name, None)
    return json.dumps(payload, separators=(",", ":"))


def decode_record(raw: Union[str, bytes, bytearray]) -> PersistedSessionRecord:
    """
    Deserialize a wire value into a record.

    Raises:
        MalformedRecord: If the value is not UTF-8 JSON, is not a JSON
            object, or does not match the record schema.
    """
    try:
        payload = json.loads(raw)
    except (ValueError, TypeError) as e:
        raise MalformedRecord(
            "Stored session value is not valid JSON",
            details={"reason": str(e)}
        ) from e

    if not isinstance(payload, dict):
        raise MalformedRecord(
            "Stored session value is not a JSON object",
            details={"type": type(payload).__name__}
        )

    try:
        return PersistedSessionRecord.model_validate(payload)
    except ValidationError as e:
        raise MalformedRecord(
            "Stored session value does not match the record schema",
            details={
                "error_count": e.error_count(),
                "fields": sorted({
                    ".".join(str(loc) for loc in error["loc"])
                    for error in e.errors()
                }),
            }
        ) from e
