"""Reading body parser and serializer.

These two functions are the only place that looks at raw submission text.
``parse_reading(serialize_reading(r)) == r`` holds for every valid reading,
which is what lets readings round-trip through staging artifacts and the
main store file.
"""

from __future__ import annotations

import json

from pydantic import ValidationError

from pyagg.exceptions import ReadingParseError
from pyagg.models.reading import Reading


def parse_reading(body: str | bytes) -> Reading:
    """Parse a JSON object body into a :class:`Reading`.

    Raises
    ------
    ReadingParseError
        If the body is not UTF-8, not a JSON object, holds non-scalar
        values, or lacks a non-empty ``id``.
    """
    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ReadingParseError("Reading body is not UTF-8", detail=str(exc)) from exc

    text = body.strip()
    if not text:
        raise ReadingParseError("Reading body is empty")

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ReadingParseError(f"Reading body is not JSON: {text[:64]}", detail=str(exc)) from exc

    if not isinstance(payload, dict):
        raise ReadingParseError(f"Reading body must be a JSON object, got {type(payload).__name__}")

    try:
        return Reading.model_validate(payload)
    except ValidationError as exc:
        raise ReadingParseError("Reading body failed validation", detail=str(exc)) from exc


def serialize_reading(reading: Reading) -> str:
    """Serialize a reading to a single-line JSON object, preserving field order."""
    return json.dumps(reading.as_dict(), ensure_ascii=False, separators=(",", ":"))
