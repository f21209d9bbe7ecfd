"""A single weather reading as submitted by a content source."""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping
from typing import Any

from pydantic import ConfigDict, RootModel, model_validator

#: Field every reading must carry; it names the submitting source.
ID_FIELD = "id"


def _to_field_value(key: str, value: Any) -> str:
    """Coerce a JSON scalar to the string form readings store."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError(f"field {key!r} is not a finite number")
        return repr(value)
    raise ValueError(f"field {key!r} must be a string or number, got {type(value).__name__}")


class Reading(RootModel[dict[str, str]]):
    """Ordered mapping of field names to string values.

    Numbers and booleans are coerced to strings on construction; nested
    objects, arrays and nulls are rejected. The ``id`` field is required,
    non-empty and stripped of surrounding whitespace.
    """

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _coerce_values(cls, values: Any) -> Any:
        if not isinstance(values, Mapping):
            return values
        coerced = {str(key): _to_field_value(str(key), value) for key, value in values.items()}
        if ID_FIELD in coerced:
            coerced[ID_FIELD] = coerced[ID_FIELD].strip()
        return coerced

    @model_validator(mode="after")
    def _require_id(self) -> Reading:
        if not self.root.get(ID_FIELD):
            raise ValueError("reading must carry a non-empty 'id' field")
        return self

    @property
    def id(self) -> str:
        return self.root[ID_FIELD]

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.root.get(key, default)

    def as_dict(self) -> dict[str, str]:
        """Return a copy of the fields, in submission order."""
        return dict(self.root)

    def __getitem__(self, key: str) -> str:
        return self.root[key]

    def __contains__(self, key: object) -> bool:
        return key in self.root

    def __iter__(self) -> Iterator[str]:  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)
