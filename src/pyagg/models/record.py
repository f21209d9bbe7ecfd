"""Stored form of an accepted reading."""

from __future__ import annotations

from pydantic import Field

from pyagg.models._base import AggBaseModel
from pyagg.models.reading import Reading


class Record(AggBaseModel):
    """A reading plus the local wall-clock time it was accepted.

    ``received_at`` is epoch seconds on the aggregator's own clock. It is
    only compared with other values from the same process (expiry and
    recovery ordering), never with timestamps from other machines.
    """

    reading: Reading
    received_at: float = Field(..., ge=0)

    @property
    def source_id(self) -> str:
        return self.reading.id
