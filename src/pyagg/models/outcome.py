"""Request outcomes returned by the submission and query protocols."""

from __future__ import annotations

from enum import StrEnum

from pyagg.models._base import AggBaseModel
from pyagg.models.reading import Reading


class Outcome(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    FOUND = "found"
    NOT_FOUND = "not_found"
    NO_CONTENT = "no_content"
    MALFORMED = "malformed"
    INTERNAL_ERROR = "internal_error"
    BAD_REQUEST = "bad_request"

    @property
    def is_success(self) -> bool:
        return self in {Outcome.CREATED, Outcome.UPDATED, Outcome.FOUND}

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS: dict[Outcome, int] = {
    Outcome.CREATED: 201,
    Outcome.UPDATED: 200,
    Outcome.FOUND: 200,
    Outcome.NOT_FOUND: 404,
    Outcome.NO_CONTENT: 204,
    # Malformed bodies share 500 with storage failures; the outcome header tells them apart.
    Outcome.MALFORMED: 500,
    Outcome.INTERNAL_ERROR: 500,
    Outcome.BAD_REQUEST: 400,
}


class SubmissionResult(AggBaseModel):
    """Result of a PUT. ``clock`` is the aggregator's post-tick time."""

    outcome: Outcome
    clock: int
    source_id: str | None = None
    detail: str = ""


class QueryResult(AggBaseModel):
    """Result of a GET. ``reading`` is set only when ``outcome`` is FOUND."""

    outcome: Outcome
    clock: int
    reading: Reading | None = None
    detail: str = ""
