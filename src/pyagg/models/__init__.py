"""Models for pyagg."""

from pyagg.models.outcome import Outcome, QueryResult, SubmissionResult
from pyagg.models.reading import ID_FIELD, Reading
from pyagg.models.record import Record
from pyagg.models.reports import RecoveryReport, SweepReport

__all__ = [
    "ID_FIELD",
    "Outcome",
    "QueryResult",
    "Reading",
    "Record",
    "RecoveryReport",
    "SubmissionResult",
    "SweepReport",
]
