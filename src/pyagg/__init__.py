"""pyagg - Async aggregation server for time-series readings with Lamport clocks."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyagg")
except PackageNotFoundError:
    __version__ = "0+local"
from pyagg.client import AggregatorClient
from pyagg.clock import LogicalClock
from pyagg.codec import parse_reading, serialize_reading
from pyagg.config import AggregatorConfig, ClientConfig
from pyagg.exceptions import (
    AggConfigError,
    AggError,
    AggProtocolError,
    AggStorageError,
    AggTransportError,
    ReadingParseError,
)
from pyagg.models import (
    Outcome,
    QueryResult,
    Reading,
    Record,
    RecoveryReport,
    SubmissionResult,
    SweepReport,
)
from pyagg.service import AggregatorService
from pyagg.store.policy import RetentionPolicy
from pyagg.store.records import RecordStore

__all__ = [
    "__version__",
    "AggConfigError",
    "AggError",
    "AggProtocolError",
    "AggStorageError",
    "AggTransportError",
    "AggregatorClient",
    "AggregatorConfig",
    "AggregatorService",
    "ClientConfig",
    "LogicalClock",
    "Outcome",
    "QueryResult",
    "Reading",
    "ReadingParseError",
    "Record",
    "RecordStore",
    "RecoveryReport",
    "RetentionPolicy",
    "SubmissionResult",
    "SweepReport",
    "parse_reading",
    "serialize_reading",
]
