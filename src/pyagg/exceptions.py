"""Custom exception hierarchy for pyagg."""

from __future__ import annotations

from pathlib import Path


class AggError(Exception):
    """Base exception for all pyagg errors."""


class AggConfigError(AggError):
    """Invalid or missing configuration."""


class ReadingParseError(AggError):
    """A submission body could not be turned into a reading.

    Raised by :func:`pyagg.codec.parse_reading`. The submission protocol
    converts it into a ``MALFORMED`` outcome; it never reaches the
    connection layer.
    """

    def __init__(self, message: str, *, detail: str = "") -> None:
        self.detail = detail
        super().__init__(message)


class AggStorageError(AggError):
    """Staging or main store file I/O failed."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        self.path = path
        super().__init__(message)


class AggProtocolError(AggError):
    """Request is not a PUT/GET or carries an unusable clock value."""


class AggTransportError(AggError):
    """HTTP-level failure seen by the client (network, unexpected status)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)
