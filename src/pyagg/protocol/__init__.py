"""Request protocols: PUT admission and GET lookup."""

from pyagg.protocol.query import QueryProtocol
from pyagg.protocol.submission import SubmissionProtocol

__all__ = ["QueryProtocol", "SubmissionProtocol"]
