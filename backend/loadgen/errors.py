"""
errors.py

Error taxonomy for the load generator.

Per-request failures (`SendError` subclasses) are caught at the sender
boundary and turned into a failure outcome. Only `TransportInitError`
aborts a run.
"""
from __future__ import annotations

from typing import Optional


class LoadgenError(Exception):
    """Base class for all load generator errors."""


class TransportInitError(LoadgenError):
    """The HTTP client could not be created. Fatal for the run."""


class SendError(LoadgenError):
    kind = "send"


class SerializationError(SendError):
    kind = "serialization"


class TransportError(SendError):
    kind = "transport"


class BadStatusError(SendError):
    kind = "bad_status"

    def __init__(self, status_code: int, reason: Optional[str] = None):
        self.status_code = int(status_code)
        self.reason = reason or ""
        super().__init__(f"HTTP {self.status_code} {self.reason}".strip())
