"""
sender.py

Purpose:
  Serializes one payload and POSTs it to the fixed ingestion endpoint,
  classifying the result as success or failure.

Failure Classes (never raised out of `send`):
  - `serialization`: payload could not be encoded (contract violation).
  - `transport`: connect/DNS/timeout/protocol errors from httpx.
  - `bad_status`: any non-2xx response.

No retries: every failure is final and only counted.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from loadgen.errors import BadStatusError, SendError, SerializationError, TransportError
from loadgen.models.domain import Payload

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}


@dataclass(frozen=True)
class SendOutcome:
    ok: bool
    reason: Optional[str] = None
    status_code: Optional[int] = None


def serialize(payload: Payload) -> bytes:
    try:
        return payload.model_dump_json(by_alias=True).encode("utf-8")
    except (ValueError, TypeError) as e:
        raise SerializationError(str(e)) from e


class RequestSender:
    def __init__(self, client: httpx.Client, endpoint: str):
        self.client = client
        self.endpoint = endpoint

    def post(self, body: bytes) -> int:
        try:
            resp = self.client.post(self.endpoint, content=body, headers=JSON_HEADERS)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e

        if not resp.is_success:
            raise BadStatusError(resp.status_code, resp.reason_phrase)
        return resp.status_code

    def send(self, payload: Payload) -> SendOutcome:
        try:
            status = self.post(serialize(payload))
        except SendError as e:
            logger.debug("send failed (%s): %s", e.kind, e)
            return SendOutcome(ok=False, reason=e.kind, status_code=getattr(e, "status_code", None))
        return SendOutcome(ok=True, status_code=status)
