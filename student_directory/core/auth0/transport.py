"""HTTP transport used by the Auth0 client.

The client only depends on the abstract ``Transport``; production code wires
``RequestsTransport`` and tests wire an in-memory fake.
"""
from __future__ import annotations
import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from .exceptions import TransportError


@dataclass
class TransportResponse:
    """Transport-neutral HTTP response.

    Attributes:
        status_code: HTTP status code
        body: Parsed JSON, raw text when not JSON, or None when empty
        url: Final request URL
        reason: HTTP reason phrase
    """
    status_code: int
    body: Any = None
    url: str = ""
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status_code < 400


class Transport(ABC):
    """Issues one HTTP request and returns the response or raises TransportError."""

    @abstractmethod
    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> TransportResponse:
        raise NotImplementedError


class RequestsTransport(Transport):
    """Transport backed by ``requests``, run in a worker thread."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> TransportResponse:
        return await asyncio.to_thread(self._send, method, url, params, json, headers)

    def _send(self, method, url, params, json, headers) -> TransportResponse:
        try:
            resp = requests.request(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc
        return TransportResponse(
            status_code=resp.status_code,
            body=_decode_body(resp),
            url=resp.url or url,
            reason=resp.reason or "",
        )


def _decode_body(resp: requests.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text
