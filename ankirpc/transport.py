"""Blocking HTTP transport for AnkiConnect requests."""

from __future__ import annotations

from typing import Protocol

import requests

from ankirpc.config import DEFAULT_TIMEOUT_SECONDS
from ankirpc.errors import TransportError


class Transport(Protocol):
    """Performs one blocking POST and returns the raw reply body."""

    def post(self, url: str, body: bytes) -> bytes:
        """Raise TransportError when the request cannot be completed."""
        ...


class RequestsTransport:
    """Transport backed by ``requests``; opens a fresh connection per call."""

    def __init__(self, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        self.timeout_seconds = timeout_seconds

    def post(self, url: str, body: bytes) -> bytes:
        try:
            with requests.post(
                url,
                data=body,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout_seconds,
            ) as response:
                if response.status_code >= 400:
                    raise TransportError(
                        f"HTTP {response.status_code} from {url}: "
                        f"{' '.join(response.text.split())[:200]}"
                    )
                return response.content
        except requests.Timeout as error:
            raise TransportError(
                f"request to {url} timed out after {self.timeout_seconds}s"
            ) from error
        except requests.ConnectionError as error:
            raise TransportError(f"failed to connect to {url}: {error}") from error
        except requests.RequestException as error:
            raise TransportError(f"request to {url} failed: {error}") from error
