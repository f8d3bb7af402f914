"""AnkiConnect request/reply envelopes.

Outbound::

    {"action": "createDeck", "version": 6, "params": {...}, "apiKey": "..."}

``params`` and ``apiKey`` are left out entirely when empty; AnkiConnect
treats a present ``null`` differently from a missing key.

Inbound::

    {"result": ..., "error": null | "message"}
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from ankirpc.errors import ProtocolError

if TYPE_CHECKING:
    from ankirpc.dispatch import ActionRequest

PROTOCOL_VERSION = 6
BATCH_ACTION = "multi"


@dataclass(frozen=True)
class Reply:
    """Decoded inbound envelope."""

    result: Any = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return bool(self.error)

    @property
    def empty(self) -> bool:
        return self.result is None and not self.error


def build_sub_request(
    action: str, params: Mapping[str, Any] | None = None
) -> dict[str, Any]:
    """Build the version-less envelope used inside a ``multi`` batch."""
    envelope: dict[str, Any] = {"action": action}
    if params:
        envelope["params"] = dict(params)
    return envelope


def build_request(
    action: str,
    params: Mapping[str, Any] | None = None,
    api_key: str = "",
) -> dict[str, Any]:
    """Build the top-level envelope for one action."""
    envelope: dict[str, Any] = {"action": action, "version": PROTOCOL_VERSION}
    if params:
        envelope["params"] = dict(params)
    if api_key:
        envelope["apiKey"] = api_key
    return envelope


def build_batch_params(requests: Iterable[ActionRequest]) -> dict[str, Any]:
    """Build the ``multi`` params for several requests, keeping their order."""
    return {
        "actions": [
            build_sub_request(request.action, request.params) for request in requests
        ]
    }


def encode(envelope: Mapping[str, Any]) -> bytes:
    """Serialize an envelope to the UTF-8 JSON request body."""
    return json.dumps(envelope, ensure_ascii=False).encode("utf-8")


def decode(body: bytes) -> Reply:
    """Parse a reply body.

    Raises ProtocolError when the body is not a JSON object or its ``error``
    field is neither null nor a string.
    """
    try:
        data = json.loads(body)
    except (UnicodeDecodeError, ValueError) as error:
        raise ProtocolError(f"reply is not valid JSON: {_preview(body)}") from error
    if not isinstance(data, dict):
        raise ProtocolError(f"reply must be a JSON object: {_preview(body)}")

    error = data.get("error")
    if error is not None and not isinstance(error, str):
        raise ProtocolError(f"reply 'error' must be a string or null, got {error!r}")
    return Reply(result=data.get("result"), error=error)


def _preview(body: bytes) -> str:
    text = body.decode("utf-8", errors="replace")
    return " ".join(text.split())[:200] or "<empty>"
