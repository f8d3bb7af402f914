"""AnkiConnect HTTP client: one blocking request/reply round trip."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from ankirpc.config import ConnectionConfig, get_config
from ankirpc.envelope import build_request, decode, encode
from ankirpc.errors import (
    CommunicationError,
    EmptyReplyError,
    ProtocolError,
    RemoteError,
    TransportError,
)
from ankirpc.transport import RequestsTransport, Transport

logger = logging.getLogger(__name__)


def call_envelope(
    envelope: Mapping[str, Any],
    *,
    config: ConnectionConfig | None = None,
    transport: Transport | None = None,
) -> Any:
    """Send a prebuilt envelope and return the unwrapped result.

    Blocks until the reply arrives. The envelope is sent as is; its
    ``apiKey`` (if any) is not taken from ``config``.

    Raises:
        CommunicationError: the POST did not complete.
        ProtocolError: the reply is not a JSON object envelope.
        RemoteError: AnkiConnect reported an error.
        EmptyReplyError: the reply had neither result nor error.
    """
    config = config or get_config()
    transport = transport or RequestsTransport(config.timeout_seconds)
    action = envelope["action"]

    logger.debug(f"Sending '{action}' to {config.url}")
    try:
        body = transport.post(config.url, encode(envelope))
    except TransportError as error:
        logger.debug(f"Transport failed for '{action}': {error}")
        raise CommunicationError(str(error), action=action) from error

    try:
        reply = decode(body)
    except ProtocolError as error:
        raise ProtocolError(error.message, action=action) from error

    if reply.failed:
        logger.debug(f"AnkiConnect rejected '{action}': {reply.error}")
        raise RemoteError(reply.error, action=action)
    if reply.empty:
        raise EmptyReplyError("reply carried neither result nor error", action=action)
    return reply.result


def call(
    action: str,
    params: Mapping[str, Any] | None = None,
    *,
    config: ConnectionConfig | None = None,
    transport: Transport | None = None,
) -> Any:
    """Send one action to AnkiConnect and return the unwrapped result.

    Batches are ordinary calls of the ``multi`` action. Raises the same
    errors as ``call_envelope``.
    """
    config = config or get_config()
    return call_envelope(
        build_request(action, params, config.api_key),
        config=config,
        transport=transport,
    )


def invoke(action: str, **params) -> Any:
    """Send a request to AnkiConnect and return the result.

    Raises RemoteError when AnkiConnect returns an error.
    """
    return call(action, params)
