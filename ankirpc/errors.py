"""Exceptions raised by the AnkiConnect dispatch layer."""

from __future__ import annotations


class AnkiConnectError(Exception):
    """Base exception for all failures of one AnkiConnect call."""

    def __init__(self, message: str, *, action: str | None = None):
        self.message = message
        self.action = action
        super().__init__(f"{action}: {message}" if action else message)


class CommunicationError(AnkiConnectError):
    """The request never completed (connection refused, timeout, HTTP error)."""


class ProtocolError(AnkiConnectError):
    """The reply body is not a well-formed AnkiConnect envelope."""


class RemoteError(AnkiConnectError):
    """AnkiConnect answered with a non-empty ``error`` field."""


class EmptyReplyError(AnkiConnectError):
    """AnkiConnect answered with neither a result nor an error."""


class TransportError(RuntimeError):
    """Raised by transport adapters when a POST cannot be completed."""


class ConfigError(ValueError):
    """Invalid connection configuration."""
