"""Synchronous dispatch layer for the AnkiConnect JSON-over-HTTP protocol."""

from ankirpc.anki_client import call, invoke
from ankirpc.config import (
    ConnectionConfig,
    config_from_env,
    configure,
    get_config,
    load_config,
    reset_config,
)
from ankirpc.dispatch import ActionRequest, batch, dispatch, dispatch_all
from ankirpc.errors import (
    AnkiConnectError,
    CommunicationError,
    ConfigError,
    EmptyReplyError,
    ProtocolError,
    RemoteError,
    TransportError,
)

__all__ = [
    "ActionRequest",
    "AnkiConnectError",
    "CommunicationError",
    "ConfigError",
    "ConnectionConfig",
    "EmptyReplyError",
    "ProtocolError",
    "RemoteError",
    "TransportError",
    "batch",
    "call",
    "config_from_env",
    "configure",
    "dispatch",
    "dispatch_all",
    "get_config",
    "invoke",
    "load_config",
    "reset_config",
]
