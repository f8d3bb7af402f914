"""Action requests and their single/batched dispatch.

An ``ActionRequest`` describes one call plus what to do with its outcome::

    request = ActionRequest(
        "findNotes",
        {"query": "deck:Spanish"},
        post_process=sorted,
        on_success=lambda note_ids, _context: len(note_ids),
    )
    count = dispatch(request)

``dispatch_all`` sends several requests as one ``multi`` call. The per-item
callbacks are not applied there; the aggregate result list is routed through
the callbacks given to ``dispatch_all`` itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from ankirpc.anki_client import call
from ankirpc.config import ConnectionConfig
from ankirpc.envelope import BATCH_ACTION, build_batch_params
from ankirpc.errors import RemoteError
from ankirpc.transport import Transport

logger = logging.getLogger(__name__)

SuccessCallback = Callable[[Any, Any], Any]
ErrorCallback = Callable[[str], Any]
PostProcess = Callable[[Any], Any]


@dataclass(frozen=True)
class ActionRequest:
    """One AnkiConnect call and the callbacks that shape its outcome."""

    action: str
    params: dict[str, Any] | None = None
    context: Any = None
    on_success: SuccessCallback | None = None
    on_error: ErrorCallback | None = None
    post_process: PostProcess | None = None

    def __post_init__(self):
        if not isinstance(self.action, str) or not self.action.strip():
            raise ValueError("action must be a non-empty string")


def dispatch(
    request: ActionRequest,
    *,
    config: ConnectionConfig | None = None,
    transport: Transport | None = None,
) -> Any:
    """Run ``request`` and return its final value.

    A RemoteError goes to ``on_error`` when set; every other failure
    propagates.
    """
    try:
        raw = call(request.action, request.params, config=config, transport=transport)
    except RemoteError as error:
        if request.on_error is None:
            raise
        logger.debug(f"Passing '{request.action}' error to on_error: {error.message}")
        return request.on_error(error.message)

    processed = request.post_process(raw) if request.post_process else raw
    if request.on_success is None:
        return processed
    return request.on_success(processed, request.context)


def batch(
    requests: Sequence[ActionRequest],
    *,
    context: Any = None,
    on_success: SuccessCallback | None = None,
    on_error: ErrorCallback | None = None,
    post_process: PostProcess | None = None,
) -> ActionRequest:
    """Build one ``multi`` request carrying ``requests`` in order."""
    if not requests:
        raise ValueError("batch needs at least one request")
    return ActionRequest(
        BATCH_ACTION,
        build_batch_params(requests),
        context=context,
        on_success=on_success,
        on_error=on_error,
        post_process=post_process,
    )


def dispatch_all(
    requests: Sequence[ActionRequest],
    *,
    config: ConnectionConfig | None = None,
    transport: Transport | None = None,
    **callbacks,
) -> Any:
    """Send ``requests`` as one ``multi`` call and return the final value.

    Without callbacks this is the raw result list, one entry per request in
    input order. Errors reported for individual entries are left in the
    list for the caller to interpret.
    """
    logger.debug(f"Batching {len(requests)} actions into one '{BATCH_ACTION}' call")
    return dispatch(batch(requests, **callbacks), config=config, transport=transport)
