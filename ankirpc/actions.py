"""Declarative AnkiConnect action constructors.

Each action is declared once with its wire name and parameter names::

    create_deck = define_action("createDeck", "deckName")

and ``create_deck("Spanish")`` then returns an ``ActionRequest`` for
``{"action": "createDeck", "params": {"deckName": "Spanish"}}``. Python
argument names are the snake_case forms of the wire names. Every
constructor also accepts keyword-only ``context``, ``on_success``,
``on_error`` and ``post_process``. A ``context`` given by the caller,
None included, replaces the one a builder supplies.

Actions whose payload is not a flat name/value mapping supply a ``build``
function returning a ``Payload``. Actions whose raw result needs reshaping
supply an ``extract`` function, applied before the caller's
``post_process``.

AnkiConnect answers some actions (``updateNoteFields``, ``deleteNotes``,
``changeDeck``, ...) with a null result. Dispatched alone those surface as
EmptyReplyError; send them through ``dispatch_all`` to get the per-item
results instead.
"""

from __future__ import annotations

import base64
import inspect
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from ankirpc.config import get_config
from ankirpc.dispatch import (
    ActionRequest,
    ErrorCallback,
    PostProcess,
    SuccessCallback,
)

_CALLBACK_ARGUMENTS = ("context", "on_success", "on_error", "post_process")


class _Unset:
    def __repr__(self) -> str:
        return "<builder default>"


# marks an omitted ``context``; an explicit None clears the builder context
_UNSET = _Unset()


@dataclass(frozen=True)
class Payload:
    """What a custom builder contributes to an ``ActionRequest``."""

    params: dict[str, Any] | None
    context: Any = None
    on_success: SuccessCallback | None = None
    on_error: ErrorCallback | None = None


@dataclass(frozen=True)
class ActionSpec:
    """Declaration of one AnkiConnect action."""

    action: str
    params: tuple[str, ...] = ()
    build: Callable[..., Payload] | None = None
    extract: Callable[[Any], Any] | None = None
    defaults: Mapping[str, Any] = field(default_factory=dict)
    doc: str = ""

    @property
    def function_name(self) -> str:
        return snake_case(self.action)

    @property
    def argument_names(self) -> tuple[str, ...]:
        return tuple(snake_case(name) for name in self.params)


ACTIONS: dict[str, ActionSpec] = {}


def snake_case(name: str) -> str:
    """``deckNamesAndIds`` -> ``deck_names_and_ids``."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def _compose(first: PostProcess | None, second: PostProcess | None) -> PostProcess | None:
    if first is None:
        return second
    if second is None:
        return first
    return lambda raw: second(first(raw))


def _signature(spec: ActionSpec) -> inspect.Signature:
    unknown = set(spec.defaults) - set(spec.params)
    if unknown:
        raise ValueError(
            f"Defaults for unknown parameters of '{spec.action}': {sorted(unknown)}"
        )
    clashing = set(spec.argument_names) & set(_CALLBACK_ARGUMENTS)
    if clashing:
        raise ValueError(
            f"Parameters of '{spec.action}' clash with callback keywords: "
            f"{sorted(clashing)}"
        )

    parameters = [
        inspect.Parameter(
            argument,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
            default=spec.defaults.get(wire, inspect.Parameter.empty),
        )
        for wire, argument in zip(spec.params, spec.argument_names)
    ]
    parameters.extend(
        inspect.Parameter(
            name,
            inspect.Parameter.KEYWORD_ONLY,
            default=_UNSET if name == "context" else None,
        )
        for name in _CALLBACK_ARGUMENTS
    )
    return inspect.Signature(parameters, return_annotation=ActionRequest)


def build_constructor(spec: ActionSpec) -> Callable[..., ActionRequest]:
    """Turn an ``ActionSpec`` into a named ``ActionRequest`` constructor."""
    signature = _signature(spec)

    def constructor(*args, **kwargs) -> ActionRequest:
        bound = signature.bind(*args, **kwargs)
        bound.apply_defaults()
        arguments = dict(bound.arguments)
        context, on_success, on_error, post_process = (
            arguments.pop(name) for name in _CALLBACK_ARGUMENTS
        )

        if spec.build is not None:
            payload = spec.build(**arguments)
        else:
            values = {
                wire: arguments[argument]
                for wire, argument in zip(spec.params, spec.argument_names)
            }
            payload = Payload(values or None)

        return ActionRequest(
            spec.action,
            payload.params,
            context=payload.context if context is _UNSET else context,
            on_success=on_success or payload.on_success,
            on_error=on_error or payload.on_error,
            post_process=_compose(spec.extract, post_process),
        )

    constructor.__name__ = constructor.__qualname__ = spec.function_name
    constructor.__doc__ = spec.doc or f"Build a '{spec.action}' request."
    constructor.__signature__ = signature
    constructor.spec = spec
    return constructor


def define_action(
    action: str,
    *params: str,
    build: Callable[..., Payload] | None = None,
    extract: Callable[[Any], Any] | None = None,
    defaults: Mapping[str, Any] | None = None,
    doc: str = "",
) -> Callable[..., ActionRequest]:
    """Declare an action, register it, and return its constructor."""
    if action in ACTIONS:
        raise ValueError(f"Action '{action}' is already defined")
    spec = ActionSpec(
        action=action,
        params=params,
        build=build,
        extract=extract,
        defaults=dict(defaults or {}),
        doc=doc,
    )
    constructor = build_constructor(spec)
    ACTIONS[action] = spec
    return constructor


def request_for(action: str, params: Mapping[str, Any] | None = None) -> ActionRequest:
    """Build a plain request by wire name, applying a declared extractor."""
    spec = ACTIONS.get(action)
    return ActionRequest(
        action,
        dict(params) if params else None,
        post_process=spec.extract if spec is not None else None,
    )


def _build_add_note(deck_name, model_name, fields, tags) -> Payload:
    note: dict[str, Any] = {
        "deckName": deck_name,
        "modelName": model_name,
        "fields": dict(fields),
        "options": {"allowDuplicate": get_config().allow_duplicates},
    }
    if tags:
        note["tags"] = list(tags)
    return Payload({"note": note}, context=note)


def _build_update_note_fields(note_id, fields) -> Payload:
    return Payload({"note": {"id": note_id, "fields": dict(fields)}}, context=note_id)


def _build_store_media_file(filename, data) -> Payload:
    if isinstance(data, (bytes, bytearray)):
        data = base64.b64encode(data).decode("ascii")
    return Payload({"filename": filename, "data": data}, context=filename)


def _decode_media(result: Any) -> bytes | None:
    # AnkiConnect answers false for a missing file
    if result is False:
        return None
    return base64.b64decode(result)


# -- Miscellaneous --
version = define_action(
    "version", extract=int, doc="Build a request for the AnkiConnect API version."
)
sync = define_action("sync", doc="Build a request to sync the collection with AnkiWeb.")
get_profiles = define_action("getProfiles")
gui_browse = define_action(
    "guiBrowse", "query", doc="Build a request to open the card browser on a query."
)

# -- Decks --
deck_names = define_action("deckNames")
deck_names_and_ids = define_action("deckNamesAndIds")
create_deck = define_action(
    "createDeck", "deckName", doc="Build a request creating a deck (nested via '::')."
)
delete_decks = define_action(
    "deleteDecks",
    "decks",
    "cardsToo",
    defaults={"cardsToo": True},
    doc="Build a request deleting decks together with their cards.",
)
change_deck = define_action("changeDeck", "cards", "deck")

# -- Models --
model_names = define_action("modelNames")
model_field_names = define_action("modelFieldNames", "modelName")

# -- Notes and cards --
find_notes = define_action("findNotes", "query")
notes_info = define_action("notesInfo", "notes")
find_cards = define_action("findCards", "query")
cards_info = define_action("cardsInfo", "cards")
add_note = define_action(
    "addNote",
    "deckName",
    "modelName",
    "fields",
    "tags",
    build=_build_add_note,
    defaults={"tags": None},
    doc=(
        "Build a request adding one note.\n\n"
        "Duplicates are allowed only when the active config sets\n"
        "``allow_duplicates``. The note dict is passed to ``on_success``\n"
        "as context."
    ),
)
update_note_fields = define_action(
    "updateNoteFields", "noteId", "fields", build=_build_update_note_fields
)
delete_notes = define_action("deleteNotes", "notes")

# -- Media --
store_media_file = define_action(
    "storeMediaFile",
    "filename",
    "data",
    build=_build_store_media_file,
    doc="Build a request storing a media file; ``bytes`` data is base64 encoded.",
)
retrieve_media_file = define_action(
    "retrieveMediaFile",
    "filename",
    extract=_decode_media,
    doc="Build a request fetching a media file; resolves to ``None`` when missing.",
)
