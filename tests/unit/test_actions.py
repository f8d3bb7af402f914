"""Tests for the declarative action constructors."""

import base64
import inspect

import pytest

from ankirpc import actions
from ankirpc.actions import (
    ACTIONS,
    ActionSpec,
    Payload,
    build_constructor,
    define_action,
    request_for,
    snake_case,
)
from ankirpc.config import configure
from ankirpc.dispatch import ActionRequest, dispatch
from ankirpc.envelope import build_request
from tests.conftest import FakeTransport, reply


@pytest.mark.parametrize(
    ("wire", "python"),
    [
        ("version", "version"),
        ("createDeck", "create_deck"),
        ("deckNamesAndIds", "deck_names_and_ids"),
        ("noteId", "note_id"),
    ],
)
def test_snake_case(wire, python):
    assert snake_case(wire) == python


def test_create_deck_envelope_without_api_key():
    configure(api_key="")
    request = actions.create_deck("Spanish")

    assert build_request(request.action, request.params, "") == {
        "action": "createDeck",
        "version": 6,
        "params": {"deckName": "Spanish"},
    }


def test_constructor_accepts_keyword_arguments():
    request = actions.change_deck(deck="Spanish", cards=[1, 2])

    assert request == ActionRequest("changeDeck", {"cards": [1, 2], "deck": "Spanish"})


def test_constructor_without_params_has_no_params():
    assert actions.deck_names().params is None


def test_constructor_applies_defaults():
    assert actions.delete_decks(["Old"]).params == {"decks": ["Old"], "cardsToo": True}


def test_constructor_rejects_wrong_arguments():
    with pytest.raises(TypeError):
        actions.create_deck()
    with pytest.raises(TypeError):
        actions.create_deck("A", "B")
    with pytest.raises(TypeError):
        actions.create_deck(deck="A")


def test_constructor_is_named_and_introspectable():
    constructor = actions.model_field_names

    assert constructor.__name__ == "model_field_names"
    assert list(inspect.signature(constructor).parameters) == [
        "model_name",
        "context",
        "on_success",
        "on_error",
        "post_process",
    ]
    assert constructor.spec is ACTIONS["modelFieldNames"]


def test_constructor_passes_callbacks_and_context():
    def on_success(result, context):
        return result, context

    def on_error(message):
        return message

    request = actions.find_notes(
        "deck:A", context="ctx", on_success=on_success, on_error=on_error
    )

    assert request.context == "ctx"
    assert request.on_success is on_success
    assert request.on_error is on_error


def test_add_note_uses_allow_duplicates_from_config():
    configure(allow_duplicates=True)

    request = actions.add_note("Spanish", "Basic", {"Front": "hola"}, tags=["es"])

    assert request.params == {
        "note": {
            "deckName": "Spanish",
            "modelName": "Basic",
            "fields": {"Front": "hola"},
            "options": {"allowDuplicate": True},
            "tags": ["es"],
        }
    }
    assert request.context == request.params["note"]


def test_add_note_defaults_to_disallow_duplicates_without_tags():
    note = actions.add_note("Spanish", "Basic", {"Front": "hola"}).params["note"]

    assert note["options"] == {"allowDuplicate": False}
    assert "tags" not in note


def test_caller_context_overrides_builder_context():
    request = actions.add_note("A", "Basic", {}, context="mine")

    assert request.context == "mine"


def test_caller_can_clear_builder_context():
    request = actions.add_note("A", "Basic", {}, context=None)

    assert request.context is None


def test_omitted_context_defaults_to_none_for_plain_actions():
    assert actions.find_notes("deck:A").context is None


def test_update_note_fields_nests_note():
    request = actions.update_note_fields(42, {"Back": "hello"})

    assert request.params == {"note": {"id": 42, "fields": {"Back": "hello"}}}


def test_store_media_file_encodes_bytes():
    request = actions.store_media_file("a.txt", b"hi")

    assert request.params == {"filename": "a.txt", "data": "aGk="}


def test_store_media_file_keeps_base64_strings():
    assert actions.store_media_file("a.txt", "aGk=").params["data"] == "aGk="


def test_version_extracts_int():
    transport = FakeTransport(reply("6"))

    assert dispatch(actions.version(), transport=transport) == 6


def test_extract_runs_before_caller_post_process():
    transport = FakeTransport(reply(base64.b64encode(b"data").decode("ascii")))

    request = actions.retrieve_media_file("a.txt", post_process=len)

    assert dispatch(request, transport=transport) == 4


def test_retrieve_missing_media_resolves_to_none():
    transport = FakeTransport(reply(False))

    assert dispatch(actions.retrieve_media_file("nope.png"), transport=transport) is None


def test_build_constructor_with_custom_payload():
    def build(query, limit):
        return Payload(
            {"query": f"{query} limit:{limit}"},
            context=limit,
            on_error=lambda message: [],
        )

    spec = ActionSpec("findCards", ("query", "limit"), build=build)
    constructor = build_constructor(spec)

    request = constructor("deck:A", 5)

    assert request.params == {"query": "deck:A limit:5"}
    assert request.context == 5
    assert request.on_error("boom") == []


def test_build_constructor_rejects_unknown_defaults():
    with pytest.raises(ValueError, match="unknown parameters"):
        build_constructor(ActionSpec("findCards", ("query",), defaults={"limit": 1}))


def test_build_constructor_rejects_callback_name_clash():
    with pytest.raises(ValueError, match="clash"):
        build_constructor(ActionSpec("weird", ("context",)))


def test_define_action_rejects_duplicates():
    with pytest.raises(ValueError, match="already defined"):
        define_action("createDeck", "deckName")


def test_request_for_applies_declared_extractor():
    request = request_for("version")

    assert request.params is None
    assert request.post_process is int


def test_request_for_unknown_action_is_plain():
    request = request_for("getNumCardsReviewedToday", {})

    assert request == ActionRequest("getNumCardsReviewedToday")
