import json

import pytest

from mastery_tutor.core.models import Attachment, Message
from mastery_tutor.state.app_state import AppState, search_glossary
from mastery_tutor.state.store import HISTORY_KEY, THEME_KEY, JsonStateStore


def test_new_state_starts_with_welcome():
    state = AppState()
    assert [m.id for m in state.messages] == ["welcome"]
    assert "DEEP_LEARNING_TOPICS" in state.messages[0].content


def test_begin_request_is_exclusive():
    state = AppState()
    assert state.begin_request()
    assert not state.begin_request()
    state.end_request()
    assert state.begin_request()


def test_clear_history_resets_to_welcome():
    state = AppState()
    state.append_message(Message.create("user", "hi"))
    state.clear_history()
    assert [m.id for m in state.messages] == ["welcome"]


def test_glossary_add_search_remove():
    state = AppState()
    osmosis = state.add_glossary_item(" Osmosis ", "Water crossing a membrane.")
    state.add_glossary_item("Diffusion", "Spreading from high to low concentration.")

    assert osmosis.term == "Osmosis"
    assert [g.term for g in search_glossary(state.glossary, "")] == ["Diffusion", "Osmosis"]
    assert [g.term for g in search_glossary(state.glossary, "MEMBRANE")] == ["Osmosis"]

    state.remove_glossary_item(osmosis.id)
    assert [g.term for g in state.glossary] == ["Diffusion"]


def test_glossary_rejects_empty_term():
    with pytest.raises(ValueError):
        AppState().add_glossary_item("  ", "nothing")


def test_store_round_trip(tmp_path):
    store = JsonStateStore(tmp_path / "state.json")
    state = AppState()
    state.append_message(
        Message.create("user", "[Sent Image]", Attachment(data=b"\x89PNG", mime_type="image/png"))
    )
    state.add_glossary_item("Torque", "Rotational force.")
    state.select_model("gemini-2.5-flash")
    state.toggle_dark_mode()
    state.mark_onboarding_seen()

    store.save_state(state)
    loaded = store.load_state()

    assert loaded.messages == state.messages
    assert loaded.glossary == state.glossary
    assert loaded.selected_model == "gemini-2.5-flash"
    assert loaded.dark_mode
    assert loaded.onboarding_seen
    assert store.get(THEME_KEY) == "dark"


def test_missing_file_gives_defaults(tmp_path):
    state = JsonStateStore(tmp_path / "absent.json").load_state(default_model="m")
    assert [m.id for m in state.messages] == ["welcome"]
    assert state.selected_model == "m"
    assert not state.dark_mode


def test_corrupt_file_gives_defaults(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")
    state = JsonStateStore(path).load_state()
    assert [m.id for m in state.messages] == ["welcome"]
    assert state.glossary == []


def test_malformed_history_is_discarded(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({HISTORY_KEY: [{"role": "user"}], THEME_KEY: "dark"}), encoding="utf-8")
    state = JsonStateStore(path).load_state()
    assert [m.id for m in state.messages] == ["welcome"]
    assert state.dark_mode


@pytest.mark.parametrize("history", [["oops"], [1, 2], "not a list", {"id": "x"}])
def test_history_entries_that_are_not_objects_fall_back(tmp_path, history):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({HISTORY_KEY: history}), encoding="utf-8")

    state = JsonStateStore(path).load_state()

    assert [m.id for m in state.messages] == ["welcome"]


def test_remove_keys(tmp_path):
    store = JsonStateStore(tmp_path / "state.json")
    store.set_many({"a": 1, "b": 2})
    store.remove("a")
    assert store.get("a") is None
    assert store.get("b") == 2
