import json

import pytest

from scriptosaur.prompt_store import PromptStore
from scriptosaur.prompts import DEFAULT_PROMPTS, PromptKey

def test_defaults_without_overrides(prompt_store):
    for key in PromptKey:
        assert prompt_store.get(key) == DEFAULT_PROMPTS[key]
        assert not prompt_store.is_overridden(key)

def test_set_persists_immediately(tmp_path):
    path = tmp_path / "prompts.json"
    store = PromptStore(path)
    store.set(PromptKey.HUMOR_SYSTEM, "Шути больше")

    assert json.loads(path.read_text(encoding="utf-8")) == {"humor_system": "Шути больше"}
    assert PromptStore(path).get(PromptKey.HUMOR_SYSTEM) == "Шути больше"

def test_string_keys_are_accepted(prompt_store):
    prompt_store.set("review_system", "Коротко")
    assert prompt_store.get(PromptKey.REVIEW_SYSTEM) == "Коротко"

def test_unknown_key_raises(prompt_store):
    with pytest.raises(KeyError):
        prompt_store.get("revew_system")

def test_empty_text_is_allowed(prompt_store):
    prompt_store.set(PromptKey.REVIEW_SYSTEM, "")
    assert prompt_store.get(PromptKey.REVIEW_SYSTEM) == ""
    assert prompt_store.is_overridden(PromptKey.REVIEW_SYSTEM)

def test_reset_restores_default(tmp_path):
    path = tmp_path / "prompts.json"
    store = PromptStore(path)
    store.set(PromptKey.STRUCTURE_REQUEST, "custom")

    assert store.reset(PromptKey.STRUCTURE_REQUEST) == DEFAULT_PROMPTS[PromptKey.STRUCTURE_REQUEST]
    assert store.get(PromptKey.STRUCTURE_REQUEST) == DEFAULT_PROMPTS[PromptKey.STRUCTURE_REQUEST]
    assert PromptStore(path).is_overridden(PromptKey.STRUCTURE_REQUEST) is False

def test_reset_all(prompt_store):
    prompt_store.set(PromptKey.HUMOR_SYSTEM, "a")
    prompt_store.set(PromptKey.REVIEW_SYSTEM, "b")
    prompt_store.reset_all()
    assert not any(prompt_store.is_overridden(k) for k in PromptKey)

def test_last_write_wins(prompt_store):
    prompt_store.set(PromptKey.HUMOR_SYSTEM, "first")
    prompt_store.set(PromptKey.HUMOR_SYSTEM, "second")
    assert prompt_store.get(PromptKey.HUMOR_SYSTEM) == "second"

def test_unknown_keys_in_file_are_ignored(tmp_path):
    path = tmp_path / "prompts.json"
    path.write_text(json.dumps({"humor_system": "x", "old_key": "y"}), encoding="utf-8")
    store = PromptStore(path)
    assert store.get(PromptKey.HUMOR_SYSTEM) == "x"

def test_memory_only_store():
    store = PromptStore()
    store.set(PromptKey.HUMOR_SYSTEM, "x")
    assert store.get(PromptKey.HUMOR_SYSTEM) == "x"

def test_corrupt_file_is_ignored(tmp_path):
    path = tmp_path / "prompts.json"
    path.write_text("{not json", encoding="utf-8")
    store = PromptStore(path)
    assert store.get(PromptKey.REVIEW_SYSTEM) == DEFAULT_PROMPTS[PromptKey.REVIEW_SYSTEM]
    assert not any(store.is_overridden(key) for key in PromptKey)

def test_non_object_file_is_ignored(tmp_path):
    path = tmp_path / "prompts.json"
    path.write_text('["review_system"]', encoding="utf-8")
    assert not PromptStore(path).is_overridden(PromptKey.REVIEW_SYSTEM)
