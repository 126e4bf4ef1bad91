import json

import pytest

from scriptosaur.cliches import build_fix_instructions, parse_cliches
from scriptosaur.errors import ClicheFormatError
from scriptosaur.utils.text import strip_code_fences

def _item(**overrides):
    item = {
        "id": 1,
        "text": "давайте разберемся",
        "type": "шаблонная связка",
        "severity": 7,
        "suggestion": "убрать",
    }
    item.update(overrides)
    return item

def test_parse_plain_array():
    items = parse_cliches(json.dumps([_item(), _item(id=2, severity=3)]))
    assert [c.id for c in items] == [1, 2]
    assert items[0].text == "давайте разберемся"

def test_default_selection_threshold():
    items = parse_cliches(json.dumps([_item(id=1, severity=7), _item(id=2, severity=6)]))
    assert items[0].selected is True
    assert items[1].selected is False

def test_parse_fenced_response():
    raw = "```json\n" + json.dumps([_item()], ensure_ascii=False) + "\n```"
    items = parse_cliches(raw)
    assert len(items) == 1

def test_parse_bare_fence():
    raw = "```\n[]\n```"
    assert parse_cliches(raw) == []

def test_empty_array_is_valid():
    assert parse_cliches("[]") == []

def test_truncated_json_is_rejected():
    raw = json.dumps([_item(), _item(id=2)])[:-15]
    with pytest.raises(ClicheFormatError):
        parse_cliches(raw)

def test_object_instead_of_array_is_rejected():
    with pytest.raises(ClicheFormatError):
        parse_cliches(json.dumps({"items": [_item()]}))

@pytest.mark.parametrize("severity", [6.999, 7.0, "8", True, 0, 11])
def test_invalid_severity_rejects_batch(severity):
    raw = json.dumps([_item(id=1), _item(id=2, severity=severity)])
    with pytest.raises(ClicheFormatError):
        parse_cliches(raw)

def test_missing_field_rejects_batch():
    broken = _item(id=2)
    del broken["suggestion"]
    with pytest.raises(ClicheFormatError):
        parse_cliches(json.dumps([_item(), broken]))

def test_duplicate_ids_rejected():
    with pytest.raises(ClicheFormatError):
        parse_cliches(json.dumps([_item(id=1), _item(id=1)]))

def test_fix_instructions_format():
    items = parse_cliches(json.dumps([_item(id=3, text="в современном мире", suggestion="конкретика")]))
    assert build_fix_instructions(items) == "ID 3: в современном мире -> Исправить (конкретика)"

def test_strip_code_fences_leaves_inner_backticks():
    assert strip_code_fences('  ["a ``` b"]  ') == '["a ``` b"]'
