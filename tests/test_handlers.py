"""
Tests for handlers.py against a FileSystemVault on disk
"""

import asyncio
import base64
import datetime

import pytest

from spanreed.bridge.handlers import (
    default_registry,
    generate_daily_note,
    list_dir,
    modify_property,
    move_file,
    query_dataview,
    read_file,
)
from spanreed.bridge.host import QueryEngine
from spanreed.bridge.vault import split_front_matter
from spanreed.protocol.errors import CapabilityUnavailableError, HandlerFault


def run(coro):
    return asyncio.run(coro)


def front_matter(vault_root, path):
    return split_front_matter((vault_root / path).read_text(encoding="utf-8"))[0]


def test_default_registry_holds_every_builtin_method():
    assert set(default_registry().names()) >= {
        "generate-daily-note", "modify-property", "query-dataview",
        "read-file", "list-dir", "move-file",
    }


def test_generate_daily_note_creates_todays_note(vault, vault_root):
    result = run(generate_daily_note(vault, None))
    assert result.success and result.value is None
    assert (vault_root / "Daily" / f"{datetime.date.today().isoformat()}.md").is_file()
    # Running it again keeps the existing note
    assert run(generate_daily_note(vault, None)).success


# ==== modify-property ====

def test_add_to_list_is_idempotent(vault, vault_root):
    params = {"filepath": "Notes/a.md", "property": "tags", "operation": "addToList", "value": "beta"}
    first = run(modify_property(vault, params))
    once = front_matter(vault_root, "Notes/a.md")["tags"]
    second = run(modify_property(vault, params))
    twice = front_matter(vault_root, "Notes/a.md")["tags"]
    assert first.success and second.success
    assert once == twice == ["alpha", "beta"]


def test_add_to_list_creates_absent_property(vault, vault_root):
    params = {"filepath": "Notes/b.md", "property": "aliases", "operation": "addToList", "value": "bee"}
    assert run(modify_property(vault, params)).success
    assert front_matter(vault_root, "Notes/b.md") == {"aliases": ["bee"]}
    # The body survives the rewrite
    assert (vault_root / "Notes" / "b.md").read_text(encoding="utf-8").endswith("plain body\n")


@pytest.mark.parametrize("operation", ["addToList", "removeFromList"])
def test_list_operations_reject_scalars(vault, vault_root, operation):
    params = {"filepath": "Other/c.md", "property": "status", "operation": operation, "value": "x"}
    result = run(modify_property(vault, params))
    assert not result.success and result.value == "property is not a list"
    assert front_matter(vault_root, "Other/c.md") == {"status": "draft"}


def test_remove_from_list(vault, vault_root):
    params = {"filepath": "Notes/a.md", "property": "tags", "operation": "removeFromList", "value": "alpha"}
    assert run(modify_property(vault, params)).success
    assert front_matter(vault_root, "Notes/a.md")["tags"] == []


def test_remove_from_absent_property_is_a_noop(vault, vault_root):
    before = (vault_root / "Notes" / "b.md").read_text(encoding="utf-8")
    params = {"filepath": "Notes/b.md", "property": "tags", "operation": "removeFromList", "value": "alpha"}
    result = run(modify_property(vault, params))
    assert result.success and result.value is None
    assert (vault_root / "Notes" / "b.md").read_text(encoding="utf-8") == before


def test_set_get_and_delete_property(vault, vault_root):
    base = {"filepath": "Other/c.md", "property": "status"}
    assert run(modify_property(vault, {**base, "operation": "setSingleValue", "value": "done"})).success
    assert run(modify_property(vault, {**base, "operation": "getProperty"})).value == "done"
    assert run(modify_property(vault, {**base, "operation": "deleteProperty"})).success
    result = run(modify_property(vault, {**base, "operation": "getProperty"}))
    assert result.success and result.value is None


def test_get_property_keeps_dates_as_text(vault):
    params = {"filepath": "Notes/a.md", "property": "created", "operation": "getProperty"}
    assert run(modify_property(vault, params)).value == "2024-01-01"


def test_rewrite_keeps_untouched_dates_unquoted(vault, vault_root):
    params = {"filepath": "Notes/a.md", "property": "tags", "operation": "addToList", "value": "beta"}
    assert run(modify_property(vault, params)).success
    text = (vault_root / "Notes" / "a.md").read_text(encoding="utf-8")
    assert "created: 2024-01-01\n" in text
    assert "'2024-01-01'" not in text


def test_list_operations_keep_booleans_apart_from_numbers(vault, vault_root):
    (vault_root / "flags.md").write_text("---\nflags:\n- 1\n- true\n---\n", encoding="utf-8")
    base = {"filepath": "flags.md", "property": "flags"}
    assert run(modify_property(vault, {**base, "operation": "addToList", "value": 0})).success
    assert run(modify_property(vault, {**base, "operation": "addToList", "value": False})).success
    assert front_matter(vault_root, "flags.md")["flags"] == [1, True, 0, False]
    assert run(modify_property(vault, {**base, "operation": "removeFromList", "value": True})).success
    assert front_matter(vault_root, "flags.md")["flags"] == [1, 0, False]


def test_get_property_rejects_values_without_json_form(vault, vault_root):
    (vault_root / "set.md").write_text("---\nvals: !!set {a: null}\n---\n", encoding="utf-8")
    params = {"filepath": "set.md", "property": "vals", "operation": "getProperty"}
    result = run(modify_property(vault, params))
    assert not result.success
    assert result.value == "property value cannot be encoded"


def test_modify_property_on_missing_file(vault):
    params = {"filepath": "Nope.md", "property": "tags", "operation": "addToList", "value": "x"}
    result = run(modify_property(vault, params))
    assert not result.success and result.value == "file not found"


def test_modify_property_unknown_operation(vault):
    params = {"filepath": "Notes/a.md", "property": "tags", "operation": "shuffle"}
    result = run(modify_property(vault, params))
    assert not result.success and result.value == "unknown operation shuffle"


def test_modify_property_missing_param_is_a_fault(vault):
    with pytest.raises(HandlerFault):
        run(modify_property(vault, {"filepath": "Notes/a.md"}))


# ==== query-dataview ====

class StaticEngine(QueryEngine):

    def __init__(self, answer=None, error=None):
        self.answer = answer
        self.error = error
        self.queries = []

    async def try_query(self, query):
        self.queries.append(query)
        if self.error is not None:
            raise HandlerFault(self.error)
        return self.answer


def test_query_dataview_returns_engine_result(vault):
    vault.query_engine = StaticEngine(answer={"type": "list", "values": ["Notes/a.md"]})
    result = run(query_dataview(vault, {"query": "LIST FROM \"Notes\""}))
    assert result.success and result.value == {"type": "list", "values": ["Notes/a.md"]}
    assert vault.query_engine.queries == ["LIST FROM \"Notes\""]


def test_query_dataview_passes_engine_error_through(vault):
    vault.query_engine = StaticEngine(error="Dataview: Error parsing query")
    with pytest.raises(HandlerFault, match="Error parsing query"):
        run(query_dataview(vault, {"query": "LIST FRM"}))


def test_query_dataview_without_engine(vault):
    with pytest.raises(CapabilityUnavailableError):
        run(query_dataview(vault, {"query": "LIST"}))


# ==== read-file ====

def test_read_file_binary(vault, vault_root):
    (vault_root / "blob.bin").write_bytes(bytes([0, 1, 2, 255]))
    result = run(read_file(vault, {"filepath": "blob.bin", "format": "binary"}))
    assert result.success
    assert result.value == {"content": base64.b64encode(b"\x00\x01\x02\xff").decode("ascii"), "encoding": "base64"}


def test_read_file_text(vault, vault_root):
    (vault_root / "utf8.md").write_text("héllo wörld", encoding="utf-8")
    result = run(read_file(vault, {"filepath": "utf8.md", "format": "text"}))
    assert result.value == {"content": "héllo wörld", "encoding": "utf-8"}
    # text is the default format
    assert run(read_file(vault, {"filepath": "utf8.md"})).value["encoding"] == "utf-8"


def test_read_file_missing(vault):
    result = run(read_file(vault, {"filepath": "missing.md"}))
    assert not result.success and result.value == "File missing.md doesn't exist"


def test_read_file_unknown_format(vault):
    result = run(read_file(vault, {"filepath": "Notes/b.md", "format": "hex"}))
    assert not result.success and result.value == "unknown format hex"


# ==== list-dir ====

def test_list_dir_prefix(vault):
    result = run(list_dir(vault, {"path": "Notes/"}))
    assert result.value == ["Notes/a.md", "Notes/b.md"]


def test_list_dir_prefix_is_not_segment_aware(vault, vault_root):
    (vault_root / "NotesArchive.md").write_text("", encoding="utf-8")
    assert run(list_dir(vault, {"path": "Notes"})).value == ["NotesArchive.md", "Notes/a.md", "Notes/b.md"]


def test_list_dir_no_match(vault):
    result = run(list_dir(vault, {"path": "Nowhere/"}))
    assert result.success and result.value == []


# ==== move-file ====

def test_move_file(vault, vault_root):
    result = run(move_file(vault, {"from": "Other/c.md", "to": "Archive/c.md"}))
    assert result.success and result.value is None
    assert not (vault_root / "Other" / "c.md").exists()
    assert (vault_root / "Archive" / "c.md").is_file()


def test_move_missing_file(vault):
    result = run(move_file(vault, {"from": "ghost.md", "to": "x.md"}))
    assert not result.success and result.value == "File ghost.md doesn't exist"
