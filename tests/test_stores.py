from __future__ import annotations

import json
from pathlib import Path

import pytest

from streamprefs.exceptions import PreferencesStoreError, PreferenceTypeError
from streamprefs.stores import JsonFileStore, MemoryStore


@pytest.mark.asyncio
async def test_memory_store_basic_operations() -> None:
    store = MemoryStore({"a": 1})

    assert store.get("a") == 1
    assert store.get("missing") is None
    assert await store.set("b", ["x", "y"]) is True
    assert store.keys() == frozenset({"a", "b"})
    assert await store.remove("a") is True
    assert await store.remove("a") is True
    assert store.keys() == frozenset({"b"})
    assert await store.clear() is True
    assert store.keys() == frozenset()


@pytest.mark.asyncio
async def test_memory_store_returns_copies_of_lists() -> None:
    store = MemoryStore()
    await store.set("tags", ["a"])

    value = store.get("tags")
    assert isinstance(value, list)
    value.append("b")

    assert store.get("tags") == ["a"]


@pytest.mark.asyncio
async def test_store_rejects_non_native_values() -> None:
    store = MemoryStore()

    with pytest.raises(PreferenceTypeError) as exc_info:
        await store.set("bad", {"nested": True})  # type: ignore[arg-type]
    assert exc_info.value.key == "bad"

    with pytest.raises(PreferenceTypeError):
        MemoryStore({"bad": [1, 2]})  # type: ignore[dict-item]


@pytest.mark.asyncio
@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
async def test_stores_reject_non_finite_floats(tmp_path: Path, value: float) -> None:
    path = tmp_path / "prefs.json"
    file_store = await JsonFileStore.open(path)
    assert await file_store.set("ratio", 0.5) is True

    with pytest.raises(PreferenceTypeError) as exc_info:
        await file_store.set("ratio", value)
    assert exc_info.value.key == "ratio"
    assert file_store.get("ratio") == 0.5

    reopened = await JsonFileStore.open(path)
    assert reopened.get("ratio") == 0.5

    with pytest.raises(PreferenceTypeError):
        await MemoryStore().set("ratio", value)


@pytest.mark.asyncio
async def test_json_file_store_persists_and_reloads(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "prefs.json"
    store = await JsonFileStore.open(path)
    assert store.keys() == frozenset()

    assert await store.set("volume", 7) is True
    assert await store.set("tags", ["b", "a"]) is True
    assert await store.remove("missing") is True

    document = json.loads(path.read_text(encoding="utf-8"))
    assert document == {"values": {"tags": ["b", "a"], "volume": 7}, "version": 1}

    reopened = await JsonFileStore.open(path)
    assert reopened.get("volume") == 7
    assert reopened.get("tags") == ["b", "a"]


@pytest.mark.asyncio
async def test_json_file_store_reload_picks_up_external_changes(tmp_path: Path) -> None:
    path = tmp_path / "prefs.json"
    store = await JsonFileStore.open(path)
    await store.set("a", True)

    path.write_text(json.dumps({"version": 1, "values": {"b": "x"}}), encoding="utf-8")
    await store.reload()

    assert store.get("a") is None
    assert store.get("b") == "x"


@pytest.mark.asyncio
async def test_json_file_store_failed_flush_keeps_value_in_memory(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    store = await JsonFileStore.open(tmp_path / "prefs.json")

    def _fail(_payload: object) -> None:
        raise OSError("read-only filesystem")

    monkeypatch.setattr(store, "_write_atomic", _fail)

    assert await store.set("a", 1) is False
    assert store.get("a") == 1
    assert not (tmp_path / "prefs.json").exists()


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps({"version": 2, "values": {}}),
        json.dumps({"version": 1, "values": {"a": {"nested": 1}}}),
        json.dumps({"version": 1, "values": {}, "extra": 1}),
    ],
)
@pytest.mark.asyncio
async def test_json_file_store_rejects_malformed_documents(tmp_path: Path, content: str) -> None:
    path = tmp_path / "prefs.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(PreferencesStoreError) as exc_info:
        await JsonFileStore.open(path)
    assert exc_info.value.path == str(path)


@pytest.mark.asyncio
async def test_json_file_store_treats_blank_file_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "prefs.json"
    path.write_text("\n", encoding="utf-8")

    store = await JsonFileStore.open(path)

    assert store.keys() == frozenset()
