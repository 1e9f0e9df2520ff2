"""
Tests for the JSON persistence adapter against temporary files.
"""
from __future__ import annotations

import io
import json
import os
import sys
from pathlib import Path

import pytest

# Make the userstore package importable when running tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from userstore.core.errors import PersistenceLoadError, PersistenceSaveError  # noqa: E402
from userstore.domain.users import User  # noqa: E402
from userstore.repositories import json_storage  # noqa: E402
from userstore.repositories.json_storage import JSONStorage  # noqa: E402
from userstore.repositories.user_store import UserStore  # noqa: E402

LEGACY_DOCUMENT = {
    "Users": {
        "1": {"ID": 1, "Name": "Petya", "Age": 20},
        "2": {"ID": 2, "Name": "Alyosha", "Age": 30},
        "3": {"ID": 3, "Name": "Vasya", "Age": 35},
    },
    "Counter": 3,
}


def test_missing_file_loads_empty(tmp_path):
    storage = JSONStorage(tmp_path / "nope" / "data.json")
    assert not storage.exists()
    assert storage.load() == ({}, 0)
    store = UserStore.from_storage(storage)
    assert store.count() == 0
    assert store.counter == 0


def test_loads_legacy_layout(tmp_path):
    path = tmp_path / "data.json"
    path.write_text(json.dumps(LEGACY_DOCUMENT), encoding="utf-8")
    users, counter = JSONStorage(path).load()
    assert counter == 3
    assert users[2] == User(2, "Alyosha", 30)
    assert len(users) == 3


def test_save_then_load_reproduces_table(tmp_path):
    path = tmp_path / "data.json"
    store = UserStore()
    for name, age in (("Petya", 20), ("Alyosha", 30), ("Vasya", 35), ("Ivan", 0)):
        store.create(User(name=name, age=age))
    store.delete(2)
    storage = JSONStorage(path)
    assert store.save_to(storage) == 3

    reloaded = UserStore.from_storage(storage)
    assert reloaded.list() == store.list()
    assert reloaded.counter == 4
    assert reloaded.create(User(name="Next")).id == 5

    document = json.loads(path.read_text(encoding="utf-8"))
    assert document["Counter"] == 4
    assert document["Users"]["4"] == {"ID": 4, "Name": "Ivan", "Age": 0}


def test_stream_dump_and_load():
    buf = io.StringIO()
    json_storage.dump([User(7, "Олег", 40)], 9, buf)
    buf.seek(0)
    users, counter = json_storage.load_stream(buf)
    assert users == {7: User(7, "Олег", 40)}
    assert counter == 9


def test_missing_fields_and_null_users_default_to_zero_values():
    users, counter = json_storage.decode({"Counter": 2, "Users": {"2": {"ID": 2}}})
    assert users == {2: User(2, "", 0)}
    assert json_storage.decode({"Counter": 5, "Users": None}) == ({}, 5)


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[]",
        json.dumps({"Counter": "3", "Users": {}}),
        json.dumps({"Counter": 1, "Users": []}),
        json.dumps({"Counter": 3, "Users": {"1": {"ID": 2, "Name": "x", "Age": 1}}}),
        json.dumps({"Counter": 3, "Users": {"abc": {"ID": 1}}}),
        json.dumps({"Counter": 3, "Users": {"1": {"ID": 1, "Age": -4}}}),
        json.dumps({"Counter": 3, "Users": {"1": {"ID": 1, "Name": 12}}}),
        json.dumps({"Counter": 1, "Users": {"2": {"ID": 2, "Name": "x"}}}),
    ],
)
def test_corrupt_file_is_a_load_error(tmp_path, content):
    path = tmp_path / "data.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(PersistenceLoadError) as excinfo:
        JSONStorage(path).load()
    assert excinfo.value.path == str(path)


def test_directory_in_place_of_file_is_a_load_error(tmp_path):
    with pytest.raises(PersistenceLoadError):
        JSONStorage(tmp_path).load()


def test_failed_save_keeps_previous_file(tmp_path, monkeypatch):
    path = tmp_path / "data.json"
    storage = JSONStorage(path)
    storage.save([User(1, "Petya", 20)], 1)
    before = path.read_text(encoding="utf-8")

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(json_storage.os, "replace", broken_replace)
    with pytest.raises(PersistenceSaveError) as excinfo:
        storage.save([User(1, "Petya", 20), User(2, "Vasya", 35)], 2)
    assert "disk full" in str(excinfo.value)

    assert path.read_text(encoding="utf-8") == before
    assert [p.name for p in tmp_path.iterdir()] == ["data.json"]


def test_save_into_unwritable_location_is_a_save_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    storage = JSONStorage(blocker / "data.json")
    with pytest.raises(PersistenceSaveError):
        storage.save([], 0)


def test_save_creates_parent_directory(tmp_path):
    path = tmp_path / "nested" / "dir" / "data.json"
    JSONStorage(path).save([User(1, "a", 1)], 1)
    assert path.exists()
    assert os.path.getsize(path) > 0
