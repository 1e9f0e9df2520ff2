from __future__ import annotations

import importlib.util
import json
import sys
from pathlib import Path

import pytest

# Make the userstore package importable when running tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _load_script():
    spec = importlib.util.spec_from_file_location("add_user", ROOT / "scripts" / "add_user.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_add_user_appends_to_data_file(tmp_path, capsys):
    add_user = _load_script()
    db = tmp_path / "data.json"
    assert add_user.main(["--db", str(db), "--name", "Vasya", "--age", "35"]) == 0
    assert add_user.main(["--db", str(db), "--name", "Petya"]) == 0

    document = json.loads(db.read_text(encoding="utf-8"))
    assert document["Counter"] == 2
    assert document["Users"]["1"] == {"ID": 1, "Name": "Vasya", "Age": 35}
    assert "ID: 2" in capsys.readouterr().out


def test_add_user_rejects_negative_age(tmp_path):
    add_user = _load_script()
    with pytest.raises(SystemExit):
        add_user.main(["--db", str(tmp_path / "data.json"), "--name", "x", "--age", "-3"])
