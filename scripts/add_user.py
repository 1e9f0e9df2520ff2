#!/usr/bin/env python3
"""
Add a user directly to a data file (server must not be running on it).

Usage:
  python scripts/add_user.py --db data.json --name Vasya [--age 35]
"""
from __future__ import annotations

import argparse
import sys

from userstore.core.errors import StoreError
from userstore.domain.users import User
from userstore.repositories.json_storage import JSONStorage
from userstore.repositories.user_store import UserStore


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Add a user to a userstore data file")
    ap.add_argument("--db", default="data.json", help="path to the JSON data file")
    ap.add_argument("--name", required=True, help="user name")
    ap.add_argument("--age", type=int, default=0, help="user age (0 = unknown)")
    args = ap.parse_args(argv)

    name = (args.name or "").strip()
    if not name:
        raise SystemExit("Name must not be empty")
    if args.age < 0:
        raise SystemExit("Age must not be negative")

    storage = JSONStorage(args.db)
    store = UserStore.from_storage(storage)
    user = store.create(User(name=name, age=args.age))
    store.save_to(storage)
    print("OK: user added")
    print(f"  ID: {user.id}")
    print(f"  Name: {user.name}")
    if user.age:
        print(f"  Age: {user.age}")
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except StoreError as exc:  # pragma: no cover - CLI use
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
