#!/usr/bin/env python3
"""Provision a user and print the API token the editor client syncs with.

Run inside the container:
    docker compose exec devtime python -m admin.create_user me@example.com "My Name"

Or locally:
    DB_PATH=./data/devtime.db python -m admin.create_user me@example.com
"""

import sqlite3
import sys
from pathlib import Path

# Allow running as module from /app
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from devtime.errors import StoreError
from devtime.users import create_user


def main(argv: list[str]) -> int:
    if not argv:
        print("usage: python -m admin.create_user EMAIL [NAME]", file=sys.stderr)
        return 2
    email = argv[0]
    name = argv[1] if len(argv) > 1 else None
    try:
        user = create_user(email, name)
    except StoreError as e:
        if isinstance(e.__cause__, sqlite3.IntegrityError):
            print(f"User {email} already exists", file=sys.stderr)
            return 1
        raise
    print(f"Created user {user['email']} (id={user['id']})")
    print(f"  API token: {user['api_token']}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
