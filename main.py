#!/usr/bin/env python3
"""
Hospital records admin CLI -- manage users without going through the API.

The API only lets an admin create users, so the first admin has to come from
here.

Usage:
  python main.py create-user --username admin --name Administrator --role admin
  python main.py list-users

Environment variables (same as the API, see core/config.py):
  DATABASE_URL   Where the users table lives.
  BCRYPT_ROUNDS  Cost factor for new password hashes.
  SECRET_KEY     Required unless DEBUG=true (validated even though the CLI
                 issues no tokens, so a bad deployment fails here first).
"""

import argparse
import getpass
import sys
from typing import Optional

from auth.directory import UserDirectory
from auth.models import Role
from auth.store import UserStore
from core.config import get_settings


def _read_password() -> Optional[str]:
    """Prompt twice for a password. Returns None if the entries differ."""
    first = getpass.getpass("  Password: ")
    second = getpass.getpass("  Confirm password: ")
    if first != second:
        print("  [!] Passwords do not match.")
        return None
    return first


def _create_user(directory: UserDirectory, args: argparse.Namespace) -> int:
    password = _read_password()
    if password is None:
        return 1
    result = directory.create_user(
        {"username": args.username, "name": args.name, "password": password, "role": args.role}
    )
    if not result.ok:
        print(f"  [!] {result.message}")
        return 1
    print(f"  Created {args.username} ({args.role}).")
    return 0


def _list_users(directory: UserDirectory) -> int:
    users = directory.store.list_users()
    if not users:
        print("  No users.")
        return 0
    width = max(len(u.username) for u in users)
    for user in users:
        print(f"  {user.username:<{width}}  {user.role.value:<6}  {user.name}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="hospital-records",
        description="Administer hospital records users.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create-user", help="Create a user (prompts for the password)")
    create.add_argument("--username", required=True)
    create.add_argument("--name", required=True)
    create.add_argument("--role", required=True, choices=[r.value for r in Role])

    commands.add_parser("list-users", help="List username, role and name of every user")

    args = parser.parse_args(argv)

    settings = get_settings()
    store = UserStore(settings.database_url)
    try:
        directory = UserDirectory(store, bcrypt_rounds=settings.bcrypt_rounds)
        if args.command == "create-user":
            return _create_user(directory, args)
        return _list_users(directory)
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
