#!/usr/bin/env python3
"""
Create an administrator, or reset a user's password, in the Store
Ratings SQLite database.

Signup is restricted to administrators, so a fresh installation needs
one account created out of band.  The script applies pending
migrations, then either inserts a new ADMIN user or, with
``--reset``, replaces the password of an existing user.  It never
reads or reveals stored passwords.

Usage:
    python create_admin.py --db ./store_ratings.db --email admin@example.com \
        --name "Initial Platform Administrator"
    python create_admin.py --db ./store_ratings.db --email admin@example.com --reset

If --password is omitted, you will be prompted to enter it securely.
"""

import argparse
import getpass
import os
import sys

from store_ratings_api.app.core.db import Database
from store_ratings_api.app.core.errors import ValidationError
from store_ratings_api.app.core.security import hash_password
from store_ratings_api.app.core.validation import validate_email, validate_name, validate_password


def main() -> int:
    ap = argparse.ArgumentParser(description="Create an ADMIN user or reset a password (SQLite).")
    ap.add_argument("--db", required=True, help="Path to the SQLite DB file (e.g. ./store_ratings.db)")
    ap.add_argument("--email", required=True, help="Email of the account")
    ap.add_argument("--name", help="Full name (20-60 characters); required when creating")
    ap.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    ap.add_argument("--reset", action="store_true", help="Reset the password of an existing user")
    args = ap.parse_args()

    password = args.password or getpass.getpass("Enter NEW password: ")
    try:
        validate_email(args.email)
        validate_password(password)
        if not args.reset:
            validate_name(args.name or "")
    except ValidationError as e:
        print(f"[!] {e.message}", file=sys.stderr)
        return 1

    db = Database(os.path.abspath(args.db))
    db.open()
    try:
        with db.session() as conn:
            row = conn.execute("SELECT id FROM users WHERE email = ?", (args.email,)).fetchone()
            if args.reset:
                if not row:
                    print(f"[!] No user found with email: {args.email}", file=sys.stderr)
                    return 2
                conn.execute(
                    "UPDATE users SET password = ? WHERE email = ?",
                    (hash_password(password), args.email),
                )
                print(f"[+] Password updated for user: {args.email}")
                return 0
            if row:
                print(f"[!] A user with email {args.email} already exists; use --reset", file=sys.stderr)
                return 2
            conn.execute(
                "INSERT INTO users (name, email, password, role) VALUES (?, ?, ?, 'ADMIN')",
                (args.name, args.email, hash_password(password)),
            )
            print(f"[+] Administrator created: {args.email}")
            return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
