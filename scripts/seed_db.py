"""
Seed script for SaniTrack users (admins, officers, demo citizens).

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Apply to configured store: python scripts/seed_db.py --apply
  - Custom seed file: python scripts/seed_db.py --file ./db_seed.json --apply

Behavior:
  - Loads users from the seed file ({"users": {"<id>": {...}}}) or, when the
    file is missing, from DEFAULT_USERS.
  - Writes through UserService into the store resolved by settings
    (Firestore, or memory when USE_MOCK_DB=true).
  - Existing user ids are reported and skipped.

NOTE: When applying to real Firestore, ensure FIREBASE_CREDENTIALS_PATH is set
and USE_MOCK_DB=false in .env.
"""

import argparse
import json
import logging
import os
from typing import Dict

from sanitrack.core.errors import ConflictError
from sanitrack.models.user import UserCreate
from sanitrack.services.user_service import UserService
from sanitrack.storage import Store, get_store

logger = logging.getLogger(__name__)

DEFAULT_USERS: Dict[str, Dict] = {
    "admin-accra-001": {
        "phone_number": "+233502234567",
        "full_name": "Assembly Admin",
        "email": "admin@example.com",
        "role": "assembly_admin",
    },
    "officer-accra-001": {
        "phone_number": "+233503234567",
        "full_name": "Enforcement Officer",
        "email": "officer@example.com",
        "role": "enforcement_officer",
    },
    "citizen-demo-001": {
        "phone_number": "+233501234567",
        "full_name": None,
        "role": "citizen",
    },
}


def load_seed(path: str) -> Dict[str, Dict]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f).get("users", {})


def seed_users(store: Store, users: Dict[str, Dict], apply: bool = False) -> Dict[str, int]:
    service = UserService(store)
    summary = {"created": 0, "skipped": 0, "planned": 0}

    for user_id, data in users.items():
        user_data = UserCreate(**data)
        print(f"Preparing: users/{user_id} ({user_data.role.value})")
        if not apply:
            summary["planned"] += 1
            continue
        try:
            service.create_user(user_data, user_id=user_id)
            summary["created"] += 1
            print(f"Wrote: users/{user_id}")
        except ConflictError:
            summary["skipped"] += 1
            print(f"Skipped existing: users/{user_id}")

    return summary


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed to the store instead of dry-run")
    parser.add_argument("--file", default=os.path.join(os.getcwd(), "db_seed.json"), help="Seed file path")
    args = parser.parse_args()

    if os.path.exists(args.file):
        users = load_seed(args.file)
    else:
        print(f"Seed file not found: {args.file}, using built-in users")
        users = DEFAULT_USERS

    summary = seed_users(get_store(), users, apply=args.apply)

    if args.apply:
        print(f"Seeding completed: {summary['created']} created, {summary['skipped']} skipped.")
    else:
        print("Dry run complete. Re-run with --apply to write to the store.")


if __name__ == "__main__":
    main()
