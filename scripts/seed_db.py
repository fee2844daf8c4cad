"""
Seed municipalities and users into the mock DB or Firestore.

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Apply to configured DB: python scripts/seed_db.py --apply
  - Force mock DB even if FIREBASE configured: python scripts/seed_db.py --apply --force-mock

Reports reference users and municipalities by id, so the seed is checked
first: every user needs a known role, and every citizen, field staff member
or municipality admin must point at a seeded municipality.

NOTE: When applying to real Firestore, ensure `FIREBASE_CREDENTIALS_PATH` and `USE_MOCK_DB=false` are set in `.env`.
"""

import argparse
import json
import logging
import os
from typing import Any, List

from app.config.firebase import get_db
from app.core.settings import settings
from app.models.user import UserRole

logger = logging.getLogger("seed_db")

# Roles that only make sense inside one municipality
MUNICIPAL_ROLES = {UserRole.CITIZEN.value, UserRole.FIELD_STAFF.value, UserRole.MUNICIPALITY_ADMIN.value}


def load_seed(path: str = "./db_seed.json") -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def check_seed(seed: dict) -> List[str]:
    """Return a list of problems; empty when the seed is consistent."""
    problems = []
    municipalities = seed.get("municipalities", {})
    roles = {role.value for role in UserRole}

    for user_id, user in seed.get("users", {}).items():
        role = user.get("role")
        if role not in roles:
            problems.append(f"users/{user_id}: unknown role {role!r}")
        elif role in MUNICIPAL_ROLES and user.get("municipality_id") not in municipalities:
            problems.append(f"users/{user_id}: municipality {user.get('municipality_id')!r} is not seeded")
    return problems


def write_to_db(db: Any, seed: dict, apply: bool = False) -> int:
    """Write every seed document; returns the number of documents written."""
    written = 0
    for collection, docs in seed.items():
        for doc_id, data in docs.items():
            logger.info(f"Preparing: {collection}/{doc_id}")
            if not apply:
                continue
            db.collection(collection).document(doc_id).set(data)
            written += 1
            logger.info(f"Wrote: {collection}/{doc_id}")
    return written


def main():
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed to the DB instead of dry-run")
    parser.add_argument("--force-mock", action="store_true", help="Force use of mock DB even if FIREBASE configured")
    parser.add_argument("--seed", default=os.path.join(os.getcwd(), "db_seed.json"), help="Path to the seed file")
    args = parser.parse_args()

    if not os.path.exists(args.seed):
        logger.error(f"Seed file not found: {args.seed}")
        return 1

    seed = load_seed(args.seed)
    problems = check_seed(seed)
    if problems:
        for problem in problems:
            logger.error(problem)
        return 1

    if args.force_mock:
        logger.info("Forcing mock DB usage for this run.")
        settings.USE_MOCK_DB = True

    written = write_to_db(get_db(), seed, apply=args.apply)

    if args.apply:
        logger.info(f"Seeding completed ({written} documents).")
    else:
        logger.info("Dry run complete. Re-run with --apply to write to DB.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
