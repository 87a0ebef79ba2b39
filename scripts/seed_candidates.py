#!/usr/bin/env python3
"""
Import candidates from a JSON file into the database.

The file holds a JSON array of candidates in API format (camelCase keys,
nested education/experience). Candidates whose email is already stored
are skipped.

Usage:
    python scripts/seed_candidates.py --json data/candidates.json --db data/talentdesk.db
"""

import argparse
import json
import sys
from pathlib import Path

from talentdesk.database import Candidate, init_database, get_session
from talentdesk.errors import ValidationError
from talentdesk.repositories.candidates import CandidateRepository
from talentdesk.schema import parse_candidate


def seed(json_path: Path, db_path: Path, dry_run: bool = False) -> bool:
    """
    Import candidates from json_path into db_path.

    Args:
        json_path: Path to JSON array of candidates
        db_path: Path to SQLite database file
        dry_run: If True, validate and report without writing

    Returns:
        True if every valid candidate was imported (or would be, in dry-run mode)
    """
    print(f"Loading candidates from {json_path}...")
    with open(json_path, encoding="utf-8") as f:
        records = json.load(f)

    if not isinstance(records, list):
        print("❌ Expected a JSON array of candidates")
        return False
    print(f"Found {len(records)} candidates in file")

    parsed = []
    invalid = 0
    for i, record in enumerate(records, 1):
        try:
            parsed.append(parse_candidate(record))
        except ValidationError as e:
            print(f"⚠️  Skipping record {i}: {'; '.join(e.errors) or e.message}")
            invalid += 1

    if dry_run:
        print("\n[DRY RUN] Would import the following candidates:")
        for i, payload in enumerate(parsed[:5], 1):
            print(f"  {i}. {payload.first_name} {payload.last_name} <{payload.email}>")
        if len(parsed) > 5:
            print(f"  ... and {len(parsed) - 5} more")
        return True

    print(f"\nInitializing database at {db_path}...")
    init_database(db_path)
    session = get_session(db_path)
    repo = CandidateRepository(session)

    imported = 0
    skipped = 0
    errors = 0
    try:
        for payload in parsed:
            existing = session.query(Candidate).filter_by(email=payload.email).first()
            if existing:
                print(f"⚠️  {payload.email} already exists, skipping")
                skipped += 1
                continue
            try:
                repo.create(payload.scalar_fields(), payload.education, payload.experience)
                imported += 1
            except Exception as e:
                print(f"❌ Error importing {payload.email}: {e}")
                errors += 1

            if imported and imported % 20 == 0:
                print(f"  Imported {imported} candidates...")
    finally:
        session.close()

    print(f"\n✅ Import complete!")
    print(f"   Imported: {imported}")
    print(f"   Skipped:  {skipped}")
    print(f"   Invalid:  {invalid}")
    print(f"   Errors:   {errors}")
    return errors == 0


def main():
    parser = argparse.ArgumentParser(description="Import candidates from JSON into the database")
    parser.add_argument("--json", type=Path, default=Path("data/candidates.json"),
                        help="Path to JSON array of candidates")
    parser.add_argument("--db", type=Path, default=Path("data/talentdesk.db"),
                        help="Path to SQLite database file")
    parser.add_argument("--dry-run", action="store_true",
                        help="Validate and show what would be imported without writing")

    args = parser.parse_args()

    if not args.json.exists():
        print(f"❌ JSON file not found: {args.json}")
        sys.exit(1)

    ok = seed(args.json, args.db, dry_run=args.dry_run)
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
