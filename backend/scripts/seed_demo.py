"""CLI script to seed demo users and study groups into the configured DB.
Usage: python scripts/seed_demo.py [--reset] [--allow-duplicate-subjects]
"""
import sys
import argparse
import pathlib
# Ensure `backend/` is on sys.path so `studygroups` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from studygroups.config import settings
from studygroups.database import engine, create_db_and_tables, drop_db_and_tables
from studygroups.seed import seed_demo_data


def main(reset: bool = False, allow_duplicate_subjects: bool = False):
    """Seed the database named by `DATABASE_URL`.

    `reset` drops and recreates every table first. Seeding is skipped
    when a study group already exists.
    """
    print(f'Using database: {settings.DATABASE_URL}')
    if allow_duplicate_subjects and settings.UNIQUE_SUBJECTS:
        print('Set UNIQUE_SUBJECTS=false to seed repeated subjects')
        return
    if reset:
        drop_db_and_tables()
        create_db_and_tables()
        print('Tables recreated')
    with Session(engine) as session:
        created = seed_demo_data(session, unique_subjects=False if allow_duplicate_subjects else None)
    if not created['groups']:
        print('Study groups already present; nothing seeded')
        return
    print(f"Seeded {created['users']} users and {created['groups']} study groups")


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--reset', action='store_true', help='Drop and recreate all tables before seeding')
    parser.add_argument('--allow-duplicate-subjects', action='store_true',
                        help='Seed every demo group even when subjects repeat')
    args = parser.parse_args()
    main(reset=args.reset, allow_duplicate_subjects=args.allow_duplicate_subjects)
