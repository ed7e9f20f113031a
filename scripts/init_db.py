#!/usr/bin/env python3
"""
Create the database tables and optionally seed an event.

Professionals join an event by entering its professional password during
account setup; this script is how such an event gets its first row.

Usage:
    python scripts/init_db.py
    python scripts/init_db.py --event "Spring Clinic" --password clinic2026
"""

import argparse
import getpass
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from slotbook.config import load_config
from slotbook.db import Event, create_db_engine, create_session_factory, init_db


def main():
    parser = argparse.ArgumentParser(description="Create tables and optionally seed an event")
    parser.add_argument("--database-url", help="Database URL (default: DATABASE_URL)")
    parser.add_argument("--event", "-e", help="Name of an event to create")
    parser.add_argument("--password", "-p", help="Professional password for the event")
    parser.add_argument("--inactive", action="store_true", help="Create the event as inactive")
    args = parser.parse_args()

    config = load_config()
    url = args.database_url or config.database.url

    engine = create_db_engine(url)
    init_db(engine)
    print(f"✅ Tables ready at {engine.url.render_as_string(hide_password=True)}")

    if not args.event:
        return

    password = args.password
    if not password:
        password = getpass.getpass("Professional password: ").strip()

    if len(password) < 6:
        print("❌ Professional password must be at least 6 characters!")
        sys.exit(1)

    if password == config.setup.admin_password:
        print("❌ Professional password must differ from the administrator setup password!")
        sys.exit(1)

    session_factory = create_session_factory(engine)
    with session_factory() as db:
        event = Event(name=args.event, professional_password=password, is_active=not args.inactive)
        db.add(event)
        db.commit()
        print()
        print("✅ Event created successfully!")
        print(f"   Name: {event.name}")
        print(f"   Event ID: {event.id}")
        print(f"   Active: {'Yes' if event.is_active else 'No'}")


if __name__ == "__main__":
    main()
