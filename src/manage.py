"""Food ordering database management CLI.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
    python src/manage.py reset-db   # Drop, then create
"""

import argparse
import sys


def _domain():
    from food_ordering.domain import food_ordering

    food_ordering.init()
    return food_ordering


def setup_databases():
    from food_ordering.utils.db import setup_db

    print("Creating food_ordering database schema...")
    touched = setup_db(_domain())
    print(f"  schema ready on: {', '.join(touched) or 'no SQL providers configured'}")


def drop_databases():
    from food_ordering.utils.db import drop_db

    print("Dropping food_ordering database schema...")
    touched = drop_db(_domain())
    print(f"  schema dropped on: {', '.join(touched) or 'no SQL providers configured'}")


def main():
    parser = argparse.ArgumentParser(description="Food ordering database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("reset-db", help="Drop and recreate all database tables")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases()
    elif args.command == "drop-db":
        drop_databases()
    elif args.command == "reset-db":
        drop_databases()
        setup_databases()
    else:
        parser.print_help()
        sys.exit(1)

    print("Done.")


if __name__ == "__main__":
    main()
