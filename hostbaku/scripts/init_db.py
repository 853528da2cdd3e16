"""
Create the HostBaku schema.

Creates every table the statement API reads or writes, including the
owner_statements unique (property_id, statement_date) constraint.
Existing tables are left untouched.

Usage:
    python -m hostbaku.scripts.init_db
    python -m hostbaku.scripts.init_db --db-url sqlite:///hostbaku.db
"""

import argparse

from sqlalchemy import inspect

from hostbaku.common.config_loader import get_config, get_database_url
from hostbaku.common.engine import create_db_engine
from hostbaku.models import Base


def init_db(engine):
    """
    Create missing tables.

    Returns:
        list: Names of tables that were created
    """
    existing = set(inspect(engine).get_table_names())
    Base.metadata.create_all(engine)
    return [name for name in Base.metadata.tables if name not in existing]


def main(argv=None):
    parser = argparse.ArgumentParser(description='Create the HostBaku database schema')
    parser.add_argument('--db-url', help='SQLAlchemy URL (defaults to database.yaml backend)')
    args = parser.parse_args(argv)

    db_url = args.db_url or get_database_url('backend')
    engine = create_db_engine(db_url, get_config().database.backend)

    print("=" * 60)
    print("Schema: HostBaku backend")
    print("=" * 60)

    created = init_db(engine)
    for name in Base.metadata.tables:
        state = 'created' if name in created else 'already exists'
        print(f"  [{name}] {state}")

    print()
    print("Schema ready!")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
