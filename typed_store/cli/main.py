"""
Top-level CLI dispatcher: typed-store <command> [args...].
Maintenance commands for the SQLite reference blob store.
"""

from __future__ import annotations

import argparse
import json
import logging
import sqlite3
import sys
from typing import List, Optional

from typed_store import config


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _main_init_db(args: argparse.Namespace) -> int:
    from typed_store.db.migrations import run_migrations
    from typed_store.store.sqlite_session import sqlite_conn

    db = args.db or config.db_path()
    with sqlite_conn(db) as conn:
        run_migrations(conn, args.table)
    print(f"Initialized {len(args.table)} table(s) in {db}")
    return 0


def _main_dump(args: argparse.Namespace) -> int:
    from typed_store.codec import decode_map
    from typed_store.db.migrations import table_exists
    from typed_store.schema import BackendConfig, StorageMode, StoreSchema
    from typed_store.store.sqlite_blob_store import SQLiteBlobStore
    from typed_store.store.sqlite_session import sqlite_conn

    db = args.db or config.db_path()
    with sqlite_conn(db) as conn:
        exists = table_exists(conn, args.table)
    if not exists:
        print(f"Table {args.table} not found in {db}", file=sys.stderr)
        return 1
    blob = SQLiteBlobStore(db).fetch(args.table, args.owner_id)
    if blob is None:
        print(f"No {args.table} record for owner {args.owner_id}", file=sys.stderr)
        return 1
    # Schema-less view: every stored key passes through undecoded
    schema = StoreSchema(
        owner_type=object,
        name=args.table,
        attributes={},
        backend=BackendConfig(StorageMode.ASSOCIATED, args.table),
    )
    values = decode_map(blob, schema)
    print(json.dumps(values, indent=2, sort_keys=True, ensure_ascii=False))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = argparse.ArgumentParser(
        prog="typed-store",
        description="Typed attribute store maintenance CLI",
    )
    subparsers = parser.add_subparsers(dest="command", help="command")

    p_init = subparsers.add_parser("init-db", help="Create associated store tables")
    p_init.add_argument("--db", default=None, help="SQLite path (default: config db.path)")
    p_init.add_argument("--table", action="append", required=True, help="Associated table name (repeatable)")

    p_dump = subparsers.add_parser("dump", help="Print one owner's associated record as JSON")
    p_dump.add_argument("--db", default=None, help="SQLite path (default: config db.path)")
    p_dump.add_argument("--table", required=True, help="Associated table name")
    p_dump.add_argument("--owner-id", required=True, help="Owner identity")

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    _configure_logging()
    from typed_store.core.errors import TypedStoreError

    try:
        if args.command == "init-db":
            return _main_init_db(args)
        if args.command == "dump":
            return _main_dump(args)
    except (TypedStoreError, sqlite3.Error, OSError) as e:
        print(f"{args.command} failed: {e}", file=sys.stderr)
        return 2
    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
