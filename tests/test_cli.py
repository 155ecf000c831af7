"""
typed-store CLI: init-db and dump.
"""

from __future__ import annotations

import json

import pytest

from typed_store.cli.main import main
from typed_store.db.migrations import table_exists
from typed_store.store.sqlite_blob_store import SQLiteBlobStore
from typed_store.store.sqlite_session import sqlite_conn


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "init-db" in capsys.readouterr().out


def test_help_exits_zero():
    with pytest.raises(SystemExit) as exc_info:
        main(["--help"])
    assert exc_info.value.code == 0


def test_init_db_creates_tables(tmp_path, capsys):
    db = tmp_path / "cli.sqlite"
    assert main(["init-db", "--db", str(db), "--table", "post_metadata", "--table", "post_audit"]) == 0
    assert "2 table(s)" in capsys.readouterr().out
    with sqlite_conn(db) as conn:
        assert table_exists(conn, "post_metadata")
        assert table_exists(conn, "post_audit")


def test_init_db_uses_configured_path(tmp_path, monkeypatch):
    db = tmp_path / "env.sqlite"
    monkeypatch.setenv("TYPED_STORE_DB_PATH", str(db))
    assert main(["init-db", "--table", "post_metadata"]) == 0
    with sqlite_conn(db) as conn:
        assert table_exists(conn, "post_metadata")


def test_init_db_rejects_bad_table_name(tmp_path, capsys):
    assert main(["init-db", "--db", str(tmp_path / "x.sqlite"), "--table", "bad-name"]) == 2
    assert "init-db failed" in capsys.readouterr().err


def test_dump_prints_record_as_json(tmp_path, capsys):
    db = tmp_path / "cli.sqlite"
    SQLiteBlobStore(db).put("post_metadata", "7", b'{"views":3,"source":"api"}')
    assert main(["dump", "--db", str(db), "--table", "post_metadata", "--owner-id", "7"]) == 0
    assert json.loads(capsys.readouterr().out) == {"views": 3, "source": "api"}


def test_dump_missing_table_or_record_exits_1(tmp_path, capsys):
    db = tmp_path / "cli.sqlite"
    assert main(["dump", "--db", str(db), "--table", "post_metadata", "--owner-id", "1"]) == 1
    assert "not found" in capsys.readouterr().err
    SQLiteBlobStore(db).put("post_metadata", "2", b"{}")
    assert main(["dump", "--db", str(db), "--table", "post_metadata", "--owner-id", "1"]) == 1
    assert "No post_metadata record" in capsys.readouterr().err


def test_dump_malformed_record_exits_2(tmp_path, capsys):
    db = tmp_path / "cli.sqlite"
    SQLiteBlobStore(db).put("post_metadata", "1", b"{broken")
    assert main(["dump", "--db", str(db), "--table", "post_metadata", "--owner-id", "1"]) == 2
    assert "dump failed" in capsys.readouterr().err
