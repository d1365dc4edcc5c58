"""
tests/test_export.py — CSV Exports
====================================
"""

from __future__ import annotations

import csv
import io
from datetime import UTC, datetime

from conftest import make_skill

from skillswap.services import export_service, swap_service
from skillswap.services.export_service import SWAP_FIELDS, USER_FIELDS, to_csv


def _rows(body: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(body)))


class TestToCsv:
    def test_header_only_when_empty(self):
        assert to_csv(("a", "b"), []) == "a,b\n"

    def test_cell_formatting(self):
        when = datetime(2026, 5, 1, 12, 30, tzinfo=UTC)
        body = to_csv(("none", "flag", "off", "when", "n"), [(None, True, False, when, 7)])
        assert body.splitlines()[1] == ",true,false,2026-05-01T12:30:00+00:00,7"

    def test_minimal_quoting(self):
        body = to_csv(("name", "note"), [("Smith, Jo", 'said "hi"')])
        assert body.splitlines()[1] == '"Smith, Jo","said ""hi"""'
        assert _rows(body)[1] == ["Smith, Jo", 'said "hi"']


class TestExports:
    def test_users_csv(self, db_engine, make_user):
        make_user("Ana", offered=["Guitar", "Piano"], wanted=["Spanish"], location="Lisbon")

        rows = _rows(export_service.export_users_csv(db_engine))
        assert rows[0] == list(USER_FIELDS)
        record = dict(zip(rows[0], rows[1]))
        assert record["name"] == "Ana"
        assert record["location"] == "Lisbon"
        assert record["isPublic"] == "true"
        assert record["isBanned"] == "false"
        assert record["trustScore"] == "100"
        assert record["skillsOffered"] == "2"
        assert record["skillsWanted"] == "1"
        assert record["createdAt"]

    def test_users_csv_empty(self, db_engine):
        assert export_service.export_users_csv(db_engine) == ",".join(USER_FIELDS) + "\n"

    def test_swaps_csv(self, db_engine, make_user):
        alice, bob = make_user(), make_user()
        swap = swap_service.create_swap(
            db_engine, from_user_id=alice.id, to_user_id=bob.id,
            offered=[make_skill("Guitar")], wanted=[make_skill("Spanish"), make_skill("Chess")],
        )

        rows = _rows(export_service.export_swaps_csv(db_engine))
        assert rows[0] == list(SWAP_FIELDS)
        record = dict(zip(rows[0], rows[1]))
        assert record["id"] == swap.id
        assert record["fromUserId"] == alice.id
        assert record["status"] == "pending"
        assert record["skillsOffered"] == "1"
        assert record["skillsWanted"] == "2"
        assert record["completedAt"] == ""

    def test_swaps_csv_keeps_deleted_rows(self, db_engine, make_user):
        alice, bob = make_user(), make_user()
        swap = swap_service.create_swap(
            db_engine, from_user_id=alice.id, to_user_id=bob.id,
            offered=[make_skill("Guitar")], wanted=[make_skill("Spanish")],
        )
        swap_service.cancel_swap(db_engine, swap.id, alice.id)
        swap_service.delete_swap(db_engine, swap.id, alice.id)

        rows = _rows(export_service.export_swaps_csv(db_engine))
        (record,) = [dict(zip(rows[0], row)) for row in rows[1:]]
        assert record["id"] == swap.id
        assert record["status"] == "deleted"
