"""Tests for the psycopg adapters using a mocked async connection."""

import asyncio
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import psycopg
import pytest

from listing_desk.config import PostgresConfig
from listing_desk.exceptions import RecordNotFoundError, RemoteMutationError
from listing_desk.models import CreditBalance, PropertyRecord
from listing_desk.store.postgres import (
    PostgresCreditLedger,
    PostgresRecordStore,
    open_backend,
    row_to_record,
    row_to_transaction,
)


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def cursor() -> AsyncMock:
    cur = AsyncMock()
    cur.rowcount = 1
    return cur


@pytest.fixture
def conn(cursor: AsyncMock) -> MagicMock:
    connection = MagicMock()
    connection.cursor.return_value.__aenter__.return_value = cursor
    connection.cursor.return_value.__aexit__.return_value = False
    connection.transaction.return_value.__aexit__.return_value = False
    return connection


def _row(**overrides) -> dict:
    row = {
        "id": "5b3e",
        "agent_id": "agent-1",
        "title": "Garden Villa",
        "price": Decimal("1500000"),
        "status": "active",
        "amenities": ["pool"],
        "image_urls": ["a.jpg"],
        "views_count": None,
        "created_at": datetime(2025, 1, 1),
        "updated_at": datetime(2025, 1, 2),
        "agent": {"name": "joined column"},
    }
    row.update(overrides)
    return row


class TestRowToRecord:
    def test_maps_owner_column(self) -> None:
        record = row_to_record(_row())

        assert record.owner_id == "agent-1"
        assert record.amenities == frozenset({"pool"})
        assert record.views_count is None

    def test_missing_owner(self) -> None:
        assert row_to_record(_row(agent_id=None)).owner_id == ""


class TestPostgresRecordStore:
    """Tests for PostgresRecordStore."""

    def test_query_with_filters(self, conn, cursor) -> None:
        cursor.fetchall.return_value = [_row(), _row(id="77aa")]
        store = PostgresRecordStore(conn)

        records = run(store.query(owner_id="agent-1", status="active"))

        assert [r.id for r in records] == ["5b3e", "77aa"]
        query, params = cursor.execute.call_args.args
        assert params == ["agent-1", "active"]

    def test_query_error(self, conn, cursor) -> None:
        cursor.execute.side_effect = psycopg.OperationalError("connection lost")

        with pytest.raises(RemoteMutationError):
            run(PostgresRecordStore(conn).query())

    def test_insert_excludes_store_fields(self, conn, cursor) -> None:
        cursor.fetchone.return_value = _row(id="new-id", status="pending")
        record = PropertyRecord(id="", owner_id="agent-1", title="Garden Villa", amenities={"pool", "gym"})

        created = run(PostgresRecordStore(conn).insert(record))

        assert created.id == "new-id"
        params = cursor.execute.call_args.args[1]
        assert "agent-1" in params
        assert ["gym", "pool"] in params

    def test_update_missing_row(self, conn, cursor) -> None:
        cursor.rowcount = 0

        with pytest.raises(RecordNotFoundError):
            run(PostgresRecordStore(conn).update("missing", status="active"))

    def test_update_many_params(self, conn, cursor) -> None:
        run(PostgresRecordStore(conn).update_many(["a", "b"], is_featured=True))

        assert cursor.execute.call_args.args[1] == [True, ["a", "b"]]

    def test_delete_many(self, conn, cursor) -> None:
        run(PostgresRecordStore(conn).delete_many(["a"]))

        assert cursor.execute.call_args.args[1] == [["a"]]

    def test_increment_views_missing(self, conn, cursor) -> None:
        cursor.rowcount = 0

        with pytest.raises(RecordNotFoundError):
            run(PostgresRecordStore(conn).increment_views("missing"))


class TestPostgresCreditLedger:
    """Tests for PostgresCreditLedger."""

    def test_get_balance(self, conn, cursor) -> None:
        cursor.fetchone.return_value = {"listing_credits": 4, "boosting_credits": None}

        assert run(PostgresCreditLedger(conn).get_balance("agent-1")) == CreditBalance(4, 0)

    def test_get_balance_missing(self, conn, cursor) -> None:
        cursor.fetchone.return_value = None

        with pytest.raises(RecordNotFoundError):
            run(PostgresCreditLedger(conn).get_balance("agent-1"))

    def test_decrement_writes_counter_and_history(self, conn, cursor) -> None:
        cursor.fetchone.return_value = {"listing_credits": 4, "boosting_credits": 0}

        run(PostgresCreditLedger(conn).decrement("agent-1", "boosting", 3, reason="Featured 3 properties"))

        update, insert = cursor.execute.call_args_list
        assert update.args[1] == [-3, "agent-1", -3]
        owner, action_type, details, performed_by = insert.args[1]
        assert (owner, action_type, performed_by) == ("agent-1", "credit_deduct", "agent-1")
        assert details.obj == {
            "credit_type": "boosting",
            "amount": 3,
            "balance_after": 0,
            "reason": "Featured 3 properties",
        }
        conn.transaction.assert_called_once()

    def test_decrement_insufficient(self, conn, cursor) -> None:
        cursor.fetchone.return_value = None

        with pytest.raises(RemoteMutationError):
            run(PostgresCreditLedger(conn).decrement("agent-1", "listing", 1))
        assert cursor.execute.call_count == 1

    def test_decrement_rejects_non_positive(self, conn, cursor) -> None:
        with pytest.raises(RemoteMutationError):
            run(PostgresCreditLedger(conn).decrement("agent-1", "listing", 0))
        cursor.execute.assert_not_called()

    def test_adjust_returns_balance(self, conn, cursor) -> None:
        cursor.fetchone.return_value = {"listing_credits": 15, "boosting_credits": 3}

        balance = run(PostgresCreditLedger(conn).adjust("agent-1", "listing", 10, performed_by="admin-1"))

        assert balance == CreditBalance(15, 3)
        insert = cursor.execute.call_args_list[1]
        assert insert.args[1][1] == "credit_add"
        assert insert.args[1][3] == "admin-1"

    def test_adjust_error_wrapped(self, conn, cursor) -> None:
        cursor.execute.side_effect = psycopg.OperationalError("connection lost")

        with pytest.raises(RemoteMutationError):
            run(PostgresCreditLedger(conn).adjust("agent-1", "listing", 1))

    def test_history(self, conn, cursor) -> None:
        cursor.fetchall.return_value = [{
            "id": "t1",
            "user_id": "agent-1",
            "action_type": "credit_deduct",
            "details": {"credit_type": "boosting", "amount": 2, "balance_after": 1, "reason": "Featured"},
            "performed_by": None,
            "created_at": datetime(2025, 1, 3),
        }]

        history = run(PostgresCreditLedger(conn).history("agent-1", limit=20))

        assert history[0].signed_amount == -2
        assert history[0].performed_by is None
        assert history[0].reason == "Featured"
        assert cursor.execute.call_args.args[1] == ["agent-1", 20]


def test_row_to_transaction_defaults() -> None:
    entry = row_to_transaction({"id": 7, "user_id": "agent-1", "action_type": "credit_add", "details": None})

    assert entry.id == "7"
    assert entry.amount == 0
    assert entry.credit_type == "listing"


def test_open_backend_closes_connection() -> None:
    connection = MagicMock()
    connection.close = AsyncMock()

    async def scenario():
        with patch("listing_desk.store.postgres.connect", AsyncMock(return_value=connection)):
            async with open_backend(PostgresConfig(properties_table="listings")) as (store, ledger):
                assert store.conn is connection
                assert ledger.conn is connection

    run(scenario())

    connection.close.assert_awaited_once()
