"""Postgres-backed Record Store and Credit Ledger.

Talks to the hosted backend's ``properties``, ``profiles`` and
``transaction_history`` tables through a psycopg async connection. The
owner of a listing is stored in the ``agent_id`` column; everything else
maps one-to-one onto ``PropertyRecord`` fields.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import fields as dataclass_fields
from typing import Any, AsyncIterator, Iterable

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from listing_desk.config import PostgresConfig
from listing_desk.exceptions import RecordNotFoundError, RemoteMutationError
from listing_desk.models.enums import CreditType, TransactionType
from listing_desk.models.listing import (
    STORE_ASSIGNED_FIELDS,
    CreditBalance,
    CreditTransaction,
    PropertyRecord,
)
from listing_desk.store.base import CreditLedger, RecordStore

logger = logging.getLogger(__name__)

OWNER_COLUMN = "agent_id"
RECORD_FIELDS = tuple(f.name for f in dataclass_fields(PropertyRecord))


def _column(field_name: str) -> str:
    return OWNER_COLUMN if field_name == "owner_id" else field_name


def _to_db(value: Any) -> Any:
    """Adapt record values to what psycopg sends as Postgres types."""
    if isinstance(value, (frozenset, set, tuple)):
        return sorted(value) if isinstance(value, (frozenset, set)) else list(value)
    return getattr(value, "value", value)


def row_to_record(row: dict[str, Any]) -> PropertyRecord:
    """Build a record from a ``properties`` row, ignoring unknown columns."""
    data = {name: row[_column(name)] for name in RECORD_FIELDS if _column(name) in row}
    data["id"] = str(data["id"])
    data["owner_id"] = str(data.get("owner_id") or "")
    return PropertyRecord(**data)


async def connect(config: PostgresConfig) -> psycopg.AsyncConnection:
    """Open an autocommit connection returning rows as dicts."""
    return await psycopg.AsyncConnection.connect(
        config.connection_string,
        autocommit=True,
        row_factory=dict_row,
    )


class PostgresRecordStore(RecordStore):
    """Record Store over the ``properties`` table."""

    def __init__(self, conn: psycopg.AsyncConnection, table: str = "properties") -> None:
        self.conn = conn
        self.table = sql.Identifier(table)

    async def _execute(self, query: sql.Composable, params: Any = None) -> psycopg.AsyncCursor:
        try:
            async with self.conn.cursor() as cur:
                await cur.execute(query, params)
                return cur
        except psycopg.Error as e:
            raise RemoteMutationError(f"Record store call failed: {e}") from e

    async def query(
        self,
        owner_id: str | None = None,
        status: str | None = None,
        listing_type: str | None = None,
    ) -> list[PropertyRecord]:
        conditions = []
        params: list[Any] = []
        for column, value in ((OWNER_COLUMN, owner_id), ("status", status), ("listing_type", listing_type)):
            if value is not None:
                conditions.append(sql.SQL("{} = %s").format(sql.Identifier(column)))
                params.append(_to_db(value))

        query = sql.SQL("SELECT * FROM {}").format(self.table)
        if conditions:
            query += sql.SQL(" WHERE ") + sql.SQL(" AND ").join(conditions)
        query += sql.SQL(" ORDER BY created_at DESC")

        try:
            async with self.conn.cursor() as cur:
                await cur.execute(query, params)
                rows = await cur.fetchall()
        except psycopg.Error as e:
            raise RemoteMutationError(f"Record store query failed: {e}") from e

        logger.debug("Loaded %d rows from properties", len(rows))
        return [row_to_record(row) for row in rows]

    async def insert(self, record: PropertyRecord) -> PropertyRecord:
        values = {
            _column(name): _to_db(getattr(record, name))
            for name in RECORD_FIELDS
            if name not in STORE_ASSIGNED_FIELDS
        }
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
            self.table,
            sql.SQL(", ").join(map(sql.Identifier, values)),
            sql.SQL(", ").join(sql.Placeholder() * len(values)),
        )
        try:
            async with self.conn.cursor() as cur:
                await cur.execute(query, list(values.values()))
                row = await cur.fetchone()
        except psycopg.Error as e:
            raise RemoteMutationError(f"Insert failed: {e}") from e
        return row_to_record(row)

    def _set_clause(self, fields: dict[str, Any]) -> tuple[sql.Composable, list[Any]]:
        assignments = [
            sql.SQL("{} = %s").format(sql.Identifier(_column(name))) for name in fields
        ]
        assignments.append(sql.SQL("updated_at = now()"))
        return sql.SQL(", ").join(assignments), [_to_db(v) for v in fields.values()]

    async def update(self, record_id: str, **fields) -> None:
        set_clause, params = self._set_clause(fields)
        query = sql.SQL("UPDATE {} SET {} WHERE id = %s").format(self.table, set_clause)
        cur = await self._execute(query, [*params, record_id])
        if cur.rowcount == 0:
            raise RecordNotFoundError(f"Property {record_id} not found")

    async def update_many(self, record_ids: Iterable[str], **fields) -> None:
        set_clause, params = self._set_clause(fields)
        query = sql.SQL("UPDATE {} SET {} WHERE id = ANY(%s)").format(self.table, set_clause)
        await self._execute(query, [*params, list(record_ids)])

    async def delete(self, record_id: str) -> None:
        query = sql.SQL("DELETE FROM {} WHERE id = %s").format(self.table)
        await self._execute(query, [record_id])

    async def delete_many(self, record_ids: Iterable[str]) -> None:
        query = sql.SQL("DELETE FROM {} WHERE id = ANY(%s)").format(self.table)
        await self._execute(query, [list(record_ids)])

    async def increment_views(self, record_id: str) -> None:
        query = sql.SQL(
            "UPDATE {} SET views_count = COALESCE(views_count, 0) + 1 WHERE id = %s"
        ).format(self.table)
        cur = await self._execute(query, [record_id])
        if cur.rowcount == 0:
            raise RecordNotFoundError(f"Property {record_id} not found")


def row_to_transaction(row: dict[str, Any]) -> CreditTransaction:
    """Build a history entry from a ``transaction_history`` row."""
    details = row.get("details") or {}
    return CreditTransaction(
        id=str(row["id"]),
        owner_id=str(row["user_id"]),
        action_type=row["action_type"],
        credit_type=details.get("credit_type", CreditType.LISTING.value),
        amount=int(details.get("amount", 0)),
        balance_after=details.get("balance_after"),
        performed_by=str(row["performed_by"]) if row.get("performed_by") else None,
        reason=details.get("reason", ""),
        created_at=row.get("created_at"),
    )


class PostgresCreditLedger(CreditLedger):
    """Credit Ledger over the ``profiles`` and ``transaction_history`` tables.

    Each counter change and its history row are written in one transaction.
    """

    def __init__(
        self,
        conn: psycopg.AsyncConnection,
        table: str = "profiles",
        history_table: str = "transaction_history",
    ) -> None:
        self.conn = conn
        self.table = sql.Identifier(table)
        self.history_table = sql.Identifier(history_table)

    async def get_balance(self, owner_id: str) -> CreditBalance:
        query = sql.SQL(
            "SELECT listing_credits, boosting_credits FROM {} WHERE id = %s"
        ).format(self.table)
        try:
            async with self.conn.cursor() as cur:
                await cur.execute(query, [owner_id])
                row = await cur.fetchone()
        except psycopg.Error as e:
            raise RemoteMutationError(f"Balance lookup failed: {e}") from e

        if row is None:
            raise RecordNotFoundError(f"Profile {owner_id} not found")
        return CreditBalance(
            listing_credits=row["listing_credits"] or 0,
            boosting_credits=row["boosting_credits"] or 0,
        )

    async def decrement(
        self, owner_id: str, credit_type: str, amount: int = 1, reason: str = ""
    ) -> None:
        if amount <= 0:
            raise RemoteMutationError(f"Decrement amount must be positive, got {amount}")
        await self._move(owner_id, CreditType(credit_type), -amount, owner_id, reason)

    async def adjust(
        self,
        owner_id: str,
        credit_type: str,
        delta: int,
        performed_by: str | None = None,
        reason: str = "",
    ) -> CreditBalance:
        if delta == 0:
            raise RemoteMutationError("Credit adjustment must not be zero")
        return await self._move(owner_id, CreditType(credit_type), delta, performed_by, reason)

    async def _move(
        self,
        owner_id: str,
        credit_type: CreditType,
        delta: int,
        performed_by: str | None,
        reason: str,
    ) -> CreditBalance:
        column = sql.Identifier(credit_type.column)
        # The guard keeps the counter non-negative without a separate read
        update = sql.SQL(
            "UPDATE {table} SET {col} = {col} + %s, updated_at = now() "
            "WHERE id = %s AND {col} + %s >= 0 "
            "RETURNING listing_credits, boosting_credits"
        ).format(table=self.table, col=column)
        insert = sql.SQL(
            "INSERT INTO {} (user_id, action_type, details, performed_by) VALUES (%s, %s, %s, %s)"
        ).format(self.history_table)

        try:
            async with self.conn.transaction():
                async with self.conn.cursor() as cur:
                    await cur.execute(update, [delta, owner_id, delta])
                    row = await cur.fetchone()
                    if row is None:
                        raise RemoteMutationError(
                            f"Could not change {credit_type.value} credits of {owner_id} by {delta}"
                        )
                    balance = CreditBalance(row["listing_credits"], row["boosting_credits"])
                    action_type = TransactionType.CREDIT_ADD if delta > 0 else TransactionType.CREDIT_DEDUCT
                    details = {
                        "credit_type": credit_type.value,
                        "amount": abs(delta),
                        "balance_after": balance.available(credit_type.column),
                        "reason": reason,
                    }
                    await cur.execute(insert, [owner_id, action_type.value, Jsonb(details), performed_by])
        except psycopg.Error as e:
            raise RemoteMutationError(f"Credit update failed: {e}") from e

        logger.debug("Moved %+d %s credits for %s", delta, credit_type.value, owner_id)
        return balance

    async def history(
        self, owner_id: str | None = None, limit: int | None = None
    ) -> list[CreditTransaction]:
        query = sql.SQL("SELECT * FROM {}").format(self.history_table)
        params: list[Any] = []
        if owner_id is not None:
            query += sql.SQL(" WHERE user_id = %s")
            params.append(owner_id)
        query += sql.SQL(" ORDER BY created_at DESC")
        if limit is not None:
            query += sql.SQL(" LIMIT %s")
            params.append(limit)

        try:
            async with self.conn.cursor() as cur:
                await cur.execute(query, params)
                rows = await cur.fetchall()
        except psycopg.Error as e:
            raise RemoteMutationError(f"History lookup failed: {e}") from e
        return [row_to_transaction(row) for row in rows]


@asynccontextmanager
async def open_backend(
    config: PostgresConfig,
) -> AsyncIterator[tuple[PostgresRecordStore, PostgresCreditLedger]]:
    """Connect once and yield a Record Store and Credit Ledger sharing it."""
    conn = await connect(config)
    logger.info("Connected to %s:%d/%s", config.host, config.port, config.database)
    try:
        yield (
            PostgresRecordStore(conn, config.properties_table),
            PostgresCreditLedger(conn, config.profiles_table, config.transactions_table),
        )
    finally:
        await conn.close()
