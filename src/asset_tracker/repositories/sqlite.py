"""SQLite implementation of the ledger store."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from uuid import UUID

from asset_tracker.domain.arithmetic import total
from asset_tracker.domain.assets import (
    Asset,
    PurchaseLot,
    SaleRecord,
    normalize_symbol,
    validate_quantity,
)
from asset_tracker.exceptions import (
    AssetNotFoundError,
    DatabaseError,
    IntegrityError,
    PurchaseLotNotFoundError,
)
from asset_tracker.logging_config import get_logger
from asset_tracker.repositories.interfaces import LedgerStore

logger = get_logger(__name__)


class SQLiteDatabase:
    """SQLite database connection manager."""

    def __init__(
        self, path: str | Path = ":memory:", check_same_thread: bool = True
    ) -> None:
        self._path = str(path)
        self._check_same_thread = check_same_thread
        self._connection: sqlite3.Connection | None = None

    @property
    def path(self) -> str:
        return self._path

    def get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(
                self._path, check_same_thread=self._check_same_thread
            )
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA foreign_keys = ON")
        return self._connection

    def initialize(self) -> None:
        """Create all database tables."""
        conn = self.get_connection()
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS assets (
                id TEXT PRIMARY KEY,
                symbol TEXT NOT NULL UNIQUE,
                created_at TEXT NOT NULL
            );

            -- Quantities and prices are stored as decimal strings so that
            -- no value ever passes through a binary float.
            CREATE TABLE IF NOT EXISTS purchase_lots (
                id TEXT PRIMARY KEY,
                asset_id TEXT NOT NULL,
                settle_date TEXT NOT NULL,
                quantity TEXT NOT NULL,
                unit_price TEXT NOT NULL,
                created_at TEXT NOT NULL,
                FOREIGN KEY (asset_id) REFERENCES assets(id)
            );
            CREATE INDEX IF NOT EXISTS idx_purchase_lots_asset
                ON purchase_lots(asset_id, settle_date);

            CREATE TABLE IF NOT EXISTS sale_records (
                id TEXT PRIMARY KEY,
                asset_id TEXT NOT NULL,
                sell_date TEXT NOT NULL,
                quantity TEXT NOT NULL,
                unit_price TEXT NOT NULL,
                created_at TEXT NOT NULL,
                FOREIGN KEY (asset_id) REFERENCES assets(id)
            );
            CREATE INDEX IF NOT EXISTS idx_sale_records_asset
                ON sale_records(asset_id, sell_date);
            """
        )
        conn.commit()

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None


class SQLiteLedgerStore(LedgerStore):
    """SQLite implementation of LedgerStore.

    Every write commits immediately unless it runs inside ``atomic()``,
    in which case the block commits or rolls back as a whole.
    """

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database
        self._atomic_depth = 0

    def get_or_create_asset(self, symbol: str) -> Asset:
        symbol = normalize_symbol(symbol)
        existing = self.get_asset_by_symbol(symbol)
        if existing is not None:
            return existing

        asset = Asset(symbol=symbol)
        self._execute(
            "INSERT INTO assets (id, symbol, created_at) VALUES (?, ?, ?)",
            (str(asset.id), asset.symbol, asset.created_at.isoformat()),
        )
        logger.info("asset_created", symbol=symbol, asset_id=str(asset.id))
        return asset

    def get_asset(self, asset_id: UUID) -> Asset | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM assets WHERE id = ?", (str(asset_id),)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_asset(row)

    def get_asset_by_symbol(self, symbol: str) -> Asset | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM assets WHERE symbol = ?", (symbol,)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_asset(row)

    def list_purchase_lots(self, asset_id: UUID) -> Sequence[PurchaseLot]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """
            SELECT * FROM purchase_lots
            WHERE asset_id = ?
            ORDER BY settle_date, rowid
            """,
            (str(asset_id),),
        ).fetchall()
        return [self._row_to_purchase_lot(row) for row in rows]

    def get_purchase_lot(self, lot_id: UUID) -> PurchaseLot | None:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM purchase_lots WHERE id = ?", (str(lot_id),)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_purchase_lot(row)

    def create_purchase_lot(
        self,
        asset_id: UUID,
        settle_date: date,
        quantity: Decimal,
        unit_price: Decimal,
    ) -> PurchaseLot:
        self._require_asset(asset_id)
        lot = PurchaseLot(
            asset_id=asset_id,
            settle_date=settle_date,
            quantity=quantity,
            unit_price=unit_price,
        )
        self._execute(
            """
            INSERT INTO purchase_lots (id, asset_id, settle_date, quantity,
                                       unit_price, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                str(lot.id),
                str(lot.asset_id),
                lot.settle_date.isoformat(),
                str(lot.quantity),
                str(lot.unit_price),
                lot.created_at.isoformat(),
            ),
        )
        return lot

    def update_purchase_lot_quantity(
        self, lot_id: UUID, new_quantity: Decimal
    ) -> PurchaseLot:
        quantity = validate_quantity(new_quantity)
        cursor = self._execute(
            "UPDATE purchase_lots SET quantity = ? WHERE id = ?",
            (str(quantity), str(lot_id)),
        )
        if cursor.rowcount == 0:
            raise PurchaseLotNotFoundError(lot_id)
        lot = self.get_purchase_lot(lot_id)
        if lot is None:
            raise PurchaseLotNotFoundError(lot_id)
        return lot

    def delete_purchase_lot(self, lot_id: UUID) -> None:
        cursor = self._execute(
            "DELETE FROM purchase_lots WHERE id = ?", (str(lot_id),)
        )
        if cursor.rowcount == 0:
            raise PurchaseLotNotFoundError(lot_id)

    def sum_outstanding_quantity(self, asset_id: UUID) -> Decimal:
        # Summed in Python: SQLite would coerce the text columns to REAL.
        return total(lot.quantity for lot in self.list_purchase_lots(asset_id))

    def sum_outstanding_cost(self, asset_id: UUID) -> Decimal:
        return total(lot.cost for lot in self.list_purchase_lots(asset_id))

    def create_sale_record(
        self,
        asset_id: UUID,
        sell_date: date,
        quantity: Decimal,
        unit_price: Decimal,
    ) -> SaleRecord:
        self._require_asset(asset_id)
        sale = SaleRecord(
            asset_id=asset_id,
            sell_date=sell_date,
            quantity=quantity,
            unit_price=unit_price,
        )
        self._execute(
            """
            INSERT INTO sale_records (id, asset_id, sell_date, quantity,
                                      unit_price, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                str(sale.id),
                str(sale.asset_id),
                sale.sell_date.isoformat(),
                str(sale.quantity),
                str(sale.unit_price),
                sale.created_at.isoformat(),
            ),
        )
        return sale

    def list_sale_records(self, asset_id: UUID) -> Sequence[SaleRecord]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """
            SELECT * FROM sale_records
            WHERE asset_id = ?
            ORDER BY sell_date, rowid
            """,
            (str(asset_id),),
        ).fetchall()
        return [self._row_to_sale_record(row) for row in rows]

    def sum_sold_quantity(self, asset_id: UUID) -> Decimal:
        return total(sale.quantity for sale in self.list_sale_records(asset_id))

    @contextmanager
    def atomic(self) -> Iterator[None]:
        conn = self._db.get_connection()
        self._atomic_depth += 1
        try:
            yield
        except BaseException:
            self._atomic_depth -= 1
            if self._atomic_depth == 0:
                self._finish_transaction(conn.rollback)
            raise
        else:
            self._atomic_depth -= 1
            if self._atomic_depth == 0:
                try:
                    self._finish_transaction(conn.commit)
                except DatabaseError:
                    self._finish_transaction(conn.rollback)
                    raise

    def _finish_transaction(self, finish: Callable[[], None]) -> None:
        try:
            finish()
        except sqlite3.Error as e:
            raise DatabaseError(f"Transaction {finish.__name__} failed: {e}") from e

    def close(self) -> None:
        self._db.close()

    def _execute(self, sql: str, params: tuple) -> sqlite3.Cursor:
        conn = self._db.get_connection()
        try:
            cursor = conn.execute(sql, params)
        except sqlite3.IntegrityError as e:
            raise IntegrityError(str(e)) from e
        except sqlite3.Error as e:
            raise DatabaseError(str(e)) from e
        if self._atomic_depth == 0:
            conn.commit()
        return cursor

    def _require_asset(self, asset_id: UUID) -> None:
        if self.get_asset(asset_id) is None:
            raise AssetNotFoundError(asset_id)

    def _row_to_asset(self, row: sqlite3.Row) -> Asset:
        return Asset(
            symbol=row["symbol"],
            id=UUID(row["id"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_purchase_lot(self, row: sqlite3.Row) -> PurchaseLot:
        return PurchaseLot(
            asset_id=UUID(row["asset_id"]),
            settle_date=date.fromisoformat(row["settle_date"]),
            quantity=Decimal(row["quantity"]),
            unit_price=Decimal(row["unit_price"]),
            id=UUID(row["id"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_sale_record(self, row: sqlite3.Row) -> SaleRecord:
        return SaleRecord(
            asset_id=UUID(row["asset_id"]),
            sell_date=date.fromisoformat(row["sell_date"]),
            quantity=Decimal(row["quantity"]),
            unit_price=Decimal(row["unit_price"]),
            id=UUID(row["id"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )
