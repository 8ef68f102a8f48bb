from asset_tracker.repositories.interfaces import LedgerStore
from asset_tracker.repositories.memory import InMemoryLedgerStore
from asset_tracker.repositories.sqlite import SQLiteDatabase, SQLiteLedgerStore

__all__ = [
    "InMemoryLedgerStore",
    "LedgerStore",
    "SQLiteDatabase",
    "SQLiteLedgerStore",
]
