"""Dependency injection container for Asset Tracker.

Provides lazy access to the ledger store and the services built on it.

Usage:
    from asset_tracker.container import Container

    with Container(settings) as container:
        tracker = container.position_tracker
"""

from functools import cached_property, lru_cache

from asset_tracker.config import Settings, StoreType, get_settings
from asset_tracker.logging_config import get_logger
from asset_tracker.repositories.interfaces import LedgerStore
from asset_tracker.services.fifo import FifoMatcher
from asset_tracker.services.plan_application import PlanApplier
from asset_tracker.services.position_tracker import PositionTracker

logger = get_logger(__name__)


class Container:
    """Dependency injection container.

    Services are instantiated on first access and cached for reuse.
    For tests, build a Container with explicit settings:

        container = Container(Settings(store_type=StoreType.MEMORY))
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        logger.debug(
            "container_created",
            store_type=self._settings.store_type.value,
            environment=self._settings.environment.value,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @cached_property
    def store(self) -> LedgerStore:
        """Get the ledger store selected by ``store_type``."""
        if self._settings.store_type == StoreType.SQLITE:
            return self._create_sqlite_store()
        return self._create_memory_store()

    def _create_memory_store(self) -> LedgerStore:
        from asset_tracker.repositories.memory import InMemoryLedgerStore

        logger.info("initializing_memory_store")
        return InMemoryLedgerStore()

    def _create_sqlite_store(self) -> LedgerStore:
        from asset_tracker.repositories.sqlite import SQLiteDatabase, SQLiteLedgerStore

        db_path = str(self._settings.sqlite_path)
        logger.info("initializing_sqlite_store", path=db_path)

        db = SQLiteDatabase(db_path)
        db.initialize()
        return SQLiteLedgerStore(db)

    @cached_property
    def matcher(self) -> FifoMatcher:
        return FifoMatcher()

    @cached_property
    def plan_applier(self) -> PlanApplier:
        return PlanApplier(self.store, atomic=self._settings.atomic_plan_application)

    @cached_property
    def position_tracker(self) -> PositionTracker:
        return PositionTracker(
            self.store,
            self.matcher,
            self.plan_applier,
            division_precision=self._settings.division_precision,
        )

    def close(self) -> None:
        """Close the store if it was ever opened."""
        if "store" in self.__dict__:
            logger.info("closing_ledger_store")
            self.store.close()

    def __enter__(self) -> "Container":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


_container: Container | None = None


@lru_cache
def get_container() -> Container:
    """Get the global container singleton, built from environment settings."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def reset_container() -> None:
    """Close and forget the global container."""
    global _container
    if _container is not None:
        _container.close()
        _container = None
    get_container.cache_clear()
