"""
Serialization of capacity-affecting work per warehouse location.

Without it, "check free space" and "add the lot" are separate steps and two
concurrent allocations can both pass the check. With CAPACITY_SERIALIZATION on:
- one re-entrant lock per location serializes work inside this process
  (several locations are always acquired in sorted order),
- the outermost workflow transaction re-reads the warehouse rows with
  SELECT ... FOR UPDATE, serializing across processes on databases that support it.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager, ExitStack

from farmlogistics import db
from farmlogistics.buisness.warehousing.warehouse_registry import WarehouseRegistry
from farmlogistics.utils.logger import get_logger
from farmlogistics.utils.settings import get_setting

logger = get_logger("farm_logistics.buisness.warehousing.capacity_guard")


class CapacityGuard:
    _locks: dict[str, threading.RLock] = {}
    _locks_lock = threading.Lock()

    @staticmethod
    def enabled() -> bool:
        return bool(get_setting('CAPACITY_SERIALIZATION'))

    @classmethod
    def lock_for(cls, location: str) -> threading.RLock:
        with cls._locks_lock:
            lock = cls._locks.get(location)
            if lock is None:
                lock = threading.RLock()
                cls._locks[location] = lock
            return lock

    @classmethod
    @contextmanager
    def hold(cls, *locations):
        """Hold the locks for the given locations (no-op when serialization is off)"""
        keys = sorted({loc for loc in locations if loc})
        if not keys or not cls.enabled():
            yield
            return

        with ExitStack() as stack:
            for key in keys:
                stack.enter_context(cls.lock_for(key))
            logger.debug(f"Holding capacity locks: {keys}")
            yield


_transaction_state = threading.local()


@contextmanager
def workflow_transaction(*locations, registry: WarehouseRegistry | None = None):
    """
    Run one public workflow as a single database transaction.

    Commits on success; rolls back and re-raises on any exception. Nested calls
    join the outermost transaction, which alone commits or rolls back.
    """
    depth = getattr(_transaction_state, 'depth', 0)

    with CapacityGuard.hold(*locations):
        if depth == 0 and CapacityGuard.enabled():
            (registry or WarehouseRegistry()).lock(locations)

        _transaction_state.depth = depth + 1
        try:
            yield
            if depth == 0:
                db.session.commit()
        except Exception:
            if depth == 0:
                db.session.rollback()
                logger.debug("Workflow transaction rolled back")
            raise
        finally:
            _transaction_state.depth = depth
