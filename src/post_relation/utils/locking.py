"""Per-item relation locks.

A relation update touches the saved item, its previous counterpart and its
new counterpart. Concurrent saves that share any of those items must not
interleave, otherwise a back-link can be lost. Locks are keyed by
``(field_name, item_id)`` and always taken in ascending id order.
"""

import logging
import threading
import weakref
from contextlib import ExitStack, contextmanager
from typing import Iterable, Iterator, MutableMapping, Optional, Tuple

logger = logging.getLogger(__name__)


class RelationLocks:
    """Registry of re-entrant locks, one per field and item.

    A lock lives only while some thread holds or waits on it.
    """

    def __init__(self):
        self._locks: MutableMapping[Tuple[str, int], threading.RLock] = weakref.WeakValueDictionary()
        self._guard = threading.Lock()

    def _lock_for(self, field_name: str, item_id: int) -> threading.RLock:
        key = (field_name, item_id)
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, field_name: str, item_ids: Iterable[Optional[int]]) -> Iterator[Tuple[int, ...]]:
        """Hold the locks for every non-empty id in ``item_ids``.

        Args:
            field_name: Relation field the ids belong to
            item_ids: Item ids to lock; ``None`` entries are ignored

        Yields:
            The sorted tuple of locked ids
        """
        ids = tuple(sorted({i for i in item_ids if i is not None}))
        with ExitStack() as stack:
            for item_id in ids:
                stack.enter_context(self._lock_for(field_name, item_id))
            logger.debug(f"Holding relation locks for {field_name}: {ids}")
            yield ids

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
