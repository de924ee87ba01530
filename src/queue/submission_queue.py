"""In-memory queue of submissions waiting to be translated."""
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Union

from src import settings
from src.logging_conf import logger
from src.queue.models import QueueItem


class SubmissionQueue:
    """Insertion-ordered, identity-keyed queue with age-based expiry.

    The poller thread adds items while the worker thread reads and removes
    them, so every access to the underlying mapping goes through a lock.
    Refresh calls run outside the lock.
    """

    def __init__(self, age_limit_seconds: Optional[int] = None, refresh_workers: Optional[int] = None):
        self.age_limit_seconds = (
            settings.SUBMISSION_AGE_LIMIT if age_limit_seconds is None else age_limit_seconds
        )
        self.refresh_workers = refresh_workers or settings.REFRESH_WORKERS
        self._items: Dict[str, QueueItem] = {}
        self._lock = threading.Lock()

    def add(self, item: QueueItem) -> bool:
        """Append an item. Returns False if an item with the same id is queued."""
        with self._lock:
            if item.id in self._items:
                logger.debug(f"Submission already queued: {item.id}")
                return False
            self._items[item.id] = item
        logger.info(f"Queued submission {item.id} ({item.url})")
        return True

    def remove(self, item_id: str) -> bool:
        """Remove the item with this id. Returns False if it was not queued."""
        with self._lock:
            return self._items.pop(item_id, None) is not None

    def clear_expired(self, now: Optional[float] = None) -> List[QueueItem]:
        """Drop every item older than the age limit and return them."""
        now = time.time() if now is None else now
        with self._lock:
            expired_ids = [
                item_id for item_id, item in self._items.items()
                if now - item.created_utc > self.age_limit_seconds
            ]
            expired = [self._items.pop(item_id) for item_id in expired_ids]

        for item in expired:
            logger.info(f"Submission {item.id} expired with {item.view_count} views; dropping")
        return expired

    def refresh_all(
        self,
        refresh: Callable[[QueueItem], None],
        items: Optional[Iterable[QueueItem]] = None,
    ) -> Dict[str, Exception]:
        """
        Refresh live metadata of every item concurrently.

        Waits until every refresh has either completed or failed. A failed
        refresh leaves its item's previous metadata in place.

        Args:
            refresh: Callable that updates one item in place
            items: Items to refresh; defaults to a snapshot of the queue

        Returns:
            Mapping of item id to the exception raised by its refresh
        """
        targets = self.snapshot() if items is None else list(items)
        failures: Dict[str, Exception] = {}
        if not targets:
            return failures

        workers = min(self.refresh_workers, len(targets))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="refresh") as executor:
            futures = {executor.submit(refresh, item): item for item in targets}
            for future in as_completed(futures):
                item = futures[future]
                try:
                    future.result()
                except Exception as e:
                    failures[item.id] = e
                    logger.warning(f"Failed to refresh submission {item.id}: {e}")

        if failures:
            logger.warning(f"Refreshed {len(targets) - len(failures)}/{len(targets)} submissions")
        return failures

    def snapshot(self) -> List[QueueItem]:
        """Return the queued items in insertion order."""
        with self._lock:
            return list(self._items.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, key: Union[str, QueueItem]) -> bool:
        item_id = key.id if isinstance(key, QueueItem) else key
        with self._lock:
            return item_id in self._items

    def __iter__(self) -> Iterator[QueueItem]:
        # Ids are fixed when iteration starts; later additions wait for the
        # next traversal and removed items are skipped.
        with self._lock:
            ids = list(self._items)
        for item_id in ids:
            with self._lock:
                item = self._items.get(item_id)
            if item is not None:
                yield item
