"""
Process-local duplicate-suppression cache of registered emails.

The cache only short-circuits obvious duplicates. It may miss emails (cold
start, writes from another instance, a refresh in progress); the store's
unique constraint stays the final word on duplicates.
"""
import logging
import threading

logger = logging.getLogger(__name__)


class EmailCache:
    def __init__(self):
        self._emails = set()
        self._lock = threading.Lock()
        self._refreshing = False

    def __len__(self):
        with self._lock:
            return len(self._emails)

    def clear(self) -> None:
        with self._lock:
            self._emails.clear()

    def has(self, email: str) -> bool:
        with self._lock:
            return email in self._emails

    def add(self, email: str) -> None:
        with self._lock:
            self._emails.add(email)

    def repopulate(self, store) -> int:
        """Add every email currently in the store. Returns the number scanned."""
        emails = store.list_emails()
        with self._lock:
            self._emails.update(emails)
        return len(emails)

    def refresh(self, store) -> int:
        self.clear()
        return self.repopulate(store)

    @property
    def refreshing(self) -> bool:
        return self._refreshing

    def start_refresh(self, store):
        """Refresh in a background thread. Returns the thread, or None if one is already running."""
        if store is None:
            return None
        with self._lock:
            if self._refreshing:
                return None
            self._refreshing = True
        thread = threading.Thread(target=self._run_refresh, args=(store,), name="email-cache-refresh", daemon=True)
        thread.start()
        return thread

    def _run_refresh(self, store) -> None:
        try:
            count = self.refresh(store)
            logger.info("Email cache refreshed: %d registered emails", count)
        except Exception:
            logger.exception("Email cache refresh failed; relying on the store's unique constraint")
        finally:
            with self._lock:
                self._refreshing = False
