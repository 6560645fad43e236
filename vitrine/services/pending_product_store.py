"""In-memory store of products waiting for a price, keyed by chat session id.

One lock guards the map. It is held only while the dict is read or written,
never across database or network calls.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from vitrine.schemas.product import ProductSuggestion
from vitrine.services.tenant_service import Tenant


@dataclass
class PendingProduct:
    tenant: Tenant
    image_path: str
    image_url: str
    suggestion: ProductSuggestion
    created_at: float = field(default_factory=time.monotonic)


class PendingProductStore:
    def __init__(self, ttl_seconds: float = 0.0, clock: Callable[[], float] = time.monotonic):
        self._lock = threading.Lock()
        self._items: Dict[str, PendingProduct] = {}
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def _expired(self, pending: PendingProduct) -> bool:
        if self.ttl_seconds <= 0:
            return False
        return self._clock() - pending.created_at > self.ttl_seconds

    def set(self, session_id: str, pending: PendingProduct) -> bool:
        """Open (or overwrite) the pending product. Anonymous sessions are not tracked."""
        if not session_id:
            return False
        pending.created_at = self._clock()
        with self._lock:
            self._items[session_id] = pending
        return True

    def get(self, session_id: str) -> Optional[PendingProduct]:
        if not session_id:
            return None
        with self._lock:
            pending = self._items.get(session_id)
            if pending is not None and self._expired(pending):
                del self._items[session_id]
                return None
            return pending

    def clear(self, session_id: str) -> None:
        with self._lock:
            self._items.pop(session_id, None)

    def take(self, session_id: str, expected: PendingProduct) -> bool:
        """Remove the entry only if it is still `expected`; the first caller wins."""
        with self._lock:
            if self._items.get(session_id) is not expected:
                return False
            del self._items[session_id]
            return True

    def restore(self, session_id: str, pending: PendingProduct) -> bool:
        """Put back a taken entry unless a newer upload replaced it meanwhile."""
        if not session_id:
            return False
        with self._lock:
            if session_id in self._items:
                return False
            self._items[session_id] = pending
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
