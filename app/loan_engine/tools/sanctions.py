"""Sanction record storage and sanction-id generation."""

import threading
import time
import uuid
from typing import Optional, Protocol

from ..models import SanctionRecord, SanctionStoreError


def generate_sanction_id() -> str:
    """Unique sanction id: 'SL' + epoch milliseconds + 9-char random suffix."""
    return f"SL{int(time.time() * 1000)}{uuid.uuid4().hex[:9].upper()}"


class SanctionStore(Protocol):
    def put(self, sanction_id: str, record: SanctionRecord) -> None: ...

    def get(self, sanction_id: str) -> Optional[SanctionRecord]: ...


class InMemorySanctionStore:
    """Process-local sanction store. Each key is written exactly once."""

    def __init__(self):
        self._records: dict[str, SanctionRecord] = {}
        self._lock = threading.Lock()

    def put(self, sanction_id: str, record: SanctionRecord) -> None:
        with self._lock:
            if sanction_id in self._records:
                raise SanctionStoreError(sanction_id, "already exists")
            self._records[sanction_id] = record

    def get(self, sanction_id: str) -> Optional[SanctionRecord]:
        return self._records.get(sanction_id)

    def __len__(self) -> int:
        return len(self._records)
