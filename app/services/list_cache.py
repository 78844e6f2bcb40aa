# app/services/list_cache.py
"""
Liste görünümleri için küçük TTL cache.

Sözleşme:
- Yazma işlemi sadece etkilenen anahtarları düşürür (invalidate).
- Toplu değişiklikte clear() ile hepsi gider.
- Sadece yetkisiz/otoriter olmayan listeler için: stok kontrolü (onay akışı)
  ve zamana bağlı listeler (aktif/gecikmiş ödünçler) buraya hiç uğramaz.
"""
from __future__ import annotations

import threading
import time
from typing import Any, Callable, Hashable

PENDING_REQUESTS = ("pending_requests",)


def user_requests_key(user_id: int) -> tuple:
    return ("user_requests", user_id)


def user_history_key(user_id: int) -> tuple:
    return ("user_history", user_id)


class ListCache:
    def __init__(self, ttl_seconds: float = 30.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, Any]] = {}
        self._lock = threading.Lock()
        # invalidate/clear her seferinde artar; yüklenirken düşürülen değer geri yazılmaz
        self._generation = 0

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        if self.ttl_seconds <= 0:
            return loader()

        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry and entry[0] > now:
                return entry[1]
            generation = self._generation

        # loader kilit dışında: DB okuması diğer anahtarları bekletmesin
        value = loader()
        with self._lock:
            if generation == self._generation:
                self._entries[key] = (now + self.ttl_seconds, value)
        return value

    def invalidate(self, *keys: Hashable) -> None:
        with self._lock:
            self._generation += 1
            for key in keys:
                self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return bool(entry and entry[0] > self._clock())
