"""
LLM 응답 캐시

text + options 해시를 키로 하는 크기 제한 + TTL 메모이제이션
캐시 유무는 변환 결과의 정확성에 영향 없음
"""

import hashlib
import json
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Tuple


class ResponseCache:
    """
    LRU + TTL 캐시

    사용 예시:
        cache = ResponseCache(max_size=1000, ttl_seconds=1800)
        key = cache.key("アプデして", {"level": 3})
        cache.set(key, "アップデートをお願いいたします")
        cache.get(key)
    """

    def __init__(
        self,
        max_size: int = 1000,
        ttl_seconds: float = 30 * 60,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self.clock = clock or time.monotonic
        self._entries: "OrderedDict[str, Tuple[float, str]]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def key(text: str, options: Optional[Dict[str, Any]] = None) -> str:
        payload = json.dumps({"text": text, "options": options or {}}, ensure_ascii=False, sort_keys=True)
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None

            stored_at, value = entry
            if self.clock() - stored_at > self.ttl_seconds:
                del self._entries[key]
                self.misses += 1
                return None

            self._entries.move_to_end(key)
            self.hits += 1
            return value

    def set(self, key: str, value: str):
        with self._lock:
            self._entries[key] = (self.clock(), value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
