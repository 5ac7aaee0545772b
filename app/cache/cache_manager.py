"""
평가 결과 캐시
내용 해시 기반 메모리 캐시입니다.
"""

import json
import math
import hashlib
import threading
import time
from typing import Callable, Optional
from loguru import logger

from app.config import settings
from app.schemas.request import EvaluationRequest
from app.schemas.results import CacheEntry, EvaluationResult


# 캐시 적중률 EMA 학습률
HIT_RATE_ALPHA = 0.1


class EvaluationCache:
    """
    평가 결과 캐시 관리
    - 메모리 기반 (프로세스 재시작 시 초기화)
    - TTL 기반 만료
    - 최대 개수 초과 시 마지막 접근 시각 기준 오래된 항목 제거
    """

    def __init__(
        self,
        ttl_hours: Optional[float] = None,
        max_entries: Optional[int] = None,
        evict_fraction: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_hours = settings.CACHE_TTL_HOURS if ttl_hours is None else ttl_hours
        self.max_entries = settings.CACHE_MAX_ENTRIES if max_entries is None else max_entries
        self.evict_fraction = (
            settings.CACHE_EVICT_FRACTION if evict_fraction is None else evict_fraction
        )
        self.clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._hit_rate = 0.0
        self.logger = logger.bind(source="EvaluationCache")

    def make_key(self, request: EvaluationRequest) -> str:
        """
        (정규화된 content, 정렬된 dimensions, tier)로 캐시 키 생성

        content는 sort_keys로 직렬화하므로 필드 순서만 다른 payload는 같은 키가 됩니다.
        """
        payload = json.dumps(
            {
                "content": request.content,
                "dimensions": sorted(request.dimensions),
                "tier": request.tier,
            },
            sort_keys=True,
            ensure_ascii=False,
            default=str,
        )
        return hashlib.sha256(payload.encode()).hexdigest()

    def _ttl_seconds(self, request: Optional[EvaluationRequest] = None) -> float:
        ttl_hours = self.ttl_hours
        if request is not None and request.cache_ttl_hours is not None:
            ttl_hours = request.cache_ttl_hours
        return ttl_hours * 3600

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at >= entry.ttl_seconds

    def lookup(self, request: EvaluationRequest) -> Optional[EvaluationResult]:
        """
        캐시에서 결과 조회

        Returns:
            캐시된 결과 사본 또는 None (만료/미존재)
        """
        key = self.make_key(request)
        now = self.clock()

        with self._lock:
            entry = self._entries.get(key)

            if entry is not None and self._is_expired(entry, now):
                self.logger.debug(f"Cache expired: {key[:8]}...")
                del self._entries[key]
                entry = None

            if entry is None:
                self._record_access(hit=False)
                return None

            entry.access_count += 1
            entry.last_accessed_at = now
            self._record_access(hit=True)
            self.logger.debug(f"Cache hit: {key[:8]}... (access {entry.access_count})")
            return entry.result.model_copy(deep=True)

    def _record_access(self, hit: bool) -> None:
        self._hit_rate = (1 - HIT_RATE_ALPHA) * self._hit_rate + HIT_RATE_ALPHA * (100.0 if hit else 0.0)

    @staticmethod
    def is_cache_worthy(result: EvaluationResult) -> bool:
        """점수/비용/신뢰도가 모두 의미 있는 결과만 캐시"""
        return (
            result.overall_score > 0
            and result.actual_cost > 0.01
            and result.confidence > 50
        )

    def store(self, request: EvaluationRequest, result: EvaluationResult) -> bool:
        """
        캐시에 결과 저장

        Returns:
            저장 여부 (캐시 가치가 없으면 False)
        """
        if not self.is_cache_worthy(result):
            self.logger.debug(
                f"Result not cache-worthy: score={result.overall_score} "
                f"cost={result.actual_cost:.4f} confidence={result.confidence}"
            )
            return False

        key = self.make_key(request)
        now = self.clock()

        with self._lock:
            self._entries[key] = CacheEntry(
                content_hash=key,
                result=result.model_copy(deep=True),
                created_at=now,
                ttl_seconds=self._ttl_seconds(request),
                access_count=1,
                last_accessed_at=now,
            )
            if len(self._entries) > self.max_entries:
                self.evict()
            size = len(self._entries)

        self.logger.debug(f"Cache saved: {key[:8]}... (size {size})")
        return True

    def evict(self) -> int:
        """마지막 접근 시각이 오래된 순으로 evict_fraction 만큼 삭제"""
        with self._lock:
            entries = sorted(self._entries.values(), key=lambda e: e.last_accessed_at)
            to_remove = math.ceil(len(entries) * self.evict_fraction)
            for entry in entries[:to_remove]:
                del self._entries[entry.content_hash]
            remaining = len(self._entries)

        self.logger.debug(f"Cache eviction: removed {to_remove}, remaining {remaining}")
        return to_remove

    def clear(self) -> int:
        """전체 캐시 삭제"""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        self.logger.info(f"Cache cleared: {count} entries")
        return count

    def clear_expired(self) -> int:
        """만료된 캐시만 삭제 (항목별 TTL 기준)"""
        now = self.clock()
        with self._lock:
            expired = [
                key for key, entry in self._entries.items()
                if self._is_expired(entry, now)
            ]
            for key in expired:
                del self._entries[key]
        self.logger.info(f"Expired cache cleared: {len(expired)} entries")
        return len(expired)

    def cleanup(self) -> int:
        """주기 정리: 만료 항목 삭제 후 max_entries 이하가 될 때까지 축출"""
        removed = self.clear_expired()
        with self._lock:
            while len(self._entries) > self.max_entries:
                evicted = self.evict()
                if evicted == 0:
                    break
                removed += evicted
        return removed

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def hit_rate_pct(self) -> float:
        return self._hit_rate

    def get_stats(self) -> dict:
        """캐시 통계"""
        return {
            "count": len(self._entries),
            "hit_rate_pct": round(self._hit_rate, 2),
        }

    def entries(self) -> list[CacheEntry]:
        """캐시 항목 스냅샷 (마지막 접근 순)"""
        with self._lock:
            snapshot = [e.model_copy(deep=True) for e in self._entries.values()]
        snapshot.sort(key=lambda e: e.last_accessed_at)
        return snapshot
