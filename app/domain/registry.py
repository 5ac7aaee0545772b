"""
모델 성능 레지스트리
백엔드별 비용/지연/정확도/신뢰도 통계를 관리하고 EMA로 학습합니다.
"""

import math
import threading
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional
from loguru import logger

from app.schemas.profile import ModelPerformanceProfile


class RankObjective(str, Enum):
    """정렬 기준"""
    COST = "cost"
    LATENCY = "latency"
    ACCURACY = "accuracy"


# 비용/지연/신뢰도 학습률
ALPHA = 0.1
# 정확도 학습률 (점수+신뢰도 혼합값에 적용)
ACCURACY_ALPHA = 0.05

# 시작 시 등록되는 기본 프로필
SEED_PROFILES: list[dict] = [
    {
        "backend_id": "gpt-3.5-turbo",
        "avg_cost_per_call": 0.002,
        "avg_latency_ms": 1500,
        "accuracy_score": 75,
        "reliability_score": 95,
        "tokens_per_dollar": 500000,
        "specialties": ["general", "fast", "cost-effective"],
    },
    {
        "backend_id": "gpt-4-turbo-preview",
        "avg_cost_per_call": 0.03,
        "avg_latency_ms": 3000,
        "accuracy_score": 90,
        "reliability_score": 98,
        "tokens_per_dollar": 33333,
        "specialties": ["accuracy", "reasoning", "complex-analysis"],
    },
    {
        "backend_id": "claude-3-haiku-20240307",
        "avg_cost_per_call": 0.001,
        "avg_latency_ms": 1200,
        "accuracy_score": 70,
        "reliability_score": 94,
        "tokens_per_dollar": 1000000,
        "specialties": ["fast", "cost-effective", "basic-analysis"],
    },
    {
        "backend_id": "claude-3-sonnet-20240229",
        "avg_cost_per_call": 0.015,
        "avg_latency_ms": 2500,
        "accuracy_score": 85,
        "reliability_score": 96,
        "tokens_per_dollar": 66666,
        "specialties": ["balanced", "analysis", "reasoning"],
    },
    {
        "backend_id": "claude-3-opus-20240229",
        "avg_cost_per_call": 0.075,
        "avg_latency_ms": 4000,
        "accuracy_score": 95,
        "reliability_score": 98,
        "tokens_per_dollar": 13333,
        "specialties": ["accuracy", "complex-reasoning", "comprehensive"],
    },
]

# 미등록 백엔드 조회 시 사용하는 보수적 기본값 (모든 축에서 중간 이하)
CONSERVATIVE_DEFAULTS = {
    "avg_cost_per_call": 0.01,
    "avg_latency_ms": 3000,
    "accuracy_score": 50,
    "reliability_score": 50,
    "tokens_per_dollar": 100000,
}


def _ema(current: float, observed: float, alpha: float) -> float:
    return (1 - alpha) * current + alpha * observed


class ModelRegistry:
    """
    백엔드 성능 레지스트리

    - 프로필은 프로세스 수명 동안 유지되며 통째로 교체되지 않습니다.
    - 갱신은 record_outcome()의 EMA 규칙으로만 이루어집니다.
    - 프로필 단위 락으로 동시 갱신 시 유실을 막습니다.
    """

    def __init__(self, profiles: Optional[Iterable[ModelPerformanceProfile]] = None):
        self._profiles: dict[str, ModelPerformanceProfile] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self.logger = logger.bind(component="ModelRegistry")

        for profile in profiles or []:
            self.register(profile)

    @classmethod
    def with_seed_defaults(cls) -> "ModelRegistry":
        registry = cls()
        registry.seed_defaults()
        return registry

    def seed_defaults(self) -> int:
        """기본 프로필 등록 (이미 있는 백엔드는 건너뜀)"""
        count = 0
        for seed in SEED_PROFILES:
            if seed["backend_id"] in self._profiles:
                continue
            self.register(ModelPerformanceProfile(**seed))
            count += 1
        self.logger.info(f"Initialized model performance profiles: {count}")
        return count

    def register(self, profile: ModelPerformanceProfile) -> None:
        """백엔드 등록. 같은 ID의 프로필이 있으면 덮어쓰지 않습니다."""
        with self._registry_lock:
            if profile.backend_id in self._profiles:
                self.logger.debug(f"Profile already registered: {profile.backend_id}")
                return
            self._locks[profile.backend_id] = threading.Lock()
            self._profiles[profile.backend_id] = profile

    def __len__(self) -> int:
        return len(self._profiles)

    def __contains__(self, backend_id: str) -> bool:
        return backend_id in self._profiles

    def backend_ids(self) -> list[str]:
        return list(self._profiles.keys())

    def get(self, backend_id: str) -> ModelPerformanceProfile:
        """
        프로필 스냅샷 조회

        미등록 백엔드는 오류 대신 보수적 기본 프로필을 반환합니다.
        """
        profile = self._profiles.get(backend_id)
        if profile is None:
            return ModelPerformanceProfile(backend_id=backend_id, **CONSERVATIVE_DEFAULTS)
        with self._locks[backend_id]:
            return profile.model_copy(deep=True)

    def profiles(self) -> list[ModelPerformanceProfile]:
        """전체 프로필 스냅샷"""
        return [self.get(backend_id) for backend_id in self.backend_ids()]

    def record_outcome(
        self,
        backend_id: str,
        cost: float,
        latency_ms: float,
        success: bool,
        score: Optional[float] = None,
        confidence: Optional[float] = None,
    ) -> bool:
        """
        관측 결과를 EMA로 반영합니다.

        metric = (1-α)·metric + α·observed
        - 비용/지연/신뢰도: α=0.1 (신뢰도 관측값은 성공 100, 실패 0)
        - 정확도: α=0.05, 관측값은 (score + confidence) / 2

        Returns:
            반영 여부 (미등록 백엔드는 False)
        """
        profile = self._profiles.get(backend_id)
        if profile is None:
            self.logger.debug(f"Outcome for unknown backend ignored: {backend_id}")
            return False

        with self._locks[backend_id]:
            profile.avg_cost_per_call = _ema(profile.avg_cost_per_call, cost, ALPHA)
            profile.avg_latency_ms = _ema(profile.avg_latency_ms, latency_ms, ALPHA)
            profile.reliability_score = _ema(
                profile.reliability_score, 100.0 if success else 0.0, ALPHA
            )
            if score is not None and confidence is not None:
                performance = (score + confidence) / 2
                profile.accuracy_score = _ema(profile.accuracy_score, performance, ACCURACY_ALPHA)
            profile.last_updated = datetime.now()

        self.logger.debug(
            f"Profile updated: {backend_id} cost={profile.avg_cost_per_call:.4f} "
            f"latency={profile.avg_latency_ms:.0f}ms reliability={profile.reliability_score:.1f}"
        )
        return True

    def rank(
        self,
        objective: RankObjective,
        top_n: Optional[int] = None,
        backend_ids: Optional[Iterable[str]] = None,
    ) -> list[str]:
        """
        백엔드 정렬

        비용/지연은 오름차순, 정확도는 내림차순입니다.
        backend_ids를 주면 그 중 등록된 백엔드만 대상으로 하며, 미등록 ID는 건너뜁니다.
        """
        objective = RankObjective(objective)
        ids = list(backend_ids) if backend_ids is not None else self.backend_ids()
        snapshots = [self.get(b) for b in ids if b in self._profiles]

        if objective == RankObjective.COST:
            snapshots.sort(key=lambda p: p.avg_cost_per_call)
        elif objective == RankObjective.LATENCY:
            snapshots.sort(key=lambda p: p.avg_latency_ms)
        else:
            snapshots.sort(key=lambda p: p.accuracy_score, reverse=True)

        ranked = [p.backend_id for p in snapshots]
        if top_n is not None:
            ranked = ranked[:top_n]
        return ranked

    def estimate_cost(self, backend_id: str, prompt_chars: int) -> float:
        """백엔드가 비용을 알려주지 않을 때 토큰 수 기반으로 비용 추정"""
        profile = self.get(backend_id)
        if profile.tokens_per_dollar <= 0:
            return CONSERVATIVE_DEFAULTS["avg_cost_per_call"]
        estimated_tokens = math.ceil(prompt_chars / 4)  # 약 4자 = 1토큰
        return estimated_tokens / profile.tokens_per_dollar * 1.5
