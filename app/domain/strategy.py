"""
전략 선택 엔진
요청 제약 조건과 레지스트리 통계로 최적화 전략과 후보 백엔드를 결정합니다.
"""

from typing import Optional
from loguru import logger

from app.config import settings
from app.schemas.request import EvaluationRequest, EvaluationTier
from app.schemas.results import OptimizationStrategy
from .registry import ModelRegistry, RankObjective
from .preferences import DimensionPreferences


COST_OPTIMIZED = "cost-optimized"
SPEED_OPTIMIZED = "speed-optimized"
QUALITY_OPTIMIZED = "quality-optimized"
BALANCED = "balanced"


class StrategySelector:
    """
    규칙 기반 전략 선택기

    결정 순서 (먼저 일치한 규칙 적용):
    1. cost_budget < 0.10 → cost-optimized
    2. latency_target_ms < 5000 → speed-optimized
    3. quality_threshold > 85 → quality-optimized
    4. tier: quick → speed, comprehensive → quality, 그 외 → balanced
    """

    RATIONALES = {
        COST_OPTIMIZED: "비용 효율 우선, 허용 가능한 품질 유지",
        SPEED_OPTIMIZED: "지연 시간 우선, 가능한 경우 병렬 실행",
        QUALITY_OPTIMIZED: "정확도 우선, 종합 분석",
        BALANCED: "차원별 요구사항에 맞춰 비용/속도/품질 균형",
    }

    def __init__(
        self,
        registry: ModelRegistry,
        preferences: Optional[DimensionPreferences] = None,
        max_candidates: Optional[int] = None,
        cost_budget_threshold: Optional[float] = None,
        latency_threshold_ms: Optional[float] = None,
        quality_threshold: Optional[float] = None,
    ):
        self.registry = registry
        self.preferences = preferences or DimensionPreferences()
        self.max_candidates = max_candidates or settings.STRATEGY_MAX_CANDIDATES
        self.cost_budget_threshold = (
            settings.COST_STRATEGY_MAX_BUDGET if cost_budget_threshold is None else cost_budget_threshold
        )
        self.latency_threshold_ms = (
            settings.SPEED_STRATEGY_MAX_LATENCY_MS if latency_threshold_ms is None else latency_threshold_ms
        )
        self.quality_threshold = (
            settings.QUALITY_STRATEGY_MIN_THRESHOLD if quality_threshold is None else quality_threshold
        )
        self.logger = logger.bind(component="StrategySelector")

    def select(self, request: EvaluationRequest) -> OptimizationStrategy:
        """
        요청에 맞는 전략을 선택합니다.

        Args:
            request: 평가 요청

        Returns:
            OptimizationStrategy: 후보 백엔드와 예상 비용/지연 포함
        """
        constraints = request.constraints

        if constraints.cost_budget is not None and constraints.cost_budget < self.cost_budget_threshold:
            return self._ranked_strategy(COST_OPTIMIZED, RankObjective.COST, request)

        if (
            constraints.latency_target_ms is not None
            and constraints.latency_target_ms < self.latency_threshold_ms
        ):
            return self._ranked_strategy(SPEED_OPTIMIZED, RankObjective.LATENCY, request)

        if (
            constraints.quality_threshold is not None
            and constraints.quality_threshold > self.quality_threshold
        ):
            return self._ranked_strategy(QUALITY_OPTIMIZED, RankObjective.ACCURACY, request)

        if request.tier == EvaluationTier.QUICK.value:
            return self._ranked_strategy(SPEED_OPTIMIZED, RankObjective.LATENCY, request)
        if request.tier == EvaluationTier.COMPREHENSIVE.value:
            return self._ranked_strategy(QUALITY_OPTIMIZED, RankObjective.ACCURACY, request)

        return self._balanced_strategy(request)

    def _top_n(self, request: EvaluationRequest) -> int:
        return max(1, min(self.max_candidates, len(request.dimensions)))

    def _ranked_strategy(
        self,
        name: str,
        objective: RankObjective,
        request: EvaluationRequest,
    ) -> OptimizationStrategy:
        """레지스트리 정렬 결과를 후보로 쓰는 전략"""
        candidates = self.registry.rank(objective, self._top_n(request))
        return self._build(name, candidates, {}, request)

    def _balanced_strategy(self, request: EvaluationRequest) -> OptimizationStrategy:
        """차원마다 선호 목록에서 레지스트리에 있는 첫 백엔드를 지정"""
        mapping: dict[str, str] = {}
        for dimension in request.dimensions:
            backend = self._first_available(self.preferences.for_dimension(dimension))
            if backend is None:
                backend = self._first_available(self.preferences.fallback)
            if backend is not None:
                mapping[dimension] = backend

        candidates: list[str] = []
        for backend in mapping.values():
            if backend not in candidates:
                candidates.append(backend)

        # 선호 목록이 전부 미등록이면 가장 저렴한 백엔드로
        if not candidates:
            candidates = self.registry.rank(RankObjective.COST, 1)

        return self._build(BALANCED, candidates, mapping, request)

    def _first_available(self, backends: list[str]) -> Optional[str]:
        for backend in backends:
            if backend in self.registry:
                return backend
        return None

    def _build(
        self,
        name: str,
        candidates: list[str],
        mapping: dict[str, str],
        request: EvaluationRequest,
    ) -> OptimizationStrategy:
        parallelizable = len(request.dimensions) > 1
        strategy = OptimizationStrategy(
            name=name,
            candidates=candidates,
            dimension_backends=mapping,
            parallelizable=parallelizable,
            rationale=self.RATIONALES[name],
        )
        strategy.estimated_cost = self.estimate_cost(strategy, request.dimensions)
        strategy.estimated_latency_ms = self.estimate_latency(strategy, request.dimensions)

        self.logger.info(
            f"Selected strategy: {name} candidates={candidates} "
            f"est_cost={strategy.estimated_cost:.4f} est_latency={strategy.estimated_latency_ms:.0f}ms"
        )
        return strategy

    def estimate_cost(self, strategy: OptimizationStrategy, dimensions: list[str]) -> float:
        """Σ 차원별 선택 백엔드의 호출당 평균 비용"""
        total = 0.0
        for dimension in dimensions:
            backend = strategy.backend_for(dimension)
            if backend:
                total += self.registry.get(backend).avg_cost_per_call
        return total

    def estimate_latency(self, strategy: OptimizationStrategy, dimensions: list[str]) -> float:
        """직렬이면 합, 병렬이면 최대값"""
        latencies = []
        for dimension in dimensions:
            backend = strategy.backend_for(dimension)
            if backend:
                latencies.append(self.registry.get(backend).avg_latency_ms)

        if not latencies:
            return 0.0
        return max(latencies) if strategy.parallelizable else sum(latencies)
