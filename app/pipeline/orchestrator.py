"""
Evaluation Orchestrator
Agent들의 실행 순서를 제어하고 캐시/레지스트리/메트릭을 연결합니다.
"""

import threading
import time
import uuid
from datetime import datetime
from typing import Any, Callable, Optional
from loguru import logger

from app.config import settings
from app.errors import ConfigurationError, InvalidRequestError, NoBackendConfiguredError
from app.schemas.request import (
    EvaluationConstraints,
    EvaluationRequest,
    EvaluationTier,
    Priority,
)
from app.schemas.profile import ModelPerformanceProfile
from app.schemas.results import (
    CacheStats,
    EvaluationResult,
    OptimizationStrategy,
    PerformanceReport,
    PerformanceSummary,
)
from app.domain.registry import ModelRegistry
from app.domain.preferences import DimensionPreferences, COMPREHENSIVE_DIMENSIONS
from app.domain.strategy import StrategySelector
from app.cache.cache_manager import EvaluationCache
from app.llm.client import ModelBackendClient
from app.llm.parser import JsonResponseParser, ResponseParser
from app.llm.retry import RetryPolicy
from app.metrics import sink as metric_names
from app.metrics.sink import MetricsSink, LoggingMetricsSink
from app.agents.strategy_agent import StrategyAgent
from app.agents.execution_agent import ExecutionAgent, ExecutionInput
from app.agents.synthesis_agent import SynthesisAgent, SynthesisInput
from .scheduler import MaintenanceScheduler


def new_evaluation_id() -> str:
    """eval_<epoch ms>_<8 hex>"""
    return f"eval_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


class EvaluationOrchestrator:
    """
    평가 오케스트레이터
    단일 평가 요청의 전체 흐름을 관리합니다:

    [Phase 1: 검증]
    요청 검증 (구성 오류만 예외로 전달)

    [Phase 2: 캐시]
    캐시 조회 → 적중 시 즉시 반환 (백엔드 호출 없음)

    [Phase 3: 실행]
    Strategy → Execution (차원별 호출, 비용/지연 상한) → Synthesis

    [Phase 4: 기록]
    캐시 저장 → 누적 통계/메트릭
    """

    # 성능 리포트 권고 기준
    REPORT_MIN_HIT_RATE = 30
    REPORT_MAX_AVG_COST = 0.10
    REPORT_SLOW_LATENCY_MS = 5000

    def __init__(
        self,
        client: ModelBackendClient,
        registry: Optional[ModelRegistry] = None,
        cache: Optional[EvaluationCache] = None,
        metrics: Optional[MetricsSink] = None,
        parser: Optional[ResponseParser] = None,
        retry_policy: Optional[RetryPolicy] = None,
        preferences: Optional[DimensionPreferences] = None,
        require_dimensions: Optional[bool] = None,
        background_enabled: Optional[bool] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.registry = registry if registry is not None else ModelRegistry.with_seed_defaults()
        self.cache = cache if cache is not None else EvaluationCache()
        self.metrics = metrics or LoggingMetricsSink()
        self.preferences = preferences or DimensionPreferences.load(
            settings.DIMENSION_PREFERENCES_PATH
        )
        self.require_dimensions = (
            settings.REQUIRE_DIMENSIONS if require_dimensions is None else require_dimensions
        )
        self.background_enabled = (
            settings.BACKGROUND_TASKS_ENABLED if background_enabled is None else background_enabled
        )
        self.clock = clock

        self.strategy_agent = StrategyAgent(StrategySelector(self.registry, self.preferences))
        self.execution_agent = ExecutionAgent(
            client=client,
            registry=self.registry,
            parser=parser or JsonResponseParser(),
            retry_policy=retry_policy or RetryPolicy(),
            metrics=self.metrics,
            clock=clock,
        )
        self.synthesis_agent = SynthesisAgent()

        self._fallback_strategy_agent: Optional[StrategyAgent] = None

        # 프로세스 수명 동안 유지되는 누적 통계
        self._totals_lock = threading.Lock()
        self.total_cost_spent = 0.0
        self.total_evaluations = 0

        self.scheduler = MaintenanceScheduler()
        self.scheduler.add_job(
            "cache-cleanup", settings.CACHE_CLEANUP_INTERVAL_SEC, self.cache.cleanup
        )
        self.scheduler.add_job(
            "profile-report", settings.PROFILE_REPORT_INTERVAL_SEC, self.record_performance_metrics
        )

        self.logger = logger.bind(component="Pipeline")

    # ------------------------------------------------------------------
    # 평가
    # ------------------------------------------------------------------

    def evaluate(self, request: EvaluationRequest) -> EvaluationResult:
        """
        평가 실행

        Args:
            request: 평가 요청

        Returns:
            EvaluationResult: 항상 완전한 결과 (차원 점수는 일부만 있을 수 있음)

        Raises:
            ConfigurationError: 백엔드 미등록 또는 잘못된 요청
        """
        started = self.clock()
        evaluation_id = new_evaluation_id()

        try:
            request = self._validate(request)
        except ConfigurationError as e:
            self.logger.error(f"Evaluation rejected [{e.field}]: {e}")
            self.metrics.record(metric_names.ERROR_RATE, 1, "count", {
                "component": "Pipeline",
                "error_type": "configuration_error",
            })
            raise

        self.logger.info(
            f"Starting evaluation {evaluation_id}: tier={request.tier} "
            f"dimensions={request.dimensions} budget={request.constraints.cost_budget} "
            f"latency_target={request.constraints.latency_target_ms}"
        )

        # 1. 캐시 조회 (백엔드 호출보다 항상 먼저)
        if request.caching_enabled:
            cached = self._cache_lookup(request)
            if cached is not None:
                result = self._from_cache(cached, evaluation_id, started)
                self._record_metrics(result, cache_hit=True)
                self.logger.info(f"Cache hit - returning cached result for {evaluation_id}")
                return result

        # 2. 전략 선택
        self.logger.info("Step 1: Selecting strategy...")
        strategy = self._select_strategy(request)

        # 3. 차원 실행
        self.logger.info(f"Step 2: Executing {len(request.dimensions)} dimensions...")
        outcome = self.execution_agent.run(
            ExecutionInput(request=request, strategy=strategy, started=started)
        )

        # 4. 결과 종합
        self.logger.info("Step 3: Synthesizing result...")
        result = self.synthesis_agent.run(SynthesisInput(
            evaluation_id=evaluation_id,
            request=request,
            strategy=strategy,
            outcome=outcome,
            latency_ms=self._elapsed_ms(started),
        ))

        # 5. 캐시 저장
        if request.caching_enabled:
            self._cache_store(request, result)

        result.actual_latency_ms = self._elapsed_ms(started)
        self._record_metrics(result, cache_hit=False)

        self.logger.info(
            f"Evaluation complete {evaluation_id}: score={result.overall_score} "
            f"cost={result.actual_cost:.4f} latency={result.actual_latency_ms:.0f}ms "
            f"budget_utilization={result.budget_utilization_pct}%"
        )
        return result

    def quick_evaluate(self, content: Any, dimensions: Optional[list[str]] = None) -> EvaluationResult:
        """빠른 평가 (낮은 예산/짧은 지연 목표)"""
        return self.evaluate(EvaluationRequest(
            content=content,
            dimensions=["content-quality"] if dimensions is None else dimensions,
            tier=EvaluationTier.QUICK,
            constraints=EvaluationConstraints(
                cost_budget=settings.QUICK_COST_BUDGET,
                latency_target_ms=settings.QUICK_LATENCY_TARGET_MS,
            ),
            caching_enabled=True,
            priority=Priority.HIGH,
        ))

    def comprehensive_evaluate(self, content: Any) -> EvaluationResult:
        """종합 평가 (넓은 차원, 품질 우선, 긴 캐시 TTL)"""
        return self.evaluate(EvaluationRequest(
            content=content,
            dimensions=list(COMPREHENSIVE_DIMENSIONS),
            tier=EvaluationTier.COMPREHENSIVE,
            constraints=EvaluationConstraints(
                quality_threshold=settings.COMPREHENSIVE_QUALITY_THRESHOLD,
            ),
            caching_enabled=True,
            cache_ttl_hours=settings.COMPREHENSIVE_CACHE_TTL_HOURS,
            priority=Priority.NORMAL,
        ))

    def _validate(self, request: EvaluationRequest) -> EvaluationRequest:
        """
        구성/요청 검증

        Returns:
            중복 차원을 제거한 요청 (첫 등장 순서 유지)
        """
        if len(self.registry) == 0:
            raise NoBackendConfiguredError(
                "등록된 백엔드가 없습니다.", request_id=request.request_id, field="registry"
            )

        constraints = request.constraints
        if constraints.cost_budget is not None and constraints.cost_budget < 0:
            raise InvalidRequestError(
                f"cost_budget는 0 이상이어야 합니다: {constraints.cost_budget}",
                request_id=request.request_id,
                field="constraints.cost_budget",
            )
        if constraints.latency_target_ms is not None and constraints.latency_target_ms <= 0:
            raise InvalidRequestError(
                f"latency_target_ms는 0보다 커야 합니다: {constraints.latency_target_ms}",
                request_id=request.request_id,
                field="constraints.latency_target_ms",
            )
        if constraints.quality_threshold is not None and not 0 <= constraints.quality_threshold <= 100:
            raise InvalidRequestError(
                f"quality_threshold는 0-100 범위여야 합니다: {constraints.quality_threshold}",
                request_id=request.request_id,
                field="constraints.quality_threshold",
            )
        if request.cache_ttl_hours is not None and request.cache_ttl_hours <= 0:
            raise InvalidRequestError(
                f"cache_ttl_hours는 0보다 커야 합니다: {request.cache_ttl_hours}",
                request_id=request.request_id,
                field="cache_ttl_hours",
            )
        if self.require_dimensions and not request.dimensions:
            raise InvalidRequestError(
                "평가 차원이 비어 있습니다.",
                request_id=request.request_id,
                field="dimensions",
            )

        unique = list(dict.fromkeys(request.dimensions))
        if len(unique) != len(request.dimensions):
            self.logger.debug(f"Duplicate dimensions removed: {request.dimensions} -> {unique}")
            request = request.model_copy(update={"dimensions": unique})
        return request

    def _select_strategy(self, request: EvaluationRequest) -> OptimizationStrategy:
        try:
            return self.strategy_agent.run(request)
        except Exception as e:
            # 레지스트리 장애 시 기본 프로필로 전략 선택
            self.logger.warning(f"Strategy selection degraded, using seed profiles: {e}")
            if self._fallback_strategy_agent is None:
                self._fallback_strategy_agent = StrategyAgent(
                    StrategySelector(ModelRegistry.with_seed_defaults(), self.preferences)
                )
            return self._fallback_strategy_agent.run(request)

    def _cache_lookup(self, request: EvaluationRequest) -> Optional[EvaluationResult]:
        try:
            return self.cache.lookup(request)
        except Exception as e:
            self.logger.warning(f"Cache lookup failed, continuing without cache: {e}")
            return None

    def _cache_store(self, request: EvaluationRequest, result: EvaluationResult) -> None:
        try:
            self.cache.store(request, result)
        except Exception as e:
            self.logger.warning(f"Cache store failed: {e}")

    def _from_cache(
        self,
        cached: EvaluationResult,
        evaluation_id: str,
        started: float,
    ) -> EvaluationResult:
        """캐시 결과를 새 평가 ID/지연 시간으로 포장 (비용은 0)"""
        return cached.model_copy(update={
            "evaluation_id": evaluation_id,
            "cache_hit": True,
            "actual_cost": 0.0,
            "budget_utilization_pct": 0.0,
            "actual_latency_ms": self._elapsed_ms(started),
            "created_at": datetime.now(),
        })

    def _elapsed_ms(self, started: float) -> float:
        return (self.clock() - started) * 1000

    # ------------------------------------------------------------------
    # 메트릭 / 통계
    # ------------------------------------------------------------------

    def _record_metrics(self, result: EvaluationResult, cache_hit: bool) -> None:
        with self._totals_lock:
            self.total_cost_spent += result.actual_cost
            self.total_evaluations += 1

        tags = {"component": "Pipeline"}
        strategy_tags = {"strategy": result.strategy_name}
        self.metrics.record(metric_names.AI_COST_PER_REQUEST, result.actual_cost, "$", tags)
        self.metrics.record(
            metric_names.AI_LATENCY, result.actual_latency_ms, "ms",
            {**tags, "cache_hit": str(cache_hit).lower()},
        )
        self.metrics.record(
            metric_names.AI_SUCCESS_RATE, 100 if result.overall_score > 0 else 0, "%", tags
        )
        self.metrics.record(
            metric_names.BUDGET_UTILIZATION, result.budget_utilization_pct, "%", strategy_tags
        )
        self.metrics.record(
            metric_names.QUALITY_ACHIEVED, result.overall_score, "score", strategy_tags
        )
        self.metrics.record(metric_names.CACHE_HIT_RATE, self._hit_rate_pct(), "%", tags)

    def _hit_rate_pct(self) -> float:
        try:
            return self.cache.hit_rate_pct
        except Exception as e:
            self.logger.warning(f"Cache hit rate unavailable: {e}")
            return 0.0

    def record_performance_metrics(self) -> None:
        """누적 통계와 백엔드별 프로필을 메트릭으로 기록"""
        stats = self.get_cache_stats()
        tags = {"component": "Pipeline"}
        self.metrics.record(metric_names.TOTAL_COST_SPENT, stats.total_cost_spent, "$", tags)
        self.metrics.record(metric_names.TOTAL_EVALUATIONS, stats.total_evaluations, "count", tags)
        self.metrics.record(
            metric_names.AVG_COST_PER_EVALUATION, stats.avg_cost_per_evaluation, "$", tags
        )
        self.metrics.record(metric_names.CACHE_SIZE, stats.size, "count", tags)

        for profile in self.get_model_profiles():
            model_tags = {"model": profile.backend_id}
            self.metrics.record(metric_names.MODEL_AVG_COST, profile.avg_cost_per_call, "$", model_tags)
            self.metrics.record(metric_names.MODEL_AVG_LATENCY, profile.avg_latency_ms, "ms", model_tags)
            self.metrics.record(
                metric_names.MODEL_ACCURACY_SCORE, profile.accuracy_score, "score", model_tags
            )

    def get_model_profiles(self) -> list[ModelPerformanceProfile]:
        """백엔드 프로필 스냅샷"""
        return self.registry.profiles()

    def get_cache_stats(self) -> CacheStats:
        """캐시/비용 누적 통계"""
        with self._totals_lock:
            total_cost = self.total_cost_spent
            total_evaluations = self.total_evaluations

        return CacheStats(
            size=len(self.cache),
            hit_rate_pct=round(self._hit_rate_pct(), 2),
            total_cost_spent=total_cost,
            total_evaluations=total_evaluations,
            avg_cost_per_evaluation=total_cost / total_evaluations if total_evaluations else 0.0,
        )

    def clear_cache(self) -> int:
        """평가 캐시 전체 삭제"""
        count = self.cache.clear()
        self.logger.info("Evaluation cache cleared")
        return count

    def get_performance_report(self) -> PerformanceReport:
        """운영 성능 리포트"""
        stats = self.get_cache_stats()
        profiles = self.get_model_profiles()

        recommendations: list[str] = []
        if stats.hit_rate_pct < self.REPORT_MIN_HIT_RATE:
            recommendations.append("캐시 적중률이 낮습니다 - 비용 절감을 위해 캐시 사용을 늘리세요")
        if stats.avg_cost_per_evaluation > self.REPORT_MAX_AVG_COST:
            recommendations.append("평가당 평균 비용이 높습니다 - 비용 효율적인 백엔드 사용을 고려하세요")

        slow = [p.backend_id for p in profiles if p.avg_latency_ms > self.REPORT_SLOW_LATENCY_MS]
        if slow:
            recommendations.append(f"느린 백엔드 교체를 고려하세요: {', '.join(slow)}")

        return PerformanceReport(
            summary=PerformanceSummary(
                total_evaluations=stats.total_evaluations,
                total_cost_spent=stats.total_cost_spent,
                avg_cost_per_evaluation=stats.avg_cost_per_evaluation,
                cache_hit_rate_pct=stats.hit_rate_pct,
                models_tracked=len(profiles),
            ),
            model_performance=profiles,
            cache_stats=stats,
            recommendations=recommendations,
        )

    # ------------------------------------------------------------------
    # 수명 주기
    # ------------------------------------------------------------------

    def start_background(self) -> None:
        """캐시 정리/프로필 보고 작업 시작"""
        self.scheduler.start()

    def stop_background(self) -> None:
        self.scheduler.stop()

    def close(self) -> None:
        self.stop_background()
        self.client.close()

    def __enter__(self):
        if self.background_enabled:
            self.start_background()
        return self

    def __exit__(self, *args):
        self.close()
