"""
Execution Agent
전략에 따라 차원별로 백엔드를 호출하고 비용/지연 상한을 지킵니다.
"""

import copy
import json
import time
from typing import Any, Callable, Optional

from .base import BaseAgent
from app.schemas.request import EvaluationRequest
from app.schemas.results import DimensionResult, OptimizationStrategy, FALLBACK_BACKEND
from app.domain.registry import ModelRegistry
from app.llm.client import ModelBackendClient
from app.llm.parser import JsonResponseParser, ResponseParser
from app.llm.retry import RetryPolicy
from app.metrics import sink as metric_names
from app.metrics.sink import MetricsSink, LoggingMetricsSink


COST_BUDGET_EXCEEDED = "cost-budget-exceeded"
LATENCY_TARGET_EXCEEDED = "latency-target-exceeded"


def dimension_failed(dimension: str) -> str:
    return f"dimension-{dimension}-failed"


class ExecutionInput:
    """Execution Agent 입력 (started: 지연 측정 기준 시각, 없으면 실행 시작 시각)"""
    def __init__(
        self,
        request: EvaluationRequest,
        strategy: OptimizationStrategy,
        started: Optional[float] = None,
    ):
        self.request = request
        self.strategy = strategy
        self.started = started


class ExecutionOutcome:
    """Execution Agent 출력"""
    def __init__(self):
        self.dimension_scores: dict[str, DimensionResult] = {}
        self.actual_cost: float = 0.0
        self.backends_used: list[str] = []
        self.fallbacks_used: list[str] = []
        self.elapsed_ms: float = 0.0

    def add_cost(self, cost: float) -> None:
        # 누적 비용은 감소하지 않음
        self.actual_cost += max(cost, 0.0)


class DimensionCall:
    """차원 한 건의 실행 결과"""
    def __init__(self, result: DimensionResult, cost: float, failure: Optional[str] = None):
        self.result = result
        self.cost = cost
        self.failure = failure  # 실패 요약 (성공이면 None)

    @property
    def failed(self) -> bool:
        return self.failure is not None


class ExecutionAgent(BaseAgent[ExecutionInput, ExecutionOutcome]):
    """
    차원 실행 Agent

    - 요청 순서대로 한 차원씩 실행 (재정렬 없음)
    - 차원 실패는 fallback 결과(50/30)로 흡수하고 계속 진행
    - 비용 상한 초과 시 해당 호출 결과를 버리고 중단
    - 지연 목표 초과 시 이후 차원은 실행하지 않음
    - 상한 초과 시 비용 사유가 먼저 기록됨
    """

    name = "ExecutionAgent"

    def __init__(
        self,
        client: ModelBackendClient,
        registry: ModelRegistry,
        parser: Optional[ResponseParser] = None,
        retry_policy: Optional[RetryPolicy] = None,
        metrics: Optional[MetricsSink] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__()
        self.client = client
        self.registry = registry
        self.parser = parser or JsonResponseParser()
        self.retry_policy = retry_policy or RetryPolicy()
        self.metrics = metrics or LoggingMetricsSink()
        self.clock = clock

    def _elapsed_ms(self, started: float) -> float:
        return (self.clock() - started) * 1000

    def _process(self, input_data: ExecutionInput) -> ExecutionOutcome:
        """차원 루프 실행"""
        request = input_data.request
        strategy = input_data.strategy
        budget = request.constraints.cost_budget
        latency_target = request.constraints.latency_target_ms

        outcome = ExecutionOutcome()
        # 지연 목표는 요청 전체 기준 (캐시 조회/전략 선택 시간 포함)
        started = input_data.started if input_data.started is not None else self.clock()

        for dimension in request.dimensions:
            backend = strategy.backend_for(dimension)
            call = self._evaluate_dimension(backend, dimension, request.content)

            if call.failed:
                outcome.fallbacks_used.append(dimension_failed(dimension))

            outcome.add_cost(call.cost)

            if budget is not None and outcome.actual_cost > budget:
                self.logger.warning(
                    f"Cost budget exceeded at {dimension}: "
                    f"{outcome.actual_cost:.4f} > {budget:.4f}, stopping evaluation"
                )
                outcome.fallbacks_used.append(COST_BUDGET_EXCEEDED)
                break

            outcome.dimension_scores[dimension] = call.result
            if not call.result.is_fallback and call.result.backend_used not in outcome.backends_used:
                outcome.backends_used.append(call.result.backend_used)

            elapsed = self._elapsed_ms(started)
            if latency_target is not None and elapsed > latency_target:
                self.logger.warning(
                    f"Latency target exceeded at {dimension}: "
                    f"{elapsed:.0f}ms > {latency_target:.0f}ms, stopping evaluation"
                )
                outcome.fallbacks_used.append(LATENCY_TARGET_EXCEEDED)
                break

        outcome.elapsed_ms = self._elapsed_ms(started)
        self.logger.info(
            f"Executed {len(outcome.dimension_scores)}/{len(request.dimensions)} dimensions, "
            f"cost={outcome.actual_cost:.4f}, fallbacks={outcome.fallbacks_used}"
        )
        return outcome

    def _evaluate_dimension(
        self,
        backend: Optional[str],
        dimension: str,
        content: Any,
    ) -> DimensionCall:
        """개별 차원 평가 (실패는 fallback으로 흡수)"""
        if backend is None:
            return self._fallback("No backend available", cost=0.0)

        started = self.clock()
        try:
            # 클라이언트가 입력 content를 변경하지 못하도록 사본 전달
            response = self.retry_policy.call(
                self.client.score, backend, dimension, copy.deepcopy(content)
            )
        except Exception as e:
            self.logger.warning(f"Failed to evaluate dimension {dimension} on {backend}: {e}")
            self.metrics.record(metric_names.ERROR_RATE, 1, "count", {
                "component": self.name,
                "error_type": "dimension_failure",
                "backend": backend,
            })
            return self._fallback(f"Evaluation failed: {e}", cost=0.0)

        latency_ms = response.latency_ms
        if latency_ms is None:
            latency_ms = self._elapsed_ms(started)

        cost = response.cost
        if cost is None:
            cost = self.registry.estimate_cost(backend, self._prompt_chars(content))

        parsed = self.parser.parse(response.text)
        if not parsed.ok:
            self._record_outcome(backend, cost, latency_ms, success=False)
            return self._fallback(parsed.reasoning, cost=cost)

        self._record_outcome(
            backend,
            cost,
            latency_ms,
            success=parsed.score > 70,
            score=parsed.score,
            confidence=parsed.confidence,
        )
        tags = {"component": self.name, "backend": backend, "dimension": dimension}
        self.metrics.record(metric_names.AI_COST_PER_REQUEST, cost, "$", tags)
        self.metrics.record(metric_names.AI_LATENCY, latency_ms, "ms", tags)

        return DimensionCall(
            result=DimensionResult(
                score=parsed.score,
                confidence=parsed.confidence,
                reasoning=parsed.reasoning,
                backend_used=backend,
                observed_cost=cost,
            ),
            cost=cost,
        )

    def _fallback(self, reason: str, cost: float) -> DimensionCall:
        # fallback 결과 자체의 비용은 0, 이미 지불한 비용은 누적 비용에만 반영
        return DimensionCall(
            result=DimensionResult(
                score=50,
                confidence=30,
                reasoning=reason,
                backend_used=FALLBACK_BACKEND,
                observed_cost=0.0,
            ),
            cost=cost,
            failure=reason,
        )

    def _record_outcome(self, backend: str, cost: float, latency_ms: float, **kwargs) -> None:
        try:
            self.registry.record_outcome(backend, cost, latency_ms, **kwargs)
        except Exception as e:
            # 레지스트리 장애는 평가를 막지 않음
            self.logger.warning(f"Registry update failed for {backend}: {e}")

    @staticmethod
    def _prompt_chars(content: Any) -> int:
        return len(json.dumps(content, ensure_ascii=False, default=str))
