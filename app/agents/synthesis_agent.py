"""
Synthesis Agent
차원별 결과를 최종 평가 결과로 종합합니다.
"""

from typing import Optional

from .base import BaseAgent
from .execution_agent import ExecutionOutcome
from app.schemas.request import EvaluationRequest
from app.schemas.results import EvaluationResult, OptimizationStrategy
from app.domain.synthesis import ResultSynthesizer


class SynthesisInput:
    """Synthesis Agent 입력"""
    def __init__(
        self,
        evaluation_id: str,
        request: EvaluationRequest,
        strategy: OptimizationStrategy,
        outcome: ExecutionOutcome,
        latency_ms: float,
    ):
        self.evaluation_id = evaluation_id
        self.request = request
        self.strategy = strategy
        self.outcome = outcome
        self.latency_ms = latency_ms


class SynthesisAgent(BaseAgent[SynthesisInput, EvaluationResult]):
    """
    결과 종합 Agent

    규칙 기반 ResultSynthesizer를 사용합니다.
    """

    name = "SynthesisAgent"

    def __init__(self, synthesizer: Optional[ResultSynthesizer] = None):
        super().__init__()
        self.synthesizer = synthesizer or ResultSynthesizer()

    def _process(self, input_data: SynthesisInput) -> EvaluationResult:
        outcome = input_data.outcome
        return self.synthesizer.synthesize(
            evaluation_id=input_data.evaluation_id,
            request=input_data.request,
            strategy_name=input_data.strategy.name,
            dimension_scores=outcome.dimension_scores,
            actual_cost=outcome.actual_cost,
            actual_latency_ms=input_data.latency_ms,
            backends_used=outcome.backends_used,
            fallbacks_used=outcome.fallbacks_used,
        )
