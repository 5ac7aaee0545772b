"""
EvalLens Agent 패키지
각 Agent는 평가 파이프라인의 한 단계를 담당하며, 정해진 입출력을 따릅니다.
"""

from .base import BaseAgent
from .strategy_agent import StrategyAgent
from .execution_agent import (
    ExecutionAgent,
    ExecutionInput,
    ExecutionOutcome,
    COST_BUDGET_EXCEEDED,
    LATENCY_TARGET_EXCEEDED,
    dimension_failed,
)
from .synthesis_agent import SynthesisAgent, SynthesisInput

__all__ = [
    "BaseAgent",
    "StrategyAgent",
    "ExecutionAgent",
    "ExecutionInput",
    "ExecutionOutcome",
    "COST_BUDGET_EXCEEDED",
    "LATENCY_TARGET_EXCEEDED",
    "dimension_failed",
    "SynthesisAgent",
    "SynthesisInput",
]
