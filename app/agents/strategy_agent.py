"""
Strategy Agent
요청에 맞는 최적화 전략을 선택합니다.
"""

from .base import BaseAgent
from app.schemas.request import EvaluationRequest
from app.schemas.results import OptimizationStrategy
from app.domain.strategy import StrategySelector


class StrategyAgent(BaseAgent[EvaluationRequest, OptimizationStrategy]):
    """
    전략 선택 Agent

    규칙 기반 StrategySelector로 후보 백엔드를 결정합니다.
    """

    name = "StrategyAgent"

    def __init__(self, selector: StrategySelector):
        super().__init__()
        self.selector = selector

    def _process(self, input_data: EvaluationRequest) -> OptimizationStrategy:
        """전략 선택 실행"""
        return self.selector.select(input_data)

    def _validate_output(self, output_data: OptimizationStrategy) -> None:
        super()._validate_output(output_data)
        if not output_data.candidates:
            raise ValueError(f"{self.name}: 후보 백엔드가 없습니다.")
