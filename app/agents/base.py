"""
평가 단계 Agent 기본 클래스
Strategy → Execution → Synthesis 각 단계가 공유하는 실행 규약입니다.
"""

import time
from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar
from loguru import logger

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


class BaseAgent(ABC, Generic[InputT, OutputT]):
    """
    평가 단계 Agent

    run()은 항상 입력 검증 → 처리 → 출력 검증 순서로 진행합니다.
    - 단계 내부에서 흡수할 수 없는 오류만 로그를 남기고 다시 던집니다.
    - 마지막 실행 소요 시간(ms)을 last_duration_ms에 남깁니다.
    """

    name: str = "BaseAgent"

    def __init__(self):
        self.logger = logger.bind(agent=self.name)
        self.last_duration_ms: Optional[float] = None

    def run(self, input_data: InputT) -> OutputT:
        """단계 실행"""
        started = time.perf_counter()
        try:
            self._validate_input(input_data)
            result = self._process(input_data)
            self._validate_output(result)
            return result

        except Exception as e:
            self.logger.error(f"{self.name} failed: {e}")
            raise

        finally:
            self.last_duration_ms = (time.perf_counter() - started) * 1000
            self.logger.debug(f"{self.name} finished in {self.last_duration_ms:.1f}ms")

    @abstractmethod
    def _process(self, input_data: InputT) -> OutputT:
        """단계별 처리 로직"""

    def _validate_input(self, input_data: InputT) -> None:
        if input_data is None:
            raise ValueError(f"{self.name}: 입력 데이터가 None입니다.")

    def _validate_output(self, output_data: OutputT) -> None:
        if output_data is None:
            raise ValueError(f"{self.name}: 출력 데이터가 None입니다.")
