"""
메트릭 Sink
비용/지연/점수 관측값을 외부 대시보드로 보내는 쓰기 전용 채널입니다.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from loguru import logger
from pydantic import BaseModel, Field


# 메트릭 이름
AI_COST_PER_REQUEST = "ai.cost.per_request"
AI_LATENCY = "ai.latency"
AI_SUCCESS_RATE = "ai.success.rate"
ERROR_RATE = "system.error.rate"
BUDGET_UTILIZATION = "evaluation.budget_utilization"
QUALITY_ACHIEVED = "evaluation.quality_achieved"
CACHE_HIT_RATE = "evaluation.cache_hit_rate"
TOTAL_COST_SPENT = "evaluation.total_cost_spent"
TOTAL_EVALUATIONS = "evaluation.total_evaluations"
AVG_COST_PER_EVALUATION = "evaluation.avg_cost_per_evaluation"
CACHE_SIZE = "evaluation.cache_size"
MODEL_AVG_COST = "model.avg_cost"
MODEL_AVG_LATENCY = "model.avg_latency"
MODEL_ACCURACY_SCORE = "model.accuracy_score"


class MetricPoint(BaseModel):
    """메트릭 데이터 포인트"""
    name: str
    value: float
    unit: str
    tags: dict[str, str] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=datetime.now)


class MetricsSink(ABC):
    """
    메트릭 Sink 기본 클래스

    record()는 fire-and-forget입니다. 실패해도 평가를 멈추지 않습니다.
    """

    def record(
        self,
        name: str,
        value: float,
        unit: str,
        tags: Optional[dict[str, str]] = None,
    ) -> None:
        try:
            self._emit(MetricPoint(name=name, value=value, unit=unit, tags=tags or {}))
        except Exception as e:
            logger.warning(f"Metric dropped ({name}): {e}")

    @abstractmethod
    def _emit(self, point: MetricPoint) -> None:
        pass


class LoggingMetricsSink(MetricsSink):
    """loguru로 메트릭 기록"""

    def __init__(self):
        self.logger = logger.bind(component="Metrics")

    def _emit(self, point: MetricPoint) -> None:
        tags = ",".join(f"{k}={v}" for k, v in sorted(point.tags.items()))
        self.logger.debug(f"{point.name}={point.value:.4f}{point.unit} [{tags}]")


class InMemoryMetricsSink(MetricsSink):
    """메모리에 메트릭 보관 (테스트/진단용)"""

    def __init__(self, max_points: int = 10000):
        self.max_points = max_points
        self._points: list[MetricPoint] = []
        self._lock = threading.Lock()

    def _emit(self, point: MetricPoint) -> None:
        with self._lock:
            self._points.append(point)
            if len(self._points) > self.max_points:
                del self._points[: len(self._points) - self.max_points]

    def points(self, name: Optional[str] = None) -> list[MetricPoint]:
        with self._lock:
            return [p for p in self._points if name is None or p.name == name]

    def last(self, name: str) -> Optional[MetricPoint]:
        matches = self.points(name)
        return matches[-1] if matches else None
