"""
테스트용 가짜 백엔드 클라이언트와 수동 시계
"""

import json
import sys
sys.path.insert(0, ".")

from app.llm.client import BackendResponse, ModelBackendClient


def score_text(score: float = 80, confidence: float = 75, reasoning: str = "ok") -> str:
    return json.dumps({"score": score, "confidence": confidence, "reasoning": reasoning})


class ManualClock:
    """호출 시 현재 값을 돌려주는 시계 (초 단위)"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeBackendClient(ModelBackendClient):
    """
    스크립트 기반 가짜 백엔드

    - 차원별로 응답(BackendResponse/텍스트) 또는 예외를 지정
    - 호출마다 latency_ms 만큼 시계를 진행
    - 전달받은 content를 일부러 변경 (입력 불변성 확인용)
    """

    def __init__(
        self,
        clock: ManualClock = None,
        cost: float = 0.03,
        latency_ms: float = 1000,
        text: str = None,
    ):
        self.clock = clock
        self.cost = cost
        self.latency_ms = latency_ms
        self.text = text or score_text()
        self.behaviors = {}
        self.calls = []
        self.closed = False

    def on(self, dimension: str, behavior) -> "FakeBackendClient":
        self.behaviors[dimension] = behavior
        return self

    def score(self, backend_id, dimension, content):
        self.calls.append((backend_id, dimension))
        if self.clock is not None:
            self.clock.advance(self.latency_ms / 1000)

        if isinstance(content, dict):
            content["touched_by_backend"] = True

        behavior = self.behaviors.get(dimension)
        if isinstance(behavior, Exception):
            raise behavior
        if isinstance(behavior, BackendResponse):
            return behavior
        if isinstance(behavior, str):
            return BackendResponse(text=behavior, cost=self.cost, latency_ms=self.latency_ms)

        return BackendResponse(text=self.text, cost=self.cost, latency_ms=self.latency_ms)

    def close(self):
        self.closed = True
