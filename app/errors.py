"""
평가 오류 타입
설정/요청 단계에서만 호출자에게 전달되는 예외를 정의합니다.
차원 단위 실패나 예산 초과는 예외가 아니라 결과(fallbacks_used)로 기록됩니다.
"""

from typing import Optional


class EvaluationError(Exception):
    """평가 엔진 기본 예외"""
    pass


class ConfigurationError(EvaluationError):
    """
    평가를 시작할 수 없는 구성/요청 오류

    Attributes:
        request_id: 문제가 된 요청 ID
        field: 위반한 필드명
    """

    def __init__(
        self,
        message: str,
        request_id: Optional[str] = None,
        field: Optional[str] = None,
    ):
        super().__init__(message)
        self.request_id = request_id
        self.field = field

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "message": str(self),
            "request_id": self.request_id,
            "field": self.field,
        }


class NoBackendConfiguredError(ConfigurationError):
    """등록된 백엔드가 하나도 없음"""
    pass


class InvalidRequestError(ConfigurationError):
    """구조적으로 잘못된 요청 (음수 예산 등)"""
    pass
