"""
EvalLens 설정 관리

모든 설정값은 .env 파일에서 관리합니다.
사용법:
    from app.config import settings
    ttl = settings.CACHE_TTL_HOURS
"""

import sys
from typing import Optional

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """애플리케이션 설정"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # .env에 정의되지 않은 변수 무시
    )

    # === 환경 ===
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # === 스코어링 백엔드 (HTTP) ===
    BACKEND_BASE_URL: str = "http://localhost:8080/v1"
    BACKEND_API_KEY: str = ""
    BACKEND_TIMEOUT: int = 30

    # === 재시도 정책 ===
    RETRY_MAX_ATTEMPTS: int = 3
    RETRY_MIN_WAIT: float = 1.0   # 초
    RETRY_MAX_WAIT: float = 10.0  # 초

    # === 캐시 ===
    CACHE_TTL_HOURS: float = 24
    CACHE_MAX_ENTRIES: int = 1000
    CACHE_EVICT_FRACTION: float = 0.2

    # === 전략 선택 임계값 ===
    COST_STRATEGY_MAX_BUDGET: float = 0.10
    SPEED_STRATEGY_MAX_LATENCY_MS: float = 5000
    QUALITY_STRATEGY_MIN_THRESHOLD: float = 85
    STRATEGY_MAX_CANDIDATES: int = 3

    # 차원별 백엔드 선호도 파일 (없으면 내장 테이블 사용)
    DIMENSION_PREFERENCES_PATH: Optional[str] = None

    # 빈 차원 목록을 요청 오류로 볼지 여부
    REQUIRE_DIMENSIONS: bool = False

    # === 백그라운드 작업 ===
    BACKGROUND_TASKS_ENABLED: bool = False
    CACHE_CLEANUP_INTERVAL_SEC: float = 3600
    PROFILE_REPORT_INTERVAL_SEC: float = 300

    # === 편의 래퍼 프리셋 ===
    QUICK_COST_BUDGET: float = 0.05
    QUICK_LATENCY_TARGET_MS: float = 3000
    COMPREHENSIVE_QUALITY_THRESHOLD: float = 85
    COMPREHENSIVE_CACHE_TTL_HOURS: float = 48


def setup_logging(level: Optional[str] = None) -> None:
    """loguru 기본 sink를 LOG_LEVEL 기준으로 재설정"""
    logger.remove()
    logger.add(sys.stderr, level=level or settings.LOG_LEVEL)


# 싱글톤 인스턴스
settings = Settings()
