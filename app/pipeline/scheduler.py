"""
백그라운드 유지보수 스케줄러
캐시 정리, 프로필 메트릭 보고 같은 주기 작업을 별도 스레드에서 실행합니다.
"""

import threading
import time
from typing import Callable, Optional
from loguru import logger


class ScheduledJob:
    """주기 작업"""
    def __init__(self, name: str, interval_sec: float, fn: Callable[[], object], next_run: float):
        self.name = name
        self.interval_sec = interval_sec
        self.fn = fn
        self.next_run = next_run
        self.run_count = 0


class MaintenanceScheduler:
    """
    주기 작업 스케줄러

    - start()/stop()으로 데몬 스레드를 관리합니다.
    - 작업 실패는 로그만 남기고 다음 주기에 다시 실행합니다.
    - run_pending_once()로 스레드 없이 도래한 작업만 실행할 수 있습니다.
    """

    def __init__(
        self,
        tick_sec: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.tick_sec = tick_sec
        self.clock = clock
        self._jobs: list[ScheduledJob] = []
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.logger = logger.bind(component="Scheduler")

    def add_job(self, name: str, interval_sec: float, fn: Callable[[], object]) -> None:
        """작업 등록 (첫 실행은 interval_sec 후)"""
        if interval_sec <= 0:
            raise ValueError(f"interval_sec must be positive: {interval_sec}")
        with self._lock:
            self._jobs.append(ScheduledJob(name, interval_sec, fn, self.clock() + interval_sec))
        self.logger.debug(f"Job registered: {name} (every {interval_sec:.0f}s)")

    def job_names(self) -> list[str]:
        with self._lock:
            return [job.name for job in self._jobs]

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """스케줄러 스레드 시작"""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop, name="evallens-maintenance", daemon=True
        )
        self._thread.start()
        self.logger.info(f"Maintenance scheduler started ({len(self._jobs)} jobs)")

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """스케줄러 스레드 중지"""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        self.logger.info("Maintenance scheduler stopped")

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            self.run_pending_once()
            self._stop_event.wait(self.tick_sec)

    def run_pending_once(self) -> int:
        """
        도래한 작업 실행

        Returns:
            실행한 작업 수
        """
        now = self.clock()
        with self._lock:
            due = [job for job in self._jobs if job.next_run <= now]
            for job in due:
                job.next_run = now + job.interval_sec

        for job in due:
            try:
                job.fn()
                job.run_count += 1
            except Exception as e:
                self.logger.error(f"Scheduled job {job.name} failed: {e}")

        return len(due)
