"""
EvalLens 테스트 - Maintenance Scheduler
"""

import threading
import pytest
import sys
sys.path.insert(0, ".")

from app.pipeline.scheduler import MaintenanceScheduler
from fakes import ManualClock


class TestMaintenanceScheduler:
    """주기 작업 테스트"""

    def setup_method(self):
        self.clock = ManualClock()
        self.scheduler = MaintenanceScheduler(clock=self.clock)
        self.runs = []

    def test_runs_due_jobs_only(self):
        self.scheduler.add_job("cleanup", 10, lambda: self.runs.append("cleanup"))

        assert self.scheduler.run_pending_once() == 0

        self.clock.advance(10)
        assert self.scheduler.run_pending_once() == 1
        assert self.scheduler.run_pending_once() == 0

        self.clock.advance(10)
        assert self.scheduler.run_pending_once() == 1
        assert self.runs == ["cleanup", "cleanup"]

    def test_failing_job_does_not_stop_others(self):
        def broken():
            raise RuntimeError("boom")

        self.scheduler.add_job("broken", 5, broken)
        self.scheduler.add_job("report", 5, lambda: self.runs.append("report"))
        self.clock.advance(5)

        assert self.scheduler.run_pending_once() == 2
        assert self.runs == ["report"]

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            self.scheduler.add_job("bad", 0, lambda: None)

    def test_start_stop(self):
        """스레드 시작/중지"""
        ran = threading.Event()
        scheduler = MaintenanceScheduler(tick_sec=0.01)
        scheduler.add_job("ping", 0.01, ran.set)

        scheduler.start()
        try:
            assert ran.wait(2.0)
            assert scheduler.running
        finally:
            scheduler.stop()

        assert not scheduler.running
        assert scheduler.job_names() == ["ping"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
