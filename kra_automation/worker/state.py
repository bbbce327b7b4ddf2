import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class BatchProgress:
    """Point-in-time view of one orchestration run."""

    processed: int = 0
    total: int = 0
    running: bool = False
    current_company_name: str | None = None
    stop_requested: bool = False
    logs: list[dict[str, Any]] = field(default_factory=list)

    @property
    def percent(self) -> int:
        if self.total == 0:
            return 0
        return round(self.processed * 100 / self.total)


class BatchRunState:
    """Counters owned by one orchestrator.

    Written by the run thread and read by controller callers, so every
    access goes through the lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._processed = 0
        self._total = 0
        self._running = False
        self._current: str | None = None
        self._stop_requested = False
        self._logs: list[dict[str, Any]] = []

    def reset(self) -> None:
        """Clear a previous run, including any stop it left behind."""
        with self._lock:
            self._processed = 0
            self._total = 0
            self._running = False
            self._current = None
            self._stop_requested = False
            self._logs = []

    def start(self, total: int) -> None:
        """Set the company count. A stop requested since `reset` stays pending."""
        with self._lock:
            self._total = total
            self._running = True

    def begin_company(self, company_name: str) -> None:
        with self._lock:
            self._current = company_name

    def advance(self, company_name: str, status: str) -> None:
        with self._lock:
            self._processed += 1
            self._logs.append(
                {
                    "company": company_name,
                    "status": status,
                    "timestamp": datetime.now().isoformat(timespec="seconds"),
                }
            )

    def request_stop(self) -> None:
        with self._lock:
            self._stop_requested = True

    @property
    def stop_requested(self) -> bool:
        with self._lock:
            return self._stop_requested

    def finish(self) -> None:
        with self._lock:
            self._running = False
            self._current = None

    def snapshot(self) -> BatchProgress:
        with self._lock:
            return BatchProgress(
                processed=self._processed,
                total=self._total,
                running=self._running,
                current_company_name=self._current,
                stop_requested=self._stop_requested,
                logs=list(self._logs),
            )
