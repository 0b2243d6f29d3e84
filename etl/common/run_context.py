"""
Run context shared by every stage of a silver load.

The context carries the run-wide state of one batch (start time, the date the
batch treats as "today", status and the stage currently running) so that
stages never read the wall clock or module globals themselves.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional


class BatchStatus(Enum):
    """Enum representing the state of a silver load batch."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class RunContext:
    """State of one silver load batch."""

    batch_start_time: Optional[datetime] = None
    batch_end_time: Optional[datetime] = None
    run_date: Optional[date] = None
    status: BatchStatus = BatchStatus.NOT_STARTED
    current_stage: Optional[str] = None
    completed_stages: list = field(default_factory=list)

    def start(self, now: Optional[datetime] = None) -> None:
        """Mark the batch as running. The run date defaults to the start day."""
        self.batch_start_time = now or datetime.now()
        if self.run_date is None:
            self.run_date = self.batch_start_time.date()
        self.status = BatchStatus.RUNNING

    def enter_stage(self, table_name: str) -> None:
        self.current_stage = table_name

    def finish_stage(self) -> None:
        self.completed_stages.append(self.current_stage)
        self.current_stage = None

    def complete(self, now: Optional[datetime] = None) -> None:
        self.batch_end_time = now or datetime.now()
        self.status = BatchStatus.COMPLETED

    def fail(self, now: Optional[datetime] = None) -> None:
        self.batch_end_time = now or datetime.now()
        self.status = BatchStatus.FAILED

    @property
    def elapsed_seconds(self) -> float:
        if self.batch_start_time is None:
            return 0.0
        end_time = self.batch_end_time or datetime.now()
        return (end_time - self.batch_start_time).total_seconds()
