"""
Value types for a batch run: targets, device profiles, tasks, status records
and the aggregate batch result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

from worker.storage import build_artifact_key

JobStatus = Literal["ok", "failed"]

BatchState = Literal[
    "idle",
    "fetching_worklist",
    "launching_browser",
    "opening_contexts",
    "iterating",
    "closing_contexts",
    "done",
]


@dataclass(frozen=True)
class CaptureTarget:
    """One worklist entry. The url is its identity within a batch."""

    url: str
    language: str
    id: Optional[str] = None


@dataclass(frozen=True)
class DeviceProfile:
    """Named viewport/user-agent configuration simulating a device class."""

    name: str
    viewport_width: int
    viewport_height: int
    user_agent: str


@dataclass(frozen=True)
class CaptureTask:
    """One (target, device) unit of work scoped to a batch timestamp."""

    target: CaptureTarget
    device: DeviceProfile
    batch_timestamp: str
    captured_at: str

    @property
    def artifact_key(self) -> str:
        return build_artifact_key(self.target.url, self.device.name, self.batch_timestamp)


@dataclass(frozen=True)
class JobStatusRecord:
    """Outcome of one task attempt, written once after the task concludes."""

    url: str
    language: str
    device: str
    status: JobStatus
    artifact_key: str
    captured_at: str

    @classmethod
    def for_task(cls, task: CaptureTask, status: JobStatus) -> "JobStatusRecord":
        return cls(
            url=task.target.url,
            language=task.target.language,
            device=task.device.name,
            status=status,
            artifact_key=task.artifact_key,
            captured_at=task.captured_at,
        )

    def to_payload(self) -> dict:
        """Wire shape expected by the status registry."""
        return {
            "url": self.url,
            "language": self.language,
            "device": self.device,
            "job_status": self.status,
            "r2_key": self.artifact_key,
            "created_at": self.captured_at,
        }


@dataclass
class DeviceCounts:
    ok: int = 0
    failed: int = 0


@dataclass
class BatchResult:
    """
    Aggregate outcome of a batch: ok/failed counts per device plus the
    final orchestrator state and the records produced, in execution order.
    """

    batch_timestamp: Optional[str] = None
    state: BatchState = "idle"
    per_device: dict[str, DeviceCounts] = field(default_factory=dict)
    records: list[JobStatusRecord] = field(default_factory=list)

    def record(self, record: JobStatusRecord) -> None:
        counts = self.per_device.setdefault(record.device, DeviceCounts())
        if record.status == "ok":
            counts.ok += 1
        else:
            counts.failed += 1
        self.records.append(record)

    @property
    def ok(self) -> int:
        return sum(c.ok for c in self.per_device.values())

    @property
    def failed(self) -> int:
        return sum(c.failed for c in self.per_device.values())

    @property
    def attempted(self) -> int:
        return self.ok + self.failed

    @property
    def outcome(self) -> str:
        """
        Overall batch outcome: "empty" when no task ran, "completed" when all
        tasks succeeded, "failed" when none did, "partial" otherwise.
        """
        if self.attempted == 0:
            return "empty"
        if self.failed == 0:
            return "completed"
        if self.ok == 0:
            return "failed"
        return "partial"

    def summary(self) -> dict:
        """Flat dict for the batch_finished log line."""
        return {
            "attempted": self.attempted,
            "ok": self.ok,
            "failed": self.failed,
            "outcome": self.outcome,
            "per_device": {
                name: {"ok": c.ok, "failed": c.failed} for name, c in self.per_device.items()
            },
        }
