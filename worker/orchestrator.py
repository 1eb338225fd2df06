"""
Batch orchestrator: fetch worklist → launch browser → open device contexts →
capture every (url, device) pair → close contexts.

States: idle → fetching_worklist → (empty: done) → launching_browser →
opening_contexts → iterating → closing_contexts → done.

Only worklist misconfiguration (FetchConfigError) and browser/context launch
failure (LaunchError) escape run(); every per-task error stays inside the
task and iteration moves on to the next pair.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable, Optional

from shared.logging import bind_task_context, clear_task_context, get_logger
from worker.capture import CaptureExecutor
from worker.crawl.browser import BrowserFarm
from worker.models import BatchResult, BatchState, CaptureTarget, CaptureTask, JobStatusRecord
from worker.settings import CaptureSettings
from worker.status import JobStatusReporter
from worker.storage import generate_batch_timestamp
from worker.worklist import WorklistSource

logger = get_logger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class BatchOrchestrator:
    def __init__(
        self,
        settings: CaptureSettings,
        worklist: WorklistSource,
        executor: CaptureExecutor,
        reporter: JobStatusReporter,
        farm_factory: Callable[[CaptureSettings], BrowserFarm] = BrowserFarm,
        clock: Callable[[], str] = _utc_now_iso,
    ) -> None:
        self.settings = settings
        self.worklist = worklist
        self.executor = executor
        self.reporter = reporter
        self.farm_factory = farm_factory
        self.clock = clock
        self.result = BatchResult()

    def _transition(self, state: BatchState) -> None:
        logger.debug("batch_state", previous=self.result.state, state=state)
        self.result.state = state

    async def run(self, batch_timestamp: Optional[str] = None) -> BatchResult:
        """
        Run one batch. Returns the BatchResult with per-device counts.

        Raises FetchConfigError or LaunchError; nothing else escapes.
        """
        self.result = BatchResult(batch_timestamp=batch_timestamp or generate_batch_timestamp())
        ts = self.result.batch_timestamp
        logger.info("batch_started", batch_timestamp=ts)

        self._transition("fetching_worklist")
        targets = await asyncio.to_thread(self.worklist.fetch)
        if not targets:
            logger.info("batch_empty_worklist", batch_timestamp=ts)
            self._transition("done")
            logger.info("batch_finished", batch_timestamp=ts, **self.result.summary())
            return self.result

        farm = self.farm_factory(self.settings)
        try:
            self._transition("launching_browser")
            await farm.launch()
            self._transition("opening_contexts")
            await farm.open_contexts()

            self._transition("iterating")
            for target in targets:
                await self._capture_target(farm, target, ts)
        finally:
            self._transition("closing_contexts")
            await farm.close()

        self._transition("done")
        logger.info("batch_finished", batch_timestamp=ts, **self.result.summary())
        return self.result

    async def _capture_target(self, farm: BrowserFarm, target: CaptureTarget, ts: str) -> None:
        # One capture time per target, shared by all of its device tasks.
        captured_at = self.clock()
        for device in self.settings.devices:
            task = CaptureTask(
                target=target,
                device=device,
                batch_timestamp=ts,
                captured_at=captured_at,
            )
            bound = bind_task_context(
                url=target.url,
                device=device.name,
                language=target.language,
                batch_timestamp=ts,
                target_id=target.id,
            )
            try:
                status = await self.executor.run(task, farm.context_for(device.name))
                record = JobStatusRecord.for_task(task, status)
                self.result.record(record)
                logger.info("task_completed", outcome=status, artifact_key=record.artifact_key)
                await asyncio.to_thread(self.reporter.report, record)
            finally:
                clear_task_context(bound)
