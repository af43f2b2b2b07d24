"""Generation engine with bounded concurrency and retry rounds.

Runs one task per grid cell in whole-batch rounds.  Each round executes
every task that is not done yet, at most ``concurrency`` at a time.  An
artifact left by an earlier process satisfies its task without a call.  A
task counts as done after a round only when it succeeded and its artifact
exists; a task that failed in this run is retried even if a file with its
name is on disk.

Every task captures its own failure: one broken cell never stops its
siblings from finishing the round.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from facegrid.artifacts import ArtifactStore
from facegrid.logging import get_logger
from facegrid.models import GenerationTask, RunResult, Step, TaskStatus
from facegrid.progress import ProgressRenderer, task_line_width
from facegrid.providers import GenerationProvider

logger = get_logger("executor")


class GenerationExecutor:
    """Drives the generation provider over a set of steps.

    Args:
        provider: Service that renders one step.
        store: Where artifacts are checked and written.
        source_image: Source photo bytes sent with every request.
        renderer: Progress output; a renderer on stdout is created if
            omitted.
    """

    def __init__(
        self,
        provider: GenerationProvider,
        store: ArtifactStore,
        source_image: bytes,
        renderer: ProgressRenderer | None = None,
    ) -> None:
        self.provider = provider
        self.store = store
        self.source_image = source_image
        self.renderer = renderer if renderer is not None else ProgressRenderer()
        self.calls_made = 0
        self._generated = 0
        self._skipped = 0

    async def run_task(self, task: GenerationTask) -> TaskStatus:
        """Execute one unit of work, never raising for task-level failures."""
        filename = task.filename
        start = f"Generating {filename}..."
        done = f"Generated {filename} ✅"
        skip = f"Skipping {filename} (exists)"
        failed = f"Failed {filename} ❌"
        line = self.renderer.register_line(
            start, width=task_line_width(start, done, skip, failed)
        )

        if task.attempts == 0 and self.store.exists(filename):
            self.renderer.update_line(line, skip)
            logger.debug("skip %s", filename, extra={"artifact": filename})
            self._skipped += 1
            return TaskStatus.DONE

        task.attempts += 1
        self.calls_made += 1
        try:
            data = await self.provider.generate(self.source_image, task.step)
            await self.store.write(filename, data)
        except Exception as exc:
            task.last_error = str(exc) or type(exc).__name__
            self.renderer.update_line(line, failed)
            logger.debug(
                "Task %s failed (attempt %d): %s",
                filename,
                task.attempts,
                task.last_error,
                extra={"artifact": filename},
            )
            return TaskStatus.FAILED

        self.renderer.update_line(line, done)
        self._generated += 1
        return TaskStatus.DONE

    async def _run_round(
        self, tasks: Sequence[GenerationTask], concurrency: int
    ) -> list[TaskStatus]:
        """Run *tasks* at most *concurrency* at a time.

        Returns:
            One status per task, in input order.  A task that raised past
            :meth:`run_task` counts as failed.
        """
        semaphore = asyncio.Semaphore(concurrency)

        async def _bounded(task: GenerationTask) -> TaskStatus:
            async with semaphore:
                return await self.run_task(task)

        results = await asyncio.gather(
            *(_bounded(task) for task in tasks), return_exceptions=True
        )
        statuses: list[TaskStatus] = []
        for task, result in zip(tasks, results):
            # run_task catches Exception; this only sees cancellation-style errors
            if isinstance(result, BaseException):
                task.last_error = repr(result)
                logger.error("Unexpected failure in %s: %r", task.filename, result)
                statuses.append(TaskStatus.FAILED)
            else:
                statuses.append(result)
        return statuses

    async def run_all(
        self,
        steps: Sequence[Step],
        concurrency: int = 5,
        max_attempts: int = 2,
    ) -> RunResult:
        """Generate an artifact for every step, retrying in rounds.

        Args:
            steps: Steps to generate, usually a flattened grid.
            concurrency: Maximum tasks in flight within a round.
            max_attempts: Maximum number of rounds.

        Returns:
            A :class:`RunResult`; ``failed_filenames`` lists the artifacts
            still missing after the last round, in input order.

        Raises:
            ValueError: If *concurrency* or *max_attempts* is below 1.
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

        self.calls_made = 0
        self._generated = 0
        self._skipped = 0
        tasks = [GenerationTask(step=step) for step in steps]
        pending = list(tasks)
        attempt = 0

        while pending and attempt < max_attempts:
            attempt += 1
            if attempt > 1:
                self.renderer.log(
                    f"Retrying {len(pending)} missing images "
                    f"(attempt {attempt}/{max_attempts})..."
                )
            logger.info("Round %d/%d: %d pending", attempt, max_attempts, len(pending))

            statuses = await self._run_round(pending, concurrency)

            # A failed task stays pending even if it left a file behind.
            for task, status in zip(pending, statuses):
                if status is TaskStatus.DONE and self.store.exists(task.filename):
                    task.status = TaskStatus.DONE
                else:
                    task.status = TaskStatus.FAILED
                    if task.last_error is None:
                        task.last_error = "artifact missing after round"
            pending = [task for task in pending if task.status is not TaskStatus.DONE]

        if not pending:
            self.renderer.log("All images generated successfully.")
            return RunResult(
                success=True,
                rounds=attempt,
                generated=self._generated,
                skipped=self._skipped,
            )

        for task in pending:
            logger.warning(
                "Giving up on %s after %d attempt(s): %s",
                task.filename,
                task.attempts,
                task.last_error,
            )
        return RunResult(
            success=False,
            failed_filenames=[task.filename for task in pending],
            rounds=attempt,
            generated=self._generated,
            skipped=self._skipped,
        )

