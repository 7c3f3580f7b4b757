"""Bounded-concurrency batch runner with per-task retry.

Each content unit's stage work (download + narration, clip editing) is a
task. A batch runs with at most ``concurrency`` tasks in flight; a failed
task goes back to the end of the ready queue until its retry budget is
spent. One task failing never cancels its siblings, and the batch only
returns once every task has either succeeded or failed for good.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CONCURRENCY = 4
DEFAULT_RETRIES_PER_TASK = 2


class TaskState(str, Enum):
    """Lifecycle of a PipelineTask. SUCCEEDED and FAILED are terminal."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class PipelineTask(Generic[T]):
    """One unit of work tracked by the runner."""

    index: int
    title: str
    step: Callable[[], Awaitable[T]]
    state: TaskState = TaskState.PENDING
    attempt_count: int = 0
    result: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in (TaskState.SUCCEEDED, TaskState.FAILED)


@dataclass
class BatchProgress:
    """Track progress of a running batch."""

    total: int
    succeeded: int = 0
    failed: int = 0
    in_flight: int = 0
    retries: int = 0
    peak_in_flight: int = 0
    start_time: float = field(default_factory=time.time)

    @property
    def finished(self) -> int:
        return self.succeeded + self.failed

    @property
    def elapsed_time(self) -> float:
        """Calculate elapsed time since start."""
        return time.time() - self.start_time

    def start_task(self) -> None:
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)

    def end_task(self) -> None:
        self.in_flight -= 1

    def get_status_message(self) -> str:
        """Generate a human-readable status message."""
        return (
            f"{self.succeeded}/{self.total} succeeded, {self.in_flight} running, "
            f"{self.failed} failed, {self.retries} retries"
        )


@dataclass
class BatchResult(Generic[T]):
    """Outcome of a batch: every task, with helpers for the surviving subset."""

    tasks: list[PipelineTask[T]]

    @property
    def results(self) -> list[T]:
        """Results of succeeded tasks, in submission order."""
        return [t.result for t in self.tasks if t.state == TaskState.SUCCEEDED]  # type: ignore[misc]

    @property
    def succeeded_indices(self) -> list[int]:
        return [t.index for t in self.tasks if t.state == TaskState.SUCCEEDED]

    @property
    def failures(self) -> list[PipelineTask[T]]:
        return [t for t in self.tasks if t.state == TaskState.FAILED]

    @property
    def all_failed(self) -> bool:
        return bool(self.tasks) and not self.results


class ConcurrentPipelineRunner:
    """Runs independent async steps under a concurrency ceiling.

    Example usage:
        runner = ConcurrentPipelineRunner(concurrency=4, retries_per_task=2)
        batch = await runner.run(
            [lambda u=unit: build_clip(u) for unit in units],
            titles=[f"clip {i + 1}" for i in range(len(units))],
        )
        clips = batch.results
    """

    def __init__(
        self,
        concurrency: int = DEFAULT_CONCURRENCY,
        retries_per_task: int = DEFAULT_RETRIES_PER_TASK,
        progress_callback: Optional[Callable[[BatchProgress], None]] = None,
        name: str = "batch",
    ):
        """Initialize runner.

        Args:
            concurrency: Maximum number of tasks running at once
            retries_per_task: Extra attempts a failing task gets before it is failed
            progress_callback: Optional callback invoked on every state change
            name: Label used in log messages
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if retries_per_task < 0:
            raise ValueError("retries_per_task cannot be negative")
        self.concurrency = concurrency
        self.retries_per_task = retries_per_task
        self.progress_callback = progress_callback
        self.name = name

    @property
    def max_attempts(self) -> int:
        return self.retries_per_task + 1

    def _notify(self, progress: BatchProgress) -> None:
        if self.progress_callback:
            self.progress_callback(progress)

    async def run(
        self,
        steps: Sequence[Callable[[], Awaitable[Any]]],
        titles: Optional[Sequence[str]] = None,
    ) -> BatchResult:
        """Run every step to a terminal state.

        Args:
            steps: Zero-argument coroutine factories, one per task
            titles: Optional human-readable task names (defaults to "[i/n]")

        Returns:
            BatchResult holding every task; use .results for the successes
        """
        total = len(steps)
        if titles is not None and len(titles) != total:
            raise ValueError("titles must match steps one-to-one")

        tasks = [
            PipelineTask(
                index=i,
                title=titles[i] if titles is not None else f"[{i + 1}/{total}] {self.name}",
                step=step,
            )
            for i, step in enumerate(steps)
        ]
        progress = BatchProgress(total=total)
        if not tasks:
            return BatchResult(tasks=tasks)

        queue: asyncio.Queue[PipelineTask] = asyncio.Queue()
        for task in tasks:
            queue.put_nowait(task)

        logger.info(
            f"[{self.name}] Running {total} tasks "
            f"(concurrency={self.concurrency}, retries={self.retries_per_task})"
        )

        async def worker() -> None:
            while True:
                task = await queue.get()
                try:
                    await self._attempt(task, queue, progress)
                finally:
                    queue.task_done()

        workers = [
            asyncio.create_task(worker(), name=f"{self.name}-worker-{i}")
            for i in range(min(self.concurrency, total))
        ]
        try:
            await queue.join()
        finally:
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        result = BatchResult(tasks=tasks)
        for failed in result.failures:
            logger.error(f"- {failed.title}: {failed.error}")
        logger.info(f"[{self.name}] Done: {progress.get_status_message()}")
        return result

    async def _attempt(
        self,
        task: PipelineTask,
        queue: "asyncio.Queue[PipelineTask]",
        progress: BatchProgress,
    ) -> None:
        """Run one attempt of a task and decide its next state."""
        task.state = TaskState.RUNNING
        task.attempt_count += 1
        progress.start_task()
        self._notify(progress)

        try:
            task.result = await task.step()
        except Exception as e:
            task.error = e
            progress.end_task()
            if task.attempt_count < self.max_attempts:
                progress.retries += 1
                logger.warning(
                    f"{task.title} failed (attempt {task.attempt_count}/"
                    f"{self.max_attempts}), requeueing: {e}"
                )
                queue.put_nowait(task)
            else:
                task.state = TaskState.FAILED
                progress.failed += 1
            self._notify(progress)
            return

        task.state = TaskState.SUCCEEDED
        task.error = None
        progress.end_task()
        progress.succeeded += 1
        self._notify(progress)
