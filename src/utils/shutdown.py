"""Single owner of shutdown: signal handling and registered cleanup actions.

Every exit path of a run (normal completion, operator interrupt, fatal
error) ends in ``run_cleanup``, which calls each registered action once,
newest first. A failing action is logged and the rest still run.
"""

import asyncio
import inspect
import logging
import signal
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

logger = logging.getLogger(__name__)


class ShutdownCoordinator:
    """Owns the cancellation signal and cleanup registry for one run."""

    def __init__(self):
        self._actions: list[tuple[str, Callable[[], Any]]] = []
        self._cleaned_up = False
        self._main_task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._sigint_on_loop = False
        self.interrupted = False

    def register(self, name: str, action: Callable[[], Any]) -> None:
        """Register a cleanup action (sync function or coroutine function)."""
        self._actions.append((name, action))

    def install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """Cancel the current task on SIGINT/SIGTERM."""
        self._main_task = asyncio.current_task(loop)
        self._loop = loop
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._handle_signal, sig)
                if sig == signal.SIGINT:
                    self._sigint_on_loop = True
            except (NotImplementedError, RuntimeError):
                # Platforms without loop signal support fall back to KeyboardInterrupt
                logger.debug(f"Signal handler for {sig} not installed")

    def _handle_signal(self, signum) -> None:
        logger.info(f"Received signal {signum}, shutting down gracefully...")
        self.interrupted = True
        if self._main_task is not None and not self._main_task.done():
            self._main_task.cancel()

    @contextmanager
    def blocking_prompt(self) -> Iterator[None]:
        """Let Ctrl-C interrupt a synchronous read from the terminal.

        The loop handler only runs once the loop regains control, so while
        the block runs SIGINT raises KeyboardInterrupt instead. An interrupt
        marks the run as interrupted and propagates.
        """
        restore = self._sigint_on_loop and self._loop is not None
        if restore:
            self._loop.remove_signal_handler(signal.SIGINT)
        try:
            yield
        except KeyboardInterrupt:
            logger.info("Interrupted at prompt, shutting down gracefully...")
            self.interrupted = True
            raise
        finally:
            if restore:
                self._loop.add_signal_handler(signal.SIGINT, self._handle_signal, signal.SIGINT)

    async def run_cleanup(self) -> None:
        """Run every cleanup action once."""
        if self._cleaned_up:
            return
        self._cleaned_up = True

        for name, action in reversed(self._actions):
            try:
                result = action()
                if inspect.isawaitable(result):
                    await result
                logger.debug(f"Cleanup done: {name}")
            except Exception as e:
                logger.error(f"Cleanup action '{name}' failed: {e}")
