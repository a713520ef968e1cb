"""
Asynchronous module readiness tracking.

A constructed module may expose a ``startup()`` method, either a plain
function or a coroutine function. Each startup runs on its own daemon thread
so independent modules never wait for each other, and a startup that never
returns cannot keep the process alive once the sequence has given up on it.
Dependents wait for the startup of their dependencies before they are
constructed.
"""

import asyncio
import inspect
import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Dict

from loom.error.application_error import ReadinessTimeoutError

logger = logging.getLogger(__name__)

STARTUP_HOOK = "startup"


def _run_startup(name: str, instance: Any, future: Future) -> None:
    try:
        result = getattr(instance, STARTUP_HOOK)()
        if inspect.isawaitable(result):
            asyncio.run(_await(result))
    except Exception as e:
        logger.debug(f"Startup of module '{name}' failed: {e}")
        future.set_exception(e)
        return
    logger.debug(f"Module '{name}' is ready")
    future.set_result(None)


async def _await(awaitable: Any) -> Any:
    return await awaitable


class ReadinessTracker:
    """Runs module startup hooks and waits on their completion."""

    def __init__(self, timeout_seconds: float = 30.0):
        """
        Args:
            timeout_seconds: Upper bound on how long a startup may take
        """
        self.timeout_seconds = timeout_seconds
        self._pending: Dict[str, Future] = {}

    def track(self, name: str, instance: Any) -> None:
        """Start the startup hook of a freshly constructed module, if it has one."""
        hook = getattr(instance, STARTUP_HOOK, None)
        if not callable(hook):
            return
        future: Future = Future()
        future.set_running_or_notify_cancel()
        self._pending[name] = future
        logger.debug(f"Starting startup of module '{name}'")
        threading.Thread(
            target=_run_startup,
            args=(name, instance, future),
            name=f"loom-startup-{name}",
            daemon=True,
        ).start()

    def is_ready(self, name: str) -> bool:
        future = self._pending.get(name)
        return future is None or (future.done() and future.exception() is None)

    def wait_for(self, name: str) -> None:
        """
        Block until the named module has signalled readiness.

        Raises:
            ReadinessTimeoutError: If the startup did not finish within the bound
            Exception: Whatever the startup hook raised
        """
        future = self._pending.get(name)
        if future is None:
            return
        try:
            future.result(timeout=self.timeout_seconds)
        except FutureTimeoutError as e:
            raise ReadinessTimeoutError(
                f"Module '{name}' did not become ready within {self.timeout_seconds}s"
            ) from e

    def wait_all(self) -> None:
        """Wait for every scheduled startup, in scheduling order."""
        for name in list(self._pending):
            self.wait_for(name)

    def shutdown(self) -> None:
        """Stop tracking; startups still running are abandoned on their daemon threads."""
        abandoned = [name for name, future in self._pending.items() if not future.done()]
        if abandoned:
            logger.warning(f"Abandoning unfinished startup of: {', '.join(abandoned)}")
        self._pending.clear()
