"""
Best-effort side effects.

Usage-count increments and unknown-term logging must never change the
result of the lookup that triggered them. BestEffortRunner is the only
way the engine performs such writes: failures are printed and dropped.
"""

import asyncio
from typing import Awaitable, Optional

from rich.console import Console

console = Console()


class BestEffortRunner:
    """Runs side-effect coroutines without letting their failures escape."""

    def __init__(self):
        self._pending: set[asyncio.Task] = set()
        self.failures: list[str] = []

    def schedule(self, label: str, awaitable: Awaitable) -> Optional[asyncio.Task]:
        """
        Fire-and-forget: start the coroutine in the background.

        Returns the task, or None when there is no running event loop
        (the coroutine is closed and the failure recorded).
        """
        try:
            task = asyncio.ensure_future(awaitable)
        except RuntimeError as e:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            self._record(label, e)
            return None

        # Keep a strong reference until the task is done
        self._pending.add(task)
        task.add_done_callback(lambda t: self._on_done(label, t))
        return task

    async def drain(self) -> None:
        """Wait for every scheduled side effect to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def _on_done(self, label: str, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._record(label, error)

    def _record(self, label: str, error: BaseException) -> None:
        message = f"{label}: {error}"
        self.failures.append(message)
        console.print(f"[yellow]Warning: {message}[/yellow]")
