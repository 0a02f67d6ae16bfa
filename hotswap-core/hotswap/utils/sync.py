"""Concurrency synchronization utilities"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """
    A cell that executes an async operation at most once, and shares the pending operation with every caller.

    The cell is in one of three states: not started, in progress, or done. The first call to ``get`` starts the
    operation as a task. Callers that arrive while the task is still running await that same task, and callers that
    arrive afterwards receive the stored result. If the operation raises, the exception is stored as well, and is
    re-raised to every caller.

    ```python
    resources = SingleFlight(lambda: sdk.list_stack_resources("my-stack"))

    # only one call to list_stack_resources is made
    first, second = await asyncio.gather(resources.get(), resources.get())
    ```
    """

    _fn: Callable[[], Awaitable[T]]
    _task: Optional["asyncio.Future[T]"]

    def __init__(self, fn: Callable[[], Awaitable[T]]):
        self._fn = fn
        self._task = None

    @property
    def started(self) -> bool:
        return self._task is not None

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    async def get(self) -> T:
        # no await between the check and the assignment, so concurrent callers cannot both start the task
        if self._task is None:
            self._task = asyncio.ensure_future(self._fn())
        # a cancelled caller must not cancel the operation shared with the other callers
        return await asyncio.shield(self._task)
