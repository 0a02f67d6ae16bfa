"""Context of the evaluation in progress, added to log records by ``AddFormattedAttributes``."""

import contextlib
from contextvars import ContextVar
from typing import Iterator, Optional

# name of the stack whose template is being evaluated in the current task
current_stack_name: ContextVar[Optional[str]] = ContextVar("current_stack_name", default=None)


@contextlib.contextmanager
def stack_context(stack_name: str) -> Iterator[None]:
    token = current_stack_name.set(stack_name)
    try:
        yield
    finally:
        current_stack_name.reset(token)
