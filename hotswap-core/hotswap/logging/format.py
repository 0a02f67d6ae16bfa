"""Tools for formatting hotswap logs."""

import logging
from functools import lru_cache

from .context import current_stack_name

MAX_THREAD_NAME_LEN = 12
MAX_NAME_LEN = 26
MAX_STACK_NAME_LEN = 24

LOG_FORMAT = (
    f"%(asctime)s.%(msecs)03d %(hs_level)5s --- [%(hs_thread){MAX_THREAD_NAME_LEN}s] "
    f"%(hs_name)-{MAX_NAME_LEN}s (%(hs_stack)s) : %(message)s"
)
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

CUSTOM_LEVEL_NAMES = {
    logging.CRITICAL: "FATAL",
    logging.WARNING: "WARN",
}


class DefaultFormatter(logging.Formatter):
    """A formatter for records enriched by ``AddFormattedAttributes``, using ``LOG_FORMAT`` and ``LOG_DATE_FORMAT``."""

    def __init__(self, fmt: str = LOG_FORMAT, datefmt: str = LOG_DATE_FORMAT):
        super().__init__(fmt=fmt, datefmt=datefmt)


class AddFormattedAttributes(logging.Filter):
    """
    Filter that adds the attributes used by ``LOG_FORMAT`` to a log record:

    - hs_level: the level name, at most 5 characters long (``WARN`` instead of ``WARNING``)
    - hs_name: the logger name compressed to ``max_name_len`` (e.g., ``h.c.engine.evaluator``)
    - hs_thread: the tail of the thread name, e.g. ``otswap-sdk_3`` for the SDK thread pool
    - hs_stack: the stack whose template was being evaluated when the record was created, or ``-``
    """

    def __init__(self, max_name_len: int = MAX_NAME_LEN, max_thread_len: int = MAX_THREAD_NAME_LEN):
        super().__init__()
        self.max_name_len = max_name_len
        self.max_thread_len = max_thread_len

    def filter(self, record: logging.LogRecord) -> bool:
        record.hs_level = CUSTOM_LEVEL_NAMES.get(record.levelno, record.levelname)
        record.hs_name = _compressed_logger_name(record.name, self.max_name_len)
        record.hs_thread = record.threadName[-self.max_thread_len :]
        stack_name = current_stack_name.get()
        record.hs_stack = stack_name[-MAX_STACK_NAME_LEN:] if stack_name else "-"
        return True


@lru_cache(maxsize=256)
def _compressed_logger_name(name: str, length: int) -> str:
    return compress_logger_name(name, length)


def compress_logger_name(name: str, length: int) -> str:
    """
    Shortens a dotted logger name to ``length`` characters by abbreviating its leading parts to their first letter.
    For example ``hotswap.cloudformation.engine.lookups`` with length=20 turns into ``h.c.engine.lookups``. The last
    part is only truncated if the name doesn't fit even with all other parts abbreviated.

    :param name: the logger name
    :param length: the max length of the logger name
    :return: the compressed name
    """
    if len(name) <= length:
        return name

    parts = name.split(".")
    for i in range(len(parts) - 1):
        parts[i] = parts[i][:1]
        compressed = ".".join(parts)
        if len(compressed) <= length:
            return compressed

    prefix = "".join(f"{part}." for part in parts[:-1])
    return prefix + parts[-1][: max(1, length - len(prefix))]
