import logging
import os
from typing import Union

from hotswap.constants import (
    AWS_REGION_US_EAST_1,
    DEFAULT_MAX_WORKERS,
    LOG_LEVELS,
    TRACE_LOG_LEVELS,
    TRUE_STRINGS,
)


def eval_log_type(env_var_name: str) -> Union[str, bool]:
    """Get the log type from environment variable"""
    log_type = os.environ.get(env_var_name, "").lower().strip()
    return log_type if log_type in LOG_LEVELS else False


def is_env_true(env_var_name: str) -> bool:
    """Whether the given environment variable has a truthy value."""
    return os.environ.get(env_var_name, "").lower().strip() in TRUE_STRINGS


def get_default_region() -> str:
    return (
        os.environ.get("AWS_REGION", "").strip()
        or os.environ.get("AWS_DEFAULT_REGION", "").strip()
        or AWS_REGION_US_EAST_1
    )


# log level of the hotswap loggers (trace, trace-internal, debug, info, warn, error)
HOTSWAP_LOG = eval_log_type("HOTSWAP_LOG")

# whether to enable debug output
DEBUG = is_env_true("DEBUG") or HOTSWAP_LOG in TRACE_LOG_LEVELS

# max number of threads used to run blocking AWS SDK calls from the event loop
HOTSWAP_MAX_WORKERS = int(os.environ.get("HOTSWAP_MAX_WORKERS", "").strip() or DEFAULT_MAX_WORKERS)

# region used by the boto3-backed SDK if none is passed explicitly
DEFAULT_REGION = get_default_region()


def is_trace_logging_enabled():
    if HOTSWAP_LOG:
        log_level = str(HOTSWAP_LOG).upper()
        return log_level.lower() in TRACE_LOG_LEVELS
    return False


# set log levels immediately, but will be overwritten later by setup_logging
if DEBUG:
    logging.getLogger("").setLevel(logging.DEBUG)
    logging.getLogger("hotswap").setLevel(logging.DEBUG)
