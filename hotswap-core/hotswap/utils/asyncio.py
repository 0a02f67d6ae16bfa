import asyncio
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from contextvars import copy_context

from hotswap import config

LOG = logging.getLogger(__name__)

# Thread pool executor for running blocking (boto3) calls in async context.
THREAD_POOL = ThreadPoolExecutor(
    max_workers=config.HOTSWAP_MAX_WORKERS, thread_name_prefix="hotswap-sdk"
)


async def run_sync(func, *args, thread_pool=None, **kwargs):
    """Run the given blocking function in a thread pool, and await its result in the running event loop."""
    loop = asyncio.get_running_loop()
    thread_pool = thread_pool or THREAD_POOL
    func_wrapped = functools.partial(func, *args, **kwargs)
    LOG.debug("Running blocking call %s in thread pool", getattr(func, "__name__", func))
    return await loop.run_in_executor(thread_pool, copy_context().run, func_wrapped)
