"""Thread pool for blocking file I/O.

Disk reads, writes and copies never run on the event loop. Backends and the
file helpers hand them to ``run_blocking``, which shares one pool sized by
``CLOUDFS_FILE_WORKERS``.
"""

import asyncio
import atexit
import functools
import os
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

T = TypeVar("T")

_max_workers = int(os.environ.get("CLOUDFS_FILE_WORKERS", "16"))
_executor = ThreadPoolExecutor(max_workers=_max_workers, thread_name_prefix="cloudfs-io")

atexit.register(_executor.shutdown, wait=False)


async def run_blocking(func: Callable[..., T], *args: Any) -> T:
    """Run a blocking call in the file I/O pool and wait for its result."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(_executor, functools.partial(func, *args))
