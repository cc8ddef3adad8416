import asyncio
import logging
import signal
import sys
from typing import Callable, Coroutine, Optional, Set

logger = logging.getLogger(__name__)

#: Tasks started through :func:`start_tracked_task` that have not finished.
background_tasks: Set[asyncio.Task] = set()


def has_running_loop() -> bool:
    """Return ``True`` when called from inside a running event loop."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def start_tracked_task(coro: Coroutine) -> asyncio.Task:
    """
    Run ``coro`` as a task kept alive in ``background_tasks``.

    The task leaves the set when it finishes; its result or exception
    stays available to whoever awaits it.

    :param coro: Coroutine to schedule.
    :return: The scheduled task.
    """
    task = asyncio.create_task(coro)
    background_tasks.add(task)
    task.add_done_callback(background_tasks.discard)
    return task


def start_tracked_task_soon(coro: Coroutine) -> Optional[asyncio.Task]:
    """
    Like :func:`start_tracked_task`, but tolerate a missing event loop.

    Without a running loop the coroutine is closed unscheduled and
    ``None`` is returned.
    """
    if not has_running_loop():
        coro.close()
        return None
    return start_tracked_task(coro)


async def shutdown_all_tasks() -> None:
    """Cancel the tracked tasks of the running loop and wait for them to finish."""
    current = asyncio.current_task()
    loop = asyncio.get_running_loop()
    tasks = [task for task in background_tasks if task.get_loop() is loop and task is not current]
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


def install_signal_handlers(on_signal: Callable[[], None]) -> None:
    """
    Call ``on_signal`` on ``SIGINT`` and ``SIGTERM``.

    The Windows event loop cannot install signal handlers; there a
    warning is logged and the application has to quit by itself.
    """
    if sys.platform == "win32":
        logger.warning("Signal handlers are not supported on Windows; shutdown must be manual.")
        return
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, on_signal)
