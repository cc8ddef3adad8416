import logging
from typing import Awaitable, Callable, Optional

from .app import get_app
from .config import RuntimeConfig
from .connections import create_event_server
from .core import install_signal_handlers, shutdown_all_tasks, start_tracked_task
from .host.remote import RemoteHostRuntime
from .runtime_handle import HostChannel

logger = logging.getLogger(__name__)


async def launch(
    main: Optional[Callable[[], Awaitable[None]]] = None,
    config: Optional[RuntimeConfig] = None,
) -> None:
    """
    Connect to a running host runtime and serve until the app quits.

    This function:
      * Reads the connection settings from the environment unless given.
      * Binds a :class:`RemoteHostRuntime` to the application.
      * Installs signal handlers that quit the application.
      * Starts background tasks for the event websocket server and the
        host request loop.
      * Marks the application ready and runs ``main``.
      * Waits for :meth:`Application.quit` and performs cleanup.

    :param main: Optional coroutine function creating the first windows.
    :param config: Connection settings; defaults to :meth:`RuntimeConfig.from_env`.
    :raises ConfigurationError: If the environment holds invalid settings.
    """
    config = config or RuntimeConfig.from_env()
    channel = HostChannel(config)
    runtime = RemoteHostRuntime(channel)

    app = get_app()
    app.set_host_runtime(runtime)
    install_signal_handlers(app.quit)

    start_tracked_task(create_event_server(runtime, config.event_host, config.event_port))
    start_tracked_task(channel.serve())
    logger.info("Runtime started; host at %s:%s", config.host_address, config.host_port)

    try:
        app.mark_ready()
        if main is not None:
            await main()
        await app.wait_for_quit()
    finally:
        await shutdown_all_tasks()
        app.set_host_runtime(None)
        logger.info("Runtime stopped.")
