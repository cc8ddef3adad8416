import asyncio
import logging
import sys

from frameshim import BrowserWindow, get_app, launch

logger = logging.getLogger("example")


async def main() -> None:
    """
    Open one window, greet the page and quit when it closes.
    """
    app = get_app()
    app.on("window-all-closed", lambda event: app.quit())

    win = BrowserWindow({
        "title": "frameshim example",
        "width": 1024,
        "height": 768,
        "backgroundColor": "#222",
        "webPreferences": {"zoomFactor": 1.2},
    })
    win.on("resized", lambda event, width, height: logger.info("Resized to %sx%s", width, height))
    win.on("attached", lambda event, host: logger.info("Window %s is live", win.id))

    # buffered until the page registers a handler for the channel
    pyver = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    win.web_contents.send("greet", f"Hello from Python {pyver}!")

    await win.load_file("basic.html")
    win.set_title(f"Loaded ({win.web_contents.get_url()})")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    try:
        asyncio.run(launch(main))
    except KeyboardInterrupt:
        logger.info("Runtime stopped.")
