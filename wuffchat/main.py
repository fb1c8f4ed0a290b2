"""Main application entry point.

Runs FastAPI (port 8080) with NiceGUI mounted for the chat interface.
Environment variables are loaded from .env file.
"""

import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables before any other imports that might need them
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def run_integrated() -> None:
    """Run FastAPI with NiceGUI mounted on the same server.

    FastAPI serves /health, NiceGUI serves the chat page at /.
    """
    import uvicorn
    from nicegui import ui

    from wuffchat.api.app import create_app
    from wuffchat.ui.chat_page import chat_page  # noqa: F401 - Registers the page

    app = create_app()

    # Mount NiceGUI onto FastAPI
    ui.run_with(
        app,
        title="Wuffchat",
        favicon="🐶",
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "wuffchat-secret"),
    )

    port = int(os.getenv("PORT", "8080"))
    logger.info(f"Wuffchat UI running on http://localhost:{port}")

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


def run_standalone() -> None:
    """Run the NiceGUI page on its own server, without the FastAPI host."""
    from wuffchat.ui.chat_page import main as run_ui

    run_ui()


def main() -> None:
    """Application entry point.

    Validates the backend configuration first so a bad environment fails at
    startup. Set RUN_MODE=standalone to run NiceGUI without the FastAPI host.
    """
    from wuffchat.client import get_client_config

    config = get_client_config()
    mode = os.getenv("RUN_MODE", "integrated").lower()

    logger.info(
        f"Starting Wuffchat in {mode} mode against {config.api_url} ({config.api_version})"
    )

    if mode == "standalone":
        run_standalone()
    else:
        run_integrated()


if __name__ == "__main__":
    main()
