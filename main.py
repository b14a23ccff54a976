"""
stream11 predictions backend - Main Entry Point

Exposes the ASGI application for uvicorn (``uvicorn main:app``) and runs
a development server when executed directly.
"""

import sys

import structlog

from stream11.api import create_app
from stream11.config.settings import get_settings

logger = structlog.get_logger(__name__)

app = create_app()


def main() -> None:
    """Main entry point."""
    import uvicorn

    settings = get_settings()
    try:
        uvicorn.run(
            "main:app",
            host="127.0.0.1",
            port=8001,
            reload=settings.app.debug,
            log_config=None,
        )
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception:
        logger.exception("Application error")
        sys.exit(1)


if __name__ == "__main__":
    main()
