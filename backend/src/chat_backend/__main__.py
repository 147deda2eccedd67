"""Run the chat backend with uvicorn: ``python -m chat_backend``."""

from __future__ import annotations

import uvicorn

from chat_backend.config import get_settings
from chat_backend.main import create_app


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.app_host,
        port=settings.app_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
