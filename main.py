"""
SellSmart API server.

    python main.py                  # host/port/log level from .env
    uvicorn main:app --port 8000    # same app under any ASGI runner

With ENV=development the server reloads when files under app/ change.
"""

import uvicorn

from app.core.config import get_settings
from app.factory import create_app

app = create_app()


def run() -> None:
    settings = get_settings()
    development = settings.env == "development"
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=development,
        reload_dirs=["app"] if development else None,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
