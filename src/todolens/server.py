"""Entry point for serving the bot via uvicorn."""

from __future__ import annotations

import uvicorn
from dotenv import load_dotenv

from .settings import get_settings


def main() -> None:
    load_dotenv()
    settings = get_settings()

    # main builds a module-level app on import; load .env first
    from .main import create_app

    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
