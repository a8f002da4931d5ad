from __future__ import annotations

import uvicorn

from reviewdash.config import Settings
from reviewdash.logging_config import configure_logging
from reviewdash.server import create_app


def main() -> None:
    settings = Settings()
    configure_logging(settings.logging)
    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
