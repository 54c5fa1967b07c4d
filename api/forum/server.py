from __future__ import annotations

import uvicorn

from forum.core.config import settings


def run() -> None:
    uvicorn.run(
        "forum.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=settings.app_env == "development",
    )


if __name__ == "__main__":
    run()
