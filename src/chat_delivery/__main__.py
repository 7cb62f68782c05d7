"""Entrypoint: python -m chat_delivery (HTTP trigger + health checks)."""
from __future__ import annotations

import uvicorn

from chat_delivery.config import settings


def main() -> None:
    uvicorn.run(
        "chat_delivery.app:create_app",
        factory=True,
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
