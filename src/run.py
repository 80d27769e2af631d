"""Local entry point: ``python -m src.run``."""

import uvicorn

from src.conf.config import settings


def main() -> None:
    uvicorn.run(
        "src.server.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        proxy_headers=True,
        forwarded_allow_ips="*",
    )


if __name__ == "__main__":
    main()
