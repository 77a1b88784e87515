"""
CareLink Services — Command-Line Entry Point
==============================================

Usage:
    python -m carelink            # listens on HOST:PORT (default 0.0.0.0:4004)
    SERVICE=partner python -m carelink
"""

import uvicorn

from carelink.config import settings


def main() -> None:
    uvicorn.run(
        "carelink.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
