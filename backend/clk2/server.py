"""Server entry point — `clk2-server` console script."""

import uvicorn

from clk2.config import get_settings


def main() -> None:
    settings = get_settings()
    # One worker: the in-process lock is the only write serialization point
    uvicorn.run(
        "clk2.main:app",
        host=settings.host,
        port=settings.port,
        workers=1,
        log_config=None,
    )


if __name__ == "__main__":
    main()
