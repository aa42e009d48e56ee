"""Run the API with uvicorn: `python -m visitapi`."""

import uvicorn

from visitapi.config import settings


def main() -> None:
    uvicorn.run(
        "visitapi.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
