"""Run the development server: `python -m postdesk`."""

import uvicorn

from postdesk.config import settings


def main() -> None:
    uvicorn.run(
        "postdesk.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
