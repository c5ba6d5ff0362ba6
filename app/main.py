"""
Budgetframes API Server

Run with:

    python app/main.py

Host and port come from API_HOST / API_PORT (see AppSettings).
"""

import uvicorn

from budgetframes.config import get_settings, validate_all_settings
from budgetframes.server import create_app


def main() -> None:
    status = validate_all_settings()
    for section in ("database", "app"):
        if not status[section]:
            raise SystemExit(f"Invalid {section} settings: {status[f'{section}_error']}")

    settings = get_settings()
    uvicorn.run(
        create_app(),
        host=settings.app.api_host,
        port=settings.app.api_port,
        log_level=settings.app.log_level.lower(),
    )


if __name__ == "__main__":
    main()
