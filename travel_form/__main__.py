"""Run the travel form API with uvicorn: ``python -m travel_form``."""

import uvicorn

from travel_form.config.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "travel_form.api.main:app",
        host=settings.API_HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info",
        access_log=False,  # requests are logged by the application middleware
    )


if __name__ == "__main__":
    main()
