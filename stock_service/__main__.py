"""Runs the stock service with uvicorn: ``python -m stock_service``."""
import logging
import os

from dotenv import find_dotenv, load_dotenv


def load_environment():
    """
    Loads ``.env`` from the working directory or the nearest parent.

    Variables already set in the process environment take precedence.
    Must run before the service modules read their settings.
    """
    return load_dotenv(find_dotenv(usecwd=True))


load_environment()

import uvicorn  # noqa: E402

from .main import app  # noqa: E402

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logger = logging.getLogger("stock_service")


def main():
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Server is running on http://localhost:%d", PORT)
    logger.info(
        "To create an admin account, POST {\"username\": \"admin\", \"password\": \"yourpassword\"} "
        "to http://localhost:%d/api/admin/create",
        PORT,
    )
    uvicorn.run(app, host=HOST, port=PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
