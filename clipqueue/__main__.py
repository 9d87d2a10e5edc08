"""Run the service: python -m clipqueue"""

import logging

import uvicorn

from clipqueue.config import settings
from clipqueue.logging_config import setup_logging

logger = logging.getLogger("clipqueue")


def main() -> None:
    setup_logging(settings.log_level)
    logger.info("Endpoints:")
    logger.info("  POST   /api/v1/operations       - queue a generation request")
    logger.info("  GET    /api/v1/operations/{id}  - poll an operation")
    logger.info("  GET    /api/v1/operations       - queue overview")
    logger.info("  DELETE /api/v1/operations/{id}  - cancel a queued operation")
    logger.info("  GET    /health                  - executor + queue health")
    logger.info("  POST   /api/v1/init             - initialize the executor")
    uvicorn.run("clipqueue.main:app", host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
