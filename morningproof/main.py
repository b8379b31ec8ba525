import logging

import uvicorn

from morningproof.config import settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    logger.info("Starting MorningProof API on %s:%s", settings.API_HOST, settings.API_PORT)
    uvicorn.run("morningproof.api.app:app", host=settings.API_HOST, port=settings.API_PORT)


if __name__ == "__main__":
    main()
