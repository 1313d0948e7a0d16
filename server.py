"""Chat endpoint entry point (FastAPI served by uvicorn)."""
import logging
import sys

import uvicorn

from config import settings

logging.basicConfig(
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    level=logging.INFO,
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


def main() -> None:
    logger.info(
        "Serving /api/chat on %s:%d (provider: %s)",
        settings.api_host,
        settings.api_port,
        settings.llm_provider,
    )
    uvicorn.run("api.routes:app", host=settings.api_host, port=settings.api_port, log_config=None)


if __name__ == "__main__":
    main()
