import os
import logging
import uvicorn

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

if os.environ.get("DEBUG", "0") == "1":
    logging.getLogger().setLevel(logging.DEBUG)

from api import create_app
from config import get_config

config = get_config()
app = create_app()


def run():
    logger.info(f"Starting Sales Call Coach on {config.host}:{config.port}")
    logger.debug(f"Config: {config.as_dict()}")
    for provider, configured in config.provider_credentials().items():
        if configured:
            logger.info(f"Provider {provider}: API key configured")
        else:
            logger.warning(f"Provider {provider}: API key missing")
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    run()
