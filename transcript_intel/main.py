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

from transcript_intel.api import create_app
from transcript_intel.config import get_config

config = get_config()
app = create_app(config)


def run():
    logger.info(f"Starting Transcript Intelligence on {config.host}:{config.port} (store={config.store})")
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    run()
