"""
Production entrypoint for the listing integrity service.

Binds to 0.0.0.0:$PORT. Also exposes `app` for `uvicorn main:app`.
"""

import logging

import uvicorn

from utils.config import Config
from utils.logging import setup_logging
from web.app import create_app

config = Config.load()
setup_logging(config.log_level, config.log_format)

app = create_app(config=config)

if __name__ == "__main__":
    logging.getLogger(__name__).info("Starting Listing Integrity Engine on port %s", config.port)
    uvicorn.run(app, host="0.0.0.0", port=config.port, log_config=None)
