#!/usr/bin/env python3
"""
Lending Pool Entry Point

Starts the FastAPI server with the lending pool API.
"""

import sys

import uvicorn

from lending_pool.api import create_app
from lending_pool.config import get_config
from lending_pool.logging_config import setup_logging


def main() -> None:
    config = get_config()
    logger = setup_logging(config.log_level, log_format=config.log_format)
    logger.info(f"Starting lending pool API on {config.api_host}:{config.api_port}")

    try:
        uvicorn.run(create_app(), host=config.api_host, port=config.api_port)
    except KeyboardInterrupt:
        logger.info("Shutting down lending pool API")
    except Exception as e:
        logger.error(f"Error starting server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
