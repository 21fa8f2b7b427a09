#!/usr/bin/env python3
"""
Microcredit Engine Entry Point

Starts the FastAPI server with host, port and logging taken from the
MICROCREDIT_* environment.
"""

import sys

from microcredit.api import run_server
from microcredit.config import get_config
from microcredit.logging_config import setup_logging


if __name__ == "__main__":
    config = get_config()
    logger = setup_logging(config.log_level, log_format=config.log_format)

    logger.info(f"Starting Microcredit API on http://{config.api_host}:{config.api_port}")
    logger.info(f"Business timezone: {config.business_timezone}")

    try:
        run_server(host=config.api_host, port=config.api_port, debug=False)
    except KeyboardInterrupt:
        logger.info("Shutting down Microcredit API")
    except Exception as e:
        logger.error(f"Error starting server: {e}")
        sys.exit(1)
