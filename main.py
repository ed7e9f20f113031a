#!/usr/bin/env python3
"""
Run the slotbook API server.

Usage:
    python main.py
    API_HOST=127.0.0.1 API_PORT=9000 python main.py
"""

import logging
import os

import uvicorn

logger = logging.getLogger(__name__)


def main():
    """Run the API with uvicorn."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    )

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))

    logger.info(f"Starting slotbook API on {host}:{port}...")
    logger.info("Send code: POST /api/v1/auth/send-code")
    logger.info("Verify code: POST /api/v1/auth/verify")
    logger.info("Complete setup: POST /api/v1/setup/complete")

    uvicorn.run("api.main:app", host=host, port=port)


if __name__ == "__main__":
    main()
