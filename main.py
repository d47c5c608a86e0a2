"""
Entry point for the PlotTwist API server.

Run with:
    python main.py
"""

import logging

import uvicorn

from api.app import create_app
from config import API_HOST, API_PORT, LOG_LEVEL

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("plottwist")

app = create_app()


if __name__ == "__main__":
    logger.info(f"Serving PlotTwist API on {API_HOST}:{API_PORT}")
    uvicorn.run(app, host=API_HOST, port=API_PORT, log_level=LOG_LEVEL.lower())
