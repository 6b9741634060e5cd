#!/usr/bin/env python
"""
Leaderboard API Server Runner.

Usage:
    python run_server.py

Or with PM2:
    pm2 start run_server.py --interpreter python
"""

import sys
import logging
import uvicorn

from leaderboard.config import get_config

logger = logging.getLogger(__name__)


def main():
    """Run the leaderboard API server."""
    config = get_config()

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format='%(asctime)s | %(levelname)s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logger.info(f"Starting Leaderboard API on {config.api_host}:{config.api_port}")

    try:
        uvicorn.run(
            "app:create_app",
            factory=True,
            host=config.api_host,
            port=config.api_port,
            reload=config.is_development,
            log_level=config.log_level.lower(),
            access_log=True,
        )
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
