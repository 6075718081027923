#!/usr/bin/env python3
"""Entry point for running the background scheduler worker."""
import asyncio
import logging
import sys

from teamcal.tasks.scheduler import start_scheduler, stop_scheduler

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


async def main():
    """Start the scheduler and keep the worker alive until interrupted."""
    logger.info("Starting RSVP reminder worker...")
    await start_scheduler()

    try:
        await asyncio.Event().wait()
    except asyncio.CancelledError:
        logger.info("Received shutdown signal")
        await stop_scheduler()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        sys.exit(0)
