#!/usr/bin/env python3
"""
Sumo robot - Main Entry Point

Usage:
    python main.py                   # Wait for start button, run until stopped
    python main.py --duration 180    # Fixed-length match
    python main.py --no-wait         # Start immediately (bench testing)
"""

import argparse
import asyncio
import logging


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Sumo Robot Controller")
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Match length in seconds (0 = run until stopped; default from params.json)",
    )
    parser.add_argument(
        "--no-wait",
        action="store_true",
        help="Start immediately instead of waiting for the start button",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    args = parser.parse_args()

    # Setup logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    logger = logging.getLogger(__name__)
    logger.info("Sumo robot starting...")

    from control import Controller

    controller = Controller(duration_s=args.duration, wait_for_start=not args.no_wait)
    asyncio.run(controller.run())


if __name__ == "__main__":
    main()
