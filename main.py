"""Main entry point for Janggi AI server."""

import argparse
import logging
import os
import uvicorn

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Janggi AI Server")
    parser.add_argument(
        "--depth",
        "-d",
        type=int,
        default=None,
        help="Default AI search depth for new games (default: 3)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        "-p",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Logging level (default: info)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Set default depth as environment variable if provided
    if args.depth:
        os.environ["JANGGI_AI_DEPTH"] = str(args.depth)
        logging.getLogger(__name__).info("Using default depth: %d", args.depth)

    uvicorn.run(
        "api:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )
