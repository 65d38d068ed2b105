"""Entry point for the auto-ping service."""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn
from rich.console import Console
from rich.panel import Panel

from src.config import settings

console = Console()
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)


def run_server() -> None:
    """Start the FastAPI server with the sweep and reaper jobs."""
    console.print(Panel(
        f"Auto Ping running at http://{settings.api_host}:{settings.api_port}/\n"
        f"Ping every {settings.sweep_interval_seconds:g}s | "
        f"idle accounts deleted after {settings.retention_days:g} days",
        style="bold green",
    ))
    uvicorn.run(
        "src.api.server:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Auto Ping: periodic URL health checks")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("serve", help="Start the API server")

    args = parser.parse_args()

    if args.command == "serve":
        run_server()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
