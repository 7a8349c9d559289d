"""Run the memory-bank MCP server over stdio."""

import argparse
import asyncio
import logging
import sys

from memory_bank import __version__
from memory_bank.config import Settings, get_settings, set_settings
from memory_bank.server import create_server, initialize_services, shutdown_services

logger = logging.getLogger("memory_bank")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="memory-bank",
        description="Project memory with hybrid search, summary hierarchies "
        "and budgeted context compilation, served over MCP",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        help="Override MEMORY_BANK_LOG_LEVEL (DEBUG, INFO, WARNING, ...)",
    )
    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    # stdout is the MCP transport, so logs go to stderr
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def serve(settings: Settings) -> None:
    await initialize_services(settings)
    logger.info("memory-bank %s serving %s", __version__, settings.database_path)
    try:
        await create_server().run_stdio_async()
    finally:
        await shutdown_services()


def cli(argv: list[str] | None = None) -> None:
    """Console script entry point."""
    args = parse_args(argv)

    settings = get_settings()
    if args.log_level:
        settings = settings.model_copy(update={"log_level": args.log_level.upper()})
        set_settings(settings)

    configure_logging(settings.log_level)
    asyncio.run(serve(settings))


if __name__ == "__main__":
    cli()
