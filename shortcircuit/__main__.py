# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""Main entry point for the shortcircuit demo server."""

import asyncio
import logging
from typing import Optional

import click

from .constants import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_TEMPLATE
from .websocket.server import start_server

logger = logging.getLogger(__name__)


async def _serve(host: str, port: int, template: str) -> None:
    server = await start_server(host, port, template)
    await server.serve_forever()


@click.command()
@click.option("--host", default=DEFAULT_HOST, help="Host to bind the server to")
@click.option("--port", default=DEFAULT_PORT, help="Port to bind the server to")
@click.option("--template", type=click.Path(exists=True, dir_okay=False), default=None,
              help="HTML page every session starts from (defaults to the built-in counter page)")
@click.option("--log-level", default="INFO", help="Logging level")
def main(host: str, port: int, template: Optional[str], log_level: str):
    """Run the shortcircuit websocket server"""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    page = DEFAULT_TEMPLATE
    if template is not None:
        with open(template, "r", encoding="utf-8") as f:
            page = f.read()
        logger.info(f"Using template: {template}")

    try:
        asyncio.run(_serve(host, port, page))
    except KeyboardInterrupt:
        logger.info("Shutting down server...")


if __name__ == "__main__":
    main()
