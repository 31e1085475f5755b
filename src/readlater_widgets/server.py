"""MCP server entry point for the read-it-later widgets.

Agents reach the same operations the widgets offer (listing, filtering,
status changes, saving and export) through Streamable HTTP at /mcp.
"""

import asyncio
import logging
import signal
import sys

from fastmcp import FastMCP

from .client import ArticleServiceClient
from .config import Config, load_config
from .session import SessionProvider
from .tools import register_tools

logging.basicConfig(
    stream=sys.stderr,
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


def build_server(config: Config) -> tuple[FastMCP, ArticleServiceClient]:
    """Resolve the session token and wire one shared client into the tools."""
    session = SessionProvider(config).resolve(config.widget_url)
    client = ArticleServiceClient(config, session)

    mcp = FastMCP("readlater-widgets")
    register_tools(mcp, client, config)
    return mcp, client


def main() -> None:
    config = load_config()
    logging.getLogger().setLevel(config.log_level.upper())
    mcp, client = build_server(config)

    def close_client(signum: int, frame: object) -> None:
        logger.info("Signal %d received, closing the article service client", signum)
        asyncio.run(client.aclose())
        sys.exit(0)

    for signum in (signal.SIGTERM, signal.SIGINT):
        signal.signal(signum, close_client)

    logger.info("Serving read-it-later tools at http://%s:%d/mcp", config.server_host, config.server_port)
    mcp.run(transport="streamable-http", host=config.server_host, port=config.server_port)


if __name__ == "__main__":
    main()
