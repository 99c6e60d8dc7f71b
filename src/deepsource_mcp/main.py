"""
DeepSource MCP Server - Command line entry point.

Usage:
    deepsource-mcp-server [--env-file .env] [--log-level DEBUG] [--transport stdio]

Environment Variables (required):
    DEEPSOURCE_API_KEY - DeepSource personal access token

Optional Environment Variables:
    DEEPSOURCE_API_URL - GraphQL endpoint (default: https://api.deepsource.io/graphql/)
    DEEPSOURCE_REQUEST_TIMEOUT - Request timeout in seconds (default: 30)
    DEEPSOURCE_MAX_PAGES - Page limit for multi-page scans (default: 10)
    LOG_LEVEL - Logging level (DEBUG, INFO, WARNING, ERROR)
    MCP_SERVER_NAME - Name announced to MCP clients
"""

import argparse
import sys
from loguru import logger

from . import __version__
from .server import DeepSourceMCPServer


def setup_logging(log_level: str = "INFO") -> None:
    """Setup Loguru-based logging on stderr, leaving stdout to the MCP channel."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level.upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
               "<level>{level: <8}</level> | "
               "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        colorize=True,
    )
    logger.info(f"Log level set to {log_level.upper()}")


def parse_arguments(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="DeepSource MCP Server",
        epilog="""
Examples:
    deepsource-mcp-server                        # Use default .env file
    deepsource-mcp-server --env-file prod.env    # Use custom environment file
    deepsource-mcp-server --log-level DEBUG      # Enable debug logging
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "--env-file",
        type=str,
        help="Path to environment file (default: .env in current directory)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--transport",
        type=str,
        default="stdio",
        choices=["stdio", "sse"],
        help="MCP transport protocol (default: stdio)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"DeepSource MCP Server {__version__}"
    )

    return parser.parse_args(argv)


def main() -> None:
    """Main entry point for the DeepSource MCP Server."""
    try:
        args = parse_arguments()
        setup_logging(args.log_level)

        logger.info(f"🚀 Initializing DeepSource MCP Server v{__version__}")
        try:
            server = DeepSourceMCPServer(env_file=args.env_file)
            logger.info("✅ Server initialized successfully")
        except Exception as e:
            logger.error(f"❌ Server initialization failed: {e}")
            logger.error("💡 Please check your environment variables and configuration")
            sys.exit(1)

        logger.info(f"🎯 Starting MCP server with {args.transport} transport")
        logger.info("🔌 Server is now ready to accept MCP connections")
        server.run(transport=args.transport)

    except KeyboardInterrupt:
        logger.info("🛑 Server shutdown requested by user")

    except Exception as e:
        logger.error(f"❌ Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
