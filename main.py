#!/usr/bin/env python3
"""
DeepSource MCP Server - Main Entry Point

Runs the server from a source checkout without installing the package.

Usage:
    python main.py [--env-file .env] [--log-level DEBUG] [--transport stdio]
"""

import sys
from pathlib import Path

# Add src to Python path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from deepsource_mcp.main import main


if __name__ == "__main__":
    main()
