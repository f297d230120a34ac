#!/usr/bin/env python3
"""
MCP Server entry point for Team Memory.

Register this script with an MCP host (Claude Desktop, Cursor, ...) to serve
the team memory tools over stdio without installing the package.
"""

import sys
from pathlib import Path

# Add the src directory to Python path
src_dir = Path(__file__).parent / "src"
sys.path.insert(0, str(src_dir))

from team_memory.server.mcp_server import run

if __name__ == "__main__":
    run(sys.argv[1] if len(sys.argv) > 1 else None)
