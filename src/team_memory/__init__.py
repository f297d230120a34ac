"""
Team Memory MCP Server.

Shares knowledge between team members through the Supermemory API, exposed
to AI tools as Model Context Protocol tools.
"""

__version__ = "1.0.0"
