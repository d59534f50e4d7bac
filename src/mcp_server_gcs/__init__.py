"""
Google Cloud Storage MCP Server

Exposes Cloud Storage bucket and object operations for one or more
Google Cloud projects as Model Context Protocol tools.
"""

__version__ = "1.0.0"
