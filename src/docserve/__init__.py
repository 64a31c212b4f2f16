"""DocServe - serve a folder of markdown guidelines to MCP clients."""

__version__ = "0.1.0"
