"""
gitporter - move web projects between a local machine and GitHub.

Uploads local projects to repository branches and acquires ready-to-use
working copies of remote ones, exposed as tools over the Model Context
Protocol (MCP).
"""

__version__ = "1.0.0"
__description__ = "Repository reconciliation and project transfer over MCP"

# The engine is loaded first; the service modules import its error types.
from . import reconcile  # noqa: F401
from .server import main

__all__ = ["main", "reconcile"]
