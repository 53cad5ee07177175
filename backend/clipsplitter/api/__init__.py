"""API routes for the clip splitter."""

from clipsplitter.api import routes

__all__ = ["routes"]
