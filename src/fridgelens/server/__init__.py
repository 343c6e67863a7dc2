"""ASGI application factory and dependencies for the Fridgelens server."""

from fridgelens.server.app import app, create_app

__all__ = ["app", "create_app"]
