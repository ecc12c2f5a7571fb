"""HTTP API for the marketplace."""

from .app import app, create_app, handle_api_errors

__all__ = ["app", "create_app", "handle_api_errors"]
