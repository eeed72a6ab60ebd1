"""REST API handlers for the conversion server."""

from fcs.server.api.conversions import setup_conversion_routes
from fcs.server.api.errors import ErrorCode, api_error

__all__ = ["ErrorCode", "api_error", "setup_conversion_routes"]
