"""HTTP server for the conversion service."""

from fcs.server.app import HealthStatus, create_app
from fcs.server.lifecycle import ServerLifecycle

__all__ = ["HealthStatus", "ServerLifecycle", "create_app"]
