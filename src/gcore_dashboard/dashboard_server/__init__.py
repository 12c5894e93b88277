"""HTTP server package for the GCore dashboard."""

from gcore_dashboard.dashboard_server.models import DashboardResponse, HealthResponse
from gcore_dashboard.dashboard_server.server import DashboardServer, main

__all__ = [
    # Server
    "DashboardServer",
    "main",
    # Models
    "DashboardResponse",
    "HealthResponse",
]
