"""Health and status endpoints.

Exposes (under the API prefix):
- GET /health: lightweight health check
- GET /      : status page with service name, version and uptime
"""

import time

from ..core.models_io import HealthResponse
from ..pipeline.routes import RequestContext, Route


class HealthRoutes:
    def __init__(self, service: str, version: str, started_at: float):
        self.service = service
        self.version = version
        self.started_at = started_at

    def health(self, ctx: RequestContext):
        """Container/ELB-friendly health probe endpoint."""
        return {"status": "healthy"}

    def status(self, ctx: RequestContext) -> HealthResponse:
        """Basic status for quick diagnostics."""
        return HealthResponse(
            status="OK",
            service=self.service,
            version=self.version,
            uptime_seconds=round(time.monotonic() - self.started_at, 3),
        )

    def routes(self):
        return [
            Route("GET", "/health", self.health, name="health"),
            Route("GET", "/", self.status, name="status"),
        ]
