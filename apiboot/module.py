"""Composition root: every route the service exposes, built explicitly."""

import time
from dataclasses import dataclass, field
from typing import List, Optional

from . import __version__
from .pipeline.routes import Route
from .routers import echo
from .routers.health import HealthRoutes

SERVICE_NAME = "apiboot"


@dataclass
class AppModule:
    """The assembled set of handlers handed to the bootstrap sequencer."""
    title: str = "apiboot API"
    version: str = __version__
    routes: List[Route] = field(default_factory=list)


def create_app_module(started_at: Optional[float] = None) -> AppModule:
    health = HealthRoutes(
        service=SERVICE_NAME,
        version=__version__,
        started_at=time.monotonic() if started_at is None else started_at,
    )
    return AppModule(routes=[*health.routes(), *echo.routes])
