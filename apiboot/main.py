"""App factory and ASGI entrypoint for the apiboot service.

- Builds the pipeline through the same bootstrap steps as `python -m apiboot`
  (CORS, validation, error translation, `/api/v1` prefix)
- Leaves socket binding to whichever ASGI server imports `app`
"""

from typing import Callable, Optional

from fastapi import FastAPI

from .bootstrap import BootstrapSequencer
from .core.config import StartupConfig, load_config
from .module import AppModule, create_app_module


def create_app(
    config: Optional[StartupConfig] = None,
    module_factory: Callable[[], AppModule] = create_app_module,
) -> FastAPI:
    return BootstrapSequencer(config or load_config(), module_factory).build()


# ASGI entrypoint (uvicorn: `uvicorn apiboot.main:app`)
app = create_app()
