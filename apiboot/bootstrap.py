"""Bootstrap sequencer: builds the request pipeline and binds the listener.

The sequence is fixed and runs once per process:

1. composition root and FastAPI app
2. CORS (unless disabled)
3. input-validation stage
4. error-translation stage
5. routes mounted under the API prefix
6. socket bound, readiness logged

Nothing is logged as ready and no connection is accepted unless every step
succeeded. Any failure surfaces as `StartupError`.
"""

import logging
import socket
import threading
from enum import Enum
from typing import Callable, List, Optional

import uvicorn
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import StartupConfig
from .core.logs import READY_LOGGER
from .module import AppModule, create_app_module
from .pipeline import (
    ErrorTranslationStage,
    RequestPipeline,
    ValidationStage,
    install_exception_handlers,
)

logger = logging.getLogger(__name__)
ready_logger = logging.getLogger(READY_LOGGER)

# One startup sequence per process at a time
_startup_lock = threading.Lock()


class StartupError(RuntimeError):
    """The service could not be brought up; the process should exit non-zero."""


class BootState(str, Enum):
    PENDING = "pending"
    LISTENING = "listening"
    FAILED = "failed"


def bind_listener(host: str, port: int, backlog: int = 2048) -> socket.socket:
    """
    Bind and listen on host:port.

    Raises:
        StartupError: if the address is in use or not permitted
    """
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(backlog)
    except OSError as exc:
        sock.close()
        raise StartupError(f"Could not bind {host}:{port}: {exc.strerror or exc}") from exc
    sock.set_inheritable(True)
    return sock


class ListeningHandle:
    """A bound listener plus the server that will accept on it."""

    def __init__(self, app: FastAPI, sock: socket.socket, config: StartupConfig):
        self.app = app
        self.config = config
        self._sock = sock
        self._serving = False
        self.port: int = sock.getsockname()[1]
        self.server = uvicorn.Server(
            uvicorn.Config(
                app,
                host=config.host,
                port=config.port,
                log_config=None,
            )
        )

    @property
    def url(self) -> str:
        return f"http://localhost:{self.port}"

    def serve(self) -> None:
        """Block serving requests until the server is asked to exit."""
        self._serving = True
        try:
            self.server.run(sockets=[self._sock])
        finally:
            self._sock.close()

    def close(self) -> None:
        """Ask the server to stop; the socket is released once serving ends."""
        self.server.should_exit = True
        if not self._serving:
            self._sock.close()


class BootstrapSequencer:
    def __init__(
        self,
        config: StartupConfig,
        module_factory: Callable[[], AppModule] = create_app_module,
    ):
        self.config = config
        self.module_factory = module_factory
        self.pipeline = RequestPipeline()
        self.applied_steps: List[str] = []
        self.state = BootState.PENDING
        self.app: Optional[FastAPI] = None
        self.handle: Optional[ListeningHandle] = None

    def build(self) -> FastAPI:
        """Run steps 1-5 and return the assembled application."""
        if self.app is not None:
            return self.app

        try:
            module = self.module_factory()
        except Exception as exc:
            raise StartupError(f"Could not build the application module: {exc}") from exc

        mount_path = self.config.mount_path
        app = FastAPI(
            title=module.title,
            version=module.version,
            docs_url=f"{mount_path}/docs",
            openapi_url=f"{mount_path}/openapi.json",
            redoc_url=None,
        )
        self._applied("composition_root")

        if self.config.cors_enabled:
            # CORS settings (allow all origins)
            app.add_middleware(
                CORSMiddleware,
                allow_origins=["*"],
                allow_credentials=True,
                allow_methods=["*"],
                allow_headers=["*"],
            )
            self._applied("cors")

        self.pipeline.install(ValidationStage(self.config.validation))
        self._applied("validation")

        self.pipeline.install(ErrorTranslationStage())
        install_exception_handlers(app)
        self._applied("error_translation")

        router = APIRouter(prefix=mount_path)
        self.pipeline.mount(router, module.routes)
        app.include_router(router)
        self._applied("prefix")

        self.app = app
        return app

    def start(self) -> ListeningHandle:
        """
        Run the whole sequence and return a handle ready to serve.

        Raises:
            StartupError: if any step fails or this sequencer already ran
        """
        if self.state is not BootState.PENDING:
            raise StartupError(f"Startup sequence already finished ({self.state.value})")
        if not _startup_lock.acquire(blocking=False):
            raise StartupError("Another startup sequence is already running")

        try:
            app = self.build()
            sock = bind_listener(self.config.host, self.config.port)
            self._applied("listen")
        except StartupError:
            self.state = BootState.FAILED
            raise
        except Exception as exc:
            self.state = BootState.FAILED
            raise StartupError(f"Startup failed: {exc}") from exc
        finally:
            _startup_lock.release()

        self.handle = ListeningHandle(app, sock, self.config)
        self.state = BootState.LISTENING
        ready_logger.info("Application running on port %d", self.config.port)
        ready_logger.info("API available at %s", self.config.api_url)
        return self.handle

    def _applied(self, step: str) -> None:
        logger.debug("Startup step applied: %s", step)
        self.applied_steps.append(step)


def start(config: StartupConfig) -> ListeningHandle:
    """Run the full startup sequence for `config` with the default module."""
    return BootstrapSequencer(config).start()
