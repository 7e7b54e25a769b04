"""Shared fixtures: clean environment, configs and test clients."""

import logging
import socket
from typing import Any, Callable, Dict, List

import pytest
from fastapi.testclient import TestClient
from pydantic import BaseModel

from apiboot.bootstrap import BootstrapSequencer
from apiboot.core.config import StartupConfig, load_config
from apiboot.module import AppModule, create_app_module
from apiboot.pipeline import RequestContext, Route

_ENV_VARS = (
    "PORT",
    "HOST",
    "CORS_ENABLED",
    "VALIDATION__REJECT_UNKNOWN_FIELDS",
    "VALIDATION__COERCE_TYPES",
    "LOG_LEVEL",
    "JSON_LOGS",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def config() -> StartupConfig:
    return load_config(host="127.0.0.1")


class Widget(BaseModel):
    name: str
    count: int


class Probe:
    """Route handlers that record what reached them."""

    def __init__(self) -> None:
        self.calls: List[Any] = []

    def ping(self, ctx: RequestContext) -> Dict[str, str]:
        self.calls.append(None)
        return {"pong": "ok"}

    def create_widget(self, ctx: RequestContext) -> Dict[str, Any]:
        self.calls.append(ctx.body)
        return {"name": ctx.body.name, "count": ctx.body.count, "count_type": type(ctx.body.count).__name__}

    def explode(self, ctx: RequestContext) -> None:
        self.calls.append(None)
        raise RuntimeError("db password is hunter2")

    async def async_ping(self, ctx: RequestContext) -> Dict[str, str]:
        self.calls.append(None)
        return {"pong": "async"}

    def module(self) -> AppModule:
        return AppModule(
            routes=[
                Route("GET", "/ping", self.ping),
                Route("GET", "/async-ping", self.async_ping),
                Route("POST", "/widgets", self.create_widget, body=Widget, status_code=201),
                Route("GET", "/explode", self.explode),
            ]
        )


@pytest.fixture
def probe() -> Probe:
    return Probe()


@pytest.fixture
def make_client(config: StartupConfig) -> Callable[..., TestClient]:
    def _make(module_factory: Callable[[], AppModule] = create_app_module, **overrides: Any) -> TestClient:
        cfg = config.model_copy(update=overrides) if overrides else config
        app = BootstrapSequencer(cfg, module_factory).build()
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client: Callable[..., TestClient]) -> TestClient:
    return make_client()


@pytest.fixture
def probe_client(make_client: Callable[..., TestClient], probe: Probe) -> TestClient:
    return make_client(probe.module)
