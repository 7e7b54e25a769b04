"""Route table entries and the per-request context handed to handlers.

Routes are declared as plain data instead of decorators: each `Route` ties a
method and path to a handler and to the schemas its inputs must satisfy.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Type

from pydantic import BaseModel
from starlette.requests import Request


@dataclass
class RequestContext:
    """State for a single request; created fresh for every call."""
    request: Request
    route: "Route"
    body: Any = None
    query: Any = None
    path_params: Any = None

    @property
    def path(self) -> str:
        return self.request.url.path


Handler = Callable[[RequestContext], Any]
Call = Callable[[RequestContext], Awaitable[Any]]


@dataclass(frozen=True)
class Route:
    method: str
    path: str
    handler: Handler
    body: Optional[Type[BaseModel]] = None
    query: Optional[Type[BaseModel]] = None
    path_params: Optional[Type[BaseModel]] = None
    status_code: int = 200
    name: Optional[str] = None
    summary: Optional[str] = None

    @property
    def endpoint_name(self) -> str:
        return self.name or getattr(self.handler, "__name__", "endpoint")
