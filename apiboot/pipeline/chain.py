"""Request pipeline: ordered stages applied around every mounted route.

Stages are installed once during startup. Mounting a route binds the current
stage list around its handler; a stage installed later wraps the ones
installed before it, the same rule Starlette uses for middleware. Stages do
their per-route preparation in `wrap()` so nothing is shared between requests.
"""

import inspect
from typing import Any, Iterable, List, Protocol, Tuple

from fastapi import APIRouter
from fastapi.encoders import jsonable_encoder
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from .routes import Call, RequestContext, Route


class Stage(Protocol):
    name: str

    def wrap(self, route: Route, call_next: Call) -> Call:
        ...


def _render(result: Any, status_code: int) -> Response:
    if isinstance(result, Response):
        return result
    return JSONResponse(content=jsonable_encoder(result), status_code=status_code)


def _invoke(route: Route) -> Call:
    """Innermost call: run the handler and serialize what it returns.

    Serialization happens here, inside the stage chain, so an unencodable
    return value is still caught by the error-translation stage.
    """
    handler = route.handler
    if inspect.iscoroutinefunction(handler):
        async def call(ctx: RequestContext) -> Response:
            return _render(await handler(ctx), route.status_code)
    else:
        # Sync handlers run in the threadpool so they never block the loop
        async def call(ctx: RequestContext) -> Response:
            return _render(await run_in_threadpool(handler, ctx), route.status_code)
    return call


class RequestPipeline:
    def __init__(self) -> None:
        self._stages: List[Stage] = []

    @property
    def stages(self) -> Tuple[Stage, ...]:
        return tuple(self._stages)

    def install(self, stage: Stage) -> None:
        self._stages.append(stage)

    def bind(self, route: Route):
        """Build the FastAPI endpoint for `route` with every installed stage."""
        call = _invoke(route)
        for stage in self._stages:
            call = stage.wrap(route, call)

        async def endpoint(request: Request):
            return await call(RequestContext(request=request, route=route))

        endpoint.__name__ = route.endpoint_name
        endpoint.__doc__ = route.handler.__doc__
        return endpoint

    def mount(self, router: APIRouter, routes: Iterable[Route]) -> None:
        for route in routes:
            router.add_api_route(
                route.path,
                self.bind(route),
                methods=[route.method.upper()],
                status_code=route.status_code,
                name=route.endpoint_name,
                summary=route.summary,
            )
