"""Global input-validation stage.

Every route's declared schemas are re-bound to the active `ValidationPolicy`
when the route is mounted:

- reject_unknown_fields=True  -> undeclared fields fail the request
- reject_unknown_fields=False -> undeclared fields are dropped
- coerce_types=True           -> lax mode, "42" becomes 42 for an int field
- coerce_types=False          -> strict mode, types must already match

Failures raise `RequestValidationFailed`, which the error-translation stage
turns into a 400 response.
"""

import copy
import json
import logging
import types
from typing import Any, Dict, List, Optional, Type, Union, get_args, get_origin

from pydantic import BaseModel, ValidationError, create_model

from ..core.config import ValidationPolicy
from ..core.models_io import FieldViolation
from .routes import Call, RequestContext, Route

logger = logging.getLogger(__name__)


class RequestValidationFailed(ValueError):
    """Request input did not match the route's declared shape."""

    def __init__(self, message: str, violations: List[FieldViolation]):
        super().__init__(message)
        self.message = message
        self.violations = violations


_UNION_TYPES = tuple(t for t in (Union, getattr(types, "UnionType", None)) if t is not None)


def _rebind_type(tp: Any, policy: ValidationPolicy, seen: Dict[type, type]) -> Any:
    """Apply `policy` to every model reachable through an annotation."""
    if isinstance(tp, type) and issubclass(tp, BaseModel):
        return bind_schema(tp, policy, _seen=seen)
    args = get_args(tp)
    if not args:
        return tp
    new_args = tuple(_rebind_type(arg, policy, seen) for arg in args)
    if all(new is old for new, old in zip(new_args, args)):
        return tp
    origin = get_origin(tp)
    if origin in _UNION_TYPES:
        return Union[new_args]
    return origin[new_args]


def bind_schema(
    schema: Type[BaseModel],
    policy: ValidationPolicy,
    _seen: Optional[Dict[type, type]] = None,
) -> Type[BaseModel]:
    """
    Derive a subclass of `schema` that enforces `policy`.

    Nested models, including those inside lists, dicts and optionals, are
    re-bound the same way. The result is still an instance of `schema` after
    validation, so handlers keep working with the type they declared.
    """
    seen = {} if _seen is None else _seen
    if schema in seen:
        return seen[schema]

    config = dict(schema.model_config)
    config["extra"] = "forbid" if policy.reject_unknown_fields else "ignore"
    config["strict"] = not policy.coerce_types
    bound = type(
        schema.__name__,
        (schema,),
        {"model_config": config, "__module__": schema.__module__, "__doc__": schema.__doc__},
    )
    # Registered before descending so self-referencing models terminate
    seen[schema] = bound

    overrides = {}
    for name, field in schema.model_fields.items():
        annotation = _rebind_type(field.annotation, policy, seen)
        if annotation is not field.annotation:
            overrides[name] = (annotation, copy.copy(field))
    if overrides:
        bound = create_model(schema.__name__, __base__=bound, __module__=schema.__module__, **overrides)
        seen[schema] = bound
    return bound


def _violations(location: str, exc: ValidationError) -> List[FieldViolation]:
    out = []
    for err in exc.errors(include_url=False):
        field = ".".join([location, *(str(part) for part in err["loc"])])
        out.append(FieldViolation(field=field, message=err["msg"], type=err["type"]))
    return out


async def _read_json(ctx: RequestContext) -> Any:
    raw = await ctx.request.body()
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        raise RequestValidationFailed(
            "Request body is not valid JSON",
            [FieldViolation(field="body", message="Invalid JSON", type="json_invalid")],
        )


class ValidationStage:
    """Checks and normalizes request inputs before the handler runs."""

    name = "validation"

    def __init__(self, policy: ValidationPolicy):
        self.policy = policy

    def wrap(self, route: Route, call_next: Call) -> Call:
        body_schema = self._bind(route.body)
        query_schema = self._bind(route.query)
        path_schema = self._bind(route.path_params)

        async def validate(ctx: RequestContext) -> Any:
            violations: List[FieldViolation] = []

            def check(schema: Optional[Type[BaseModel]], location: str, data: Any) -> Any:
                if schema is None:
                    return None
                try:
                    return schema.model_validate(data)
                except ValidationError as exc:
                    violations.extend(_violations(location, exc))
                    return None

            if body_schema is not None:
                ctx.body = check(body_schema, "body", await _read_json(ctx))
            ctx.query = check(query_schema, "query", _plain(ctx.request.query_params))
            ctx.path_params = check(path_schema, "path", dict(ctx.request.path_params))

            if violations:
                logger.debug(
                    "Rejected %s %s: %s",
                    ctx.request.method,
                    ctx.path,
                    ", ".join(v.field for v in violations),
                )
                raise RequestValidationFailed("Request validation failed", violations)

            return await call_next(ctx)

        return validate

    def _bind(self, schema: Optional[Type[BaseModel]]) -> Optional[Type[BaseModel]]:
        return bind_schema(schema, self.policy) if schema is not None else None


def _plain(params: Any) -> Dict[str, Any]:
    # Repeated keys collapse to a list so `?tag=a&tag=b` can feed a list field
    out: Dict[str, Any] = {}
    for key in params.keys():
        values = params.getlist(key)
        out[key] = values if len(values) > 1 else values[0]
    return out
