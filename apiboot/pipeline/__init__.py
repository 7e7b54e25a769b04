"""Request-handling pipeline shared by every mounted route.

- routes.py: `Route` table entries and per-request `RequestContext`
- chain.py: `RequestPipeline`, which installs stages and binds routes
- validation.py: input-validation stage
- errors.py: error-translation stage and the shared error response
"""

from .chain import RequestPipeline, Stage
from .errors import ErrorTranslationStage, error_response, install_exception_handlers
from .routes import RequestContext, Route
from .validation import RequestValidationFailed, ValidationStage

__all__ = [
    "ErrorTranslationStage",
    "RequestContext",
    "RequestPipeline",
    "RequestValidationFailed",
    "Route",
    "Stage",
    "ValidationStage",
    "error_response",
    "install_exception_handlers",
]
