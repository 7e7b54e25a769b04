"""Echo diagnostics.

Exposes (under the API prefix):
- POST /echo: returns the message repeated `repeat` times

Handy for checking the validation stage from outside: unknown fields are
rejected and `"repeat": "3"` arrives in the handler as the integer 3.
"""

from ..core.models_io import EchoQuery, EchoRequest, EchoResponse
from ..pipeline.routes import RequestContext, Route


def echo(ctx: RequestContext) -> EchoResponse:
    req: EchoRequest = ctx.body
    separator = ctx.query.separator if ctx.query is not None else " "
    text = req.message.upper() if req.uppercase else req.message
    return EchoResponse(
        message=req.message,
        repeat=req.repeat,
        uppercase=req.uppercase,
        echoed=separator.join([text] * req.repeat),
    )


routes = [
    Route("POST", "/echo", echo, body=EchoRequest, query=EchoQuery, summary="Echo a message back"),
]
