# app/core/cors.py
from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response

# Body headers of the stock "OK" / "Disallowed CORS ..." preflight answers
_DROPPED = {"content-length", "content-type"}


class PreflightCORSMiddleware(CORSMiddleware):
    """
    CORSMiddleware whose preflight answer is always 200 with an empty body.
    A rejected origin still gets no Access-Control-Allow-Origin header,
    so the browser blocks the real request as before.
    """

    def preflight_response(self, request_headers: Headers) -> Response:
        stock = super().preflight_response(request_headers=request_headers)
        headers = {k: v for k, v in stock.headers.items() if k.lower() not in _DROPPED}
        return Response(status_code=200, headers=headers)
