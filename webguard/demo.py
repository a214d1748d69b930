"""A small demonstration server guarded by a CORS policy."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable, Iterable
from http import HTTPStatus
from wsgiref.simple_server import make_server

from webguard.cors.builder import Cors
from webguard.http import Headers, Request, Response

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Response]

GREETING = "Hello, cross-origin world!"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080


def _hello(request: Request) -> Response:
    return Response(status=200, body=GREETING)


def _with_access_log(handler: Handler) -> Handler:
    def logged(request: Request) -> Response:
        response = handler(request)
        logger.info("%s %s %d", request.method, request.path, response.status)
        return response

    return logged


def _allow_localhost(origin: str, request: Request) -> bool:
    return origin.startswith("http://localhost")


def build_app() -> Handler:
    """Build the demo handler: a greeting behind a CORS policy and an access log."""
    cors = (
        Cors()
        .allowed_origin("http://project.local:8080")
        .allowed_origin_fn(_allow_localhost)
        .allowed_methods(["GET", "POST"])
        .allowed_headers(["authorization", "accept"])
        .allowed_header("content-type")
        .expose_headers(["content-disposition"])
        # lets cURL and similar clients work without sending an Origin header
        .block_on_origin_mismatch(False)
        .max_age(3600)
    )
    return _with_access_log(cors.wrap(_hello))


def _status_line(status: int) -> str:
    try:
        phrase = HTTPStatus(status).phrase
    except ValueError:
        phrase = "Unknown"
    return f"{status} {phrase}"


def _request_headers(environ: dict) -> Iterable[tuple[str, str]]:
    for key, value in environ.items():
        if key.startswith("HTTP_"):
            yield key[5:].replace("_", "-"), value
        elif key in ("CONTENT_TYPE", "CONTENT_LENGTH") and value:
            yield key.replace("_", "-"), value


def make_wsgi_app(handler: Handler):
    """Expose a request handler as a WSGI application."""

    def application(environ, start_response):
        request = Request(
            method=environ.get("REQUEST_METHOD", "GET").upper(),
            path=environ.get("PATH_INFO", "/") or "/",
            headers=Headers(list(_request_headers(environ))),
        )
        response = handler(request)
        body = response.body
        headers = list(response.headers.items())
        if "content-length" not in response.headers:
            headers.append(("content-length", str(len(body))))
        start_response(_status_line(response.status), headers)
        return [body]

    return application


def main(argv: list[str] | None = None) -> int:
    """Run the demo server until interrupted."""
    parser = argparse.ArgumentParser(description="Serve a greeting behind a CORS policy.")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    logger.info("starting HTTP server at http://localhost:%d", args.port)

    app = make_wsgi_app(build_app())
    with make_server(args.host, args.port, app) as server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())