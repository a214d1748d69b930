import pytest

from webguard.all_or_some import AllOrSome
from webguard.cors.inner import VARY_VALUE, CorsPolicy
from webguard.cors.middleware import CorsMiddleware, is_request_preflight
from webguard.http import Request, Response


class Recorder:
    def __init__(self, status=200, headers=None):
        self.calls = []
        self.status = status
        self.headers = headers or {}

    def __call__(self, request):
        self.calls.append(request)
        return Response(status=self.status, headers=dict(self.headers))


@pytest.mark.parametrize(
    "method,headers,expected",
    [
        ("OPTIONS", {"Access-Control-Request-Method": "POST"}, True),
        ("OPTIONS", {}, False),
        ("OPTIONS", {"Access-Control-Request-Method": "bad method"}, False),
        ("GET", {"Access-Control-Request-Method": "POST"}, False),
    ],
)
def test_is_request_preflight(method, headers, expected):
    assert is_request_preflight(Request(method=method, headers=headers)) is expected


def test_options_no_origin():
    seen = []

    def origin_fn(origin, request):
        seen.append(origin == request.headers["origin"])
        return "dnt" in request.headers

    policy = CorsPolicy(allowed_origins=AllOrSome.all(), allowed_origin_fns=[origin_fn])
    app = CorsMiddleware(Recorder(), policy)

    res = app(Request(method="GET", headers={"Origin": "http://example.com"}))
    assert res.headers.get("access-control-allow-origin") is None

    res = app(Request(method="GET", headers={"Origin": "http://example.com", "DNT": "1"}))
    assert res.headers.get("access-control-allow-origin") == "http://example.com"
    assert seen == [True, True]


def _preflight_policy(**overrides):
    values = dict(
        allowed_origins=AllOrSome.all(),
        send_wildcard=True,
        max_age=3600,
        allowed_methods={"GET", "OPTIONS", "POST"},
        allowed_methods_baked="GET, OPTIONS, POST",
        allowed_headers=AllOrSome.some({"authorization", "accept", "content-type"}),
        allowed_headers_baked="accept, authorization, content-type",
    )
    values.update(overrides)
    return CorsPolicy(**values)


def test_preflight_response_headers():
    handler = Recorder()
    app = CorsMiddleware(handler, _preflight_policy())
    req = Request(
        method="OPTIONS",
        headers={
            "Origin": "https://www.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "AUTHORIZATION,ACCEPT",
        },
    )
    res = app(req)
    assert res.status == 200
    assert handler.calls == []
    assert res.headers["access-control-allow-origin"] == "*"
    assert res.headers["access-control-max-age"] == "3600"
    assert res.headers["access-control-allow-methods"] == "GET, OPTIONS, POST"
    assert res.headers["access-control-allow-headers"] == "accept, authorization, content-type"
    assert res.headers["vary"] == VARY_VALUE


def test_preflight_method_not_allowed():
    app = CorsMiddleware(Recorder(), _preflight_policy())
    req = Request(
        method="OPTIONS",
        headers={"Origin": "https://www.example.com", "Access-Control-Request-Method": "put"},
    )
    res = app(req)
    assert res.status == 400
    assert res.body == b"Requested method is not allowed"
    assert "vary" not in res.headers


def test_preflight_headers_not_allowed():
    app = CorsMiddleware(Recorder(), _preflight_policy())
    req = Request(
        method="OPTIONS",
        headers={
            "Origin": "https://www.example.com",
            "Access-Control-Request-Method": "GET",
            "Access-Control-Request-Headers": "X-Not-Allowed",
        },
    )
    res = app(req)
    assert res.status == 400
    assert res.body == b"One or more request headers are not allowed"


def test_preflight_origin_mismatch_rejected_even_without_blocking():
    policy = CorsPolicy(
        allowed_origins=AllOrSome.some({"https://www.example.com"}),
        allowed_methods={"POST"},
        allowed_methods_baked="POST",
    )
    app = CorsMiddleware(Recorder(), policy)
    req = Request(
        method="OPTIONS",
        headers={"Origin": "https://wrong.com", "Access-Control-Request-Method": "POST"},
    )
    res = app(req)
    assert res.status == 400
    assert res.body == b"Origin is not allowed to make this request"
    assert "access-control-allow-origin" not in res.headers


def test_preflight_disabled_passes_to_handler():
    handler = Recorder(status=204)
    app = CorsMiddleware(handler, _preflight_policy(preflight=False))
    req = Request(
        method="OPTIONS",
        headers={"Origin": "https://www.example.com", "Access-Control-Request-Method": "POST"},
    )
    res = app(req)
    assert res.status == 204
    assert len(handler.calls) == 1
    assert res.headers["access-control-allow-origin"] == "*"


def test_preflight_echoes_requested_headers_when_all_allowed():
    policy = CorsPolicy(
        allowed_origins=AllOrSome.all(),
        allowed_methods={"POST"},
        allowed_methods_baked="POST",
        allowed_headers=AllOrSome.all(),
        supports_credentials=True,
    )
    app = CorsMiddleware(Recorder(), policy)
    req = Request(
        method="OPTIONS",
        headers={
            "Origin": "https://www.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type",
        },
    )
    res = app(req)
    assert res.status == 200
    assert res.headers["access-control-allow-headers"] == "content-type"
    assert res.headers["access-control-allow-origin"] == "https://www.example.com"
    assert res.headers["access-control-allow-credentials"] == "true"
    assert "access-control-max-age" not in res.headers


def test_blocked_origin_mismatch_skips_handler():
    handler = Recorder()
    policy = CorsPolicy(
        allowed_origins=AllOrSome.some({"https://www.example.com"}),
        block_on_origin_mismatch=True,
    )
    app = CorsMiddleware(handler, policy)
    res = app(Request(method="GET", headers={"Origin": "https://www.unknown.com"}))
    assert res.status == 400
    assert res.headers["vary"] == VARY_VALUE
    assert handler.calls == []


def test_unblocked_mismatch_calls_handler_without_cors_headers():
    handler = Recorder()
    policy = CorsPolicy(allowed_origins=AllOrSome.some({"https://www.example.com"}))
    app = CorsMiddleware(handler, policy)
    res = app(Request(method="GET", headers={"Origin": "https://wrong.com"}))
    assert res.status == 200
    assert len(handler.calls) == 1
    assert "access-control-allow-origin" not in res.headers


def test_request_without_origin_gets_vary_only():
    handler = Recorder()
    app = CorsMiddleware(handler, CorsPolicy())
    res = app(Request(method="PUT"))
    assert res.status == 200
    assert len(handler.calls) == 1
    assert "access-control-allow-origin" not in res.headers
    assert res.headers["vary"] == VARY_VALUE


def test_expose_all_lists_response_headers():
    handler = Recorder(headers={"Content-Disposition": "test disposition"})
    policy = CorsPolicy(allowed_origins=AllOrSome.all(), expose_headers=AllOrSome.all())
    app = CorsMiddleware(handler, policy)
    res = app(Request(method="GET", headers={"Origin": "https://www.example.com"}))
    assert res.headers["access-control-expose-headers"] == (
        "access-control-allow-origin, content-disposition"
    )


def test_baked_expose_headers_used():
    policy = CorsPolicy(
        allowed_origins=AllOrSome.all(),
        send_wildcard=True,
        expose_headers=AllOrSome.some({"authorization", "accept"}),
        expose_headers_baked="accept, authorization",
    )
    app = CorsMiddleware(Recorder(), policy)
    res = app(Request(method="OPTIONS", headers={"Origin": "https://www.example.com"}))
    assert res.headers["access-control-allow-origin"] == "*"
    assert res.headers["access-control-expose-headers"] == "accept, authorization"


def test_existing_vary_header_is_extended():
    handler = Recorder(headers={"Vary": "Accept"})
    policy = CorsPolicy(allowed_origins=AllOrSome.all(), send_wildcard=True)
    app = CorsMiddleware(handler, policy)
    res = app(Request(method="OPTIONS", headers={"Origin": "https://www.example.com"}))
    assert res.headers["vary"] == f"Accept, {VARY_VALUE}"


def test_vary_header_disabled():
    policy = CorsPolicy(
        allowed_origins=AllOrSome.some({"https://www.example.com"}),
        allowed_methods={"POST"},
        allowed_methods_baked="POST",
        vary_header=False,
    )
    app = CorsMiddleware(Recorder(), policy)
    req = Request(
        method="OPTIONS",
        headers={"Origin": "https://www.example.com", "Access-Control-Request-Method": "POST"},
    )
    res = app(req)
    assert res.headers["access-control-allow-origin"] == "https://www.example.com"
    assert "vary" not in res.headers


def test_credentials_added_to_actual_response():
    policy = CorsPolicy(
        allowed_origins=AllOrSome.some({"https://www.example.com"}),
        supports_credentials=True,
    )
    app = CorsMiddleware(Recorder(), policy)
    res = app(Request(method="GET", headers={"Origin": "https://www.example.com"}))
    assert res.headers["access-control-allow-credentials"] == "true"
    assert res.headers["access-control-allow-origin"] == "https://www.example.com"