# webguard

Request middleware for two jobs that nearly every HTTP service needs:

- **Cross-Origin Resource Sharing (CORS)** controls that follow the Fetch
  Standard CORS protocol, including automatic handling of `OPTIONS`
  preflight requests.
- **Rate limiting** with a fixed-window counter per key, backed by Redis.

Both wrap a plain, synchronous handler: a callable that takes a
`webguard.http.Request` and returns a `webguard.http.Response`.

## Requests, responses and headers

`webguard.http` holds the small types the middleware works with:

- `Headers` is a case-insensitive mutable mapping; names are stored in
  lower case, in insertion order.
- `Request(method="GET", path="/", headers=...)`; `Request.cookie(name)`
  returns a cookie's value from the `Cookie` header, or `None`.
- `Response(status=200, headers=..., body=b"")`; a `str` body is encoded
  to bytes.

Headers may be given as a `Headers`, a mapping or a list of pairs.

```python
from webguard.http import Request, Response

def handler(request: Request) -> Response:
    return Response(status=200, body="hello")
```

## CORS

`webguard.cors.builder.Cors` is a builder. Its default configuration is
deliberately restrictive: no origins, methods, request headers or exposed
headers are allowed, credentials are not supported and no max age is sent.
Open it up step by step:

```python
from webguard.cors.builder import Cors

cors = (
    Cors()
    .allowed_origin("http://project.local:8080")
    .allowed_origin_fn(lambda origin, request: origin.startswith("http://localhost"))
    .allowed_methods(["GET", "POST"])
    .allowed_headers(["Authorization", "Accept"])
    .allowed_header("Content-Type")
    .expose_headers(["Content-Disposition"])
    .block_on_origin_mismatch(False)
    .max_age(3600)
)

app = cors.wrap(handler)
```

Listed origins are compared case-sensitively; a function given to
`allowed_origin_fn` is asked, with the origin and the request, when no
listed origin matches, and the origin is accepted if any such function
returns true. Header names are kept in lower case.

`wrap` checks the configuration and returns a
`webguard.cors.middleware.CorsMiddleware`. Configuration mistakes are
recorded as the builder is used and raised from `wrap` as
`webguard.cors.errors.CorsConfigError`:

- passing `"*"` to `allowed_origin` is refused; use `send_wildcard()` instead;
- an origin that is not a valid URI, an invalid method name or an invalid
  header name is refused;
- supporting credentials while allowing every origin and sending the
  wildcard is an illegal combination.

`max_age` raises `ValueError` at once for a negative or non-integer value;
`None` omits the `Access-Control-Max-Age` header.

`Cors.permissive()` allows every origin, method, request header and exposed
header, supports credentials and sets a one-hour max age. It is meant for
local development only.

Other switches:

| Method | Effect |
| --- | --- |
| `allow_any_origin()` | accept any `Origin` |
| `allow_any_method()` | allow every standard HTTP method |
| `allow_any_header()` | echo back whatever `Access-Control-Request-Headers` asks for |
| `expose_any_header()` | expose every header of the response |
| `send_wildcard()` | answer `*` instead of echoing the origin when all origins are allowed |
| `supports_credentials()` | send `Access-Control-Allow-Credentials: true` |
| `disable_vary_header()` | do not add the CORS request headers to `Vary` |
| `disable_preflight()` | pass `OPTIONS` requests on to the handler |
| `block_on_origin_mismatch(True)` | answer 400 Bad Request to a disallowed origin instead of simply omitting the CORS headers |

A preflight request (`OPTIONS` with a valid `Access-Control-Request-Method`)
is answered by the middleware itself; one that fails validation gets a
400 response. Request validation failures are
`webguard.cors.errors.CorsError`, whose `kind` is a
`webguard.cors.errors.CorsErrorKind` and whose `error_response()` is a
400 response carrying the error message.

The lower-level pieces live in `webguard.cors.inner`: `CorsPolicy` holds
the resolved settings and its checks, and `add_vary_header`,
`join_header_values`, `parse_method` and `is_valid_header_name` are the
helpers it uses. `webguard.all_or_some.AllOrSome` is the "everything or
this set" value the policy is built from.

## Rate limiting

`webguard.ratelimit.limiter.Limiter` counts requests per key in Redis. Each
key gets a window; the first request in a window starts it, and requests
beyond the limit are refused until the window expires.

```python
from webguard.ratelimit.limiter import Limiter
from webguard.ratelimit.middleware import RateLimiter

limiter = (
    Limiter.builder("redis://localhost:6379/0")
    .limit(100)
    .period(60)
    .key_by(lambda request: request.cookie("sid"))
    .build()
)

app = RateLimiter(handler, limiter)
```

The defaults are 5000 requests per 3600 seconds, keyed by the `sid`
cookie. `period` takes a `timedelta` or a number of seconds.
`cookie_name` changes the cookie used by default; it is deprecated in
favour of `key_by` and cannot be combined with it. `build` raises
`webguard.ratelimit.errors.RedisClientError` when the Redis URL does not
parse. A request for which no key can be derived is passed through
unlimited.

`RateLimiter` answers **429 Too Many Requests** once a key is over its
limit and **500 Internal Server Error** when the Redis client fails or
counting fails for another reason.

`Limiter.count(key)` can also be used directly. It returns a
`webguard.ratelimit.status.Status` with `limit`, `remaining` and
`reset_epoch_utc` (a UTC UNIX timestamp close to when the next window
begins), or raises `webguard.ratelimit.errors.LimitExceededError`, which
carries the same status. All rate-limiting failures derive from
`webguard.ratelimit.errors.LimitationError`.

## Demo

```
webguard-demo --host 127.0.0.1 --port 8080
```

starts a small development server (the standard library's WSGI reference
server) that answers every request with a greeting, guarded by the CORS
configuration shown above. `webguard.demo.build_app()` returns that
handler, and `webguard.demo.make_wsgi_app(handler)` turns any handler into
a WSGI application.

## What it does not do

- It has no in-process store for rate limiting: counting needs a
  reachable Redis server.
- It ships no adapters for web frameworks or async servers; apart from
  the demo's `make_wsgi_app`, connecting the middleware to a server is
  left to the caller.