"""CORS interception.

The app consults a ``CORSInterceptor`` twice per request: before routing,
to answer preflight ``OPTIONS`` requests without touching the router,
and after the pipeline, to decorate the outgoing response.
"""

import logging
from dataclasses import dataclass

from spindle.http.request import Request
from spindle.http.response import Response

logger = logging.getLogger("spindle.cors")


@dataclass(frozen=True, slots=True)
class CORSConfig:
    """CORS policy. Immutable after creation.

    The defaults allow any origin without credentials. Override what you
    need::

        CORSConfig(
            allow_origins=("https://example.com",),
            allow_credentials=True,
        )
    """

    allow_origins: tuple[str, ...] = ("*",)
    allow_methods: tuple[str, ...] = ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")
    allow_headers: tuple[str, ...] = ("Content-Type", "Authorization")
    expose_headers: tuple[str, ...] = ()
    allow_credentials: bool = False
    max_age: int = 86400  # 24 hours

    @property
    def allows_any_origin(self) -> bool:
        return "*" in self.allow_origins


class CORSHandler:
    """Default ``CORSInterceptor``.

    Handles:
    - Requests without ``Origin`` (left untouched)
    - Allowed origins (``Access-Control-Allow-Origin`` and friends)
    - Preflight ``OPTIONS`` requests (methods, headers, max-age)
    - Wildcard origins (``"*"``) when credentials are disabled

    Usage::

        app = App(cors=CORSHandler(CORSConfig(allow_origins=("https://example.com",))))
    """

    __slots__ = ("config",)

    def __init__(self, config: CORSConfig | None = None) -> None:
        self.config = config or CORSConfig()

    def should_apply(self, request: Request) -> bool:
        """True when the request carries a non-empty ``Origin`` header."""
        return request.header("Origin") != ""

    def is_allowed_origin(self, origin: str) -> bool:
        """Check if the origin is in the allow list."""
        if self.config.allows_any_origin:
            return True
        return origin in self.config.allow_origins

    def add_headers(self, response: Response, request: Request) -> Response:
        """Decorate *response* with the CORS headers *request* is entitled to."""
        cfg = self.config
        origin = request.header("Origin")
        if origin == "":
            return response

        if not self.is_allowed_origin(origin):
            logger.debug("Origin %r not allowed; CORS headers withheld", origin)
            return response

        # Origin header
        if cfg.allows_any_origin and not cfg.allow_credentials:
            response = response.with_header("Access-Control-Allow-Origin", "*")
        else:
            response = response.with_header("Access-Control-Allow-Origin", origin)
            response = _vary_on_origin(response)

        # Credentials
        if cfg.allow_credentials:
            response = response.with_header("Access-Control-Allow-Credentials", "true")

        # Expose headers
        if cfg.expose_headers:
            response = response.with_header(
                "Access-Control-Expose-Headers",
                ", ".join(cfg.expose_headers),
            )

        if request.method.upper() == "OPTIONS":
            response = self._add_preflight_headers(response, request)

        return response

    def _add_preflight_headers(self, response: Response, request: Request) -> Response:
        """Preflight-specific headers, populated from config."""
        cfg = self.config
        if request.header("Access-Control-Request-Method"):
            response = response.with_header(
                "Access-Control-Allow-Methods",
                ", ".join(cfg.allow_methods),
            )

        if request.header("Access-Control-Request-Headers"):
            response = response.with_header(
                "Access-Control-Allow-Headers",
                ", ".join(cfg.allow_headers),
            )

        return response.with_header("Access-Control-Max-Age", str(cfg.max_age))


def _vary_on_origin(response: Response) -> Response:
    """Add ``Origin`` to the response's ``Vary`` header, keeping other values."""
    existing = response.header("Vary")
    if not existing:
        return response.with_header("Vary", "Origin")
    values = [v.strip() for v in existing.split(",")]
    if "*" in values or any(v.lower() == "origin" for v in values):
        return response
    return response.with_header("Vary", f"{existing}, Origin")
