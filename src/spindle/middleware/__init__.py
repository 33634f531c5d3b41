"""Middleware — protocol-based, no inheritance required.

A middleware is any object exposing:
    async def process(request: Request, next: Next) -> Response

Provided here:
    CORSConfig / CORSHandler -- Cross-Origin Resource Sharing policy
    middleware -- adapt an ``async def (request, next)`` function
    normalize_middleware -- turn a descriptor into a middleware instance
"""

from spindle.middleware.cors import CORSConfig, CORSHandler
from spindle.middleware.function import FunctionMiddleware, middleware
from spindle.middleware.normalize import normalize_middleware
from spindle.middleware.protocol import CORSInterceptor, Middleware, Next, Resolver

__all__ = [
    "CORSConfig",
    "CORSHandler",
    "CORSInterceptor",
    "FunctionMiddleware",
    "Middleware",
    "Next",
    "Resolver",
    "middleware",
    "normalize_middleware",
]
