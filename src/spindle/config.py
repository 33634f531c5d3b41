"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation, with no
string-key dict lookups.
"""

from dataclasses import dataclass

from spindle.middleware.cors import CORSConfig
from spindle.routing.router import DEFAULT_METHODS


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, cors=CORSConfig(allow_credentials=True))
    """

    # Validate every route's middleware and handler when the app seals
    debug: bool = False

    # HTTP methods routes may be registered for
    methods: frozenset[str] = DEFAULT_METHODS

    # CORS policy; None disables CORS unless an interceptor is passed to App
    cors: CORSConfig | None = None
