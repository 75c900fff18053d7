"""API key authentication middleware.

Every request passes through authenticate(), which applies these checks in
order and stops at the first that applies:

1. Public paths (/health) are always accepted.
2. The SKIP_API_KEY_AUTH override accepts everything (development only).
3. No keys in the store -> 503 configuration error.
4. No x-api-key header -> 401.
5. Unknown or malformed key -> 401.
6. Disabled key -> 401.
7. Otherwise accepted; the key's KeyInfo is attached to request.state.

Usage:
    app.add_middleware(APIKeyMiddleware, store=store, skip_auth=False)

    @app.get("/v1/models")
    async def models(key_info: KeyInfo | None = Depends(get_api_key_info)):
        ...
"""

import logging
from dataclasses import dataclass
from enum import Enum

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from starlette.middleware.base import BaseHTTPMiddleware

from ..auth.keys import APIKeyStore
from ..auth.models import KeyInfo
from .schemas import ErrorDetail, ErrorResponse

logger = logging.getLogger("keyward.api.auth")

API_KEY_HEADER = "x-api-key"
OVERRIDE_ENV_VAR = "SKIP_API_KEY_AUTH"

# Endpoints that don't require authentication
PUBLIC_PATHS: tuple[str, ...] = ("/health",)

# Documents the header in OpenAPI for routes that depend on it
api_key_header = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)


class AuthOutcome(str, Enum):
    """Classification of a single request by the gatekeeper."""

    ACCEPTED = "accepted"
    CONFIGURATION_ERROR = "configuration_error"
    MISSING_KEY = "missing_api_key"
    INVALID_KEY = "invalid_api_key"
    DISABLED_KEY = "disabled_api_key"


_MESSAGES: dict[AuthOutcome, str] = {
    AuthOutcome.ACCEPTED: "Authenticated.",
    AuthOutcome.CONFIGURATION_ERROR: "No API keys configured. Please run: keyward keys add <name>",
    AuthOutcome.MISSING_KEY: f"Missing API key. Please provide {API_KEY_HEADER} header.",
    AuthOutcome.INVALID_KEY: "Invalid API key.",
    AuthOutcome.DISABLED_KEY: "API key is disabled.",
}


@dataclass
class AuthDecision:
    """Result of authenticating one request."""

    outcome: AuthOutcome
    key_info: KeyInfo | None = None

    @property
    def accepted(self) -> bool:
        return self.outcome == AuthOutcome.ACCEPTED

    @property
    def status_code(self) -> int:
        """HTTP status for this outcome."""
        if self.outcome == AuthOutcome.ACCEPTED:
            return status.HTTP_200_OK
        if self.outcome == AuthOutcome.CONFIGURATION_ERROR:
            return status.HTTP_503_SERVICE_UNAVAILABLE
        return status.HTTP_401_UNAUTHORIZED

    @property
    def error_type(self) -> str | None:
        """Coarse error kind: operator fault vs. caller fault."""
        if self.outcome == AuthOutcome.ACCEPTED:
            return None
        if self.outcome == AuthOutcome.CONFIGURATION_ERROR:
            return "configuration_error"
        return "authentication_error"

    @property
    def message(self) -> str:
        return _MESSAGES[self.outcome]

    def to_error_body(self) -> dict:
        """Build the JSON body sent with a rejection."""
        body = ErrorResponse(
            error=ErrorDetail(
                type=self.error_type or "",
                code=self.outcome.value,
                message=self.message,
            )
        )
        return body.model_dump()


def is_public_path(path: str) -> bool:
    """Check if a path is a public endpoint (exact or sub-path match)."""
    return any(path == public or path.startswith(public + "/") for public in PUBLIC_PATHS)


def authenticate(
    path: str,
    api_key: str | None,
    store: APIKeyStore,
    skip_auth: bool = False,
) -> AuthDecision:
    """Decide whether a request may proceed.

    Args:
        path: The request path.
        api_key: Value of the x-api-key header, if any.
        store: Key store to validate against.
        skip_auth: Development override; accepts every request when True.

    Returns:
        AuthDecision with the outcome and, when a key matched, its KeyInfo.
    """
    if is_public_path(path):
        return AuthDecision(AuthOutcome.ACCEPTED)

    if skip_auth:
        return AuthDecision(AuthOutcome.ACCEPTED)

    if not store.has_keys():
        return AuthDecision(AuthOutcome.CONFIGURATION_ERROR)

    if not api_key:
        return AuthDecision(AuthOutcome.MISSING_KEY)

    key_info = store.validate_key(api_key)
    if key_info is None:
        return AuthDecision(AuthOutcome.INVALID_KEY)

    if not key_info.enabled:
        return AuthDecision(AuthOutcome.DISABLED_KEY, key_info)

    return AuthDecision(AuthOutcome.ACCEPTED, key_info)


@dataclass
class AuthStatus:
    """Authentication status for startup display."""

    enabled: bool
    is_disabled: bool
    key_count: int
    message: str

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "is_disabled": self.is_disabled,
            "key_count": self.key_count,
            "message": self.message,
        }


def describe_auth_status(skip_auth: bool, key_count: int) -> AuthStatus:
    """Summarize auth state from the override flag and enabled key count."""
    if skip_auth:
        message = f"API Key Auth: DISABLED ({OVERRIDE_ENV_VAR}=true)"
    elif key_count > 0:
        plural = "" if key_count == 1 else "s"
        message = f"API Key Auth: Enabled ({key_count} active key{plural})"
    else:
        message = "API Key Auth: No keys configured!"

    return AuthStatus(
        enabled=not skip_auth and key_count > 0,
        is_disabled=skip_auth,
        key_count=key_count,
        message=message,
    )


def get_auth_status(store: APIKeyStore, skip_auth: bool = False) -> AuthStatus:
    """Get the auth status for a store."""
    return describe_auth_status(skip_auth, store.enabled_key_count())


def log_auth_status(auth_status: AuthStatus) -> None:
    """Log the auth status banner (call at server startup)."""
    if auth_status.is_disabled:
        logger.warning(f"{auth_status.message} - every request is accepted, development only")
    elif auth_status.enabled:
        logger.info(auth_status.message)
    else:
        logger.warning(f"{auth_status.message} Run: keyward keys add <name>")


class APIKeyMiddleware(BaseHTTPMiddleware):
    """FastAPI middleware enforcing API key authentication."""

    def __init__(self, app, store: APIKeyStore, skip_auth: bool = False):
        """Initialize the middleware.

        Args:
            app: FastAPI application
            store: Key store to validate against
            skip_auth: Development override, usually from SKIP_API_KEY_AUTH
        """
        super().__init__(app)
        self.store = store
        self.skip_auth = skip_auth
        if skip_auth:
            logger.warning(
                f"API key authentication is DISABLED ({OVERRIDE_ENV_VAR}=true). "
                "Do not run like this outside local development."
            )

    async def dispatch(self, request: Request, call_next):
        """Authenticate the request, then hand it on or reject it."""
        decision = authenticate(
            request.url.path,
            request.headers.get(API_KEY_HEADER),
            self.store,
            self.skip_auth,
        )

        if not decision.accepted:
            if decision.key_info is not None:
                logger.warning(
                    f"Rejected {request.method} {request.url.path}: {decision.outcome.value} "
                    f"(key {decision.key_info.id} '{decision.key_info.name}')"
                )
            else:
                logger.warning(
                    f"Rejected {request.method} {request.url.path}: {decision.outcome.value}"
                )
            return JSONResponse(
                status_code=decision.status_code,
                content=decision.to_error_body(),
            )

        # Attach key info to request for logging/auditing
        request.state.api_key_info = decision.key_info
        return await call_next(request)


def get_api_key_info(request: Request) -> KeyInfo | None:
    """Get the KeyInfo attached by APIKeyMiddleware.

    None for public paths, or when the override is active.
    """
    return getattr(request.state, "api_key_info", None)
