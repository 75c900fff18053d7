"""API module."""

from .auth import APIKeyMiddleware, AuthDecision, AuthOutcome, authenticate
from .routes import router

__all__ = ["APIKeyMiddleware", "AuthDecision", "AuthOutcome", "authenticate", "router"]
