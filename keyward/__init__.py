"""Keyward - API key issuance and request authentication for the proxy."""

__version__ = "1.0.0"
