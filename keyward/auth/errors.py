"""Exceptions for the API key store."""

from __future__ import annotations

from pathlib import Path


class KeyStoreError(Exception):
    """Base exception for key store errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(KeyStoreError):
    """Raised when a caller supplies invalid input, e.g. an empty key name."""


class StorageReadError(KeyStoreError):
    """Raised when the key document exists but cannot be read or parsed.

    The store never lets this escape: it is logged and the call proceeds
    with an empty key list.
    """

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to read API key store at {path}: {reason}")


class StorageWriteError(KeyStoreError):
    """Raised when the key document cannot be written.

    The mutation that triggered the write is not durable.
    """

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write API key store at {path}: {reason}")
