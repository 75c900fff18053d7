"""Authentication module.

This module provides the API key store: key generation, hashing,
persisted records, and validation.
"""

from .errors import KeyStoreError, StorageReadError, StorageWriteError, ValidationError
from .keys import APIKeyStore, generate_api_key, get_key_store, hash_key
from .models import KeyInfo, KeyRecord, KeySummary

__all__ = [
    "APIKeyStore",
    "KeyInfo",
    "KeyRecord",
    "KeyStoreError",
    "KeySummary",
    "StorageReadError",
    "StorageWriteError",
    "ValidationError",
    "generate_api_key",
    "get_key_store",
    "hash_key",
]
