"""JSON-file-backed API key store."""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import secrets
import string
import tempfile
import threading
from pathlib import Path
from typing import Any

from .errors import StorageReadError, StorageWriteError, ValidationError
from .models import KeyInfo, KeyRecord, KeySummary

logger = logging.getLogger("keyward.auth.keys")

# Key format: sk-ant-<48 alphanumeric characters>
KEY_PREFIX = "sk-ant-"
KEY_RANDOM_LENGTH = 48
KEY_ALPHABET = string.ascii_letters + string.digits
KEY_PATTERN = re.compile(rf"{re.escape(KEY_PREFIX)}[A-Za-z0-9]{{{KEY_RANDOM_LENGTH}}}")

HASH_ALGORITHM = "sha256"

# Visible characters kept for display
DISPLAY_PREFIX_LENGTH = 12


def generate_api_key() -> str:
    """Generate a secure random API key.

    Format: sk-ant-<48 random alphanumeric chars>
    """
    random_part = "".join(secrets.choice(KEY_ALPHABET) for _ in range(KEY_RANDOM_LENGTH))
    return f"{KEY_PREFIX}{random_part}"


def hash_key(api_key: str) -> str:
    """Hash an API key using SHA-256.

    The digest is tagged with the algorithm name ("sha256:<hex>") so stored
    hashes stay interpretable if the algorithm changes. SHA-256 rather than
    bcrypt is enough here since keys are already high-entropy random strings.
    """
    digest = hashlib.new(HASH_ALGORITHM, api_key.encode()).hexdigest()
    return f"{HASH_ALGORITHM}:{digest}"


def is_well_formed(api_key: Any) -> bool:
    """Check that a value has the issued key format."""
    return isinstance(api_key, str) and KEY_PATTERN.fullmatch(api_key) is not None


def _generate_key_id() -> str:
    return f"key_{secrets.token_hex(8)}"


def _display_prefix(api_key: str) -> str:
    return api_key[:DISPLAY_PREFIX_LENGTH] + "..."


class APIKeyStore:
    """API key management backed by a single JSON document.

    Keys are stored as SHA-256 hashes. The raw key is only returned once,
    by add_key(). Every operation re-reads the document, so separate
    processes see each other's changes; in-process mutations are
    serialized by a lock, cross-process writers are not (last write wins).

    Usage:
        store = APIKeyStore(Path("/tmp/api-keys.json"))

        # Add a new key
        record, raw_key = store.add_key("production")
        print(f"Save this key: {raw_key}")  # Only shown once

        # Validate incoming request
        info = store.validate_key(request_key)
        if info and info.enabled:
            print(f"Authenticated as {info.name}")
    """

    def __init__(self, store_path: Path | None = None):
        """Initialize the key store.

        Args:
            store_path: Path to the JSON document. Defaults to the configured
                        keys path (~/.config/keyward/api-keys.json).
        """
        if store_path is None:
            from ..config.settings import get_settings

            store_path = get_settings().keys_path

        self._store_path = Path(store_path)
        self._lock = threading.RLock()

    @property
    def store_path(self) -> Path:
        """Get the store file path."""
        return self._store_path

    def _read_document(self) -> list[KeyRecord]:
        """Read and parse the key document.

        Returns:
            Records in insertion order; empty if the file does not exist.

        Raises:
            StorageReadError: If the file exists but is unreadable or corrupt.
        """
        try:
            raw = self._store_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageReadError(self._store_path, str(e)) from e
        except UnicodeDecodeError as e:
            raise StorageReadError(self._store_path, f"invalid UTF-8: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageReadError(self._store_path, f"invalid JSON: {e}") from e
        except RecursionError as e:
            raise StorageReadError(self._store_path, "JSON nested too deeply") from e

        if not isinstance(data, dict) or not isinstance(data.get("keys"), list):
            raise StorageReadError(self._store_path, "expected an object with a 'keys' list")

        try:
            return [KeyRecord.from_dict(entry) for entry in data["keys"]]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StorageReadError(self._store_path, f"malformed key entry: {e}") from e

    def _load(self) -> list[KeyRecord]:
        """Load records, degrading to an empty list if the document is corrupt."""
        try:
            return self._read_document()
        except StorageReadError as e:
            logger.error(f"{e.message}; continuing with an empty key store")
            return []

    def _save(self, records: list[KeyRecord]) -> None:
        """Write the full document, replacing the previous one in a single step.

        Raises:
            StorageWriteError: If the document cannot be written.
        """
        data = {"keys": [record.to_dict() for record in records]}

        try:
            self._store_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._store_path.name}.",
                suffix=".tmp",
                dir=self._store_path.parent,
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_name, self._store_path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save API key store: {e}")
            raise StorageWriteError(self._store_path, str(e)) from e

        logger.debug(f"Saved {len(records)} API keys to {self._store_path}")

    def add_key(self, name: str) -> tuple[KeyRecord, str]:
        """Add a new API key.

        Args:
            name: Human-readable name for the key. Leading and trailing
                  whitespace is stripped.

        Returns:
            Tuple of (KeyRecord, raw key string).
            The raw key is only returned here and cannot be retrieved later.

        Raises:
            ValidationError: If name is empty or whitespace-only.
            StorageWriteError: If the store cannot be written.
        """
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("API key name cannot be empty")
        name = name.strip()

        raw_key = generate_api_key()
        record = KeyRecord(
            id=_generate_key_id(),
            name=name,
            key_hash=hash_key(raw_key),
            key_prefix=_display_prefix(raw_key),
        )

        with self._lock:
            records = self._load()
            records.append(record)
            self._save(records)

        logger.info(f"Created API key '{name}' ({record.id})")
        return record, raw_key

    def remove_key(self, key_id: str) -> bool:
        """Permanently remove an API key.

        Args:
            key_id: The key's unique ID.

        Returns:
            True if the key was removed, False if not found.
        """
        with self._lock:
            records = self._load()
            remaining = [r for r in records if r.id != key_id]
            if len(remaining) == len(records):
                return False
            self._save(remaining)

        logger.info(f"Removed API key: {key_id}")
        return True

    def _set_enabled(self, key_id: str, enabled: bool) -> bool:
        with self._lock:
            records = self._load()
            record = next((r for r in records if r.id == key_id), None)
            if record is None:
                return False
            record.enabled = enabled
            self._save(records)

        logger.info(f"{'Enabled' if enabled else 'Disabled'} API key: {key_id}")
        return True

    def enable_key(self, key_id: str) -> bool:
        """Enable an API key.

        Returns:
            True if the key exists (even if it was already enabled).
        """
        return self._set_enabled(key_id, True)

    def disable_key(self, key_id: str) -> bool:
        """Disable an API key.

        Returns:
            True if the key exists (even if it was already disabled).
        """
        return self._set_enabled(key_id, False)

    def validate_key(self, api_key: Any) -> KeyInfo | None:
        """Look up the record matching a raw API key.

        This does not check the enabled flag: a disabled key still returns
        its KeyInfo so the caller can report it as disabled rather than
        unknown.

        Args:
            api_key: The raw API key from the request.

        Returns:
            KeyInfo if a record matches, None for malformed or unknown keys.
        """
        if not is_well_formed(api_key):
            return None

        key_hash = hash_key(api_key).encode()
        for record in self._load():
            if secrets.compare_digest(record.key_hash.encode(), key_hash):
                return record.to_info()
        return None

    def get_key(self, key_id: str) -> KeySummary | None:
        """Get the listing view of a key by its ID."""
        for record in self._load():
            if record.id == key_id:
                return record.to_summary()
        return None

    def list_keys(self) -> list[KeySummary]:
        """List all API keys in insertion order, without hashes."""
        return [record.to_summary() for record in self._load()]

    def enabled_key_count(self) -> int:
        """Get the count of enabled keys."""
        return sum(1 for record in self._load() if record.enabled)

    def has_keys(self) -> bool:
        """Check if at least one key exists, enabled or not."""
        return len(self._load()) > 0


# Singleton instance
_store: APIKeyStore | None = None


def get_key_store() -> APIKeyStore:
    """Get the global API key store instance."""
    global _store
    if _store is None:
        _store = APIKeyStore()
    return _store
