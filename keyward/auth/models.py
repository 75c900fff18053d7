"""API key data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


def _utcnow() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(UTC)


def _parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting the trailing 'Z' form."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass
class KeyInfo:
    """Non-secret view of a key, returned by validation.

    Attached to authenticated requests for auditing. Carries the enabled
    flag so callers can tell a disabled key from an unknown one.
    """

    id: str
    name: str
    enabled: bool
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "enabled": self.enabled,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class KeySummary(KeyInfo):
    """Listing view of a key: KeyInfo plus the display prefix."""

    key_prefix: str = ""

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["key_prefix"] = self.key_prefix
        return data


@dataclass
class KeyRecord:
    """Persisted API key record.

    Holds the hash of the raw key, never the key itself.
    """

    id: str  # key_<16 hex>
    name: str  # Human-readable label
    key_hash: str  # sha256:<hex digest>
    key_prefix: str  # First characters of the raw key + "..."
    created_at: datetime = field(default_factory=_utcnow)
    enabled: bool = True

    def to_info(self) -> KeyInfo:
        """Project to the validation view (no hash)."""
        return KeyInfo(
            id=self.id,
            name=self.name,
            enabled=self.enabled,
            created_at=self.created_at,
        )

    def to_summary(self) -> KeySummary:
        """Project to the listing view (no hash)."""
        return KeySummary(
            id=self.id,
            name=self.name,
            enabled=self.enabled,
            created_at=self.created_at,
            key_prefix=self.key_prefix,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the on-disk document form."""
        return {
            "id": self.id,
            "name": self.name,
            "keyHash": self.key_hash,
            "keyPrefix": self.key_prefix,
            "createdAt": self.created_at.isoformat(),
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> KeyRecord:
        """Create from the on-disk document form.

        Raises:
            KeyError, TypeError, ValueError: If the entry is malformed.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Expected key entry object, got {type(data).__name__}")

        enabled = data.get("enabled", True)
        if not isinstance(enabled, bool):
            raise TypeError("Field 'enabled' must be a boolean")

        for name in ("id", "name", "keyHash"):
            if not isinstance(data[name], str):
                raise TypeError(f"Field '{name}' must be a string")

        return cls(
            id=data["id"],
            name=data["name"],
            key_hash=data["keyHash"],
            key_prefix=str(data.get("keyPrefix", "")),
            created_at=_parse_timestamp(data["createdAt"]),
            enabled=enabled,
        )
