"""API Key Management CLI.

Commands for issuing, listing, enabling, disabling and removing API keys.
"""

import json
from datetime import datetime

from ..auth.errors import StorageWriteError, ValidationError
from ..auth.keys import APIKeyStore, get_key_store
from ..auth.models import KeySummary
from ..config.settings import get_settings


def _format_datetime(dt: datetime | None) -> str:
    """Format datetime for display."""
    if dt is None:
        return "-"
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def _base_url() -> str:
    """Base URL of the local server, from settings."""
    settings = get_settings()
    return f"http://{settings.api_host}:{settings.api_port}"


def _print_error(message: str, json_output: bool) -> None:
    if json_output:
        print(json.dumps({"error": message}))
    else:
        print(f"Error: {message}")


def _print_keys(keys: list[KeySummary]) -> None:
    print(f"\n{len(keys)} API key(s) configured:\n")
    print(f"{'ID':<22} {'Name':<20} {'Prefix':<16} {'Status':<10} {'Created':<20}")
    print("-" * 90)

    for key in keys:
        status = "active" if key.enabled else "disabled"
        print(
            f"{key.id:<22} {key.name[:20]:<20} {key.key_prefix:<16} "
            f"{status:<10} {_format_datetime(key.created_at):<20}"
        )
    print()


def cmd_list(json_output: bool = False, store: APIKeyStore | None = None) -> int:
    """List all API keys.

    Args:
        json_output: Output as JSON.
        store: Key store to use. Defaults to the global store.

    Returns:
        Exit code (0 for success).
    """
    store = store or get_key_store()
    keys = store.list_keys()

    if json_output:
        print(json.dumps([k.to_dict() for k in keys]))
        return 0

    if not keys:
        print("No API keys configured.")
        print("\nUse 'keyward keys add <name>' to create one.")
        return 0

    _print_keys(keys)
    return 0


def cmd_add(name: str, json_output: bool = False, store: APIKeyStore | None = None) -> int:
    """Add a new API key.

    Args:
        name: Human-readable name for the key.
        json_output: Output as JSON.
        store: Key store to use. Defaults to the global store.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    store = store or get_key_store()
    try:
        record, raw_key = store.add_key(name)
    except (ValidationError, StorageWriteError) as e:
        _print_error(e.message, json_output)
        return 1

    if json_output:
        print(
            json.dumps(
                {
                    "id": record.id,
                    "name": record.name,
                    "key": raw_key,
                    "key_prefix": record.key_prefix,
                    "created_at": record.created_at.isoformat(),
                }
            )
        )
        return 0

    print("\nAPI key created successfully!")
    print(f"  Name: {record.name}")
    print(f"  ID:   {record.id}")
    print(f"\n  API Key: {raw_key}")
    print("\n  IMPORTANT: Save this key now. It cannot be retrieved later.")
    print("\n  Usage:")
    print(f'    curl -H "x-api-key: {raw_key}" {_base_url()}/v1/models')
    return 0


def cmd_remove(
    key_id: str,
    yes: bool = False,
    json_output: bool = False,
    store: APIKeyStore | None = None,
) -> int:
    """Permanently remove an API key.

    Args:
        key_id: Key ID.
        yes: Skip confirmation.
        json_output: Output as JSON.
        store: Key store to use. Defaults to the global store.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    store = store or get_key_store()

    key = store.get_key(key_id)
    if key is None:
        _print_error(f"Key not found: {key_id}", json_output)
        return 1

    # Confirm unless --yes
    if not yes and not json_output:
        confirm = input(f"Remove key '{key.name}' ({key.id})? This cannot be undone. [y/N]: ")
        if confirm.strip().lower() not in ("y", "yes"):
            print("Cancelled.")
            return 1

    try:
        removed = store.remove_key(key.id)
    except StorageWriteError as e:
        _print_error(e.message, json_output)
        return 1

    if not removed:
        _print_error(f"Key not found: {key_id}", json_output)
        return 1

    if json_output:
        print(json.dumps({"status": "removed", "id": key.id, "name": key.name}))
    else:
        print(f"Key '{key.name}' has been removed.")
    return 0


def _cmd_set_enabled(
    key_id: str,
    enabled: bool,
    json_output: bool,
    store: APIKeyStore | None,
) -> int:
    store = store or get_key_store()
    try:
        found = store.enable_key(key_id) if enabled else store.disable_key(key_id)
    except StorageWriteError as e:
        _print_error(e.message, json_output)
        return 1

    if not found:
        _print_error(f"Key not found: {key_id}", json_output)
        return 1

    state = "enabled" if enabled else "disabled"
    if json_output:
        print(json.dumps({"status": state, "id": key_id}))
    else:
        print(f"Key '{key_id}' has been {state}.")
    return 0


def cmd_enable(key_id: str, json_output: bool = False, store: APIKeyStore | None = None) -> int:
    """Enable a disabled API key."""
    return _cmd_set_enabled(key_id, True, json_output, store)


def cmd_disable(key_id: str, json_output: bool = False, store: APIKeyStore | None = None) -> int:
    """Disable an API key without removing it."""
    return _cmd_set_enabled(key_id, False, json_output, store)
