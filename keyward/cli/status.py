"""Status CLI command."""

import json

from .. import __version__
from ..api.auth import get_auth_status
from ..auth.keys import APIKeyStore, get_key_store
from ..config.settings import get_settings


def show_status(json_output: bool = False, store: APIKeyStore | None = None) -> int:
    """Show authentication status.

    Args:
        json_output: Output as JSON
        store: Key store to inspect. Defaults to the global store.

    Returns:
        Exit code (always 0)
    """
    settings = get_settings()
    store = store or get_key_store()
    status = get_auth_status(store, settings.auth_disabled)

    if json_output:
        print(
            json.dumps(
                {
                    "version": __version__,
                    "store_path": str(store.store_path),
                    **status.to_dict(),
                }
            )
        )
        return 0

    print(f"\nKeyward v{__version__}")
    print(f"  Key store: {store.store_path}")
    print(f"  {status.message}")
    if status.is_disabled:
        print("  WARNING: every request is accepted. Development use only.")
    elif not status.enabled:
        print("  Run: keyward keys add <name>")
    return 0
