"""Keyward CLI.

Provides command-line interface for managing Keyward, including:
- Starting the server
- Managing API keys
- Checking authentication status
"""

import argparse
import sys

from .. import __version__


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="keyward",
        description="Keyward - API key management for the proxy service",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Start the server",
        description="Start the FastAPI server with API key authentication",
    )
    serve_parser.add_argument(
        "--host",
        default=None,
        help="Host to bind to (default: from settings)",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind to (default: from settings)",
    )

    # keys command
    keys_parser = subparsers.add_parser(
        "keys",
        help="Manage API keys",
        description="Add, list, enable, disable, and remove API keys",
    )
    keys_subparsers = keys_parser.add_subparsers(
        dest="keys_command",
        help="Key commands",
    )

    keys_list = keys_subparsers.add_parser("list", help="List all API keys")
    keys_list.add_argument("--json", action="store_true", dest="json_output", help="Output as JSON")

    keys_add = keys_subparsers.add_parser("add", help="Create a new API key")
    keys_add.add_argument("name", help="Name for the key (e.g. 'production')")
    keys_add.add_argument("--json", action="store_true", dest="json_output", help="Output as JSON")

    keys_remove = keys_subparsers.add_parser("remove", help="Permanently remove an API key")
    keys_remove.add_argument("id", help="Key ID")
    keys_remove.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")
    keys_remove.add_argument(
        "--json", action="store_true", dest="json_output", help="Output as JSON"
    )

    keys_enable = keys_subparsers.add_parser("enable", help="Enable a disabled API key")
    keys_enable.add_argument("id", help="Key ID")
    keys_enable.add_argument(
        "--json", action="store_true", dest="json_output", help="Output as JSON"
    )

    keys_disable = keys_subparsers.add_parser("disable", help="Disable an API key")
    keys_disable.add_argument("id", help="Key ID")
    keys_disable.add_argument(
        "--json", action="store_true", dest="json_output", help="Output as JSON"
    )

    # status command
    status_parser = subparsers.add_parser(
        "status",
        help="Show authentication status",
        description="Display whether API key authentication is active",
    )
    status_parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output as JSON",
    )

    return parser


def run_serve(args: argparse.Namespace) -> int:
    """Run the server command."""
    from ..main import run as run_server

    run_server(host=args.host, port=args.port)
    return 0


def run_keys(args: argparse.Namespace) -> int:
    """Run key management commands."""
    from .keys import cmd_add, cmd_disable, cmd_enable, cmd_list, cmd_remove

    if args.keys_command == "list":
        return cmd_list(json_output=args.json_output)
    elif args.keys_command == "add":
        return cmd_add(name=args.name, json_output=args.json_output)
    elif args.keys_command == "remove":
        return cmd_remove(key_id=args.id, yes=args.yes, json_output=args.json_output)
    elif args.keys_command == "enable":
        return cmd_enable(key_id=args.id, json_output=args.json_output)
    elif args.keys_command == "disable":
        return cmd_disable(key_id=args.id, json_output=args.json_output)
    else:
        print("Usage: keyward keys <command>")
        print("Commands: list, add, remove, enable, disable")
        return 1


def run_status(args: argparse.Namespace) -> int:
    """Run status command."""
    from .status import show_status

    return show_status(json_output=args.json_output)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Default to serve if no command given
    if args.command is None:
        args.command = "serve"
        args.host = None
        args.port = None

    try:
        if args.command == "serve":
            return run_serve(args)
        elif args.command == "keys":
            return run_keys(args)
        elif args.command == "status":
            return run_status(args)
        else:
            parser.print_help()
            return 1
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
