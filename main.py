"""Command-line interface for the ticket booking user service."""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Sequence

try:
    import httpx
except ImportError as exc:  # pragma: no cover - exercised in environments missing deps
    raise SystemExit(
        "The 'httpx' package is required. Install the project with "
        "`pip install -e .` to install dependencies."
    ) from exc

from ticketbooking.config import ConfigurationError, Settings

logger = logging.getLogger("ticketbooking.main")

_DEFAULT_SERVICE_URL = "http://127.0.0.1:8080"
_USERS_ENDPOINT = "/api/v1/users"


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ticket booking user service utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP user service")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: TICKETBOOKING_HOST)")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the HTTP API (default: TICKETBOOKING_PORT or 8080)",
    )
    serve_parser.add_argument(
        "--seed-file",
        default=None,
        help="YAML file with a 'users' list to create at startup",
    )
    serve_parser.add_argument(
        "--sample-data",
        action="store_true",
        help="Create the built-in sample users at startup",
    )

    users_parser = subparsers.add_parser("users", help="Query a running user service")
    users_parser.add_argument(
        "--service-url",
        default=_DEFAULT_SERVICE_URL,
        help=f"Base URL of the running service (default: {_DEFAULT_SERVICE_URL})",
    )
    users_sub = users_parser.add_subparsers(dest="action")
    users_parser.set_defaults(action="list")
    list_parser = users_sub.add_parser("list", help="List registered users")
    list_parser.add_argument("--page", type=int, default=0)
    list_parser.add_argument("--size", type=int, default=10)
    users_sub.add_parser("count", help="Show the number of registered users")
    search_parser = users_sub.add_parser("search", help="Search users by first or last name")
    search_parser.add_argument("term", help="Case-insensitive name fragment")

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "users"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _resolve_settings(args: argparse.Namespace) -> Settings:
    base = Settings.from_env()
    seed_file = Path(args.seed_file).expanduser().resolve(strict=False) if args.seed_file else base.seed_file
    return Settings(
        host=args.host or base.host,
        port=args.port or base.port,
        log_level=base.log_level,
        default_page_size=base.default_page_size,
        seed_file=seed_file,
        seed_sample_data=args.sample_data or base.seed_sample_data,
    )


def _serve(settings: Settings) -> None:
    from ticketbooking.api import create_app
    import uvicorn

    logger.info("Starting user service on http://%s:%s", settings.host, settings.port)
    app = create_app(settings=settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


def _fetch(service_url: str, path: str, params: Dict[str, Any] | None = None) -> Any:
    endpoint = service_url.rstrip("/") + path
    try:
        response = httpx.get(endpoint, params=params, timeout=10.0)
    except httpx.HTTPError as exc:
        print(f"Failed to contact user service: {exc}")
        return None

    if response.status_code != 200:
        print(f"Service responded with {response.status_code}: {response.text.strip()}")
        return None

    try:
        return response.json()
    except ValueError:
        print("Service returned an unexpected response format.")
        return None


def _print_users(users: List[Dict[str, Any]]) -> None:
    if not users:
        print("No users found.")
        return

    print(f"{len(users)} user(s) found:")
    print(f"{'ID':>4}  {'Name':<24}  {'Email':<32}  Status")
    print("-" * 80)
    for user in users:
        name = user.get("full_name") or f"{user.get('first_name', '')} {user.get('last_name', '')}".strip()
        print(f"{user.get('id', '?'):>4}  {name:<24}  {user.get('email', ''):<32}  {user.get('status', '')}")


def _run_users_command(args: argparse.Namespace) -> int:
    action = getattr(args, "action", "list") or "list"
    if action == "count":
        payload = _fetch(args.service_url, f"{_USERS_ENDPOINT}/count")
        if payload is None:
            return 1
        print(f"{payload} user(s) registered.")
        return 0

    if action == "search":
        payload = _fetch(args.service_url, f"{_USERS_ENDPOINT}/search", {"q": args.term})
    else:
        page = getattr(args, "page", 0)
        size = getattr(args, "size", 10)
        payload = _fetch(args.service_url, _USERS_ENDPOINT, {"page": page, "size": size})
    if payload is None:
        return 1
    _print_users(payload)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    args = _parse_args(argv)

    try:
        settings = _resolve_settings(args) if args.command == "serve" else Settings.from_env()
    except ConfigurationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(level=settings.log_level, format="%(asctime)s [%(levelname)s] %(message)s")

    if args.command == "serve":
        _serve(settings)
        return 0
    if args.command == "users":
        return _run_users_command(args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
