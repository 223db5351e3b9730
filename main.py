#!/usr/bin/env python3
"""
VerifyTrack -- operator command line.

Usage:
  python main.py serve [--host 127.0.0.1] [--port 3000] [--reload]
  python main.py seed
  python main.py create-admin --identifier admin002 --name "Ops Admin" --email ops@example.com

Environment variables:
  SECRET_KEY     Required (unless DEBUG=true). At least 32 characters.
  DATABASE_URL   SQLAlchemy URL. Defaults to verifytrack.db next to the code.
  See core/config.py for the full list.
"""

import argparse
import getpass
import logging
import sys
from typing import Optional

from auth.models import Principal, Role
from auth.store import PrincipalStore
from core.config import get_settings
from core.errors import Conflict, ValidationError
from records.store import RecordStore
from seed import seed_demo_data

logger = logging.getLogger("verifytrack.cli")


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    logger.info("Starting VerifyTrack API on %s:%d", args.host, args.port)
    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _cmd_seed(args: argparse.Namespace) -> int:
    settings = get_settings()
    principals = PrincipalStore(settings.database_url)
    records = RecordStore(settings.database_url)
    try:
        if seed_demo_data(principals, records):
            print("  Demo data seeded. Accounts: admin001 / Admin@123, user001-003 / User@123")
        else:
            print("  [!] Database already has users -- nothing seeded.")
    finally:
        records.close()
        principals.close()
    return 0


def _read_password(prompt_password: Optional[str]) -> Optional[str]:
    """Return the password from the flag or an interactive prompt. None on mismatch."""
    if prompt_password:
        return prompt_password
    first = getpass.getpass("  Password: ")
    second = getpass.getpass("  Repeat password: ")
    if first != second:
        print("  [!] Passwords do not match.")
        return None
    return first


def _cmd_create_admin(args: argparse.Namespace) -> int:
    password = _read_password(args.password)
    if password is None:
        return 1
    if len(password) < 8:
        print("  [!] Password must be at least 8 characters.")
        return 1

    store = PrincipalStore(get_settings().database_url)
    try:
        store.create_principal(
            Principal(
                identifier=args.identifier,
                role=Role.ADMIN,
                name=args.name,
                email=args.email,
                department=args.department,
            ),
            password,
        )
    except (Conflict, ValidationError) as exc:
        print(f"  [!] {exc.message}")
        return 1
    finally:
        store.close()

    print(f"  Admin '{args.identifier}' created.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="verifytrack",
        description="Background-verification record tracker.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  SECRET_KEY=... python main.py serve --port 3000
  DEBUG=true python main.py seed
  python main.py create-admin --identifier admin002 --name "Ops Admin" --email ops@example.com
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the API server with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=3000, help="Bind port (default: 3000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    serve.set_defaults(func=_cmd_serve)

    seed = sub.add_parser("seed", help="Insert demo users and records into an empty database")
    seed.set_defaults(func=_cmd_seed)

    admin = sub.add_parser("create-admin", help="Create an administrator account")
    admin.add_argument("--identifier", required=True, help="Login identifier (unique)")
    admin.add_argument("--name", required=True, help="Display name")
    admin.add_argument("--email", required=True, help="Email address (unique)")
    admin.add_argument("--department", default=None, help="Optional department")
    admin.add_argument(
        "--password",
        default=None,
        help="Password (prompted when omitted; avoid passing secrets on the command line)",
    )
    admin.set_defaults(func=_cmd_create_admin)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)-5s %(name)s %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
