"""
Service portal command-line client

Works directly against the portal database. A successful login is kept
in a session marker file, so later invocations stay signed in until
`logout`.

Run with:
    python scripts/portal_cli.py login csc_admin --role csc
    python scripts/portal_cli.py requests
    python scripts/portal_cli.py complete <request_id> --kind service
    python scripts/portal_cli.py logout
"""

import argparse
import asyncio
import getpass
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from motor.motor_asyncio import AsyncIOMotorClient
from dotenv import load_dotenv

load_dotenv()

from config import get_settings
from models.principal import Role
from services.errors import AuthError, PortalError
from services.identity_store import IdentityStore
from services.request_repository import SimpleRequestRepository, ServiceRequestRepository
from services.session_context import SessionContext
from services.session_marker import FileSessionMarker
from services import workflow


def _print_records(title: str, records):
    print(f"{title} ({len(records)})")
    for record in records:
        number = record.get("service_request_no", "")
        print(f"  {record['id']}  {record['submission_time']}  [{record['status']}]  {number}")


async def cmd_login(session: SessionContext, args) -> int:
    password = args.password or getpass.getpass("Password: ")
    result = await session.authenticate(args.username, password, args.role)
    if not result.success:
        raise AuthError()
    print(f"Logged in as {result.principal.username} ({result.role.value})")
    return 0


async def cmd_logout(session: SessionContext, args) -> int:
    session.end_session()
    print("Logged out")
    return 0


async def cmd_whoami(session: SessionContext, args) -> int:
    if not session.is_authenticated:
        print("Not logged in")
        return 1
    principal = session.current_principal()
    print(f"{principal.username} ({session.current_role().value})")
    return 0


async def cmd_requests(session: SessionContext, db, args) -> int:
    if not session.is_authenticated:
        print("Not logged in")
        return 1

    repositories = {
        "simple": SimpleRequestRepository(db),
        "service": ServiceRequestRepository(db),
    }
    role = session.current_role()
    for kind, repository in repositories.items():
        if role == Role.CSC:
            buckets = await workflow.dashboard_buckets(repository)
            _print_records(f"Pending {kind} requests", buckets.pending)
            _print_records(f"Completed {kind} requests", buckets.resolved)
        else:
            records = await repository.get_by_owner(session.current_principal().id)
            _print_records(f"My {kind} requests", workflow.owner_views(records))
    return 0


async def cmd_complete(session: SessionContext, db, args) -> int:
    if session.current_role() != Role.CSC:
        print("Only the CSC can complete requests")
        return 1

    repository = ServiceRequestRepository(db) if args.kind == "service" else SimpleRequestRepository(db)
    record = await workflow.complete(
        repository, args.request_id, Role.CSC, args.note
    )
    print(f"{record['id']} -> {record['status']}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Calibration service portal client")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Sign in and remember the session")
    login.add_argument("username")
    login.add_argument("--role", choices=[r.value for r in Role], default=Role.REQUESTER.value)
    login.add_argument("--password", help="Prompted for when omitted")

    sub.add_parser("logout", help="Forget the current session")
    sub.add_parser("whoami", help="Show the signed-in principal")
    sub.add_parser("requests", help="Own requests, or the CSC dashboard")

    complete = sub.add_parser("complete", help="Close out a request (CSC)")
    complete.add_argument("request_id")
    complete.add_argument("--kind", choices=["simple", "service"], default="service")
    complete.add_argument("--note")
    return parser


async def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    client = AsyncIOMotorClient(settings.mongo_url)
    db = client[settings.db_name]
    try:
        session = SessionContext(IdentityStore(db), FileSessionMarker(settings.session_marker_path))
        session.restore()

        if args.command == "login":
            return await cmd_login(session, args)
        if args.command == "logout":
            return await cmd_logout(session, args)
        if args.command == "whoami":
            return await cmd_whoami(session, args)
        if args.command == "requests":
            return await cmd_requests(session, db, args)
        return await cmd_complete(session, db, args)
    except PortalError as e:
        print(f"Error: {e}")
        return 1
    finally:
        client.close()


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
