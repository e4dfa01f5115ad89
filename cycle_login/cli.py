"""Command line: run the API server or do admin chores against the configured store."""
import argparse
import asyncio
import json
import sys

from cycle_login.core.config import get_settings
from cycle_login.core.log import configure_logging
from cycle_login.core.security import AdminClaim
from cycle_login.services import counter, license, users, visits
from cycle_login.stores import SqlRecordStore, build_store

# Running the CLI on the host that owns the store counts as passing the admin gate.
LOCAL_ADMIN = AdminClaim(subject="cli")


async def command_create_user(store, args) -> int:
    result = await users.create(store, LOCAL_ADMIN, args.username)
    if isinstance(result, (users.Conflict, users.InvalidInput)):
        print(result.message, file=sys.stderr)
        return 1
    print(f"Created {result.user.username} ({result.user.id})")
    for cycle, code in enumerate(result.cycle_codes, start=1):
        print(f"  cycle {cycle}: {code}")
    print("Save these codes now; they are not shown again.")
    return 0


async def command_delete_user(store, args) -> int:
    await users.delete(store, LOCAL_ADMIN, args.user_id)
    return 0


async def command_list_users(store, args) -> int:
    found = sorted(await users.list_all(store), key=lambda u: u.created_at, reverse=True)
    for user in found:
        print(f"{user.id}\t{user.username}\t{license.format_remaining(license.remaining_ms(user))}")
    return 0


async def command_bulk_add_days(store, args) -> int:
    count = await license.bulk_add_days(store, LOCAL_ADMIN, args.days)
    print(f"Extended {count} active license(s) by {args.days} day(s)")
    return 0


async def command_reset_counter(store, args) -> int:
    await counter.reset(store, LOCAL_ADMIN)
    return 0


async def command_visits(store, args) -> int:
    grouped = visits.group_by_user(await visits.list_all(store, LOCAL_ADMIN))
    summary = {name: len(entries) for name, entries in grouped.items()}
    print(json.dumps(summary, indent=2, ensure_ascii=False))
    return 0


COMMANDS = {
    "create-user": command_create_user,
    "delete-user": command_delete_user,
    "list-users": command_list_users,
    "bulk-add-days": command_bulk_add_days,
    "reset-counter": command_reset_counter,
    "visits": command_visits,
}


async def run_store_command(args) -> int:
    store = build_store(get_settings())
    try:
        if isinstance(store, SqlRecordStore):
            await store.init_schema()
        return await COMMANDS[args.command](store, args)
    finally:
        await store.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cycle-login", description="Cycle Login server and admin tools.")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    create = sub.add_parser("create-user", help="Create a user and print its five codes")
    create.add_argument("username")

    delete = sub.add_parser("delete-user", help="Delete a user by id")
    delete.add_argument("user_id")

    sub.add_parser("list-users", help="List users with remaining license time")

    bulk = sub.add_parser("bulk-add-days", help="Extend every active license")
    bulk.add_argument("days", type=float)

    sub.add_parser("reset-counter", help="Reset the global visit counter to 0")
    sub.add_parser("visits", help="Visit counts grouped by user")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    if args.command == "serve":
        import uvicorn

        uvicorn.run(
            "cycle_login.main:build_default_app",
            factory=True,
            host=args.host or settings.host,
            port=args.port or settings.port,
        )
        return 0
    return asyncio.run(run_store_command(args))


if __name__ == "__main__":
    sys.exit(main())
