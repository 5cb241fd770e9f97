"""
TTLock CLI.

Usage:
    ttlock [-c CONFIG] hello
    ttlock [-c CONFIG] lock --id LOCK_ID
    ttlock [-c CONFIG] list-lock [-n PAGE] [-s SIZE] [-a ALIAS] [-g GROUP]
    ttlock [-c CONFIG] list-passcode --id LOCK_ID [-n PAGE] [-s SIZE] [-o ORDER] [-q SEARCH]
    ttlock [-c CONFIG] genpass --id LOCK_ID -t TYPE -s START -e END [-n NAME]
    ttlock [-c CONFIG] sendkey --id LOCK_ID --to USER -s START -e END [-n NAME]

Dates are given as ``YYYYMMDD-HH`` in local time.  When the config file
does not exist an empty template is written to it.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, ValidationError

from .client import TTLockClient
from .config import DEFAULT_CONFIG_PATH, load_settings, write_config_template
from .exceptions import TTLockError
from .logging_utils import configure_logging
from .models import PasscodeType

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y%m%d-%H"


def parse_date(value: str) -> datetime:
    """Parse ``YYYYMMDD-HH`` as a naive local datetime."""
    try:
        return datetime.strptime(value, DATE_FORMAT)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid date {value!r}, expected YYYYMMDD-HH"
        ) from None


def print_json(value: Any) -> None:
    if isinstance(value, BaseModel):
        value = value.model_dump(by_alias=True)
    print(json.dumps(value, indent=2, ensure_ascii=False))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ttlock", description="TTLock CLI")
    parser.add_argument(
        "-c", "--config", default=DEFAULT_CONFIG_PATH, help="Config toml file path"
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: INFO)")

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("hello", help="Print hello")

    lock_parser = subparsers.add_parser("lock", help="Get lock details")
    lock_parser.add_argument("--id", type=int, required=True, help="Lock ID")

    list_lock_parser = subparsers.add_parser("list-lock", help="List locks")
    list_lock_parser.add_argument("-n", type=int, default=1, help="Page number")
    list_lock_parser.add_argument("-s", type=int, default=20, help="Page size")
    list_lock_parser.add_argument("-a", default=None, help="Lock alias")
    list_lock_parser.add_argument("-g", type=int, default=None, help="Group ID")

    list_pass_parser = subparsers.add_parser("list-passcode", help="List passcodes")
    list_pass_parser.add_argument("--id", type=int, required=True, help="Lock ID")
    list_pass_parser.add_argument("-n", type=int, default=1, help="Page number")
    list_pass_parser.add_argument("-s", type=int, default=20, help="Page size")
    list_pass_parser.add_argument(
        "-o", type=int, default=1, help="Order by (0: name asc, 1: created desc, 2: name desc)"
    )
    list_pass_parser.add_argument("-q", "--search", default=None, help="Search string")

    genpass_parser = subparsers.add_parser("genpass", help="Generate random passcode")
    genpass_parser.add_argument("--id", type=int, required=True, help="Lock ID")
    genpass_parser.add_argument(
        "-t",
        type=int,
        required=True,
        choices=[t.value for t in PasscodeType],
        help="Passcode type",
    )
    genpass_parser.add_argument("-n", default=None, help="Passcode name")
    genpass_parser.add_argument(
        "-s", type=parse_date, required=True, help="Start date (YYYYMMDD-HH)"
    )
    genpass_parser.add_argument(
        "-e", type=parse_date, required=True, help="End date (YYYYMMDD-HH)"
    )

    sendkey_parser = subparsers.add_parser("sendkey", help="Send eKey")
    sendkey_parser.add_argument("--id", type=int, required=True, help="Lock ID")
    sendkey_parser.add_argument("--to", required=True, help="Receiver username")
    sendkey_parser.add_argument("-n", default="", help="Key name")
    sendkey_parser.add_argument(
        "-s", type=parse_date, required=True, help="Start date (YYYYMMDD-HH)"
    )
    sendkey_parser.add_argument(
        "-e", type=parse_date, required=True, help="End date (YYYYMMDD-HH)"
    )

    return parser


def _cmd_lock(client: TTLockClient, args: argparse.Namespace) -> Any:
    return client.get_lock_detail(args.id)


def _cmd_list_lock(client: TTLockClient, args: argparse.Namespace) -> Any:
    return client.get_lock_list(args.n, args.s, lock_alias=args.a, group_id=args.g)


def _cmd_list_passcode(client: TTLockClient, args: argparse.Namespace) -> Any:
    return client.get_passcode_list(
        args.id, args.n, args.s, order_by=args.o, search=args.search
    )


def _cmd_genpass(client: TTLockClient, args: argparse.Namespace) -> Any:
    return client.get_random_passcode(
        args.id, PasscodeType(args.t), args.s, args.e, name=args.n
    )


def _cmd_sendkey(client: TTLockClient, args: argparse.Namespace) -> Any:
    return client.send_key(args.id, args.to, args.n, args.s, args.e)


COMMANDS: Dict[str, Callable[[TTLockClient, argparse.Namespace], Any]] = {
    "lock": _cmd_lock,
    "list-lock": _cmd_list_lock,
    "list-passcode": _cmd_list_passcode,
    "genpass": _cmd_genpass,
    "sendkey": _cmd_sendkey,
}


def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "hello":
        print("hello")
        return 0

    try:
        settings = load_settings(args.config)
    except (OSError, ValueError, ValidationError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    configure_logging(args.log_level or settings.log_level)

    missing = settings.missing_fields()
    if missing:
        if write_config_template(args.config):
            print(f"Wrote an empty config file to {args.config}", file=sys.stderr)
        print(
            f"Missing configuration values: {', '.join(missing)} "
            f"(set them in {args.config} or as TTLOCK_* environment variables)",
            file=sys.stderr,
        )
        return 2

    try:
        with TTLockClient(auto_refresh=False, **settings.client_kwargs()) as client:
            result = COMMANDS[args.command](client, args)
    except TTLockError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print_json(result)
    return 0
