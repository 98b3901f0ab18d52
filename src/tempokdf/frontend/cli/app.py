"""Command line front end: fixed-count, timed and search derivations.

Results are printed to stdout as JSON records that kdf_from_dict() accepts,
with the derived key added under "key".
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from getpass import getpass
from typing import List, Optional

from tempokdf.core.exceptions import KEY_FOUND, TempoKDFError
from tempokdf.security.control import DEFAULT_PRECISION
from tempokdf.security.params import (
    DEFAULT_ALGORITHM,
    DEFAULT_KEY_LEN,
    generate_salt,
    kdf_params_to_dict,
)
from tempokdf.security.pbkdf2 import PBKDF2
from tempokdf.security.prf import hmac_prf

from .logging_config import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tempokdf",
        description="Incremental PBKDF2 with time-bounded derivation and key search.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--password", help="Password (prompted for when omitted)")
    common.add_argument("--salt", help="Salt as hex (random for key/derive when omitted)")
    common.add_argument("--length", type=int, default=DEFAULT_KEY_LEN, help="Key length in bytes")
    common.add_argument("--hash", default=DEFAULT_ALGORITHM, help="HMAC hash name (default: sha256)")

    sub = parser.add_subparsers(dest="cmd", required=True)

    k = sub.add_parser("key", parents=[common], help="Derive a key with a fixed iteration count")
    k.add_argument("-i", "--iterations", type=int, required=True)

    d = sub.add_parser("derive", parents=[common], help="Derive a key for a given time")
    d.add_argument("-t", "--time", type=float, required=True, help="Seconds of CPU time to spend")
    d.add_argument("-p", "--precision", type=int, default=DEFAULT_PRECISION)

    s = sub.add_parser("search", parents=[common], help="Search for a previously derived key")
    s.add_argument("-t", "--time", type=float, required=True, help="Seconds to search for")
    s.add_argument("--target", required=True, help="Expected key as hex")
    s.add_argument("-p", "--precision", type=int, default=DEFAULT_PRECISION)

    return parser


def _read_password(args: argparse.Namespace) -> str:
    if args.password is not None:
        return args.password
    return getpass("Password: ")


def _read_salt(args: argparse.Namespace) -> bytes:
    if args.salt is None:
        if args.cmd == "search":
            raise ValueError("search needs the --salt the key was derived with")
        return generate_salt()
    return bytes.fromhex(args.salt)


def _emit(kdf: PBKDF2, key: bytes) -> None:
    record = kdf_params_to_dict(kdf)
    record["key"] = key.hex()
    print(json.dumps(record, indent=2))


def run(args: argparse.Namespace) -> int:
    salt = _read_salt(args)
    kdf = PBKDF2(_read_password(args), salt, args.length, hmac_prf(args.hash))

    if args.cmd == "key":
        _emit(kdf, kdf.next(args.iterations))
        return 0

    if args.cmd == "derive":
        _emit(kdf, kdf.derive(args.time, precision=args.precision))
        return 0

    target = bytes.fromhex(args.target)

    def matches(dk: bytes):
        return KEY_FOUND if dk == target else None

    key, status = kdf.search(args.time, matches, precision=args.precision)
    if key is None:
        print(f"Error: {status} after {kdf.iters} iterations", file=sys.stderr)
        return 1
    _emit(kdf, key)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)
    try:
        return run(args)
    except (TempoKDFError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
