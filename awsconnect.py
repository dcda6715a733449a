#!/usr/bin/env python3
"""
awsconnect - A TOTP tool for AWS MFA authentication
Usage:
    awsconnect store --name <name> --secret <base32-secret>
    awsconnect generate --name <name> [--verbose] [--copy]
    awsconnect list
    awsconnect remove --name <name>

Secrets live in the platform credential store; `generate` prints only the
code so it can be used directly, e.g.
    aws sts get-session-token --token-code "$(awsconnect generate -n work)"
"""

import argparse
import logging
import os
import sys
import time

import pyperclip

from awsconnect_store import KeyStore, StoreError, UnsupportedError
from awsconnect_totp import (
    DEFAULT_CONFIG,
    GenerationError,
    ValidationError,
    current_code,
    normalize_secret,
    time_remaining,
    validate_and_normalize,
)

logger = logging.getLogger("awsconnect")

DEBUG_ENV = "AWSCONNECT_DEBUG"


# ==================== Logging ====================

def debug_enabled(flag: bool = False) -> bool:
    if flag:
        return True
    return os.environ.get(DEBUG_ENV, "").strip().lower() in ("1", "true", "yes", "on")


def setup_logging(debug: bool = False):
    """Send log records to stderr, with elapsed time when debugging"""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("[%(relativeCreated)6.1fms] %(levelname)s %(message)s"))
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    logger.propagate = False


def debug_log(message: str):
    logger.debug(message)


# ==================== Errors ====================

class CommandError(Exception):
    """Failure reported to the user with a non-zero exit status"""


# ==================== Commands ====================

def cmd_store(args, store: KeyStore):
    """Validate and store a TOTP secret"""
    name = args.name
    debug_log(f"Validating secret for '{name}'")
    try:
        validate_and_normalize(args.secret, DEFAULT_CONFIG)
    except ValidationError as e:
        raise CommandError(f"Invalid secret: {e}") from e

    debug_log(f"Writing '{name}' to service '{store.service}'")
    store.set(name, normalize_secret(args.secret))
    print(f"Successfully stored TOTP secret for '{name}'")


def cmd_generate(args, store: KeyStore):
    """Print the current TOTP code for a stored secret"""
    name = args.name
    debug_log(f"Reading '{name}' from service '{store.service}'")
    secret = store.get(name)

    try:
        key = validate_and_normalize(secret, DEFAULT_CONFIG)
    except ValidationError as e:
        raise CommandError(f"Stored secret for '{name}' is invalid: {e}") from e

    now = time.time()
    code = current_code(key, now, DEFAULT_CONFIG)
    debug_log("Generated token")

    # Output just the token for use with AWS CLI
    print(code)

    # Clipboard failure is only a warning; the token is already on stdout
    if args.copy:
        try:
            pyperclip.copy(code)
            print("Copied to clipboard", file=sys.stderr)
        except pyperclip.PyperclipException as e:
            logger.warning(f"Could not copy to clipboard: {e}")

    if args.verbose:
        print(f"Valid for {time_remaining(now, DEFAULT_CONFIG)}s", file=sys.stderr)


def cmd_list(args, store: KeyStore):
    """Explain why stored names cannot be listed"""
    try:
        store.list()
    except UnsupportedError as e:
        print(e)


def cmd_remove(args, store: KeyStore):
    """Remove a stored TOTP secret"""
    name = args.name
    debug_log(f"Removing '{name}' from service '{store.service}'")
    store.delete(name)
    print(f"Successfully removed TOTP secret for '{name}'")


COMMANDS = {
    "store": cmd_store,
    "generate": cmd_generate,
    "list": cmd_list,
    "remove": cmd_remove,
}


# ==================== Main ====================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="awsconnect",
        description="A TOTP tool for AWS MFA authentication",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging with timing")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Store command
    store_parser = subparsers.add_parser("store", help="Store a TOTP secret in the keystore")
    store_parser.add_argument("--name", "-n", required=True, help="Name/identifier for the TOTP secret")
    store_parser.add_argument("--secret", "-s", required=True, help="TOTP secret key (base32 encoded)")

    # Generate command
    generate_parser = subparsers.add_parser("generate", help="Generate and display current TOTP token")
    generate_parser.add_argument("--name", "-n", required=True, help="Name/identifier for the TOTP secret")
    generate_parser.add_argument("--verbose", "-v", action="store_true", help="Show time remaining on stderr")
    generate_parser.add_argument("--copy", "-c", action="store_true", help="Copy the token to the clipboard")

    # List command
    subparsers.add_parser("list", help="List stored TOTP names")

    # Remove command
    remove_parser = subparsers.add_parser("remove", help="Remove a stored TOTP secret")
    remove_parser.add_argument("--name", "-n", required=True, help="Name/identifier for the TOTP secret to remove")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(debug_enabled(args.debug))
    debug_log(f"Command: {args.command}")

    if args.command is None:
        parser.print_help()
        return 0

    store = KeyStore()
    try:
        COMMANDS[args.command](args, store)
    except (CommandError, StoreError, GenerationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
