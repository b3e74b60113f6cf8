"""CLI entrypoint for secretcache."""
import sys
import json
import argparse
import logging
from pathlib import Path

from .validators import validate_secret_name

VERSION = "0.1.0"

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    # Logs go to stderr so stdout carries only secret values
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        stream=sys.stderr
    )


def cmd_version(args):
    """Show version information."""
    print(f"secretcache {VERSION}")


def cmd_config_set_path(args):
    """Set config file path preference."""
    from secretcache.secrets.domains.preferences import CONFIG_PATH_KEY, set_preference

    config_path = Path(args.path).resolve()

    if not config_path.exists():
        print(f"Error: Config file does not exist: {config_path}", file=sys.stderr)
        sys.exit(1)

    if not config_path.is_file():
        print(f"Error: Path is not a file: {config_path}", file=sys.stderr)
        sys.exit(1)

    set_preference(CONFIG_PATH_KEY, str(config_path))
    print(f"Config path set to: {config_path}")


def cmd_config_show(args):
    """Show current config file path."""
    from secretcache.secrets.domains.config_loader import default_config_path
    from secretcache.secrets.domains.preferences import CONFIG_PATH_KEY, get_preference

    config_path_pref = get_preference(CONFIG_PATH_KEY)

    if config_path_pref:
        config_path = Path(config_path_pref)
        if config_path.exists():
            print(f"Config path: {config_path}")
        else:
            print(f"Config path (from preference, but file not found): {config_path}")
        print("Source: preference")
    else:
        default_config = default_config_path()
        print(f"Config path: {default_config}")
        if default_config.exists():
            print("Source: default")
        else:
            print("Source: default (file not found)")


def cmd_config_clear(args):
    """Clear config path preference."""
    from secretcache.secrets.domains.config_loader import default_config_path
    from secretcache.secrets.domains.preferences import CONFIG_PATH_KEY, clear_preference

    clear_preference(CONFIG_PATH_KEY)
    print(f"Config path preference cleared. Will use default: {default_config_path()}")


def cmd_secrets_get(args):
    """Get a secret through the cache."""
    from secretcache.secrets.domains.config_loader import load_config
    from secretcache.secrets.domains.errors import NotFoundError
    from secretcache.secrets.workflows.secret_operations import SecretsClient

    config = load_config()
    validate_secret_name(args.secret_name, config["backend"]["type"])
    client = SecretsClient.from_config(config)

    try:
        if args.format == "bytes":
            sys.stdout.buffer.write(
                client.fetch_bytes(args.secret_name, args.version_id, args.version_stage)
            )
            sys.stdout.flush()
            sys.exit(0)

        if args.format == "json":
            value = json.dumps(
                client.fetch_json(args.secret_name, args.version_id, args.version_stage),
                indent=2
            )
        else:
            value = client.fetch_string(args.secret_name, args.version_id, args.version_stage)
    except NotFoundError:
        print(f"Error: Secret '{args.secret_name}' not found", file=sys.stderr)
        sys.exit(1)

    if args.quiet:
        # Quiet mode: output only value, no formatting
        print(value)
    else:
        print(f"Secret '{args.secret_name}': {value}")
    sys.exit(0)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="secretcache",
        description="secretcache CLI - cached reads from GCP Secret Manager or AWS Secrets Manager",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit codes:
  0 - Success
  1 - Runtime error (authentication, network, secret not found, etc.)
  2 - Usage error (invalid arguments, invalid secret name format, etc.)

Environment variables:
  GCP_PROJECT - GCP project ID (overrides config file)

Configuration:
  Default location: ~/.config/secretcache/config.yml
  Custom path: Set with 'secretcache config set-path <path>'
  View current: Run 'secretcache config show'
        """
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log cache and backend activity to stderr"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "version",
        help="Show version information",
        description="Display the current version of secretcache"
    )

    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Manage secretcache configuration"
    )
    config_subparsers = config_parser.add_subparsers(dest="config_command")

    config_set_path_parser = config_subparsers.add_parser(
        "set-path",
        help="Set config file path",
        description="Store the absolute path to your config file in ~/.config/secretcache/preferences.json"
    )
    config_set_path_parser.add_argument("path", help="Path to config file")

    config_subparsers.add_parser(
        "show",
        help="Show current config path",
        description="Display the current configuration file path and its source (preference or default)"
    )
    config_subparsers.add_parser(
        "clear",
        help="Clear config path preference",
        description="Remove the config path preference; the default location is used afterwards"
    )

    secrets_parser = subparsers.add_parser(
        "secrets",
        help="Secret read operations",
        description="Read secrets from the configured backend"
    )
    secrets_subparsers = secrets_parser.add_subparsers(dest="secrets_command")

    get_parser = secrets_subparsers.add_parser(
        "get",
        help="Get a secret value",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="""
Fetch a secret by stage label (default: the backend's current label,
AWSCURRENT on AWS and latest on GCP) or by immutable version id.

Exit codes:
  0 - Secret found and printed
  1 - Secret, stage or version not found, or backend failure
  2 - Invalid secret name format or conflicting options
        """
    )
    get_parser.add_argument("secret_name", help="Name of the secret")
    version_group = get_parser.add_mutually_exclusive_group()
    version_group.add_argument("--version-id", help="Immutable version id to fetch")
    version_group.add_argument("--version-stage", help="Stage label (or GCP alias) to fetch")
    get_parser.add_argument(
        "--format",
        choices=("string", "json", "bytes"),
        default="string",
        help="Output the value as text (default), pretty-printed JSON, or raw bytes"
    )
    get_parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Output only the secret value (useful for scripts)"
    )

    return parser


def main(argv=None):
    """Main CLI entrypoint.

    Exit codes:
        0 - Success
        1 - Runtime errors (authentication, network, secret not found, etc.)
        2 - Usage errors (invalid arguments, invalid secret name format, etc.)
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if not args.command:
        parser.print_help()
        sys.exit(2)

    try:
        if args.command == "version":
            cmd_version(args)
        elif args.command == "config":
            if args.config_command == "set-path":
                cmd_config_set_path(args)
            elif args.config_command == "show":
                cmd_config_show(args)
            elif args.config_command == "clear":
                cmd_config_clear(args)
            else:
                parser.print_help()
                sys.exit(2)
        elif args.command == "secrets":
            if args.secrets_command == "get":
                cmd_secrets_get(args)
            else:
                parser.print_help()
                sys.exit(2)
        else:
            parser.print_help()
            sys.exit(2)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
