"""
Command-line interface for the team memory server.

This module provides CLI commands for:
- Running the MCP server over stdio
- Configuration validation and inspection
- Previewing how content will be personalized before it is stored
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .. import __version__
from ..utils.error_handling import ConfigurationError
from .config_manager import SUPPORTED_LANGUAGES, ConfigManager


def setup_logging(level: str = "WARNING"):
    """Set up logging for CLI operations. Output goes to stderr."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def cmd_serve(args):
    """Run the MCP server over stdio."""
    from ..server.mcp_server import run

    try:
        run(args.config_file)
    except ConfigurationError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        pass
    return 0


def cmd_config_validate(args):
    """Validate configuration file and environment."""
    try:
        config = ConfigManager(args.config_file).load_config()
    except ConfigurationError as e:
        print(f"✗ Configuration validation failed: {e}")
        return 1

    print("✓ Configuration is valid")
    if not config.is_configured:
        print("⚠ SUPERMEMORY_API_KEY is not set; memory tools will be unavailable")

    if args.verbose:
        print(f"API base URL: {config.supermemory.base_url}")
        print(f"Store endpoint: {config.supermemory.store_endpoint}")
        print(f"Identity: {config.user.default_user_id}")
        print(f"Language: {config.user.language}")
    return 0


def cmd_config_show(args):
    """Show current configuration. The API key is masked."""
    try:
        config = ConfigManager(args.config_file).load_config()
    except ConfigurationError as e:
        print(f"✗ Failed to show configuration: {e}")
        return 1

    data = config.model_dump()
    if data["supermemory"]["api_key"]:
        data["supermemory"]["api_key"] = "****" + data["supermemory"]["api_key"][-4:]

    if args.format == "json":
        print(json.dumps(data, indent=2, default=str))
        return 0

    print("Current Configuration:")
    print("=" * 50)

    print("Supermemory:")
    print(f"  Configured: {config.is_configured}")
    print(f"  Base URL: {config.supermemory.base_url}")
    print(f"  Store Endpoint: {config.supermemory.store_endpoint}")

    print("\nUser:")
    print(f"  Identity: {config.user.default_user_id}")
    print(f"  Language: {config.user.language}")

    print("\nPersonalization:")
    print(f"  Enabled: {config.personalization.enabled}")
    print(f"  Languages: {', '.join(config.personalization.languages)}")
    print(f"  Attribute Content: {config.personalization.attribute_content}")

    print("\nLogging:")
    print(f"  Level: {config.logging.level}")
    print(f"  File Logging: {config.logging.file.enabled}")
    if config.logging.file.enabled:
        print(f"  Log File: {config.logging.file.path}")
    return 0


def cmd_config_create_example(args):
    """Create example configuration file."""
    try:
        ConfigManager(env_file=None, environ={}).create_example_config(args.output_file)
    except OSError as e:
        print(f"✗ Failed to create example configuration: {e}")
        return 1

    print(f"✓ Example configuration created: {args.output_file}")
    return 0


def cmd_personalize(args):
    """Print how a piece of content would be personalized."""
    from ..services.personalizer import Personalizer

    try:
        config = ConfigManager(args.config_file).load_config()
    except ConfigurationError as e:
        print(f"✗ {e}")
        return 1

    personalizer = Personalizer(
        identity=args.identity or config.user.default_user_id,
        languages=args.language or config.personalization.languages,
    )
    print(personalizer.personalize(args.text))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="team-memory",
        description="Team memory MCP server backed by Supermemory",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config-file", "-c", default=None, help="Path to YAML configuration file")
    parser.add_argument("--log-level", default="WARNING", help="Log level for CLI commands")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the MCP server over stdio")
    serve_parser.set_defaults(func=cmd_serve)

    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_subparsers = config_parser.add_subparsers(dest="config_command")

    validate_parser = config_subparsers.add_parser("validate", help="Validate configuration")
    validate_parser.add_argument("--verbose", "-v", action="store_true", help="Show key settings")
    validate_parser.set_defaults(func=cmd_config_validate)

    show_parser = config_subparsers.add_parser("show", help="Show configuration")
    show_parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format")
    show_parser.set_defaults(func=cmd_config_show)

    example_parser = config_subparsers.add_parser("create-example", help="Write an example configuration file")
    example_parser.add_argument("output_file", nargs="?", default="config.example.yml", help="Output path")
    example_parser.set_defaults(func=cmd_config_create_example)

    personalize_parser = subparsers.add_parser("personalize", help="Preview personalization of content")
    personalize_parser.add_argument("text", help="Content to personalize")
    personalize_parser.add_argument("--identity", "-i", default=None, help="Name to attribute content to")
    personalize_parser.add_argument(
        "--language", "-l",
        action="append",
        choices=SUPPORTED_LANGUAGES,
        help="Rule set to apply; repeat to apply several in order",
    )
    personalize_parser.set_defaults(func=cmd_personalize)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        return 1

    setup_logging(args.log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
