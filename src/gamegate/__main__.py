"""
=============================================================================
GAMEGATE CLI ENTRY POINT
=============================================================================

Runs the gateway standalone, without a game attached (an empty
InMemoryHost stands in for it). Useful for serving and testing the static
web panels and for trying the API.

    python -m gamegate                          # 0.0.0.0:8080, data in .
    python -m gamegate --port 9000 --data-dir ./data
    python -m gamegate --log-level DEBUG --log-format json

Defaults come from GAMEGATE_* environment variables (see
GatewayConfig.from_env); flags override them.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import GatewayConfig
from .errors import ConfigError
from .host import InMemoryHost
from .server import create_gateway


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gamegate",
        description="Embedded HTTP gateway for a game server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m gamegate                          # Run with defaults
  python -m gamegate --port 9000              # Custom port
  python -m gamegate --data-dir ./data        # routes.yml/keys.yml/web/ live here
  python -m gamegate --workers 4              # Handle 4 requests at once
        """
    )

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 8080)"
    )
    parser.add_argument(
        "--data-dir", "-d",
        default=None,
        help="Folder holding routes.yml, keys.yml and the static directories"
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Requests handled concurrently (default: 1)"
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=None,
        help="Access log format (default: text)"
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"gamegate {__version__}"
    )

    return parser


def build_config(args: argparse.Namespace) -> GatewayConfig:
    """Environment defaults, overridden by any flag that was given."""
    config = GatewayConfig.from_env()

    overrides = {
        "host": args.host,
        "port": args.port,
        "data_dir": args.data_dir,
        "workers": args.workers,
        "log_level": args.log_level,
        "log_format": args.log_format,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(config, name, value)

    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = build_config(args)
        config.validate()
        gateway = create_gateway(config, InMemoryHost())
    except (ValueError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        gateway.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
