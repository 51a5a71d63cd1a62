"""
thinkchat Server CLI - Start the REST backend.

Usage:
    thinkchat-server                        # Start with defaults
    thinkchat-server --port 8000            # Custom port
    thinkchat-server --env /path/to/.env    # Custom env file
"""

import argparse
import os
import sys
from pathlib import Path


def _apply_env_file(env_path: Path) -> None:
    """Load environment variables from a .env file."""
    from dotenv import load_dotenv

    if not env_path.exists():
        print(f"Error: env file not found: {env_path}", file=sys.stderr)
        sys.exit(2)

    load_dotenv(dotenv_path=str(env_path))


def build_parser() -> argparse.ArgumentParser:
    """Build argument parser for thinkchat-server CLI."""
    parser = argparse.ArgumentParser(
        prog="thinkchat-server",
        description="Start the thinkchat REST backend.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to run the server on (default: 8000 or PORT env var).",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Host to bind to (default: 127.0.0.1 or THINKCHAT_HOST env var).",
    )
    parser.add_argument(
        "--env",
        dest="env_file",
        default=None,
        help="Path to .env file (default: .env in current directory).",
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.env_file:
        _apply_env_file(Path(args.env_file))
    elif Path(".env").exists():
        _apply_env_file(Path(".env"))

    host = args.host or os.environ.get("THINKCHAT_HOST", "127.0.0.1")
    port = args.port or int(os.environ.get("PORT", "8000"))

    import uvicorn

    uvicorn.run("thinkchat.main:create_app", factory=True, host=host, port=port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
