"""Entry point for running trackview as a module: python -m trackview."""

import logging
import sys

from .config import TrackViewConfig
from .errors import MissingReference
from .server import create_server


def main() -> None:
    """Run the trackview MCP server."""
    try:
        config = TrackViewConfig.from_env()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    # stdout carries the stdio transport
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        server = create_server(config)
    except MissingReference as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    server.run(transport=config.transport)  # type: ignore[arg-type]


if __name__ == "__main__":
    main()
