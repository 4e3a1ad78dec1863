"""Entry point for python -m yoloseg."""

import sys

from .cli import parse_args
from .runners.headless import run_headless


def main():
    """Main entry point."""
    config = parse_args()
    if config.display.enabled:
        from .runners.interactive import run_interactive
        sys.exit(run_interactive(config))
    sys.exit(run_headless(config))


if __name__ == "__main__":
    main()
