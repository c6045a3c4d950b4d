"""CLI entrypoint for the stereogram animator."""

import sys

from stereogram_animator.cli import main


if __name__ == "__main__":
    sys.exit(main())
