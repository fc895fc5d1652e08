"""Entry point for ``python -m ghx``."""

import sys

from ghx.cli import main

if __name__ == "__main__":
    sys.exit(main())
