"""Entry point for running cellfinder as a module.

Usage:
    python -m cellfinder IMAGE [options]
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
