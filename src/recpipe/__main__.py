"""
recpipe entry point.

Run with: python -m recpipe [options]
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
