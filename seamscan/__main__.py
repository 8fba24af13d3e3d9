"""
Entry point for running seamscan as a module.

Usage:
    python -m seamscan scan ./snapshots
    python -m seamscan --help
"""

import sys

from seamscan.cli import main

if __name__ == "__main__":
    sys.exit(main())
