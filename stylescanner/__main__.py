"""
Entry point for running the style scanner as a module.

Usage:
    python -m stylescanner check ./Sources
    python -m stylescanner --help
"""

import sys
from stylescanner.cli import main

if __name__ == "__main__":
    sys.exit(main())
