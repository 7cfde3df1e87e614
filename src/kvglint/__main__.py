"""Entry point for running kvglint directly.

Usage:
    python -m kvglint validate
"""

import sys

from kvglint.cli import main

if __name__ == "__main__":
    sys.exit(main())
