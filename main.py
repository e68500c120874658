"""
Entry point for the Ghost endnote migration tool.
"""

import sys

from ghost_endnote.cli import main

if __name__ == "__main__":
    sys.exit(main())
