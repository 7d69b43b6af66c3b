"""Allow ``python -m modforge``."""

import sys

from modforge.cli import main

if __name__ == "__main__":
    sys.exit(main())
