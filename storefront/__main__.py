"""Entry point for ``python -m storefront``."""

import sys

from storefront.server import main

if __name__ == "__main__":
    sys.exit(main())
