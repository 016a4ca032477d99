"""Entry point for ``python -m blockgen`` and the ``blockgen`` console script."""

import sys

from blockgen.main import main

if __name__ == "__main__":
    sys.exit(main())
