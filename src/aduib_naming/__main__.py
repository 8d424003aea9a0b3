import sys

from aduib_naming.cli import main

if __name__ == "__main__":
    sys.exit(main())
