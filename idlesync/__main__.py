"""Allow ``python -m idlesync``."""

from idlesync.cli import main

if __name__ == "__main__":
    main()
