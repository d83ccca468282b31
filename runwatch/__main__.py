"""Allow ``python -m runwatch``."""

from .cli import main

if __name__ == "__main__":
    main()
