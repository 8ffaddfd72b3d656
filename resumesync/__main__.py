"""Allow running resumesync as ``python -m resumesync``."""

from .cli import main

if __name__ == "__main__":
    main()
