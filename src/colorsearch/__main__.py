"""Allow running as ``python -m colorsearch``."""

from .cli import main

if __name__ == "__main__":
    main()
