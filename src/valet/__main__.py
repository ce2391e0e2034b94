"""Allow running valet as a module: python -m valet."""

from .cli import main

if __name__ == "__main__":
    main()
