"""Allow ``python -m facegrid``."""

from facegrid.cli import main

if __name__ == "__main__":
    main()
