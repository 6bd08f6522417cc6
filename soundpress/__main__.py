"""Allow `python -m soundpress`."""

from soundpress.cli import main

if __name__ == "__main__":
    main()
