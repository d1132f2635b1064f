"""Main entry point for the stridetally package."""

from stridetally.cli import main


if __name__ == "__main__":
    main()
