"""Entry point for running guidevoice as a module."""

from .cli import app


def main() -> None:
    """Main entry point for the guidevoice CLI application."""
    app()


if __name__ == "__main__":
    main()
