"""Entry point for running voicegate as a module."""

from .cli import app


def main() -> None:
    """Main entry point for the voicegate CLI application."""
    app()


if __name__ == "__main__":
    main()
