"""Command-line client for the GitFlic forge."""

__version__ = "0.4.0"


def main() -> None:
    """Run the ``gf`` command line."""
    from dotenv import load_dotenv

    load_dotenv()

    from .cli.main import cli
    from .log import setup_logging

    setup_logging()
    cli(prog_name="gf")


if __name__ == "__main__":
    main()
